"""Group module records by the output assets that contain them."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from bundle.models import AssetModules
from log import get_logger
from utils import sort_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from bundle.models import ModuleRecord, StatsAsset

logger = get_logger(__name__)

SCRIPT_ASSET_RE = re.compile(r"\.(m|)js$")


def map_assets(
    assets: Iterable[StatsAsset],
    modules: Sequence[ModuleRecord],
) -> dict[str, AssetModules]:
    """Return script assets keyed by name, each with its distinct modules.

    Chunk membership is the join key. A module reachable through several
    chunks of one asset is listed once, in first-seen order.
    """
    chunk_to_assets: dict[str, list[str]] = {}
    members: dict[str, dict[ModuleRecord, None]] = {}
    script_assets: dict[str, StatsAsset] = {}

    for asset in assets:
        if not SCRIPT_ASSET_RE.search(asset.name):
            continue
        script_assets[asset.name] = asset
        members.setdefault(asset.name, {})
        for chunk in asset.chunks:
            if chunk is None:
                continue
            names = chunk_to_assets.setdefault(str(chunk), [])
            if asset.name not in names:
                names.append(asset.name)

    for module in modules:
        for chunk in sorted(module.chunk_ids, key=sort_key):
            for asset_name in chunk_to_assets.get(chunk, ()):
                members[asset_name].setdefault(module, None)

    result: dict[str, AssetModules] = {}
    for name in sorted(script_assets, key=sort_key):
        asset = script_assets[name]
        result[name] = AssetModules(
            name=name,
            chunk_ids=frozenset(str(c) for c in asset.chunks if c is not None),
            size=asset.size,
            modules=tuple(members[name]),
        )
        logger.debug("asset %s holds %d modules", name, len(result[name].modules))

    return result


__all__ = ["SCRIPT_ASSET_RE", "map_assets"]
