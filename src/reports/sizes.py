"""Per-asset module size listing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from log import get_logger
from reports.duplicates import report_module
from reports.models import SizesAsset, SizesReport, SizesSummary
from utils import sort_key

if TYPE_CHECKING:
    from collections.abc import Mapping

    from bundle.models import AssetModules

logger = get_logger(__name__)


def build_sizes_report(assets: Mapping[str, AssetModules]) -> SizesReport:
    """List every bundled module of each asset with its size.

    The global size sums asset sizes, so it can exceed the sum of distinct
    modules when one module is bundled into several assets.
    """
    report = SizesReport()

    for name in sorted(assets, key=sort_key):
        asset = assets[name]
        report.assets[name] = SizesAsset(
            meta=SizesSummary(full=asset.size),
            files=[report_module(module) for module in asset.modules],
        )
        report.meta.full += asset.size
        logger.debug("asset %s: %d bytes, %d modules", name, asset.size, len(asset.modules))

    return report


__all__ = ["build_sizes_report"]
