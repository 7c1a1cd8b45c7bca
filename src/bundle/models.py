"""Bundle input models and normalized module records.

The stats input is the JSON object a bundler writes for a build. Assets are
validated with pydantic; module entries stay raw mappings because their shape
decides how they are flattened (see :mod:`bundle.modules`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

ChunkId = str | int


class StatsAsset(BaseModel):
    """One output file listed in the bundler stats."""

    name: str
    size: int = 0
    chunks: list[ChunkId | None] = Field(
        default_factory=list,
        validation_alias=AliasChoices("chunks", "chunkIds"),
    )


class BundleStats(BaseModel):
    """Top-level bundler stats object."""

    assets: list[StatsAsset] = Field(default_factory=list)
    modules: list[dict[str, Any]] = Field(default_factory=list)


@dataclass(frozen=True, eq=False)
class ModuleRecord:
    """A flattened, normalized bundled module.

    Equality is identity: the same record is shared by every asset that
    contains it, and set membership must not merge distinct modules that
    happen to carry the same fields.
    """

    identifier: str
    chunk_ids: frozenset[str]
    size: int
    base_name: str | None
    is_installed: bool
    is_synthetic: bool
    source: str | None


@dataclass(frozen=True)
class AssetModules:
    """An output asset together with the distinct modules it contains."""

    name: str
    chunk_ids: frozenset[str]
    size: int
    modules: tuple[ModuleRecord, ...]


__all__ = [
    "AssetModules",
    "BundleStats",
    "ChunkId",
    "ModuleRecord",
    "StatsAsset",
]
