"""Report models for the duplicates, sizes and version-skew analyses.

Field names are snake_case in Python and serialize to camelCase with
``model_dump(by_alias=True)``.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Count(ReportModel):
    num: int = 0


class ByteCount(ReportModel):
    num: int = 0
    bytes: int = 0


class ModuleSize(ReportModel):
    full: int


class ReportModule(ReportModel):
    """A bundled module as listed in reports."""

    base_name: str | None
    file_name: str
    size: ModuleSize


# Duplicates


class DuplicatesSummary(ReportModel):
    """Extra files (unique base names) and extra sources (every copy)."""

    extra_files: Count = Field(default_factory=Count)
    extra_sources: ByteCount = Field(default_factory=ByteCount)


class DuplicateSource(ReportModel):
    """Modules of one base name that share identical source."""

    meta: DuplicatesSummary = Field(default_factory=DuplicatesSummary)
    modules: list[ReportModule] = Field(default_factory=list)


class DuplicateFile(ReportModel):
    meta: DuplicatesSummary = Field(default_factory=DuplicatesSummary)
    sources: list[DuplicateSource] = Field(default_factory=list)


class DuplicatesAsset(ReportModel):
    meta: DuplicatesSummary = Field(default_factory=DuplicatesSummary)
    files: dict[str, DuplicateFile] = Field(default_factory=dict)


class DuplicatesReport(ReportModel):
    kind: ClassVar[str] = "duplicates"

    meta: DuplicatesSummary = Field(default_factory=DuplicatesSummary)
    assets: dict[str, DuplicatesAsset] = Field(default_factory=dict)

    def should_fail(self) -> bool:
        """True when any file is bundled more than once."""
        return self.meta.extra_files.num != 0


# Sizes


class SizesSummary(ReportModel):
    full: int = 0


class SizesAsset(ReportModel):
    """An output asset with its byte size and every module bundled into it."""

    meta: SizesSummary = Field(default_factory=SizesSummary)
    files: list[ReportModule] = Field(default_factory=list)


class SizesReport(ReportModel):
    kind: ClassVar[str] = "sizes"

    meta: SizesSummary = Field(default_factory=SizesSummary)
    assets: dict[str, SizesAsset] = Field(default_factory=dict)

    def should_fail(self) -> bool:
        """Sizes are informational and never fail a build."""
        return False


# Versions


class VersionsMeta(ReportModel):
    """Skew counters for one asset."""

    depended: Count = Field(default_factory=Count)
    files: Count = Field(default_factory=Count)
    installed: Count = Field(default_factory=Count)
    packages: Count = Field(default_factory=Count)
    resolved: Count = Field(default_factory=Count)


class VersionsSummary(VersionsMeta):
    """Skew counters for the whole bundle, with the inferred package roots."""

    package_roots: list[str] = Field(default_factory=list)
    common_root: str | None = None


class SkewPart(ReportModel):
    name: str
    range: str
    version: str


class InstalledPackage(ReportModel):
    """Bundled modules of one install path and the chains that depend on it."""

    modules: list[ReportModule] = Field(default_factory=list)
    skews: list[list[SkewPart]] = Field(default_factory=list)


# name -> version -> relative install path -> installed package
VersionsPackages = dict[str, dict[str, dict[str, InstalledPackage]]]


class VersionsAsset(ReportModel):
    meta: VersionsMeta = Field(default_factory=VersionsMeta)
    packages: VersionsPackages = Field(default_factory=dict)


class VersionsReport(ReportModel):
    kind: ClassVar[str] = "versions"

    meta: VersionsSummary = Field(default_factory=VersionsSummary)
    assets: dict[str, VersionsAsset] = Field(default_factory=dict)

    def should_fail(self) -> bool:
        """True when any package is bundled from more than one install."""
        return self.meta.packages.num != 0


Report = DuplicatesReport | SizesReport | VersionsReport


__all__ = [
    "ByteCount",
    "Count",
    "DuplicateFile",
    "DuplicateSource",
    "DuplicatesAsset",
    "DuplicatesReport",
    "DuplicatesSummary",
    "InstalledPackage",
    "ModuleSize",
    "Report",
    "ReportModule",
    "SizesAsset",
    "SizesReport",
    "SizesSummary",
    "SkewPart",
    "VersionsAsset",
    "VersionsMeta",
    "VersionsPackages",
    "VersionsReport",
    "VersionsSummary",
]
