"""Summary builders for report counters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reports.models import ByteCount, Count, DuplicatesSummary, VersionsMeta

if TYPE_CHECKING:
    from reports.models import DuplicatesReport, VersionsReport


def _add_duplicates(target: DuplicatesSummary, meta: DuplicatesSummary) -> None:
    target.extra_files.num += meta.extra_files.num
    target.extra_sources.num += meta.extra_sources.num
    target.extra_sources.bytes += meta.extra_sources.bytes


def summarize_duplicates(report: DuplicatesReport) -> DuplicatesReport:
    """Recompute every duplicates counter from the source groups up."""
    report.meta = DuplicatesSummary()

    for asset in report.assets.values():
        asset.meta = DuplicatesSummary()
        for file in asset.files.values():
            file.meta = DuplicatesSummary()
            for group in file.sources:
                group.meta = DuplicatesSummary(
                    extra_files=Count(num=1),
                    extra_sources=ByteCount(
                        num=len(group.modules),
                        bytes=sum(mod.size.full for mod in group.modules),
                    ),
                )
                _add_duplicates(file.meta, group.meta)
            _add_duplicates(asset.meta, file.meta)
        _add_duplicates(report.meta, asset.meta)

    return report


def _add_versions(target: VersionsMeta, meta: VersionsMeta) -> None:
    target.packages.num += meta.packages.num
    target.resolved.num += meta.resolved.num
    target.installed.num += meta.installed.num
    target.files.num += meta.files.num
    target.depended.num += meta.depended.num


def summarize_versions(report: VersionsReport) -> VersionsReport:
    """Recompute asset and global skew counters.

    Global counters are sums over assets, so a package bundled into two
    assets counts twice.
    """
    summary = report.meta
    for field in VersionsMeta.model_fields:
        setattr(summary, field, Count())

    for asset in report.assets.values():
        meta = VersionsMeta()
        for versions in asset.packages.values():
            meta.packages.num += 1
            meta.resolved.num += len(versions)
            for installs in versions.values():
                for installed in installs.values():
                    meta.installed.num += 1
                    meta.files.num += len(installed.modules)
                    meta.depended.num += len(installed.skews)
        asset.meta = meta
        _add_versions(summary, meta)

    return report


__all__ = ["summarize_duplicates", "summarize_versions"]
