"""Duplicate source detection across bundled installed modules."""

from __future__ import annotations

from typing import TYPE_CHECKING

from log import get_logger
from reports.models import (
    DuplicateFile,
    DuplicateSource,
    DuplicatesAsset,
    DuplicatesReport,
    ModuleSize,
    ReportModule,
)
from reports.summaries import summarize_duplicates
from utils import sort_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from bundle.models import AssetModules, ModuleRecord

logger = get_logger(__name__)

# Stands in for the source of modules that have none, so they still group.
SYNTHETIC_SOURCE_TOKEN = "synthetic"


def report_module(module: ModuleRecord) -> ReportModule:
    return ReportModule(
        base_name=module.base_name,
        file_name=module.identifier,
        size=ModuleSize(full=module.size),
    )


def modules_by_base_name_by_source(
    modules: Iterable[ModuleRecord],
) -> dict[str, dict[str, list[ModuleRecord]]]:
    """Group installed modules by base name, then by identical source.

    Base names with a single source shared by a single module are dropped.
    """
    grouped: dict[str, dict[str, list[ModuleRecord]]] = {}
    for module in modules:
        if not module.is_installed or module.base_name is None:
            continue
        source = SYNTHETIC_SOURCE_TOKEN if module.is_synthetic else module.source
        if source is None:
            continue
        grouped.setdefault(module.base_name, {}).setdefault(source, []).append(module)

    return {
        base_name: by_source
        for base_name, by_source in grouped.items()
        if not (len(by_source) == 1 and len(next(iter(by_source.values()))) == 1)
    }


def build_duplicates_report(assets: Mapping[str, AssetModules]) -> DuplicatesReport:
    """Report base names bundled more than once in each asset."""
    report = DuplicatesReport()

    for name in sorted(assets, key=sort_key):
        grouped = modules_by_base_name_by_source(assets[name].modules)
        files = {
            base_name: DuplicateFile(
                sources=[
                    DuplicateSource(
                        modules=[report_module(mod) for mod in by_source[source]]
                    )
                    for source in sorted(by_source, key=sort_key)
                ]
            )
            for base_name, by_source in grouped.items()
        }
        report.assets[name] = DuplicatesAsset(files=files)
        logger.debug("asset %s has %d duplicated files", name, len(files))

    return summarize_duplicates(report)


__all__ = [
    "SYNTHETIC_SOURCE_TOKEN",
    "build_duplicates_report",
    "modules_by_base_name_by_source",
    "report_module",
]
