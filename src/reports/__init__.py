"""Report generation entry points."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bundle.models import BundleStats
    from reports.models import Report
    from reports.write import ReportKind
    from rules.config import PackweightConfig


def generate_report(
    kind: ReportKind,
    stats: BundleStats,
    *,
    config: PackweightConfig | None = None,
) -> Report:
    """Generate a report via lazy import to avoid package import cycles."""
    from reports.write import generate_report as _generate_report

    return _generate_report(kind, stats, config=config)


__all__ = ["generate_report"]
