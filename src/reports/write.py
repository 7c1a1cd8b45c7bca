from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import orjson
from pydantic import ValidationError

from bundle.assets import map_assets
from bundle.models import BundleStats
from bundle.modules import extract_modules
from errors import InvalidStatsError
from log import get_logger
from reports.duplicates import build_duplicates_report
from reports.render import render_report
from reports.sizes import build_sizes_report
from reports.versions import build_versions_report
from rules.config import PackweightConfig, load_config, resolve_output_dir
from rules.ignore import build_ignore_patterns
from scan.manifests import ManifestCache

if TYPE_CHECKING:
    from reports.models import Report
    from reports.render import ReportFormat

logger = get_logger(__name__)

ReportKind = Literal["duplicates", "sizes", "versions"]
REPORT_KINDS: tuple[ReportKind, ...] = ("duplicates", "sizes", "versions")

_EXTENSIONS = {"json": "json", "text": "txt", "tsv": "tsv"}


def load_stats(path: Path) -> BundleStats:
    """Read and validate a bundler stats JSON file."""
    try:
        data = orjson.loads(Path(path).read_bytes())
    except orjson.JSONDecodeError as exc:
        msg = f"Invalid stats JSON in {path}: {exc}"
        raise InvalidStatsError(msg) from exc

    return parse_stats(data)


def parse_stats(data: object) -> BundleStats:
    try:
        return BundleStats.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid bundler stats object: {exc}"
        raise InvalidStatsError(msg) from exc


async def analyze(
    kind: ReportKind,
    stats: BundleStats,
    *,
    config: PackweightConfig | None = None,
) -> Report:
    """Run one analysis over a validated stats object."""
    if kind not in REPORT_KINDS:
        msg = f"Unknown report kind: {kind!r}"
        raise ValueError(msg)

    if config is None:
        config = PackweightConfig()

    ignored = build_ignore_patterns(config.ignored_packages, config.ignored_patterns)
    modules = extract_modules(stats.modules, ignored)
    assets = map_assets(stats.assets, modules)
    logger.debug("analyzing %d modules across %d assets", len(modules), len(assets))

    if kind == "duplicates":
        return build_duplicates_report(assets)
    if kind == "sizes":
        return build_sizes_report(assets)

    return await build_versions_report(
        modules,
        assets,
        duplicates_only=config.duplicates_only,
        cache=ManifestCache(config.concurrency),
    )


def generate_report(
    kind: ReportKind,
    stats: BundleStats,
    *,
    config: PackweightConfig | None = None,
) -> Report:
    """Synchronous wrapper around :func:`analyze`."""
    return asyncio.run(analyze(kind, stats, config=config))


def write_report(
    report: Report,
    *,
    root: Path,
    out_dir: Path | None = None,
    fmt: ReportFormat | None = None,
    config: PackweightConfig | None = None,
) -> Path:
    """Render a report into ``<out_dir>/<kind>.<ext>`` and return the path.

    Args:
        report: Report to write
        root: Project root used to resolve the configured output dir
        out_dir: Optional output directory overriding the config
        fmt: Optional output format overriding the config
        config: Optional configuration (loaded from ``root`` when omitted)
    """
    if config is None:
        config = load_config(root)

    if out_dir is None:
        out_dir = resolve_output_dir(root, config.output_dir)

    fmt = fmt or config.format
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{report.kind}.{_EXTENSIONS[fmt]}"
    path.write_text(render_report(report, fmt) + "\n", encoding="utf-8")
    logger.debug("wrote %s", path)
    return path


__all__ = [
    "REPORT_KINDS",
    "ReportKind",
    "analyze",
    "generate_report",
    "load_stats",
    "parse_stats",
    "write_report",
]
