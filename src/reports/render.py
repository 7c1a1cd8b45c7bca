"""Render reports as JSON, TSV or plain text."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import orjson

from reports.models import DuplicatesReport, SizesReport, VersionsReport
from utils import semver_key, sort_key

if TYPE_CHECKING:
    from reports.models import DuplicatesSummary, Report, SkewPart

ReportFormat = Literal["json", "text", "tsv"]
REPORT_FORMATS: tuple[ReportFormat, ...] = ("json", "text", "tsv")

_DUPLICATES_TSV_HEADER = "Asset\tFull Name\tShort Name\tGroup Index\tSize"
_SIZES_TSV_HEADER = "Asset\tFull Name\tShort Name\tSize"
_VERSIONS_TSV_HEADER = "Asset\tPackage\tVersion\tInstalled Path\tDependency Path"


def _render_json(report: Report) -> str:
    payload = report.model_dump(by_alias=True)
    opts = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
    return orjson.dumps(payload, option=opts).decode("utf-8")


def _duplicates_tsv(report: DuplicatesReport) -> str:
    lines = [_DUPLICATES_TSV_HEADER]
    for asset_name, asset in report.assets.items():
        for file in asset.files.values():
            for index, group in enumerate(file.sources):
                lines.extend(
                    "\t".join(
                        [
                            asset_name,
                            mod.file_name,
                            mod.base_name or "",
                            str(index),
                            str(mod.size.full),
                        ]
                    )
                    for mod in group.modules
                )
    return "\n".join(lines)


def _short_path(path: str) -> str:
    return path.replace("node_modules", "~")


def _dependency_path(skew: list[SkewPart]) -> str:
    return " -> ".join(f"{part.name}@{part.range}" for part in skew)


def _versions_tsv(report: VersionsReport) -> str:
    lines = [_VERSIONS_TSV_HEADER]
    for asset_name, asset in report.assets.items():
        for pkg_name in sorted(asset.packages, key=sort_key):
            versions = asset.packages[pkg_name]
            for version in sorted(versions, key=semver_key):
                installs = versions[version]
                for path in sorted(installs, key=sort_key):
                    chains = sorted(
                        (_dependency_path(skew) for skew in installs[path].skews),
                        key=sort_key,
                    )
                    lines.extend(
                        "\t".join(
                            [asset_name, pkg_name, version, _short_path(path), chain]
                        )
                        for chain in chains
                    )
    return "\n".join(lines)


def _sizes_tsv(report: SizesReport) -> str:
    lines = [_SIZES_TSV_HEADER]
    for asset_name, asset in report.assets.items():
        lines.extend(
            "\t".join(
                [
                    asset_name,
                    mod.file_name,
                    mod.base_name if mod.base_name is not None else "(source)",
                    str(mod.size.full),
                ]
            )
            for mod in asset.files
        )
    return "\n".join(lines)


def _title(kind: str) -> list[str]:
    title = f"packweight {kind}"
    return [title, "=" * len(title), ""]


def _inline_meta(meta: DuplicatesSummary) -> str:
    return (
        f"Files {meta.extra_files.num}, "
        f"Sources {meta.extra_sources.num}, "
        f"Bytes {meta.extra_sources.bytes}"
    )


def _duplicates_text(report: DuplicatesReport) -> str:
    lines = _title("duplicates")
    lines += [
        "## Summary",
        f"* Extra Files (unique):         {report.meta.extra_files.num}",
        f"* Extra Sources (non-unique):   {report.meta.extra_sources.num}",
        f"* Extra Bytes (non-unique):     {report.meta.extra_sources.bytes}",
    ]
    for asset_name, asset in report.assets.items():
        if not asset.files:
            continue
        lines += ["", f"## `{asset_name}`"]
        for base_name, file in asset.files.items():
            lines += [f"* {base_name}", f"  * Meta: {_inline_meta(file.meta)}"]
            for index, group in enumerate(file.sources):
                lines.append(f"  {index}. ({_inline_meta(group.meta)})")
                lines.extend(
                    f"    ({mod.size.full}) {mod.file_name}" for mod in group.modules
                )
    return "\n".join(lines)


def _sizes_text(report: SizesReport) -> str:
    lines = _title("sizes")
    lines += ["## Summary", f"* Bytes: {report.meta.full}"]
    for asset_name, asset in report.assets.items():
        lines += ["", f"## `{asset_name}`", f"* Bytes: {asset.meta.full}"]
        for mod in asset.files:
            lines += [f"* {mod.file_name}", f"  * Size: {mod.size.full}"]
    return "\n".join(lines)


def _versions_text(report: VersionsReport) -> str:
    meta = report.meta
    lines = _title("versions")
    lines += [
        "## Summary",
        f"* Packages with skews:      {meta.packages.num}",
        f"* Total resolved versions:  {meta.resolved.num}",
        f"* Total installed packages: {meta.installed.num}",
        f"* Total depended packages:  {meta.depended.num}",
        f"* Total bundled files:      {meta.files.num}",
    ]
    for asset_name, asset in report.assets.items():
        if not asset.packages:
            continue
        lines += ["", f"## `{asset_name}`"]
        for pkg_name in sorted(asset.packages, key=sort_key):
            lines.append(f"* {pkg_name}")
            versions = asset.packages[pkg_name]
            for version in sorted(versions, key=semver_key):
                lines.append(f"  * {version}")
                installs = versions[version]
                for path in sorted(installs, key=sort_key):
                    installed = installs[path]
                    lines += [
                        f"    * {_short_path(path)}",
                        f"      * Num deps: {len(installed.skews)}, "
                        f"files: {len(installed.modules)}",
                    ]
                    lines.extend(
                        f"      * {chain}"
                        for chain in sorted(
                            (_dependency_path(skew) for skew in installed.skews),
                            key=sort_key,
                        )
                    )
    return "\n".join(lines)


_RENDERERS = {
    "text": {
        DuplicatesReport: _duplicates_text,
        SizesReport: _sizes_text,
        VersionsReport: _versions_text,
    },
    "tsv": {
        DuplicatesReport: _duplicates_tsv,
        SizesReport: _sizes_tsv,
        VersionsReport: _versions_tsv,
    },
}


def render_report(report: Report, fmt: ReportFormat = "json") -> str:
    """Render a report in the given output format.

    Raises:
        ValueError: for an unknown format.
        TypeError: for an unknown report type.
    """
    if fmt == "json":
        return _render_json(report)

    if fmt not in _RENDERERS:
        msg = f"Unknown report format: {fmt!r}"
        raise ValueError(msg)

    renderer = _RENDERERS[fmt].get(type(report))
    if renderer is None:
        msg = f"Cannot render {type(report).__name__} as {fmt}"
        raise TypeError(msg)
    return renderer(report)


__all__ = ["REPORT_FORMATS", "ReportFormat", "render_report"]
