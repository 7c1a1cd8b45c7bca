from __future__ import annotations

import orjson
import pytest

from reports.models import (
    DuplicateFile,
    DuplicateSource,
    DuplicatesAsset,
    DuplicatesReport,
    InstalledPackage,
    ModuleSize,
    ReportModule,
    SizesAsset,
    SizesReport,
    SizesSummary,
    SkewPart,
    VersionsAsset,
    VersionsReport,
)
from reports.render import render_report
from reports.summaries import summarize_duplicates, summarize_versions


def _module(file_name: str, base_name: str | None, size: int) -> ReportModule:
    return ReportModule(
        base_name=base_name, file_name=file_name, size=ModuleSize(full=size)
    )


def _duplicates_report() -> DuplicatesReport:
    report = DuplicatesReport(
        assets={
            "bundle.js": DuplicatesAsset(
                files={
                    "foo/index.js": DuplicateFile(
                        sources=[
                            DuplicateSource(
                                modules=[
                                    _module(
                                        "/app/node_modules/foo/index.js",
                                        "foo/index.js",
                                        10,
                                    )
                                ]
                            ),
                            DuplicateSource(
                                modules=[
                                    _module(
                                        "/app/node_modules/x/node_modules/foo/index.js",
                                        "foo/index.js",
                                        12,
                                    )
                                ]
                            ),
                        ]
                    )
                }
            )
        }
    )
    return summarize_duplicates(report)


def _versions_report() -> VersionsReport:
    chain = [
        SkewPart(name="app", range="1.0.0", version="1.0.0"),
        SkewPart(name="x", range="^1.0.0", version="1.0.0"),
        SkewPart(name="foo", range="^2.0.0", version="2.0.0"),
    ]
    report = VersionsReport(
        assets={
            "bundle.js": VersionsAsset(
                packages={
                    "foo": {
                        "2.0.0": {
                            "node_modules/x/node_modules/foo": InstalledPackage(
                                modules=[
                                    _module(
                                        "/app/node_modules/x/node_modules/foo/a.js",
                                        "foo/a.js",
                                        3,
                                    )
                                ],
                                skews=[chain],
                            )
                        },
                        "1.0.0": {
                            "node_modules/foo": InstalledPackage(
                                skews=[
                                    [
                                        SkewPart(
                                            name="app", range="1.0.0", version="1.0.0"
                                        ),
                                        SkewPart(
                                            name="foo", range="^1.0.0", version="1.0.0"
                                        ),
                                    ]
                                ]
                            )
                        },
                    }
                }
            )
        }
    )
    return summarize_versions(report)


def test_duplicates_json_uses_camel_case() -> None:
    data = orjson.loads(render_report(_duplicates_report(), "json"))

    assert data["meta"] == {
        "extraFiles": {"num": 2},
        "extraSources": {"bytes": 22, "num": 2},
    }
    file = data["assets"]["bundle.js"]["files"]["foo/index.js"]
    file_name = file["sources"][1]["modules"][0]["fileName"]
    assert file_name == "/app/node_modules/x/node_modules/foo/index.js"


def test_duplicates_tsv() -> None:
    lines = render_report(_duplicates_report(), "tsv").splitlines()

    assert lines == [
        "Asset\tFull Name\tShort Name\tGroup Index\tSize",
        "bundle.js\t/app/node_modules/foo/index.js\tfoo/index.js\t0\t10",
        "bundle.js\t/app/node_modules/x/node_modules/foo/index.js\tfoo/index.js\t1\t12",
    ]


def test_versions_json_round_trips_counters() -> None:
    data = orjson.loads(render_report(_versions_report()))

    assert data["meta"]["packages"] == {"num": 1}
    assert data["meta"]["resolved"] == {"num": 2}
    assert data["assets"]["bundle.js"]["meta"]["files"] == {"num": 1}
    assert "packageRoots" in data["meta"]


def test_versions_tsv_sorts_versions_and_shortens_paths() -> None:
    lines = render_report(_versions_report(), "tsv").splitlines()

    assert lines == [
        "Asset\tPackage\tVersion\tInstalled Path\tDependency Path",
        "bundle.js\tfoo\t1.0.0\t~/foo\tapp@1.0.0 -> foo@^1.0.0",
        "bundle.js\tfoo\t2.0.0\t~/x/~/foo\tapp@1.0.0 -> x@^1.0.0 -> foo@^2.0.0",
    ]


def _sizes_report() -> SizesReport:
    return SizesReport(
        meta=SizesSummary(full=70),
        assets={
            "bundle.js": SizesAsset(
                meta=SizesSummary(full=70),
                files=[
                    _module("/app/node_modules/foo/index.js", "foo/index.js", 10),
                    _module("/app/src/index.js", None, 4),
                ],
            )
        },
    )


def test_sizes_tsv_marks_first_party_files() -> None:
    lines = render_report(_sizes_report(), "tsv").splitlines()

    assert lines == [
        "Asset\tFull Name\tShort Name\tSize",
        "bundle.js\t/app/node_modules/foo/index.js\tfoo/index.js\t10",
        "bundle.js\t/app/src/index.js\t(source)\t4",
    ]


def test_unknown_format_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown report format"):
        render_report(DuplicatesReport(), "xml")  # type: ignore[arg-type]


def test_duplicates_text() -> None:
    text = render_report(_duplicates_report(), "text")

    assert text.splitlines() == [
        "packweight duplicates",
        "=====================",
        "",
        "## Summary",
        "* Extra Files (unique):         2",
        "* Extra Sources (non-unique):   2",
        "* Extra Bytes (non-unique):     22",
        "",
        "## `bundle.js`",
        "* foo/index.js",
        "  * Meta: Files 2, Sources 2, Bytes 22",
        "  0. (Files 1, Sources 1, Bytes 10)",
        "    (10) /app/node_modules/foo/index.js",
        "  1. (Files 1, Sources 1, Bytes 12)",
        "    (12) /app/node_modules/x/node_modules/foo/index.js",
    ]


def test_versions_text_lists_chains_under_installs() -> None:
    lines = render_report(_versions_report(), "text").splitlines()

    assert lines[:3] == ["packweight versions", "===================", ""]
    assert "* Packages with skews:      1" in lines
    assert lines[lines.index("## `bundle.js`") :] == [
        "## `bundle.js`",
        "* foo",
        "  * 1.0.0",
        "    * ~/foo",
        "      * Num deps: 1, files: 0",
        "      * app@1.0.0 -> foo@^1.0.0",
        "  * 2.0.0",
        "    * ~/x/~/foo",
        "      * Num deps: 1, files: 1",
        "      * app@1.0.0 -> x@^1.0.0 -> foo@^2.0.0",
    ]


def test_sizes_text() -> None:
    assert render_report(_sizes_report(), "text").splitlines() == [
        "packweight sizes",
        "================",
        "",
        "## Summary",
        "* Bytes: 70",
        "",
        "## `bundle.js`",
        "* Bytes: 70",
        "* /app/node_modules/foo/index.js",
        "  * Size: 10",
        "* /app/src/index.js",
        "  * Size: 4",
    ]


def test_empty_assets_left_out_of_text() -> None:
    report = DuplicatesReport(assets={"bundle.js": DuplicatesAsset()})

    assert "bundle.js" not in render_report(report, "text")
