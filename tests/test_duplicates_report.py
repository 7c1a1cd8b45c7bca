from __future__ import annotations

from typing import Any

from bundle.assets import map_assets
from bundle.models import StatsAsset
from bundle.modules import extract_modules
from reports import generate_report
from reports.duplicates import build_duplicates_report
from reports.models import DuplicatesReport
from reports.write import parse_stats
from rules.config import PackweightConfig


def _duplicates(modules: list[dict[str, Any]]) -> DuplicatesReport:
    assets = [StatsAsset(name="bundle.js", chunks=[0])]
    return build_duplicates_report(map_assets(assets, extract_modules(modules)))


def _source(identifier: str, source: str) -> dict[str, Any]:
    return {"identifier": identifier, "chunks": [0], "source": source}


def test_identical_sources_form_one_group() -> None:
    report = _duplicates(
        [
            _source("/app/node_modules/foo/index.js", "module.exports = 1;"),
            _source(
                "/app/node_modules/bar/node_modules/foo/index.js",
                "module.exports = 1;",
            ),
            _source("/app/src/index.js", "require('foo');"),
        ]
    )

    asset = report.assets["bundle.js"]
    assert list(asset.files) == ["foo/index.js"]
    file = asset.files["foo/index.js"]
    assert len(file.sources) == 1
    (group,) = file.sources
    assert [mod.file_name for mod in group.modules] == [
        "/app/node_modules/bar/node_modules/foo/index.js",
        "/app/node_modules/foo/index.js",
    ]
    assert group.meta.extra_files.num == 1
    assert group.meta.extra_sources.num == 2
    assert group.meta.extra_sources.bytes == 2 * len("module.exports = 1;")

    assert report.meta.extra_files.num == 1
    assert report.meta.extra_sources.num == 2
    assert report.should_fail()


def test_different_sources_form_separate_groups() -> None:
    report = _duplicates(
        [
            _source("/app/node_modules/foo/index.js", "one"),
            _source("/app/node_modules/bar/node_modules/foo/index.js", "three"),
        ]
    )

    file = report.assets["bundle.js"].files["foo/index.js"]
    assert [group.meta.extra_sources.num for group in file.sources] == [1, 1]
    assert [group.modules[0].size.full for group in file.sources] == [3, 5]
    assert file.meta.extra_files.num == 2
    assert file.meta.extra_sources.num == 2
    assert file.meta.extra_sources.bytes == 8
    assert report.meta.extra_files.num == 2


def test_single_installed_copy_is_not_reported() -> None:
    report = _duplicates(
        [
            _source("/app/node_modules/foo/index.js", "one"),
            _source("/app/src/foo/index.js", "one"),
            _source("/app/src/other/foo/index.js", "one"),
        ]
    )

    assert report.assets["bundle.js"].files == {}
    assert report.meta.extra_files.num == 0
    assert not report.should_fail()


def test_synthetic_modules_group_together() -> None:
    report = _duplicates(
        [
            {
                "identifier": "/app/node_modules/moment/locale sync /es/",
                "chunks": [0],
                "size": 100,
            },
            {
                "identifier": "/app/node_modules/x/node_modules/moment/locale sync /es/",
                "chunks": [0],
                "size": 120,
            },
        ]
    )

    file = report.assets["bundle.js"].files["moment/locale sync /es/"]
    assert len(file.sources) == 1
    assert file.sources[0].meta.extra_sources.bytes == 220


def test_assets_without_duplicates_are_listed_empty() -> None:
    assets = [
        StatsAsset(name="a.js", chunks=[0]),
        StatsAsset(name="b.js", chunks=[1]),
    ]
    modules = extract_modules(
        [
            _source("/app/node_modules/foo/index.js", "x"),
            {
                "identifier": "/app/node_modules/bar/node_modules/foo/index.js",
                "chunks": [0],
                "source": "x",
            },
            {"identifier": "/app/src/b.js", "chunks": [1], "source": "b"},
        ]
    )

    report = build_duplicates_report(map_assets(assets, modules))

    assert list(report.assets) == ["a.js", "b.js"]
    assert report.assets["b.js"].files == {}
    assert report.assets["b.js"].meta.extra_files.num == 0
    assert report.assets["a.js"].meta.extra_files.num == 1


def test_report_serializes_with_camel_case_keys() -> None:
    report = _duplicates(
        [
            _source("/app/node_modules/foo/index.js", "x"),
            _source("/app/node_modules/bar/node_modules/foo/index.js", "x"),
        ]
    )

    data = report.model_dump(by_alias=True)

    assert data["meta"] == {
        "extraFiles": {"num": 1},
        "extraSources": {"num": 2, "bytes": 2},
    }
    module = data["assets"]["bundle.js"]["files"]["foo/index.js"]["sources"][0][
        "modules"
    ][0]
    assert module == {
        "baseName": "foo/index.js",
        "fileName": "/app/node_modules/bar/node_modules/foo/index.js",
        "size": {"full": 1},
    }


def test_generate_report_from_raw_stats() -> None:
    stats = parse_stats(
        {
            "assets": [{"name": "bundle.js", "chunks": [0]}],
            "modules": [
                _source("/app/node_modules/foo/index.js", "x"),
                _source("/app/node_modules/bar/node_modules/foo/index.js", "x"),
            ],
        }
    )

    report = generate_report("duplicates", stats)
    ignored = generate_report(
        "duplicates", stats, config=PackweightConfig(ignored_packages=["foo"])
    )

    assert report.meta.extra_files.num == 1
    assert ignored.meta.extra_files.num == 0
