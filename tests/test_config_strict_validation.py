from __future__ import annotations

from pathlib import Path

import pytest

from rules.config import ConfigError, load_config, resolve_output_dir


def _write_config(project_root: Path, toml_content: str) -> None:
    (project_root / "packweight.toml").write_text(toml_content, encoding="utf-8")


def test_unknown_top_level_key_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "bogus_key = true")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_invalid_toml_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "ignored_packages = [")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(tmp_path)


def test_invalid_ignored_pattern_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, 'ignored_patterns = ["(unclosed"]')

    with pytest.raises(ConfigError, match="Invalid ignored pattern"):
        load_config(tmp_path)


def test_unknown_format_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, 'format = "xml"')

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_zero_concurrency_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "concurrency = 0")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_valid_config_accepted(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
output_dir = "reports"
ignored_packages = ["moment", "@babel/runtime"]
ignored_patterns = ["^lodash\\\\."]
duplicates_only = false
format = "tsv"
concurrency = 8
""".strip(),
    )

    config = load_config(tmp_path)

    assert config.output_dir == "reports"
    assert config.ignored_packages == ["moment", "@babel/runtime"]
    assert config.ignored_patterns == ["^lodash\\."]
    assert config.duplicates_only is False
    assert config.format == "tsv"
    assert config.concurrency == 8


def test_empty_config_accepted(tmp_path: Path) -> None:
    _write_config(tmp_path, "")

    config = load_config(tmp_path)

    assert config.output_dir == ".packweight"
    assert config.ignored_packages == []
    assert config.ignored_patterns == []
    assert config.duplicates_only is True
    assert config.format == "json"
    assert config.concurrency is None


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path).output_dir == ".packweight"


def test_resolve_output_dir_rejects_escapes(tmp_path: Path) -> None:
    for output_dir in ("", "~/reports", "/abs/reports", "../outside"):
        with pytest.raises(ConfigError):
            resolve_output_dir(tmp_path, output_dir)


def test_resolve_output_dir_within_root(tmp_path: Path) -> None:
    assert resolve_output_dir(tmp_path, "reports") == (tmp_path / "reports").resolve()
