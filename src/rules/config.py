from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "packweight.toml"

OutputFormat = Literal["json", "text", "tsv"]


class PackweightConfig(BaseModel):
    """Configuration for packweight analyses."""

    model_config = ConfigDict(extra="forbid")

    output_dir: str = Field(
        default=".packweight",
        description="Output directory for written reports",
    )
    ignored_packages: list[str] = Field(
        default_factory=list,
        description="Package names whose bundled files are left out of analysis",
    )
    ignored_patterns: list[str] = Field(
        default_factory=list,
        description="Regular expressions matched against module base names",
    )
    duplicates_only: bool = Field(
        default=True,
        description="Only report packages bundled from more than one install",
    )
    format: OutputFormat = Field(
        default="json",
        description="Report output format",
    )
    concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Maximum simultaneous file operations (default: unbounded)",
    )

    @field_validator("ignored_patterns", mode="before")
    @classmethod
    def validate_ignored_patterns(cls, v: Any) -> Any:
        """Validate that every ignored pattern compiles as a regular expression.

        Note: this runs in `mode="before"` so we can report the offending
        pattern from the raw TOML values.
        """

        if v is None:
            return []

        if not isinstance(v, list):
            msg = "ignored_patterns must be a list of regular expressions"
            raise TypeError(msg)

        for pattern in v:
            if not isinstance(pattern, str):
                msg = "ignored_patterns must be a list of str"
                raise TypeError(msg)
            try:
                re.compile(pattern)
            except re.error as exc:
                msg = f"Invalid ignored pattern '{pattern}': {exc}"
                raise ValueError(msg) from exc

        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the project root.

    The config output_dir must be a non-empty relative path that remains
    within the project root after resolution. Absolute paths and paths
    that escape the root are rejected.
    """
    if not output_dir:
        msg = "output_dir must be a non-empty relative path"
        raise ConfigError(msg)

    if output_dir.startswith("~"):
        msg = "output_dir must be a relative path within the project root"
        raise ConfigError(msg)

    output_path = Path(output_dir)
    if output_path.is_absolute():
        msg = "output_dir must be a relative path within the project root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_output = (resolved_root / output_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve output_dir '{output_dir}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_output.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"output_dir '{output_dir}' escapes the project root"
        raise ConfigError(msg) from exc

    return resolved_output


def load_config(root: Path) -> PackweightConfig:
    """Load configuration from packweight.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return PackweightConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return PackweightConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
