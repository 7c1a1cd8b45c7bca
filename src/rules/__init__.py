"""Configuration and ignore rules for packweight."""

from rules.config import (
    ConfigError,
    PackweightConfig,
    load_config,
    resolve_output_dir,
)
from rules.ignore import build_ignore_patterns, is_ignored_package

__all__ = [
    "ConfigError",
    "PackweightConfig",
    "build_ignore_patterns",
    "is_ignored_package",
    "load_config",
    "resolve_output_dir",
]
