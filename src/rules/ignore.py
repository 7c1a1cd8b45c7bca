"""Ignored-package matching for bundled module base names."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from utils import to_posix_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

IgnorePattern = str | re.Pattern[str]


def build_ignore_patterns(
    packages: Iterable[str] = (),
    regexes: Iterable[str | re.Pattern[str]] = (),
) -> tuple[IgnorePattern, ...]:
    """Combine plain package names and regular expressions into one matcher list.

    A plain name ``foo`` ignores every base name under ``foo/`` (so ``foo-bar``
    is not ignored). Regular expressions are searched against the whole base
    name.
    """
    patterns: list[IgnorePattern] = [f"{name.rstrip('/')}/" for name in packages]
    for regex in regexes:
        patterns.append(re.compile(regex) if isinstance(regex, str) else regex)
    return tuple(patterns)


def is_ignored_package(base_name: str, patterns: Sequence[IgnorePattern]) -> bool:
    """Return True when the base name belongs to an ignored package."""
    base = to_posix_path(base_name.strip())
    for pattern in patterns:
        if isinstance(pattern, str):
            if base.startswith(pattern):
                return True
        elif pattern.search(base):
            return True
    return False


__all__ = ["IgnorePattern", "build_ignore_patterns", "is_ignored_package"]
