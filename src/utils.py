"""Shared path and ordering utilities for packweight."""

from __future__ import annotations

import posixpath
import re
from pathlib import Path

# Installed-dependency marker segments. Legacy webpack names use `~`.
NODE_MODULES_RE = re.compile(r"(?:^|/)(?:node_modules|~)(?:/|$)")

_PREFIX_TOKENS_RE = re.compile(r"^(multi |ignored )")
_SEMVER_RE = re.compile(
    r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)


def to_posix_path(name: str | Path) -> str:
    """Convert Windows separators to forward slashes."""
    path_str = name.as_posix() if isinstance(name, Path) else str(name)
    return path_str.replace("\\", "/")


def node_modules_parts(name: str) -> list[str]:
    """Split a path on every installed-dependency marker segment.

    Examples:
        >>> node_modules_parts("/app/node_modules/foo/node_modules/bar/index.js")
        ['/app', 'foo', 'bar/index.js']
        >>> node_modules_parts("/app/src/index.js")
        ['/app/src/index.js']
    """
    return NODE_MODULES_RE.split(to_posix_path(name))


def is_installed_path(name: str) -> bool:
    """Return True when the path lives inside an installed-dependency directory."""
    return len(node_modules_parts(name)) > 1


def get_base_name(name: str) -> str:
    """Return the package-relative path after the last marker segment.

    Assumes ``name`` is an installed path (see :func:`is_installed_path`).

    Examples:
        >>> get_base_name("/app/node_modules/foo/./lib/../index.js")
        'foo/index.js'
        >>> get_base_name("/app/node_modules/moment/locale sync /es/")
        'moment/locale sync /es/'
    """
    last = node_modules_parts(name)[-1]
    candidate = posixpath.normpath(last) if last else "."

    if candidate == ".":
        return ""

    # Synthetic regex modules can end in a trailing slash. Preserve it.
    if name.endswith("/"):
        candidate += "/"

    return candidate


def normalize_webpack_path(identifier: str, name: str | None = None) -> str:
    """Strip loader prefixes from a bundler identifier.

    Everything up to the last ``!`` or ``?`` is dropped, then the ``multi `` and
    ``ignored `` tokens. When a module ``name`` is known, the identifier is
    truncated right after the last occurrence of that name.
    """
    prefix_end = max(identifier.rfind("!"), identifier.rfind("?"))
    candidate = identifier[prefix_end + 1 :] if prefix_end > -1 else identifier
    candidate = _PREFIX_TOKENS_RE.sub("", candidate)

    if name:
        name = name.replace("/~/", "/node_modules/", 1).replace(
            "\\~\\", "\\node_modules\\", 1
        )
        if name.startswith(("./", ".\\")):
            name = name[2:]

        name_idx = candidate.rfind(name)
        if name_idx > -1 and len(candidate) != name_idx + len(name):
            candidate = candidate[: name_idx + len(name)]

    return candidate


def sort_key(value: str) -> tuple[str, str]:
    """Deterministic, case-insensitive-first ordering key for report keys."""
    return (value.casefold(), value)


def semver_key(version: str) -> tuple:
    """Ordering key for installed package versions.

    Release versions sort numerically and after their prereleases. Anything
    that does not parse as a version sorts after all parsable ones, by text.
    """
    match = _SEMVER_RE.match(version.strip())
    if match is None:
        return (1, (), 1, (), version)

    major, minor, patch, pre = match.groups()
    release = (int(major), int(minor or 0), int(patch or 0))
    if pre is None:
        return (0, release, 1, (), version)

    pre_parts = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in pre.split(".")
    )
    return (0, release, 0, pre_parts, version)


__all__ = [
    "NODE_MODULES_RE",
    "get_base_name",
    "is_installed_path",
    "node_modules_parts",
    "normalize_webpack_path",
    "semver_key",
    "sort_key",
    "to_posix_path",
]
