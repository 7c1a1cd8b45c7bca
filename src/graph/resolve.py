"""Logical dependency tree resolution over an installed node_modules layout.

Resolution emulates Node's nearest-ancestor lookup: a dependency is searched
in the consumer's own ``node_modules`` first, then in each ancestor directory's
``node_modules``. A hit at an ancestor means the install was hoisted
(flattened) above where it is nominally required.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from errors import MissingInstallError, PackageIntegrityError
from graph.algos import iter_paths, prune_circular
from graph.models import DependencyArena, DependencyNode
from log import get_logger
from scan.manifests import MANIFEST_FILENAME, NODE_MODULES, read_packages
from utils import to_posix_path

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping

    from scan.manifests import ManifestCache, PackageManifest

logger = get_logger(__name__)

ROOT_NAME = "ROOT"
ANY_VERSION = "*"

# name -> version -> install path -> dependency chains ending at that install
DependenciesByPackage = dict[
    str, dict[str, dict[Path, list[tuple[DependencyNode, ...]]]]
]


@dataclass(frozen=True)
class FoundPackage:
    """Result of a nearest-ancestor lookup."""

    install_path: Path
    manifest: PackageManifest
    flattened: bool


def _search_bound(file_path: Path, manifest_dirs: Collection[Path]) -> Path:
    """Return the highest known package directory above ``file_path``.

    Lookups never climb past it. Without any known ancestor only
    ``file_path`` itself is searched.
    """
    for parent in reversed(file_path.parents):
        if parent in manifest_dirs:
            return parent
    return file_path


def find_package(
    file_path: Path,
    name: str,
    package_map: Mapping[Path, PackageManifest],
    manifest_dirs: Collection[Path] | None = None,
) -> FoundPackage | None:
    """Locate the install of ``name`` that ``file_path`` would load.

    Raises:
        PackageIntegrityError: when the matched manifest has no name or version.
    """
    if manifest_dirs is None:
        manifest_dirs = {manifest.path for manifest in package_map.values()}

    bound = _search_bound(file_path, manifest_dirs)
    name_parts = to_posix_path(name).split("/")

    current = file_path
    flattened = False
    while True:
        install_path = current.joinpath(NODE_MODULES, *name_parts)
        manifest = package_map.get(install_path / MANIFEST_FILENAME)
        if manifest is not None:
            if not manifest.name:
                msg = f"Found package without name: {install_path / MANIFEST_FILENAME}"
                raise PackageIntegrityError(msg)
            if not manifest.version:
                msg = (
                    "Found package without version: "
                    f"{install_path / MANIFEST_FILENAME}"
                )
                raise PackageIntegrityError(msg)
            return FoundPackage(install_path, manifest, flattened)

        if current == bound or current.parent == current:
            return None
        current = current.parent
        flattened = True


def _root_ranges(manifest: PackageManifest) -> dict[str, str]:
    # devDependencies can end up bundled too. A name in both keeps the
    # `dependencies` range.
    ranges = dict(manifest.dependencies)
    for name, spec in manifest.dev_dependencies.items():
        ranges.setdefault(name, spec)
    return ranges


class _TreeBuilder:
    """Mutable state for one tree construction."""

    def __init__(
        self,
        package_map: Mapping[Path, PackageManifest],
        packages_filter: frozenset[str] | None,
    ) -> None:
        self.package_map = package_map
        self.packages_filter = packages_filter
        self.manifest_dirs = frozenset(m.path for m in package_map.values())
        self.arena = DependencyArena()
        # (install path, name) -> arena index
        self.found: dict[tuple[Path, str], int] = {}

    def _included(self, name: str) -> bool:
        return self.packages_filter is None or name in self.packages_filter

    def resolve_level(self, index: int, ranges: Mapping[str, str]) -> None:
        consumer = self.arena[index]
        created: list[tuple[int, dict[str, str]]] = []

        # Fill the cache for the whole level before descending, so siblings
        # reuse each other's nodes instead of rebuilding them.
        for name, spec in ranges.items():
            if not self._included(name):
                continue

            found = find_package(
                consumer.install_path, name, self.package_map, self.manifest_dirs
            )
            if found is None:
                logger.debug("unresolved %s from %s", name, consumer.install_path)
                continue

            key = (found.install_path, name)
            child = self.found.get(key)
            if child is None:
                manifest = found.manifest
                child = self.arena.add(
                    manifest.name or name,
                    manifest.version or ANY_VERSION,
                    found.install_path,
                )
                self.found[key] = child
                created.append((child, manifest.dependencies))

            version = self.arena[child].version
            self.arena.link(index, child, spec or version, flattened=found.flattened)

        for child, dependencies in created:
            if dependencies:
                self.resolve_level(child, dependencies)


def has_unresolved_ranges(
    tree: DependencyNode | None, manifest: PackageManifest | None
) -> bool:
    """True when a root declares dependency ranges but none of them resolved."""
    return (
        tree is not None
        and manifest is not None
        and bool(_root_ranges(manifest))
        and not tree.children
    )


async def ensure_installed(
    directories: Iterable[Path], cache: ManifestCache, declared_in: Path
) -> None:
    """Raise unless at least one directory holds a node_modules directory.

    Raises:
        MissingInstallError: when no directory has an install.
    """
    found = await asyncio.gather(*(cache.has_install_dir(d) for d in directories))
    if not any(found):
        msg = (
            f"Found dependencies declared in {declared_in / MANIFEST_FILENAME}, "
            "but no 'node_modules' directory on disk. "
            "Do you need to run 'npm install'?"
        )
        raise MissingInstallError(msg)


def build_dependency_tree(
    root: Path,
    package_map: Mapping[Path, PackageManifest],
    packages_filter: Iterable[str] | None = None,
) -> DependencyNode | None:
    """Build the acyclic logical dependency tree for ``root``.

    Returns None when ``root`` has no package.json. Dependencies that cannot be
    found on disk are omitted, so a root whose install is missing entirely
    gets a tree without children (see :func:`has_unresolved_ranges`).

    Raises:
        PackageIntegrityError: when an installed manifest lacks name/version.
    """
    root = Path(root)
    root_manifest = package_map.get(root / MANIFEST_FILENAME)
    if root_manifest is None:
        logger.debug("no package.json at %s", root)
        return None

    names = frozenset(packages_filter) if packages_filter is not None else None
    builder = _TreeBuilder(package_map, names)

    version = root_manifest.version or ANY_VERSION
    root_index = builder.arena.add(root_manifest.name or ROOT_NAME, version, root)
    builder.resolve_level(root_index, _root_ranges(root_manifest))

    logger.debug("resolved %d packages under %s", len(builder.arena) - 1, root)
    return prune_circular(builder.arena, root_index, version)


async def resolve_dependencies(
    root: Path,
    packages_filter: Iterable[str] | None = None,
    cache: ManifestCache | None = None,
) -> DependencyNode | None:
    """Read the installed packages under ``root`` and build its tree.

    Raises:
        MissingInstallError: when the root declares dependencies, none
            resolve, and no node_modules directory exists at the root or any
            known package directory above it.
    """
    root = Path(root)
    names = frozenset(packages_filter) if packages_filter is not None else None
    cache = await read_packages(root, names, cache)
    package_map = await cache.resolve()
    tree = build_dependency_tree(root, package_map, names)

    if has_unresolved_ranges(tree, package_map.get(root / MANIFEST_FILENAME)):
        ancestors = [m.path for m in package_map.values() if m.path in root.parents]
        await ensure_installed([root, *ancestors], cache, root)
    return tree


def map_dependencies_by_package(tree: DependencyNode) -> DependenciesByPackage:
    """Index every dependency chain by package name, version and install path."""
    by_package: DependenciesByPackage = {}
    for chain in iter_paths(tree):
        node = chain[-1]
        versions = by_package.setdefault(node.name, {})
        paths = versions.setdefault(node.version, {})
        paths.setdefault(node.install_path, []).append(chain)
    return by_package


__all__ = [
    "ANY_VERSION",
    "ROOT_NAME",
    "DependenciesByPackage",
    "FoundPackage",
    "build_dependency_tree",
    "ensure_installed",
    "find_package",
    "has_unresolved_ranges",
    "map_dependencies_by_package",
    "resolve_dependencies",
]
