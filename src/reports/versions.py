"""Version-skew analysis: bundled packages installed at more than one path.

Bundled installed modules are mapped back to the install directory they were
loaded from, and every install directory is matched against the logical
dependency trees of the project roots found in the bundle. Each match lists
the dependency chains ("skews") that lead to that install.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

from errors import InvalidPackageNameError
from graph.resolve import (
    build_dependency_tree,
    ensure_installed,
    has_unresolved_ranges,
    map_dependencies_by_package,
)
from log import get_logger
from reports.duplicates import report_module
from reports.models import (
    InstalledPackage,
    SkewPart,
    VersionsAsset,
    VersionsReport,
    VersionsSummary,
)
from reports.summaries import summarize_versions
from scan.manifests import MANIFEST_FILENAME, NODE_MODULES, ManifestCache, read_packages
from utils import (
    node_modules_parts,
    normalize_webpack_path,
    semver_key,
    sort_key,
    to_posix_path,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from bundle.models import AssetModules, ModuleRecord
    from graph.models import DependencyNode
    from scan.manifests import PackageManifest

logger = get_logger(__name__)

_MARKERS = frozenset({NODE_MODULES, "~"})


def package_name(base_name: str) -> str:
    """Return the package name a base name belongs to.

    Examples:
        >>> package_name("lodash/fp/map.js")
        'lodash'
        >>> package_name("@babel/runtime/helpers/extends.js")
        '@babel/runtime'
    """
    base = to_posix_path(base_name.strip())
    if not base:
        msg = "No package name was provided"
        raise InvalidPackageNameError(msg)

    parts = base.split("/")
    if parts[0].startswith("@"):
        if len(parts) >= 2 and parts[1]:
            return f"{parts[0]}/{parts[1]}"
        msg = f"{base_name} is scoped, but is missing package name"
        raise InvalidPackageNameError(msg)

    return parts[0]


def _module_path(module: ModuleRecord) -> str:
    return to_posix_path(normalize_webpack_path(module.identifier))


def _is_within(path: Path, root: Path) -> bool:
    return root in path.parents


async def package_roots(modules: Sequence[ModuleRecord]) -> list[Path]:
    """Infer the project roots whose node_modules supplied the bundle.

    Dependency roots are the directories just above the first node_modules
    segment of installed modules. Application roots nested below a dependency
    root (monorepo packages without their own node_modules) are found by
    walking up from first-party modules. Only roots with a package.json are
    kept, sorted so ancestors come first.
    """
    dep_roots: list[Path] = []
    for module in modules:
        if not module.is_installed:
            continue
        candidate = Path(node_modules_parts(_module_path(module))[0] or ".")
        if candidate not in dep_roots:
            dep_roots.append(candidate)

    if not dep_roots:
        return []

    app_roots: list[Path] = []
    for module in modules:
        if module.is_installed or module.is_synthetic:
            continue
        for parent in Path(_module_path(module)).parents:
            if parent in dep_roots or not any(
                _is_within(parent, root) for root in dep_roots
            ):
                break
            if parent not in app_roots:
                app_roots.append(parent)

    candidates = dep_roots + app_roots
    loop = asyncio.get_running_loop()
    found = await asyncio.gather(
        *(
            loop.run_in_executor(None, (root / MANIFEST_FILENAME).is_file)
            for root in candidates
        )
    )
    roots = sorted(
        (root for root, exists in zip(candidates, found, strict=True) if exists),
        key=str,
    )
    logger.debug("package roots: %s", [str(root) for root in roots])
    return roots


def all_packages(modules: Iterable[ModuleRecord]) -> list[str]:
    """Every package name on any installed module's path, nested ones included."""
    names: set[str] = set()
    for module in modules:
        if not module.is_installed:
            continue
        parts = [part for part in node_modules_parts(_module_path(module))[1:] if part]
        if not parts:
            continue
        parts[-1] = package_name(parts[-1])
        names.update(parts)
    return sorted(names, key=sort_key)


def _install_path(module: ModuleRecord, name: str) -> Path:
    parts = _module_path(module).split("/")
    marker = max((i for i, part in enumerate(parts) if part in _MARKERS), default=0)
    return Path("/".join([*parts[:marker], NODE_MODULES, *name.split("/")]))


def modules_by_package_by_path(
    modules: Iterable[ModuleRecord],
    *,
    duplicates_only: bool = True,
) -> dict[str, dict[Path, list[ModuleRecord]]]:
    """Group installed modules by package name, then by install directory.

    With ``duplicates_only`` packages bundled from a single install are dropped.
    """
    grouped: dict[str, dict[Path, list[ModuleRecord]]] = {}
    for module in modules:
        if not module.is_installed or module.base_name is None:
            continue
        name = package_name(module.base_name)
        path = _install_path(module, name)
        grouped.setdefault(name, {}).setdefault(path, []).append(module)

    if duplicates_only:
        grouped = {name: paths for name, paths in grouped.items() if len(paths) > 1}
    return grouped


def common_root(roots: Sequence[Path]) -> Path:
    """Longest shared directory of all roots, cut above any node_modules."""
    common = Path(os.path.commonpath([str(root) for root in roots]))
    if NODE_MODULES in common.parts:
        common = Path(*common.parts[: common.parts.index(NODE_MODULES)])
    return common


def _skew(chain: tuple[DependencyNode, ...]) -> list[SkewPart]:
    return [SkewPart(name=n.name, range=n.range, version=n.version) for n in chain]


def build_asset_versions(
    root: Path,
    trees: Iterable[DependencyNode],
    modules: Iterable[ModuleRecord],
    *,
    duplicates_only: bool = True,
) -> VersionsAsset:
    """Match one asset's installed modules against every dependency tree."""
    asset = VersionsAsset()
    by_package = modules_by_package_by_path(modules, duplicates_only=duplicates_only)

    for tree in trees:
        dependencies = map_dependencies_by_package(tree)
        for name in sorted(by_package, key=sort_key):
            bundled = by_package[name]
            versions = dependencies.get(name, {})
            for version in sorted(versions, key=semver_key):
                installs = versions[version]
                for install_path in sorted(installs, key=lambda p: sort_key(str(p))):
                    found = bundled.get(install_path)
                    if not found:
                        continue

                    rel_path = to_posix_path(os.path.relpath(install_path, root))
                    entry = (
                        asset.packages.setdefault(name, {})
                        .setdefault(version, {})
                        .setdefault(rel_path, InstalledPackage())
                    )
                    entry.skews.extend(_skew(chain) for chain in installs[install_path])

                    seen = {mod.file_name for mod in entry.modules}
                    for module in found:
                        if module.identifier not in seen:
                            seen.add(module.identifier)
                            entry.modules.append(report_module(module))

    return asset


def _declares_dependencies(manifest: PackageManifest | None) -> bool:
    return manifest is not None and bool(
        manifest.dependencies or manifest.dev_dependencies
    )


async def build_versions_report(
    modules: Sequence[ModuleRecord],
    assets: Mapping[str, AssetModules],
    *,
    duplicates_only: bool = True,
    cache: ManifestCache | None = None,
) -> VersionsReport:
    """Report packages bundled from more than one install directory.

    Raises:
        MissingInstallError: when some root declares dependencies that do not
            resolve and none of the package roots has a node_modules directory.
    """
    roots = await package_roots(modules)
    if not roots:
        return VersionsReport()

    packages_filter = all_packages(modules)
    cache = cache if cache is not None else ManifestCache()
    await asyncio.gather(*(read_packages(root, packages_filter, cache) for root in roots))
    package_map = await cache.resolve()

    trees = [build_dependency_tree(root, package_map, packages_filter) for root in roots]
    unresolved = [
        root
        for root, tree in zip(roots, trees, strict=True)
        if has_unresolved_ranges(tree, package_map.get(root / MANIFEST_FILENAME))
    ]
    if unresolved:
        # Partially installed projects are tolerated. Only a bundle with no
        # install under any root is an error.
        await ensure_installed(roots, cache, unresolved[0])

    if not any(
        _declares_dependencies(package_map.get(root / MANIFEST_FILENAME))
        for root in roots
    ):
        return VersionsReport()

    resolved = [tree for tree in trees if tree is not None]
    shared_root = common_root(roots)
    report = VersionsReport(
        meta=VersionsSummary(
            package_roots=[to_posix_path(root) for root in roots],
            common_root=to_posix_path(shared_root),
        ),
        assets={
            name: build_asset_versions(
                shared_root,
                resolved,
                assets[name].modules,
                duplicates_only=duplicates_only,
            )
            for name in sorted(assets, key=sort_key)
        },
    )
    return summarize_versions(report)


__all__ = [
    "all_packages",
    "build_asset_versions",
    "build_versions_report",
    "common_root",
    "modules_by_package_by_path",
    "package_name",
    "package_roots",
]
