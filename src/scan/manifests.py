"""Installed package manifest discovery for packweight."""

from __future__ import annotations

import asyncio
import contextlib
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator

from errors import ManifestError
from log import get_logger
from utils import to_posix_path

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)

MANIFEST_FILENAME = "package.json"
NODE_MODULES = "node_modules"


class PackageManifest(BaseModel):
    """The parts of a package.json that dependency resolution needs."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    path: Path
    name: str | None = None
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="devDependencies"
    )

    @field_validator("name", "version", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        """Treat non-string identity fields as unset, except plain numbers."""
        if isinstance(v, bool):
            return None
        if isinstance(v, int | float):
            return str(v)
        return v if isinstance(v, str) else None

    @field_validator("dependencies", "dev_dependencies", mode="before")
    @classmethod
    def coerce_ranges(cls, v: Any) -> Any:
        """Drop malformed dependency maps instead of failing the whole read."""
        if not isinstance(v, dict):
            return {}
        return {str(name): str(spec) for name, spec in v.items()}


def _read_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


def _list_dir(path: Path) -> list[str]:
    try:
        names = os.listdir(path)
    except (FileNotFoundError, NotADirectoryError):
        return []
    return sorted(name for name in names if not name.startswith("."))


class ManifestCache:
    """Single-flight cache of package.json reads for one analysis.

    The pending read is stored before it is awaited, so concurrent requests
    for one path share a single file read.
    """

    def __init__(self, concurrency: int | None = None) -> None:
        self._pending: dict[Path, asyncio.Future[PackageManifest | None]] = {}
        self._limit = asyncio.Semaphore(concurrency) if concurrency else None

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, path: object) -> bool:
        return path in self._pending

    def _slot(self) -> contextlib.AbstractAsyncContextManager[Any]:
        return self._limit if self._limit is not None else contextlib.nullcontext()

    def read(self, path: Path) -> asyncio.Future[PackageManifest | None]:
        """Return the (possibly shared) pending read for ``path``."""
        pending = self._pending.get(path)
        if pending is None:
            pending = asyncio.ensure_future(self._load(path))
            self._pending[path] = pending
        return pending

    async def list_dir(self, path: Path) -> list[str]:
        """List a directory without dotfiles, tolerating a missing directory."""
        loop = asyncio.get_running_loop()
        async with self._slot():
            return await loop.run_in_executor(None, _list_dir, path)

    async def has_install_dir(self, directory: Path) -> bool:
        """Return True when ``directory`` holds a node_modules directory."""
        loop = asyncio.get_running_loop()
        async with self._slot():
            return await loop.run_in_executor(None, (directory / NODE_MODULES).is_dir)

    async def _load(self, path: Path) -> PackageManifest | None:
        loop = asyncio.get_running_loop()
        async with self._slot():
            try:
                data = await loop.run_in_executor(None, _read_json, path)
            except (FileNotFoundError, NotADirectoryError):
                return None
            except orjson.JSONDecodeError as exc:
                raise ManifestError(str(path), str(exc)) from exc

        if not isinstance(data, dict):
            raise ManifestError(str(path), "expected a JSON object")

        logger.debug("read manifest %s", path)
        return PackageManifest.model_validate({**data, "path": path.parent})

    async def resolve(self) -> dict[Path, PackageManifest]:
        """Wait for every read and return the found manifests by file path."""
        paths = list(self._pending)
        results = await asyncio.gather(*(self._pending[p] for p in paths))
        return {
            path: manifest
            for path, manifest in zip(paths, results, strict=True)
            if manifest is not None
        }


async def read_manifest(
    path: Path, cache: ManifestCache | None = None
) -> PackageManifest | None:
    """Read one package.json, returning None when it does not exist."""
    cache = cache if cache is not None else ManifestCache()
    return await cache.read(Path(path))


def _is_included(name: str, packages_filter: frozenset[str] | None) -> bool:
    return packages_filter is None or to_posix_path(name) in packages_filter


async def _package_dirs(node_modules: Path, cache: ManifestCache) -> list[str]:
    names = await cache.list_dir(node_modules)
    scopes = [name for name in names if name.startswith("@")]
    scoped = await asyncio.gather(
        *(cache.list_dir(node_modules / scope) for scope in scopes)
    )

    dirs = [name for name in names if not name.startswith("@")]
    for scope, children in zip(scopes, scoped, strict=True):
        dirs.extend(f"{scope}/{child}" for child in children)
    return dirs


async def _walk(
    directory: Path,
    packages_filter: frozenset[str] | None,
    cache: ManifestCache,
) -> None:
    node_modules = directory / NODE_MODULES
    _, dirs = await asyncio.gather(
        cache.read(directory / MANIFEST_FILENAME),
        _package_dirs(node_modules, cache),
    )
    await asyncio.gather(
        *(
            _walk(node_modules / name, packages_filter, cache)
            for name in dirs
            if _is_included(name, packages_filter)
        )
    )


async def read_packages(
    root: Path,
    packages_filter: Iterable[str] | None = None,
    cache: ManifestCache | None = None,
) -> ManifestCache:
    """Read every package.json under ``root`` and its nested node_modules.

    Scoped packages (``@scope/name``) are expanded one extra directory level.
    When ``packages_filter`` is given, only packages with those names are
    descended into.

    Returns:
        The cache, holding one pending read per discovered manifest path.
    """
    cache = cache if cache is not None else ManifestCache()
    names = frozenset(packages_filter) if packages_filter is not None else None
    await _walk(Path(root), names, cache)
    return cache


__all__ = [
    "MANIFEST_FILENAME",
    "NODE_MODULES",
    "ManifestCache",
    "PackageManifest",
    "read_manifest",
    "read_packages",
]
