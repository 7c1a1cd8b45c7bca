"""Flatten bundler stats modules into normalized module records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from bundle.models import ModuleRecord
from errors import UnknownModuleShapeError
from log import get_logger
from rules.ignore import is_ignored_package
from utils import get_base_name, is_installed_path, normalize_webpack_path, sort_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from rules.ignore import IgnorePattern

logger = get_logger(__name__)

_CONTAINER = "container"
_SOURCE = "source"
_SYNTHETIC = "synthetic"


def _entry_chunks(entry: Mapping[str, Any]) -> list[Any] | None:
    chunks = entry.get("chunks", entry.get("chunkIds", []))
    return chunks if isinstance(chunks, list) else None


def _entry_source(entry: Mapping[str, Any]) -> Any:
    return entry.get("source", entry.get("sourceText"))


def _classify(entry: Any) -> str:
    """Return which of the known module shapes ``entry`` has."""
    if (
        isinstance(entry, Mapping)
        and isinstance(entry.get("identifier"), str)
        and _entry_chunks(entry) is not None
        and isinstance(entry.get("size", 0), int | float)
    ):
        modules = entry.get("modules")
        source = _entry_source(entry)
        if isinstance(modules, list):
            return _CONTAINER
        if isinstance(source, str) and modules is None:
            return _SOURCE
        if source is None and modules is None:
            return _SYNTHETIC

    msg = f"Cannot match to known module type: {entry!r}"
    raise UnknownModuleShapeError(msg)


def _chunk_set(chunks: Iterable[Any]) -> frozenset[str]:
    return frozenset(str(chunk) for chunk in chunks if chunk is not None)


def _build_record(
    entry: Mapping[str, Any],
    chunk_ids: frozenset[str],
    *,
    synthetic: bool,
) -> ModuleRecord:
    identifier: str = entry["identifier"]
    name = entry.get("name")
    normalized_name = normalize_webpack_path(name) if isinstance(name, str) else None
    normalized_id = normalize_webpack_path(identifier, normalized_name)

    is_installed = is_installed_path(normalized_id)
    base_name = get_base_name(normalized_id) if is_installed else None

    if synthetic:
        source = None
        size = int(entry.get("size", 0))
    else:
        source = _entry_source(entry)
        size = len(source) or int(entry.get("size", 0))

    return ModuleRecord(
        identifier=identifier,
        chunk_ids=chunk_ids,
        size=size,
        base_name=base_name,
        is_installed=is_installed,
        is_synthetic=synthetic,
        source=source,
    )


def _flatten(
    entries: Iterable[Any],
    parent_chunks: frozenset[str],
    ignored: Sequence[IgnorePattern],
    out: list[ModuleRecord],
) -> None:
    for entry in entries:
        shape = _classify(entry)
        chunk_ids = _chunk_set(_entry_chunks(entry) or []) | parent_chunks

        if shape == _CONTAINER:
            _flatten(entry["modules"], chunk_ids, ignored, out)
            continue

        # webpack 5 lists concatenated-away modules as orphans.
        if shape == _SOURCE and entry.get("orphan") is True:
            continue

        record = _build_record(entry, chunk_ids, synthetic=shape == _SYNTHETIC)
        if record.base_name and is_ignored_package(record.base_name, ignored):
            logger.debug("ignoring module %s", record.identifier)
            continue
        out.append(record)


def extract_modules(
    entries: Iterable[Any],
    ignored: Sequence[IgnorePattern] = (),
) -> list[ModuleRecord]:
    """Flatten a (possibly nested) stats module list.

    Containers are expanded recursively and their chunk ids are added to every
    nested module. Orphans are skipped. The result is sorted by identifier.

    Raises:
        UnknownModuleShapeError: when an entry has none of the known shapes.
    """
    records: list[ModuleRecord] = []
    _flatten(entries, frozenset(), ignored, records)
    records.sort(key=lambda record: sort_key(record.identifier))
    logger.debug("extracted %d modules", len(records))
    return records


__all__ = ["extract_modules"]
