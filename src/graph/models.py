"""Dependency tree models.

The resolver first allocates nodes in a :class:`DependencyArena`, where a
shared install is a single slot referenced by index from every consumer.
Reference reuse can close cycles, so the arena is copied into an acyclic
:class:`DependencyNode` tree before anything else reads it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class DependencyNode:
    """One resolved package in the logical (unflattened) dependency tree."""

    name: str
    range: str
    version: str
    install_path: Path
    flattened: bool = False
    children: tuple[DependencyNode, ...] = ()


@dataclass(frozen=True)
class ArenaEdge:
    """A consumer's reference to an arena slot."""

    index: int
    range: str
    flattened: bool


@dataclass
class ArenaNode:
    name: str
    version: str
    install_path: Path
    children: list[ArenaEdge] = field(default_factory=list)


class DependencyArena:
    """Indexed storage for resolved packages, possibly with cyclic edges."""

    def __init__(self) -> None:
        self._nodes: list[ArenaNode] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> ArenaNode:
        return self._nodes[index]

    def add(self, name: str, version: str, install_path: Path) -> int:
        self._nodes.append(ArenaNode(name, version, install_path))
        return len(self._nodes) - 1

    def link(self, parent: int, child: int, range_: str, *, flattened: bool) -> None:
        self._nodes[parent].children.append(ArenaEdge(child, range_, flattened))


__all__ = ["ArenaEdge", "ArenaNode", "DependencyArena", "DependencyNode"]
