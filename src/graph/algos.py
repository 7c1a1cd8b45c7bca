"""Graph algorithms for dependency trees."""

from __future__ import annotations

from typing import TYPE_CHECKING

from graph.models import DependencyNode
from log import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

    from graph.models import DependencyArena

logger = get_logger(__name__)


def _copy_acyclic(
    arena: DependencyArena,
    index: int,
    range_: str,
    flattened: bool,
    path: list[int],
) -> DependencyNode:
    node = arena[index]
    path.append(index)

    children: list[DependencyNode] = []
    for edge in node.children:
        if edge.index in path:
            logger.debug(
                "cutting circular edge %s -> %s", node.name, arena[edge.index].name
            )
            continue
        children.append(
            _copy_acyclic(arena, edge.index, edge.range, edge.flattened, path)
        )

    path.pop()
    return DependencyNode(
        name=node.name,
        range=range_,
        version=node.version,
        install_path=node.install_path,
        flattened=flattened,
        children=tuple(children),
    )


def prune_circular(
    arena: DependencyArena,
    root_index: int,
    root_range: str,
) -> DependencyNode:
    """Copy the arena into a tree, cutting edges that revisit an ancestor.

    The current path is tracked as a list of arena indices. An edge whose
    target is already on that path is dropped, so a cycle is cut at the second
    occurrence of the repeated package along each path.
    """
    return _copy_acyclic(arena, root_index, root_range, False, [])


def iter_paths(
    tree: DependencyNode,
) -> Iterator[tuple[DependencyNode, ...]]:
    """Yield the root-to-node chain for every node, in pre-order."""
    stack: list[tuple[DependencyNode, tuple[DependencyNode, ...]]] = [(tree, ())]
    while stack:
        node, parents = stack.pop()
        chain = (*parents, node)
        yield chain
        stack.extend((child, chain) for child in reversed(node.children))


__all__ = ["iter_paths", "prune_circular"]
