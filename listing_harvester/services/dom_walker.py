"""Pre-order walk over a composed tree, entering shadow roots as it goes."""

from __future__ import annotations

from typing import Callable, Iterator, Optional

from listing_harvester.models.dom import DomNode

BoundaryAccessor = Callable[[DomNode], Optional[DomNode]]


def shadow_root_of(node: DomNode) -> Optional[DomNode]:
    return node.shadow_root


def walk_composed(root: DomNode, get_boundary_root: BoundaryAccessor = shadow_root_of) -> Iterator[DomNode]:
    """
    Yield every node reachable from `root`, each before its children.

    A node's encapsulated subtree is visited right after the node itself and
    before its light children, so shadow content reads as if it were inlined.
    The walk is lazy and re-reads the tree as it goes; call it again for a
    fresh pass.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))
        boundary = get_boundary_root(node)
        if boundary is not None:
            stack.append(boundary)
