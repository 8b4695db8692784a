"""View-side collaborators the engine writes rendering hints to.

The engine never asks a bridge whether a node is indeterminate; ``Node.tristate``
is the logical state. A bridge only answers whether a node currently has a
visual representation and receives marker updates for nodes that do.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from checktree.core.models import Node
from checktree.core.tree import iter_descendants


class ViewBridge(Protocol):
    def is_materialized(self, node: Node) -> bool: ...

    def apply_indeterminate_marker(self, node: Node) -> None: ...

    def clear_indeterminate_marker(self, node: Node) -> None: ...


class NullViewBridge:
    def is_materialized(self, node: Node) -> bool:
        return True

    def apply_indeterminate_marker(self, node: Node) -> None:
        return None

    def clear_indeterminate_marker(self, node: Node) -> None:
        return None


class HeadlessViewBridge:
    """Tracks materialization from ``expanded`` flags and keeps markers in memory.

    ``hidden`` holds ids outside a virtualization window; those nodes (and the
    invisible root) are never materialized.
    """

    def __init__(self, root_visible: bool = False, hidden: Optional[Iterable[str]] = None) -> None:
        self.root_visible = root_visible
        self.hidden: set[str] = set(hidden or ())
        self.markers: set[str] = set()

    def is_materialized(self, node: Node) -> bool:
        if node.id in self.hidden:
            return False
        if node.parent is None:
            return self.root_visible
        current = node.parent
        while current is not None:
            if not current.expanded:
                return False
            current = current.parent
        return True

    def apply_indeterminate_marker(self, node: Node) -> None:
        self.markers.add(node.id)

    def clear_indeterminate_marker(self, node: Node) -> None:
        self.markers.discard(node.id)

    def has_marker(self, node: Node) -> bool:
        return node.id in self.markers

    def forget_subtree_markers(self, node: Node) -> None:
        """Drop markers of every descendant of ``node``, as re-rendering does."""
        for child in iter_descendants(node):
            self.markers.discard(child.id)
