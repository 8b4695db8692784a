from __future__ import annotations

from typing import Iterator

from checktree.core.models import Node


class NodeNotInTreeError(ValueError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node does not belong to this tree: {node_id!r}")
        self.node_id = node_id


class DuplicateNodeError(ValueError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"Duplicate node id: {node_id!r}")
        self.node_id = node_id


def iter_subtree(node: Node) -> Iterator[Node]:
    """Pre-order walk starting with ``node`` itself."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def iter_descendants(node: Node) -> Iterator[Node]:
    walker = iter_subtree(node)
    next(walker)
    yield from walker


def iter_leaves(node: Node) -> Iterator[Node]:
    for current in iter_subtree(node):
        if not current.children:
            yield current


def find_deepest_node(node: Node) -> Node:
    """Return the first node reached at the maximum depth below ``node``."""
    deepest = node
    deepest_level = 0
    stack = [(node, 0)]
    while stack:
        current, level = stack.pop()
        if level > deepest_level:
            deepest, deepest_level = current, level
        stack.extend((child, level + 1) for child in reversed(current.children))
    return deepest


class CheckTree:
    def __init__(self, root: Node, root_visible: bool = False) -> None:
        self.root = root
        self.root_visible = root_visible
        self._nodes: dict[str, Node] = {}
        for node in iter_subtree(root):
            self._register(node)

    def _register(self, node: Node) -> None:
        if node.id in self._nodes:
            raise DuplicateNodeError(node.id)
        self._nodes[node.id] = node

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        if not isinstance(node, Node):
            return False
        return self._nodes.get(node.id) is node

    def get(self, node_id: str) -> Node:
        return self._nodes[node_id]

    def require(self, node: Node) -> Node:
        if node not in self:
            raise NodeNotInTreeError(getattr(node, "id", repr(node)))
        return node

    def attach(self, parent: Node, child: Node) -> Node:
        self.require(parent)
        added = list(iter_subtree(child))
        seen: set[str] = set()
        for node in added:
            if node.id in self._nodes or node.id in seen:
                raise DuplicateNodeError(node.id)
            seen.add(node.id)
        for node in added:
            self._nodes[node.id] = node
        child.parent = parent
        parent.children.append(child)
        parent.is_leaf = False
        return child

    def iter_nodes(self) -> Iterator[Node]:
        return iter_subtree(self.root)

    def top_level(self) -> list[Node]:
        return list(self.root.children)

    def is_invisible_root(self, node: Node) -> bool:
        return node is self.root and not self.root_visible
