from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import yaml

from checktree.core.models import Node
from checktree.core.tree import CheckTree, DuplicateNodeError


class TreeFormatError(ValueError):
    def __init__(self, message: str, path: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


def _build_node(data: Any, path: str) -> Node:
    if not isinstance(data, dict):
        raise TreeFormatError("node must be a mapping", path)
    node_id = data.get("id")
    if node_id is None or str(node_id) == "":
        raise TreeFormatError("node is missing an id", path)

    raw_children = data.get("children")
    if raw_children is not None and not isinstance(raw_children, list):
        raise TreeFormatError("children must be a list", path)
    is_leaf = bool(data["leaf"]) if "leaf" in data else raw_children is None
    if is_leaf and raw_children:
        raise TreeFormatError("leaf node cannot have children", path)

    node = Node(
        id=str(node_id),
        text=str(data.get("text", "")),
        checked=bool(data.get("checked", False)),
        is_leaf=is_leaf,
        expanded=bool(data.get("expanded", False)),
    )
    for index, child_data in enumerate(raw_children or []):
        child = _build_node(child_data, f"{path}.children[{index}]")
        child.parent = node
        node.children.append(child)
    return node


def build_tree(data: Any, root_visible: bool = False) -> CheckTree:
    root = _build_node(data, "root")
    root.is_leaf = False
    if not root_visible:
        # An invisible root always shows its top-level rows.
        root.expanded = True
    try:
        return CheckTree(root, root_visible=root_visible)
    except DuplicateNodeError as exc:
        raise TreeFormatError(str(exc), "root") from exc


def read_document(path: Path) -> Any:
    text = path.read_text()
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def load_tree(path: Path, root_visible: bool = False) -> CheckTree:
    data = read_document(path)
    if data is None:
        raise TreeFormatError("document is empty", str(path))
    return build_tree(data, root_visible=root_visible)


def attach_children(tree: CheckTree, parent: Node, items: Iterable[Any]) -> list[Node]:
    """Add a loaded batch of children under ``parent`` and return them."""
    added: list[Node] = []
    for index, item in enumerate(items):
        child = _build_node(item, f"{parent.id}.children[{index}]")
        try:
            tree.attach(parent, child)
        except DuplicateNodeError as exc:
            raise TreeFormatError(str(exc), f"{parent.id}.children[{index}]") from exc
        added.append(child)
    return added


def dump_state(tree: CheckTree) -> dict[str, dict[str, bool]]:
    return {
        node.id: {"checked": node.checked, "tristate": node.tristate}
        for node in tree.iter_nodes()
    }
