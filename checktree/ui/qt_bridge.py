from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QStandardItem
from PyQt6.QtWidgets import QTreeView

from checktree.core.models import Node


ROLE_NODE_ID = Qt.ItemDataRole.UserRole


class QtViewBridge:
    """Renders engine state onto ``QStandardItem`` check boxes.

    ``rendering`` is True while the bridge writes check states, so the window's
    ``itemChanged`` handler can tell renders apart from user clicks.
    """

    def __init__(self, view: QTreeView) -> None:
        self.view = view
        self.items: dict[str, QStandardItem] = {}
        self.nodes: dict[str, Node] = {}
        self.markers: set[str] = set()
        self.rendering = False

    def bind(self, node: Node, item: QStandardItem) -> None:
        self.items[node.id] = item
        self.nodes[node.id] = node
        item.setData(node.id, ROLE_NODE_ID)

    def clear(self) -> None:
        self.items.clear()
        self.nodes.clear()
        self.markers.clear()

    def node_for_item(self, item: QStandardItem) -> Optional[Node]:
        return self.nodes.get(item.data(ROLE_NODE_ID))

    def is_materialized(self, node: Node) -> bool:
        item = self.items.get(node.id)
        if item is None:
            return False
        parent = item.index().parent()
        while parent.isValid():
            if not self.view.isExpanded(parent):
                return False
            parent = parent.parent()
        return True

    def apply_indeterminate_marker(self, node: Node) -> None:
        self.markers.add(node.id)
        self.render(node)

    def clear_indeterminate_marker(self, node: Node) -> None:
        self.markers.discard(node.id)
        self.render(node)

    def render(self, node: Node) -> None:
        item = self.items.get(node.id)
        if item is None:
            return
        if node.checked:
            state = Qt.CheckState.Checked
        elif node.id in self.markers:
            state = Qt.CheckState.PartiallyChecked
        else:
            state = Qt.CheckState.Unchecked
        if item.checkState() == state:
            return
        self.rendering = True
        try:
            item.setCheckState(state)
        finally:
            self.rendering = False

    def render_all(self) -> None:
        for node in self.nodes.values():
            self.render(node)


class QtScheduler:
    def __init__(self, after: Optional[Callable[[], None]] = None) -> None:
        self.after = after

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        def run() -> None:
            callback()
            if self.after is not None:
                self.after()

        QTimer.singleShot(delay_ms, run)
