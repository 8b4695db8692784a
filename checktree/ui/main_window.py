from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import yaml
from PyQt6.QtCore import QModelIndex, Qt
from PyQt6.QtGui import QStandardItem, QStandardItemModel
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QTreeView,
    QVBoxLayout,
    QWidget,
)

from checktree.core.config import TreeConfig, load_config
from checktree.core.engine import CheckTreeEngine
from checktree.core.loader import TreeFormatError, load_tree
from checktree.core.models import ChildrenLoaded, Node, NodeCollapsed, NodeExpanded
from checktree.core.tree import CheckTree, iter_subtree
from checktree.ui.qt_bridge import QtScheduler, QtViewBridge

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, config_path: Path = Path("config.yaml")) -> None:
        super().__init__()
        from checktree import __version__

        self.setWindowTitle(f"Checked Tree {__version__}")

        self.config: TreeConfig = load_config(config_path)
        self.tree: Optional[CheckTree] = None
        self.engine: Optional[CheckTreeEngine] = None

        self.tree_model = QStandardItemModel()
        self.tree_model.setHorizontalHeaderLabels(["Nodes"])
        self.tree_view = QTreeView()
        self.tree_view.setModel(self.tree_model)
        self.tree_view.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self.bridge = QtViewBridge(self.tree_view)

        self.tree_label = QLabel("No tree opened")
        self.open_button = QPushButton("Open Tree")
        self.all_checkbox = QCheckBox(self.config.all_checkbox_label)
        self.expand_all_button = QPushButton("Expand All")
        self.collapse_all_button = QPushButton("Collapse All")
        self.checked_nodes_button = QPushButton("Get checked nodes")

        self.all_checkbox.setVisible(self.config.show_all_checkbox)
        self.expand_all_button.setVisible(self.config.show_expand_all)
        self.collapse_all_button.setVisible(self.config.show_collapse_all)
        self.checked_nodes_button.setVisible(self.config.display_checked_nodes)

        self.open_button.clicked.connect(self.choose_tree)
        self.all_checkbox.toggled.connect(self.on_all_checkbox_toggled)
        self.expand_all_button.clicked.connect(self.expand_all)
        self.collapse_all_button.clicked.connect(self.collapse_all)
        self.checked_nodes_button.clicked.connect(self.show_checked_nodes)

        layout = QVBoxLayout()

        file_row = QHBoxLayout()
        file_row.addWidget(self.open_button)
        file_row.addWidget(self.tree_label)
        file_row.addStretch()
        layout.addLayout(file_row)

        toolbar_row = QHBoxLayout()
        toolbar_row.setContentsMargins(0, 0, 0, 0)
        toolbar_row.addWidget(self.all_checkbox)
        toolbar_row.addStretch()
        toolbar_row.addWidget(self.expand_all_button)
        toolbar_row.addWidget(self.collapse_all_button)
        toolbar_row.addWidget(self.checked_nodes_button)
        self.toolbar = QWidget()
        self.toolbar.setLayout(toolbar_row)
        self.toolbar.setVisible(self.config.show_toolbar)
        layout.addWidget(self.toolbar)
        layout.addWidget(self.tree_view)

        container = QWidget()
        container.setLayout(layout)
        self.setCentralWidget(container)

        self.tree_model.itemChanged.connect(self.on_item_changed)
        self.tree_view.expanded.connect(self.on_expanded)
        self.tree_view.collapsed.connect(self.on_collapsed)

    def choose_tree(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open Tree", "", "Tree (*.yaml *.yml *.json)")
        if not path:
            return
        self.open_tree(Path(path))

    def open_tree(self, path: Path) -> None:
        try:
            tree = load_tree(path, root_visible=self.config.root_visible)
        except (OSError, TreeFormatError, json.JSONDecodeError, yaml.YAMLError) as exc:
            QMessageBox.warning(self, "Open Tree", f"Could not load tree:\n{exc}")
            return

        self.tree = tree
        self.engine = CheckTreeEngine(
            tree,
            config=self.config,
            bridge=self.bridge,
            scheduler=QtScheduler(after=self.refresh_view),
        )
        self.engine.global_toggle.connect(lambda _value: self.refresh_view())
        self.populate_tree(tree)
        self.tree_label.setText(f"Tree: {path}")
        logger.info("Opened tree %s (%d nodes)", path, len(tree))
        self.engine.on_structural_event(ChildrenLoaded(tree.root, tuple(tree.top_level())))

    def populate_tree(self, tree: CheckTree) -> None:
        self.tree_model.clear()
        self.tree_model.setHorizontalHeaderLabels(["Nodes"])
        self.bridge.clear()

        self.bridge.rendering = True
        try:
            if tree.root_visible:
                stack = [(tree.root, self.tree_model.invisibleRootItem())]
            else:
                stack = [(child, self.tree_model.invisibleRootItem()) for child in tree.top_level()]
            while stack:
                node, parent_item = stack.pop(0)
                item = QStandardItem(node.label)
                item.setEditable(False)
                item.setCheckable(True)
                item.setAutoTristate(False)
                item.setCheckState(Qt.CheckState.Checked if node.checked else Qt.CheckState.Unchecked)
                parent_item.appendRow(item)
                self.bridge.bind(node, item)
                stack.extend((child, item) for child in node.children)
        finally:
            self.bridge.rendering = False

        self._apply_view_expansion()

    def _apply_view_expansion(self) -> None:
        if not self.tree:
            return
        self.tree_view.blockSignals(True)
        try:
            for node in iter_subtree(self.tree.root):
                item = self.bridge.items.get(node.id)
                if item is not None and not node.is_leaf:
                    self.tree_view.setExpanded(item.index(), node.expanded)
        finally:
            self.tree_view.blockSignals(False)

    def refresh_view(self) -> None:
        self.bridge.render_all()
        if not self.engine:
            return
        self.all_checkbox.blockSignals(True)
        self.all_checkbox.setChecked(self.engine.global_toggle.value)
        self.all_checkbox.blockSignals(False)

    def _node_for_index(self, index: QModelIndex) -> Optional[Node]:
        item = self.tree_model.itemFromIndex(index)
        if item is None:
            return None
        return self.bridge.node_for_item(item)

    def on_item_changed(self, item: QStandardItem) -> None:
        if self.bridge.rendering or not self.engine:
            return
        node = self.bridge.node_for_item(item)
        if node is None:
            return
        self.engine.toggle_node(node, item.checkState() == Qt.CheckState.Checked)
        self.refresh_view()

    def on_expanded(self, index: QModelIndex) -> None:
        node = self._node_for_index(index)
        if node is None or not self.engine:
            return
        node.expanded = True
        self.engine.on_structural_event(NodeExpanded(node))
        self.refresh_view()

    def on_collapsed(self, index: QModelIndex) -> None:
        node = self._node_for_index(index)
        if node is None or not self.engine:
            return
        node.expanded = False
        self.engine.on_structural_event(NodeCollapsed(node))
        self.refresh_view()

    def on_all_checkbox_toggled(self, checked: bool) -> None:
        if not self.engine:
            return
        self.engine.global_toggle.set_value(checked)
        self.refresh_view()

    def expand_all(self) -> None:
        if not self.engine or not self.tree:
            return
        self.tree_view.blockSignals(True)
        try:
            self.tree_view.expandAll()
        finally:
            self.tree_view.blockSignals(False)
        self.engine.expand_all()
        self.refresh_view()

    def collapse_all(self) -> None:
        if not self.engine:
            return
        self.engine.collapse_all()
        self._apply_view_expansion()
        self.refresh_view()

    def show_checked_nodes(self) -> None:
        if not self.engine:
            return
        names = [node.label for node in self.engine.get_checked_nodes()]
        QMessageBox.information(self, "Selected Nodes", "\n".join(names) or "No nodes checked")
