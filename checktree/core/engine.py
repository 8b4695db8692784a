from __future__ import annotations

import logging
from typing import Callable, Optional

from checktree.core.bridge import NullViewBridge, ViewBridge
from checktree.core.config import TreeConfig, default_config
from checktree.core.models import ChildrenLoaded, Node, NodeCollapsed, NodeExpanded, StructuralEvent
from checktree.core.propagation import (
    PropagationContext,
    apply_checked_to_subtree,
    propagate_up,
)
from checktree.core.reconcile import reconcile_collapse, reconcile_expand, reconcile_loaded
from checktree.core.scheduler import ImmediateScheduler, Scheduler
from checktree.core.tree import CheckTree, iter_subtree

logger = logging.getLogger(__name__)


class GlobalToggle:
    """Boolean "check/uncheck all" control with suspendable change listeners."""

    def __init__(self, value: bool = False) -> None:
        self.value = value
        self._listeners: list[Callable[[bool], None]] = []
        self._suspended = False

    def connect(self, listener: Callable[[bool], None]) -> None:
        self._listeners.append(listener)

    def set_value(self, value: bool) -> None:
        changed = value != self.value
        self.value = value
        if changed and not self._suspended:
            for listener in list(self._listeners):
                listener(value)

    def set_silently(self, value: bool) -> None:
        self._suspended = True
        try:
            self.set_value(value)
        finally:
            self._suspended = False


class CheckTreeEngine:
    def __init__(
        self,
        tree: CheckTree,
        config: Optional[TreeConfig] = None,
        bridge: Optional[ViewBridge] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.tree = tree
        self.config = config or default_config()
        self.bridge = bridge or NullViewBridge()
        self.scheduler = scheduler or ImmediateScheduler()
        self.global_toggle = GlobalToggle()
        self.global_toggle.connect(self.toggle_global)
        self.ctx = PropagationContext(
            tree=tree,
            bridge=self.bridge,
            tristate_enabled=self.config.enable_tristate,
        )
        self._pending_loads: list[Node] = []

    def toggle_node(self, node: Node, value: bool) -> None:
        self.tree.require(node)
        logger.debug("Toggle %s -> %s", node.id, value)
        apply_checked_to_subtree(self.ctx, node, value)
        propagate_up(self.ctx, node)
        if self.config.show_all_checkbox:
            self.recompute_global_toggle()

    def toggle_global(self, value: bool) -> None:
        logger.info("Global toggle -> %s", value)
        apply_checked_to_subtree(self.ctx, self.tree.root, value)
        self.global_toggle.set_silently(value)

    def recompute_global_toggle(self) -> bool:
        all_checked = True
        for child in self.tree.top_level():
            if not child.checked or (self.config.enable_tristate and child.tristate):
                all_checked = False
                break
        if self.config.show_all_checkbox:
            self.global_toggle.set_silently(all_checked)
        return all_checked

    def get_checked_nodes(self) -> list[Node]:
        return [
            node
            for node in self.tree.iter_nodes()
            if node.checked and not self.tree.is_invisible_root(node)
        ]

    def checked_ids(self) -> list[str]:
        return [node.id for node in self.get_checked_nodes()]

    def on_structural_event(self, event: StructuralEvent) -> None:
        if isinstance(event, ChildrenLoaded):
            self._schedule_load(self.tree.require(event.node))
        elif isinstance(event, NodeExpanded):
            if self.config.enable_tristate:
                reconcile_expand(self.ctx, self.tree.require(event.node))
        elif isinstance(event, NodeCollapsed):
            if self.config.enable_tristate:
                reconcile_collapse(self.ctx, self.tree.require(event.node))
        else:
            raise TypeError(f"Unsupported structural event: {type(event).__name__}")

    def _schedule_load(self, node: Node) -> None:
        self._pending_loads.append(node)
        self.scheduler.call_later(self.config.load_settle_ms, lambda: self._run_load(node))

    def _run_load(self, node: Node) -> None:
        # A superseded task may already have been flushed; the walk is idempotent.
        if node in self._pending_loads:
            self._pending_loads.remove(node)
        reconcile_loaded(self.ctx, node)
        self.recompute_global_toggle()
        logger.info("Reconciled loaded subtree %s", node.id)

    def flush_pending(self) -> int:
        flushed = 0
        while self._pending_loads:
            self._run_load(self._pending_loads[0])
            flushed += 1
        return flushed

    def expand_node(self, node: Node) -> None:
        self.tree.require(node)
        if node.is_leaf or node.expanded:
            return
        node.expanded = True
        self.on_structural_event(NodeExpanded(node))

    def collapse_node(self, node: Node) -> None:
        self.tree.require(node)
        if node.is_leaf or not node.expanded:
            return
        node.expanded = False
        self.on_structural_event(NodeCollapsed(node))

    def expand_all(self) -> int:
        expanded = 0
        for node in iter_subtree(self.tree.root):
            if not node.is_leaf and not node.expanded:
                self.expand_node(node)
                expanded += 1
        return expanded

    def collapse_all(self) -> int:
        branches = [node for node in iter_subtree(self.tree.root) if not node.is_leaf]
        collapsed = 0
        for node in sorted(branches, key=lambda n: n.depth, reverse=True):
            if node is self.tree.root and not self.tree.root_visible:
                continue
            if node.expanded:
                self.collapse_node(node)
                collapsed += 1
        return collapsed
