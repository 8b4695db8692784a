"""Downward and upward check-state propagation.

Both passes are plain loops over an explicit stack or parent chain. A user
action runs the downward pass first and the upward pass second; neither pass
calls the other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from checktree.core.bridge import ViewBridge
from checktree.core.models import Node
from checktree.core.tree import CheckTree
from checktree.core.tri_state import CHECKED, PARTIAL, compute_parent_state, node_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropagationContext:
    tree: CheckTree
    bridge: ViewBridge
    tristate_enabled: bool = False


def _apply_marker(ctx: PropagationContext, node: Node) -> None:
    if ctx.bridge.is_materialized(node):
        ctx.bridge.apply_indeterminate_marker(node)


def _clear_marker(ctx: PropagationContext, node: Node) -> None:
    # Hidden rows are cleared too; bridges keep markers across collapse.
    ctx.bridge.clear_indeterminate_marker(node)


def apply_checked_to_subtree(ctx: PropagationContext, node: Node, value: bool) -> int:
    """Set ``checked`` on ``node`` and every descendant, clearing tristate.

    Returns the number of nodes visited.
    """
    visited = 0
    stack = [node]
    while stack:
        current = stack.pop()
        current.checked = value
        current.tristate = False
        _clear_marker(ctx, current)
        visited += 1
        stack.extend(current.children)
    logger.debug("Applied checked=%s to %d node(s) under %s", value, visited, node.id)
    return visited


def _recompute_one(ctx: PropagationContext, parent: Node) -> None:
    states = []
    for child in parent.children:
        if child.tristate:
            _apply_marker(ctx, child)
        states.append(node_state(child.checked, child.tristate))

    result = compute_parent_state(states, ctx.tristate_enabled)
    if result.parent_state == CHECKED:
        parent.checked = True
        parent.tristate = False
        _clear_marker(ctx, parent)
    elif result.parent_state == PARTIAL:
        parent.checked = False
        parent.tristate = True
        _apply_marker(ctx, parent)
    else:
        parent.checked = False
        parent.tristate = False
        _clear_marker(ctx, parent)


def recompute_ancestor(ctx: PropagationContext, parent: Optional[Node]) -> list[Node]:
    """Re-derive ``parent`` from its children, then every ancestor above it.

    An invisible root is never recomputed and ends the climb. Returns the
    recomputed nodes, bottom-up.
    """
    recomputed: list[Node] = []
    current = parent
    while current is not None and not ctx.tree.is_invisible_root(current):
        if current.children:
            _recompute_one(ctx, current)
            recomputed.append(current)
        current = current.parent
    if recomputed:
        logger.debug("Recomputed ancestors: %s", [node.id for node in recomputed])
    return recomputed


def propagate_up(ctx: PropagationContext, node: Node) -> list[Node]:
    if node.parent is None:
        return []
    return recompute_ancestor(ctx, node.parent)
