"""Re-derive tri-state markers after expand, collapse and bulk loads.

Collapsing or expanding a node destroys or recreates the rows whose markers
explained its state, so these routines rebuild from the Node Model.
"""

from __future__ import annotations

import logging

from checktree.core.models import Node
from checktree.core.propagation import PropagationContext, propagate_up
from checktree.core.tree import find_deepest_node, iter_descendants, iter_leaves, iter_subtree

logger = logging.getLogger(__name__)


def reconcile_collapse(ctx: PropagationContext, node: Node) -> bool:
    """Mark ``node`` indeterminate when its hidden descendants are mixed.

    Returns True when the node was marked.
    """
    all_checked = True
    any_checked = False
    seen = False
    for descendant in iter_descendants(node):
        seen = True
        all_checked = all_checked and descendant.checked
        any_checked = any_checked or descendant.checked

    if not seen or not any_checked or all_checked:
        return False

    node.checked = False
    node.tristate = True
    if ctx.bridge.is_materialized(node):
        ctx.bridge.apply_indeterminate_marker(node)
    logger.debug("Collapsed %s keeps indeterminate state", node.id)
    return True


def reconcile_expand(ctx: PropagationContext, node: Node) -> list[Node]:
    deepest = find_deepest_node(node)
    recomputed = propagate_up(ctx, deepest)

    # Rows off the deepest chain were re-rendered with whatever marker they last had.
    for current in iter_subtree(node):
        if not ctx.bridge.is_materialized(current):
            continue
        if current.tristate:
            ctx.bridge.apply_indeterminate_marker(current)
        else:
            ctx.bridge.clear_indeterminate_marker(current)
    logger.debug("Expanded %s, recomputed from %s", node.id, deepest.id)
    return recomputed


def reconcile_loaded(ctx: PropagationContext, node: Node) -> int:
    """Propagate upward from every leaf under ``node``. Returns the leaf count."""
    leaves = 0
    for leaf in iter_leaves(node):
        propagate_up(ctx, leaf)
        leaves += 1
    logger.debug("Reconciled %d leaf node(s) under %s", leaves, node.id)
    return leaves
