from __future__ import annotations

from dataclasses import replace

import pytest

from checktree.core.bridge import HeadlessViewBridge
from checktree.core.config import default_config
from checktree.core.engine import CheckTreeEngine, GlobalToggle
from checktree.core.loader import attach_children, build_tree
from checktree.core.models import ChildrenLoaded, Node, NodeCollapsed, NodeExpanded
from checktree.core.scheduler import ManualScheduler
from checktree.core.tree import NodeNotInTreeError, iter_subtree


def _engine(data: dict, scheduler=None, **overrides) -> CheckTreeEngine:
    values = {"enable_tristate": True, "show_all_checkbox": True, **overrides}
    config = replace(default_config(), **values)
    tree = build_tree(data, root_visible=config.root_visible)
    bridge = HeadlessViewBridge(root_visible=config.root_visible)
    return CheckTreeEngine(tree, config=config, bridge=bridge, scheduler=scheduler)


SIMPLE = {"id": "root", "children": [{"id": "A", "expanded": True, "children": [{"id": "B"}, {"id": "C"}]}]}
DEEP = {
    "id": "root",
    "children": [
        {
            "id": "A",
            "expanded": True,
            "children": [{"id": "B", "expanded": True, "children": [{"id": "C"}, {"id": "D"}]}],
        }
    ],
}


def test_check_one_then_both_then_uncheck_parent() -> None:
    engine = _engine(SIMPLE)
    tree = engine.tree
    a, b, c = tree.get("A"), tree.get("B"), tree.get("C")

    engine.toggle_node(b, True)
    assert (a.checked, a.tristate) == (False, True)
    assert engine.global_toggle.value is False

    engine.toggle_node(c, True)
    assert (a.checked, a.tristate) == (True, False)
    assert engine.global_toggle.value is True

    engine.toggle_node(a, False)
    assert b.checked is False
    assert c.checked is False
    assert engine.global_toggle.value is False


def test_checking_tristate_node_clears_it() -> None:
    engine = _engine(SIMPLE)
    tree = engine.tree
    engine.toggle_node(tree.get("B"), True)
    engine.toggle_node(tree.get("A"), True)
    assert tree.get("A").tristate is False
    assert tree.get("C").checked is True


def test_collapse_and_expand_keep_deep_tristate() -> None:
    engine = _engine(DEEP)
    bridge = engine.bridge
    tree = engine.tree
    b, c, d = tree.get("B"), tree.get("C"), tree.get("D")

    engine.toggle_node(d, True)
    engine.collapse_node(b)
    assert b.tristate is True
    assert "B" in bridge.markers

    bridge.markers.discard("B")
    engine.expand_node(b)
    assert b.tristate is True
    assert b.checked is False
    assert "B" in bridge.markers
    assert (c.checked, d.checked) == (False, True)


def test_structural_events_skip_reconcile_without_tristate() -> None:
    engine = _engine(DEEP, enable_tristate=False)
    tree = engine.tree
    engine.toggle_node(tree.get("D"), True)
    tree.get("B").expanded = False
    engine.on_structural_event(NodeCollapsed(tree.get("B")))
    assert tree.get("B").tristate is False
    assert engine.bridge.markers == set()


def test_invisible_root_is_never_mutated_by_toggle() -> None:
    engine = _engine(SIMPLE)
    engine.toggle_node(engine.tree.get("B"), True)
    engine.toggle_node(engine.tree.get("C"), True)
    assert engine.tree.root.checked is False
    assert engine.tree.root.tristate is False


def test_toggle_foreign_node_fails_fast() -> None:
    engine = _engine(SIMPLE)
    with pytest.raises(NodeNotInTreeError):
        engine.toggle_node(Node(id="B"), True)
    assert engine.tree.get("B").checked is False


def test_unknown_event_type_is_rejected() -> None:
    engine = _engine(SIMPLE)
    with pytest.raises(TypeError):
        engine.on_structural_event(object())


def test_global_toggle_checks_and_unchecks_everything() -> None:
    engine = _engine(DEEP)
    tree = engine.tree
    engine.toggle_node(tree.get("D"), True)

    engine.toggle_global(True)
    assert all(node.checked and not node.tristate for node in iter_subtree(tree.root))
    assert engine.bridge.markers == set()
    assert engine.global_toggle.value is True

    engine.toggle_global(False)
    assert not any(node.checked or node.tristate for node in iter_subtree(tree.root))
    assert engine.get_checked_nodes() == []


def test_global_toggle_user_action_propagates() -> None:
    engine = _engine(SIMPLE)
    engine.global_toggle.set_value(True)
    assert engine.checked_ids() == ["A", "B", "C"]


def test_recompute_global_toggle_is_silent() -> None:
    engine = _engine(SIMPLE)
    calls: list[bool] = []
    engine.global_toggle.connect(calls.append)
    engine.tree.get("A").checked = True
    assert engine.recompute_global_toggle() is True
    assert engine.global_toggle.value is True
    assert calls == []


def test_recompute_global_toggle_ignores_tristate_top_level() -> None:
    engine = _engine(SIMPLE)
    engine.toggle_node(engine.tree.get("B"), True)
    assert engine.recompute_global_toggle() is False


def test_global_toggle_disabled_is_not_written() -> None:
    engine = _engine(SIMPLE, show_all_checkbox=False)
    engine.toggle_node(engine.tree.get("A"), True)
    assert engine.global_toggle.value is False
    assert engine.recompute_global_toggle() is True


def test_global_toggle_matches_checked_nodes() -> None:
    engine = _engine(DEEP)
    tree = engine.tree
    every = [node for node in iter_subtree(tree.root) if node is not tree.root]
    for leaf_id, expected in (("C", False), ("D", True)):
        engine.toggle_node(tree.get(leaf_id), True)
        assert engine.recompute_global_toggle() is expected
        assert (engine.get_checked_nodes() == every) is expected


def test_empty_tree_counts_as_all_checked() -> None:
    engine = _engine({"id": "root", "children": []})
    assert engine.recompute_global_toggle() is True


def test_checked_nodes_in_traversal_order() -> None:
    engine = _engine(DEEP)
    tree = engine.tree
    engine.toggle_node(tree.get("B"), True)
    assert engine.checked_ids() == ["A", "B", "C", "D"]


def test_visible_root_is_reported_when_checked() -> None:
    engine = _engine(SIMPLE, root_visible=True)
    engine.toggle_global(True)
    assert engine.checked_ids()[0] == "root"


def test_global_toggle_class_notifies_only_on_change() -> None:
    toggle = GlobalToggle()
    calls: list[bool] = []
    toggle.connect(calls.append)
    toggle.set_value(False)
    toggle.set_value(True)
    toggle.set_silently(False)
    assert calls == [True]
    assert toggle.value is False


def test_load_reconciles_after_scheduler_fires() -> None:
    scheduler = ManualScheduler()
    engine = _engine(SIMPLE, scheduler=scheduler)
    tree = engine.tree
    added = attach_children(
        tree,
        tree.get("B"),
        [{"id": "B1", "checked": True}, {"id": "B2", "checked": True}],
    )
    engine.on_structural_event(ChildrenLoaded(tree.get("B"), tuple(added)))

    assert tree.get("B").checked is False
    assert scheduler.pending[0][0] == engine.config.load_settle_ms

    scheduler.run_pending()
    assert tree.get("B").checked is True
    assert tree.get("A").tristate is True
    assert engine.global_toggle.value is False


def test_flush_pending_runs_queued_loads_once() -> None:
    scheduler = ManualScheduler()
    engine = _engine(SIMPLE, scheduler=scheduler)
    tree = engine.tree
    tree.get("B").checked = True
    tree.get("C").checked = True
    engine.on_structural_event(ChildrenLoaded(tree.root, tuple(tree.top_level())))
    engine.on_structural_event(ChildrenLoaded(tree.root, tuple(tree.top_level())))

    assert engine.flush_pending() == 2
    assert tree.get("A").checked is True
    assert engine.global_toggle.value is True

    # Superseded timers still fire; the walk converges to the same state.
    scheduler.run_pending()
    assert tree.get("A").checked is True
    assert engine.flush_pending() == 0


def test_expand_event_on_foreign_node_fails_fast() -> None:
    engine = _engine(SIMPLE)
    with pytest.raises(NodeNotInTreeError):
        engine.on_structural_event(NodeExpanded(Node(id="A", is_leaf=False)))


def test_collapse_all_then_expand_all() -> None:
    engine = _engine(DEEP)
    tree = engine.tree
    engine.toggle_node(tree.get("D"), True)

    assert engine.collapse_all() == 2
    assert not tree.get("A").expanded
    assert not tree.get("B").expanded
    assert tree.root.expanded
    assert tree.get("A").tristate is True

    engine.bridge.markers.clear()
    assert engine.expand_all() == 2
    assert tree.get("B").expanded
    assert {"A", "B"} <= engine.bridge.markers
    assert (tree.get("C").checked, tree.get("D").checked) == (False, True)


BRANCHY = {
    "id": "root",
    "children": [
        {
            "id": "A",
            "expanded": True,
            "children": [
                {"id": "B", "expanded": True, "children": [{"id": "C"}, {"id": "D"}]},
                {"id": "E", "expanded": True, "children": [{"id": "F", "expanded": True, "children": [{"id": "G"}]}]},
            ],
        }
    ],
}


def _assert_markers_mirror_tristate(engine: CheckTreeEngine) -> None:
    for node in iter_subtree(engine.tree.root):
        assert (node.id in engine.bridge.markers) == node.tristate, node.id


def test_global_toggle_while_collapsed_leaves_no_stale_markers() -> None:
    engine = _engine(BRANCHY)
    tree = engine.tree
    engine.toggle_node(tree.get("D"), True)
    engine.collapse_node(tree.get("A"))

    engine.toggle_global(False)
    engine.expand_node(tree.get("A"))

    assert tree.get("B").tristate is False
    _assert_markers_mirror_tristate(engine)


def test_toggle_collapsed_node_leaves_no_stale_markers() -> None:
    engine = _engine(BRANCHY)
    tree = engine.tree
    engine.toggle_node(tree.get("D"), True)
    engine.collapse_node(tree.get("A"))

    engine.toggle_node(tree.get("A"), False)
    assert engine.bridge.markers == set()

    engine.expand_node(tree.get("A"))
    _assert_markers_mirror_tristate(engine)


def test_expand_clears_markers_on_rows_no_longer_tristate() -> None:
    engine = _engine(BRANCHY)
    tree = engine.tree
    engine.toggle_node(tree.get("D"), True)
    engine.collapse_node(tree.get("A"))

    # Flags changed behind the view's back while A was collapsed.
    tree.get("D").checked = False
    tree.get("B").tristate = False
    engine.bridge.markers.add("E")

    engine.expand_node(tree.get("A"))
    assert "B" not in engine.bridge.markers
    assert "E" not in engine.bridge.markers
    _assert_markers_mirror_tristate(engine)
