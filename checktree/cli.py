from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path

import yaml

from checktree import __version__
from checktree.core.bridge import HeadlessViewBridge
from checktree.core.config import load_config
from checktree.core.engine import CheckTreeEngine
from checktree.core.loader import TreeFormatError, dump_state, load_tree
from checktree.core.models import ChildrenLoaded
from checktree.core.tree import CheckTree

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Checked tree CLI")
    parser.add_argument("--cli", action="store_true", help="Run in CLI mode")
    parser.add_argument("--tree", type=Path, help="Tree document (YAML or JSON)")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"), help="Config file path")
    parser.add_argument("--tristate", action="store_true", default=None, help="Enable tri-state")
    parser.add_argument("--check", action="append", default=[], metavar="ID", help="Check a node")
    parser.add_argument("--uncheck", action="append", default=[], metavar="ID", help="Uncheck a node")
    parser.add_argument("--expand", action="append", default=[], metavar="ID", help="Expand a node")
    parser.add_argument("--collapse", action="append", default=[], metavar="ID", help="Collapse a node")
    parser.add_argument("--expand-all", action="store_true", help="Expand every node")
    parser.add_argument("--collapse-all", action="store_true", help="Collapse every node")
    toggle = parser.add_mutually_exclusive_group()
    toggle.add_argument("--check-all", action="store_true", help="Check the whole tree")
    toggle.add_argument("--uncheck-all", action="store_true", help="Uncheck the whole tree")
    parser.add_argument("--json", action="store_true", help="Print report as JSON")
    parser.add_argument("--report", type=Path, help="Write report to file")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def _configure_logging(verbose: bool) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _build_report(engine: CheckTreeEngine, tree_path: Path) -> dict:
    tree = engine.tree
    state = dump_state(tree)
    payload = {
        "version": __version__,
        "tree": str(tree_path),
        "nodes": len(tree),
        "tristate_enabled": engine.config.enable_tristate,
        "all_checked": engine.recompute_global_toggle(),
        "checked": engine.checked_ids(),
        "tristate": [node_id for node_id, flags in state.items() if flags["tristate"]],
        "state": state,
    }
    return payload


def _write_report_text(payload: dict) -> str:
    lines = [
        f"Version: {payload.get('version', '')}",
        f"Tree: {payload.get('tree', '')}",
        f"Nodes: {payload['nodes']}",
        f"Tri-state: {'on' if payload['tristate_enabled'] else 'off'}",
        f"All checked: {payload['all_checked']}",
        f"Checked ({len(payload['checked'])}):",
    ]
    lines += [f"  {node_id}" for node_id in payload["checked"]]
    if payload["tristate"]:
        lines.append(f"Indeterminate ({len(payload['tristate'])}):")
        lines += [f"  {node_id}" for node_id in payload["tristate"]]
    return "\n".join(lines)


def _apply_actions(engine: CheckTreeEngine, tree: CheckTree, args: argparse.Namespace) -> None:
    if args.expand_all:
        engine.expand_all()
    if args.collapse_all:
        engine.collapse_all()
    for node_id in args.expand:
        engine.expand_node(tree.get(node_id))
    for node_id in args.collapse:
        engine.collapse_node(tree.get(node_id))
    for node_id in args.check:
        engine.toggle_node(tree.get(node_id), True)
    for node_id in args.uncheck:
        engine.toggle_node(tree.get(node_id), False)
    if args.check_all:
        engine.toggle_global(True)
    elif args.uncheck_all:
        engine.toggle_global(False)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.cli:
        print("Use --cli to run in headless mode.")
        return 1

    if not args.tree:
        print("Missing required --tree")
        return 1

    config = load_config(args.config)
    if args.tristate:
        config = replace(config, enable_tristate=True)

    try:
        tree = load_tree(args.tree, root_visible=config.root_visible)
    except (OSError, TreeFormatError, json.JSONDecodeError, yaml.YAMLError) as exc:
        print(f"Could not load tree: {exc}")
        return 1

    bridge = HeadlessViewBridge(root_visible=config.root_visible)
    engine = CheckTreeEngine(tree, config=config, bridge=bridge)
    engine.on_structural_event(ChildrenLoaded(tree.root, tuple(tree.top_level())))
    engine.flush_pending()
    logger.info("Loaded %d node(s) from %s", len(tree), args.tree)

    try:
        _apply_actions(engine, tree, args)
    except KeyError as exc:
        print(f"Unknown node id: {exc.args[0]}")
        return 1

    payload = _build_report(engine, args.tree)
    output = json.dumps(payload, indent=2) if args.json else _write_report_text(payload)
    if args.report:
        args.report.write_text(output)
    print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
