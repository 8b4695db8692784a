import argparse
import logging
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from checktree import __version__
from checktree.ui.main_window import MainWindow


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Checked tree viewer")
    parser.add_argument("--gui", action="store_true")
    parser.add_argument("--tree", type=Path, help="Tree document to open")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"))
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    # Flags meant for the launcher (e.g. --cli) or for Qt itself pass through.
    args, _unknown = build_parser().parse_known_args(argv)
    return args


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv if argv is not None else sys.argv[1:])

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.INFO,
            format="%(asctime)s - %(message)s",
        )

    app = QApplication(sys.argv)
    app.setApplicationName(f"Checked Tree {__version__}")
    window = MainWindow(config_path=args.config)
    if args.tree:
        window.open_tree(args.tree)
    window.resize(700, 600)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
