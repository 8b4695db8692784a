from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True)
class TreeConfig:
    enable_tristate: bool
    show_all_checkbox: bool
    all_checkbox_label: str
    show_expand_all: bool
    show_collapse_all: bool
    display_checked_nodes: bool
    root_visible: bool
    load_settle_ms: int

    @property
    def show_toolbar(self) -> bool:
        return (
            self.show_all_checkbox
            or self.show_expand_all
            or self.show_collapse_all
            or self.display_checked_nodes
        )


DEFAULT_ALL_CHECKBOX_LABEL = "Check/Uncheck All"
DEFAULT_LOAD_SETTLE_MS = 500


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "y", "yes", "true", "on"}
    return bool(value)


def _as_delay(value) -> int:
    try:
        delay = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LOAD_SETTLE_MS
    return max(delay, 0)


def default_config() -> TreeConfig:
    return TreeConfig(
        enable_tristate=False,
        show_all_checkbox=False,
        all_checkbox_label=DEFAULT_ALL_CHECKBOX_LABEL,
        show_expand_all=False,
        show_collapse_all=False,
        display_checked_nodes=False,
        root_visible=False,
        load_settle_ms=DEFAULT_LOAD_SETTLE_MS,
    )


def load_config(path: Path) -> TreeConfig:
    if not path.exists():
        return default_config()

    data = yaml.safe_load(path.read_text()) or {}
    return TreeConfig(
        enable_tristate=_as_bool(data.get("enable_tristate"), False),
        show_all_checkbox=_as_bool(data.get("show_all_checkbox"), False),
        all_checkbox_label=str(data.get("all_checkbox_label") or DEFAULT_ALL_CHECKBOX_LABEL),
        show_expand_all=_as_bool(data.get("show_expand_all"), False),
        show_collapse_all=_as_bool(data.get("show_collapse_all"), False),
        display_checked_nodes=_as_bool(data.get("display_checked_nodes"), False),
        root_visible=_as_bool(data.get("root_visible"), False),
        load_settle_ms=_as_delay(data.get("load_settle_ms", DEFAULT_LOAD_SETTLE_MS)),
    )
