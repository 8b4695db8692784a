from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class TriStateResult:
    parent_state: int
    any_checked: bool
    all_checked: bool


UNCHECKED = 0
PARTIAL = 1
CHECKED = 2


def node_state(checked: bool, tristate: bool) -> int:
    if tristate:
        return PARTIAL
    return CHECKED if checked else UNCHECKED


def compute_parent_state(child_states: Iterable[int], tristate_enabled: bool = True) -> TriStateResult:
    states = list(child_states)
    checked_count = sum(1 for state in states if state == CHECKED)
    partial = any(state == PARTIAL for state in states)

    if states and checked_count == len(states):
        return TriStateResult(parent_state=CHECKED, any_checked=True, all_checked=True)
    if checked_count > 0 or partial:
        parent_state = PARTIAL if tristate_enabled else UNCHECKED
        return TriStateResult(parent_state=parent_state, any_checked=checked_count > 0, all_checked=False)
    return TriStateResult(parent_state=UNCHECKED, any_checked=False, all_checked=False)
