from __future__ import annotations

from typing import Callable, Protocol


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None: ...


class ImmediateScheduler:
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        callback()


class ManualScheduler:
    """Queues callbacks until ``run_pending`` is called."""

    def __init__(self) -> None:
        self.pending: list[tuple[int, Callable[[], None]]] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.pending.append((delay_ms, callback))

    def run_pending(self) -> int:
        ran = 0
        while self.pending:
            _delay, callback = self.pending.pop(0)
            callback()
            ran += 1
        return ran
