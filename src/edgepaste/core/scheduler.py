"""
Scheduling seam between the pipeline components and the event loop.

Components never talk to QTimer directly; they receive a Scheduler. The GUI
passes a QtScheduler (gui.scheduler), tests pass a manual one that runs
callbacks when told to.
"""
from __future__ import annotations

from typing import Callable, Protocol


class TimerHandle(Protocol):
    def stop(self) -> None: ...

    def is_active(self) -> bool: ...


class Scheduler(Protocol):
    """Single-threaded cooperative scheduling.

    call_soon must be safe to call from any thread; callbacks always run on
    the scheduler's own (UI) thread.
    """

    def call_soon(self, callback: Callable[[], None]) -> None: ...

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None: ...

    def call_repeating(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle: ...
