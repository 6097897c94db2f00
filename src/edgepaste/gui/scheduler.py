"""Qt implementation of core.scheduler.Scheduler."""
from __future__ import annotations

import logging
from typing import Callable, List

from PyQt6.QtCore import QObject, QTimer, Qt, pyqtSignal

logger = logging.getLogger(__name__)


class _SchedulerSignals(QObject):
    # Thread-safe deferred calls
    _call_sig = pyqtSignal(object)
    _delayed_call_sig = pyqtSignal(int, object)  # delay_ms, callable


class _QtTimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer = timer

    def stop(self) -> None:
        self._timer.stop()

    def is_active(self) -> bool:
        return self._timer.isActive()


class QtScheduler:
    """Runs callbacks on the thread that owns it (the GUI thread).

    call_soon and call_later go through queued signals, so they may be used
    from worker threads.
    """

    def __init__(self) -> None:
        self.signals = _SchedulerSignals()
        self.signals._call_sig.connect(self._invoke, Qt.ConnectionType.QueuedConnection)
        self.signals._delayed_call_sig.connect(self._handle_delayed_call, Qt.ConnectionType.QueuedConnection)
        self._timers: List[QTimer] = []

    def call_soon(self, callback: Callable[[], None]) -> None:
        self.signals._call_sig.emit(callback)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.signals._delayed_call_sig.emit(int(max(0, delay_ms)), callback)

    def call_repeating(self, interval_ms: int, callback: Callable[[], None]) -> _QtTimerHandle:
        timer = QTimer(self.signals)
        timer.timeout.connect(lambda: self._invoke(callback))
        timer.start(int(interval_ms))
        self._timers.append(timer)
        return _QtTimerHandle(timer)

    def stop_all(self) -> None:
        for timer in self._timers:
            timer.stop()
        self._timers.clear()

    def _handle_delayed_call(self, delay_ms: int, func: object) -> None:
        if callable(func):
            QTimer.singleShot(delay_ms, lambda: self._invoke(func))

    @staticmethod
    def _invoke(func: object) -> None:
        if not callable(func):
            return
        try:
            func()
        except Exception:
            logger.exception("scheduled callback failed")
