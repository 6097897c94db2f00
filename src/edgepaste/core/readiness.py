"""
Engine readiness state.

A one-way false -> true flag with a single writer (the availability observer)
and any number of readers. Readers either query `is_ready`, subscribe for
the transition, or block on `wait()`.
"""

import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class EngineReadiness:
    """Thread-safe, monotonic readiness flag."""

    def __init__(self):
        self.lock = threading.Lock()
        self._event = threading.Event()
        self._subscribers: List[Callable[[], None]] = []

    @property
    def is_ready(self) -> bool:
        return self._event.is_set()

    def subscribe(self, callback: Callable[[], None]) -> None:
        """Call `callback` once when ready; immediately if already ready."""
        with self.lock:
            if not self._event.is_set():
                self._subscribers.append(callback)
                return
        callback()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def mark_ready(self) -> bool:
        """Flip to ready. Returns True only for the call that made the transition."""
        with self.lock:
            if self._event.is_set():
                return False
            self._event.set()
            subscribers, self._subscribers = self._subscribers, []
        for cb in subscribers:
            try:
                cb()
            except Exception:
                logger.exception("readiness subscriber failed")
        return True
