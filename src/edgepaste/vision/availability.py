"""Availability observer for the vision engine.

Flips the engine readiness flag exactly once. Two triggers race for it:
a fixed-interval poll of `engine.is_available()` and the engine's own
initialized callback. Whichever comes first wins; the poll stops as soon as
readiness is set. There is no timeout, the poll keeps going until the engine
shows up.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..core.readiness import EngineReadiness
from ..core.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class AvailabilityObserver:
    def __init__(self, engine, scheduler: Scheduler, poll_interval_ms: int = 100) -> None:
        self.engine = engine
        self.scheduler = scheduler
        self.poll_interval_ms = max(1, int(poll_interval_ms))
        self._readiness = EngineReadiness()
        self._poll: Optional[TimerHandle] = None
        self._started = False

    @property
    def readiness(self) -> EngineReadiness:
        return self._readiness

    @property
    def is_polling(self) -> bool:
        return self._poll is not None and self._poll.is_active()

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        if self.engine.is_available():
            self._set_ready("already loaded")
            return
        logger.info("Waiting for vision engine (poll every %dms)", self.poll_interval_ms)
        self._poll = self.scheduler.call_repeating(self.poll_interval_ms, self._on_poll_tick)
        # The engine callback fires on its loader thread; hop to the UI thread.
        self.engine.on_initialized(lambda: self.scheduler.call_soon(self._on_engine_initialized))

    def stop(self) -> None:
        if self._poll is not None:
            self._poll.stop()

    def _on_poll_tick(self) -> None:
        if self.engine.is_available():
            self._set_ready("poll")

    def _on_engine_initialized(self) -> None:
        self._set_ready("init callback")

    def _set_ready(self, trigger: str) -> None:
        self.stop()
        if self._readiness.mark_ready():
            logger.info("Vision engine is ready (via %s)", trigger)
