"""Output sink: copy or save the rendered canvas as PNG.

Every export reports a transient status (SUCCESS or FAILURE) that falls back
to IDLE after `status_clear_ms`. Failures are reported, never raised.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Protocol, Union

from ..core.canvas import Canvas
from ..core.errors import ExportError
from ..core.scheduler import Scheduler

logger = logging.getLogger(__name__)


class ClipboardWriter(Protocol):
    def write_png(self, data: bytes) -> None: ...


class ExportState(enum.Enum):
    IDLE = "idle"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class ExportStatus:
    state: ExportState
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.state is ExportState.SUCCESS


IDLE = ExportStatus(ExportState.IDLE)


class OutputSink:
    def __init__(self, canvas: Canvas, clipboard: ClipboardWriter, scheduler: Scheduler,
                 encoder: Callable, status_clear_ms: int = 2000) -> None:
        self.canvas = canvas
        self.clipboard = clipboard
        self.scheduler = scheduler
        self.encoder = encoder
        self.status_clear_ms = int(status_clear_ms)
        self._status = IDLE
        self._status_token = 0
        self._listeners: List[Callable[[ExportStatus], None]] = []

    @property
    def status(self) -> ExportStatus:
        return self._status

    def on_status(self, listener: Callable[[ExportStatus], None]) -> None:
        self._listeners.append(listener)

    def export_as_image(self) -> ExportStatus:
        """Copy the canvas to the clipboard as a PNG image entry."""
        try:
            data = self._encode()
            self.clipboard.write_png(data)
        except Exception as e:
            logger.error("Copy to clipboard failed: %s", e)
            return self._report(ExportStatus(ExportState.FAILURE, f"Copy failed: {_reason(e)}"))
        logger.info("Copied %dx%d image to clipboard (%d bytes)", self.canvas.width, self.canvas.height, len(data))
        return self._report(ExportStatus(ExportState.SUCCESS, "Copied to clipboard"))

    def save_as(self, path: Union[str, Path]) -> ExportStatus:
        """Write the canvas to a PNG file."""
        target = Path(path)
        try:
            data = self._encode()
            target.write_bytes(data)
        except Exception as e:
            logger.error("Saving %s failed: %s", target, e)
            return self._report(ExportStatus(ExportState.FAILURE, f"Save failed: {_reason(e)}"))
        logger.info("Saved image to %s", target)
        return self._report(ExportStatus(ExportState.SUCCESS, f"Saved {target.name}"))

    def _encode(self) -> bytes:
        pixels = self.canvas.snapshot()
        if pixels is None or pixels.size == 0:
            raise ExportError("nothing to export")
        return self.encoder(pixels)

    def _report(self, status: ExportStatus) -> ExportStatus:
        self._status_token += 1
        token = self._status_token
        self._set_status(status)
        self.scheduler.call_later(self.status_clear_ms, lambda: self._clear(token))
        return status

    def _clear(self, token: int) -> None:
        # A newer status owns the label now.
        if token == self._status_token:
            self._set_status(IDLE)

    def _set_status(self, status: ExportStatus) -> None:
        self._status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("status listener failed")


def _reason(e: Exception) -> str:
    return getattr(e, "message", None) or str(e) or type(e).__name__
