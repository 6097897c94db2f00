"""
Render target shared by the pipeline and the display.

The canvas holds a single BGRA uint8 pixel buffer. Writers replace it
wholesale; listeners (the on-screen view) are told after each change. Only
the latest contents exist, no history is kept.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

import numpy as np

logger = logging.getLogger(__name__)


class Canvas:
    """BGRA pixel buffer with change notification."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pixels: Optional[np.ndarray] = None
        self._listeners: List[Callable[["Canvas"], None]] = []

    @property
    def width(self) -> int:
        px = self._pixels
        return 0 if px is None else int(px.shape[1])

    @property
    def height(self) -> int:
        px = self._pixels
        return 0 if px is None else int(px.shape[0])

    @property
    def is_empty(self) -> bool:
        px = self._pixels
        return px is None or px.size == 0

    def on_change(self, listener: Callable[["Canvas"], None]) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> Optional[np.ndarray]:
        """Return a copy of the current pixels, or None when nothing was drawn."""
        with self._lock:
            return None if self._pixels is None else self._pixels.copy()

    def draw_image(self, pixels: np.ndarray) -> None:
        """Resize the canvas to the image and draw it at the origin."""
        self.put(pixels)

    def put(self, pixels: np.ndarray) -> None:
        """Replace the whole buffer. Accepts gray, BGR or BGRA uint8."""
        bgra = to_bgra(pixels)
        with self._lock:
            self._pixels = bgra
        self._notify()

    def clear(self) -> None:
        with self._lock:
            self._pixels = None
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("canvas listener failed")


def to_bgra(pixels: np.ndarray) -> np.ndarray:
    arr = np.asarray(pixels)
    if arr.dtype != np.uint8:
        raise ValueError(f"canvas expects uint8 pixels, got {arr.dtype}")
    if arr.ndim == 2:
        out = np.empty(arr.shape + (4,), dtype=np.uint8)
        out[..., 0] = arr
        out[..., 1] = arr
        out[..., 2] = arr
        out[..., 3] = 255
        return out
    if arr.ndim == 3 and arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.ascontiguousarray(np.concatenate([arr, alpha], axis=2))
    if arr.ndim == 3 and arr.shape[2] == 4:
        return np.ascontiguousarray(arr).copy()
    raise ValueError(f"unsupported canvas pixel shape {arr.shape}")
