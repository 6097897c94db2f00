"""Vision engine adapter over OpenCV.

Responsibility:
- Load cv2 lazily on a background thread and announce when it is usable
  (`is_available()` for polling, `on_initialized()` for a callback).
- Expose the handful of operations the edge pipeline needs with an
  input-buffer / output-buffer calling convention.
- Own the lifetime of intermediate buffers: every `Mat` handed out through a
  `BufferScope` is deleted when the scope exits, on success and on error.

The adapter knows nothing about parameters or run ordering; that lives in
controllers.pipeline.
"""
from __future__ import annotations

import importlib
import logging
import threading
from types import ModuleType
from typing import Callable, List, Optional, Tuple

import numpy as np

from ..core.canvas import Canvas
from ..core.errors import EngineUnavailableError, ExportError, PipelineError

logger = logging.getLogger(__name__)


class Mat:
    """A processing buffer with an explicit release."""

    def __init__(self, data: Optional[np.ndarray] = None) -> None:
        self.data = data
        self.deleted = False

    @property
    def rows(self) -> int:
        return 0 if self.data is None else int(self.data.shape[0])

    @property
    def cols(self) -> int:
        return 0 if self.data is None else int(self.data.shape[1])

    @property
    def channels(self) -> int:
        if self.data is None:
            return 0
        return 1 if self.data.ndim == 2 else int(self.data.shape[2])

    def empty(self) -> bool:
        return self.data is None or self.data.size == 0

    def delete(self) -> None:
        self.data = None
        self.deleted = True

    def pixels(self) -> np.ndarray:
        if self.deleted:
            raise PipelineError("buffer used after release")
        if self.data is None:
            raise PipelineError("buffer is empty")
        return self.data


class BufferScope:
    """Scoped acquisition of Mats; releases everything it handed out on exit."""

    def __init__(self) -> None:
        self._owned: List[Mat] = []

    def new(self) -> Mat:
        return self.adopt(Mat())

    def adopt(self, mat: Mat) -> Mat:
        self._owned.append(mat)
        return mat

    @property
    def owned(self) -> List[Mat]:
        return list(self._owned)

    def release(self) -> None:
        count = len(self._owned)
        while self._owned:
            self._owned.pop().delete()
        logger.debug("released %d buffer(s)", count)

    def __enter__(self) -> "BufferScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class VisionEngine:
    """OpenCV capability that becomes available asynchronously."""

    def __init__(self, cv_module: Optional[ModuleType] = None, module_name: str = "cv2") -> None:
        self.module_name = module_name
        self._cv: Optional[ModuleType] = cv_module
        self._lock = threading.Lock()
        self._init_callbacks: List[Callable[[], None]] = []
        self._loader: Optional[threading.Thread] = None

    # ------ Availability ------
    def is_available(self) -> bool:
        cv = self._cv
        return cv is not None and hasattr(cv, "GaussianBlur")

    def on_initialized(self, callback: Callable[[], None]) -> None:
        """Register a one-shot callback fired from the loader once cv2 is usable.

        Callbacks run on the loader thread; callers marshal to the UI thread.
        """
        with self._lock:
            self._init_callbacks.append(callback)

    def load(self) -> None:
        """Import the vision module synchronously and fire init callbacks."""
        if not self.is_available():
            module = importlib.import_module(self.module_name)
            with self._lock:
                self._cv = module
            logger.info("Vision module %s %s loaded", self.module_name, getattr(module, "__version__", "?"))
        with self._lock:
            callbacks, self._init_callbacks = self._init_callbacks, []
        for cb in callbacks:
            try:
                cb()
            except Exception:
                logger.exception("vision engine init callback failed")

    def load_async(self) -> threading.Thread:
        """Start loading on a daemon thread. Import errors are logged, not raised."""
        if self._loader is not None:
            return self._loader

        def _target():
            try:
                self.load()
            except Exception:
                logger.exception("Failed to load vision module %s", self.module_name)

        self._loader = threading.Thread(target=_target, daemon=True, name="VisionEngineLoader")
        self._loader.start()
        return self._loader

    @property
    def cv(self) -> ModuleType:
        cv = self._cv
        if cv is None:
            raise EngineUnavailableError(f"{self.module_name} is not loaded yet")
        return cv

    # ------ Buffers ------
    @staticmethod
    def buffers() -> BufferScope:
        return BufferScope()

    # ------ Operations ------
    def imread(self, canvas: Canvas) -> Mat:
        pixels = canvas.snapshot()
        if pixels is None:
            raise PipelineError("canvas has no pixels to read")
        return Mat(pixels)

    def resize(self, src: Mat, dst: Mat, size: Tuple[int, int], fx: float = 0, fy: float = 0,
               interpolation: Optional[int] = None) -> None:
        cv = self.cv
        interp = cv.INTER_LINEAR if interpolation is None else interpolation
        dst.data = cv.resize(src.pixels(), (int(size[0]), int(size[1])), fx=fx, fy=fy, interpolation=interp)

    def cvt_color(self, src: Mat, dst: Mat, code: int, dst_cn: int = 0) -> None:
        dst.data = self.cv.cvtColor(src.pixels(), code, dstCn=dst_cn)

    def gaussian_blur(self, src: Mat, dst: Mat, ksize: Tuple[int, int], sigma: float = 0) -> None:
        dst.data = self.cv.GaussianBlur(src.pixels(), (int(ksize[0]), int(ksize[1])), sigma)

    def canny(self, src: Mat, dst: Mat, threshold1: float, threshold2: float,
              aperture: int = 3, l2_gradient: bool = False) -> None:
        dst.data = self.cv.Canny(src.pixels(), threshold1, threshold2,
                                 apertureSize=aperture, L2gradient=l2_gradient)

    def bitwise_not(self, src: Mat, dst: Mat) -> None:
        dst.data = self.cv.bitwise_not(src.pixels())

    def imshow(self, canvas: Canvas, mat: Mat) -> None:
        canvas.put(mat.pixels())

    def encode_png(self, pixels: np.ndarray) -> bytes:
        ok, buf = self.cv.imencode(".png", pixels)
        if not ok:
            raise ExportError("PNG encoding failed")
        return buf.tobytes()
