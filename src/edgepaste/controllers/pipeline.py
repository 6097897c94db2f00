"""Pipeline controller: owns the parameters and the live source image.

Responsibility:
- Hold the current SourceImage and PipelineParameters (sole owner).
- Re-run the edge pipeline on every change of either, once the vision
  engine is ready. No debouncing: every change is its own run.
- Keep the canvas consistent with the latest request. Each run takes a new
  run number; at both suspension points (before drawing the source and
  before processing) a run that has been overtaken by a newer one drops
  out. The canvas therefore only ever shows the output of a single run.
- Structured logging: INFO per finished run, WARNING for slow runs or calls
  made before the engine is ready, full traceback for processing errors.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..config.pipeline import CANNY_APERTURE, CANNY_L2_GRADIENT
from ..core.canvas import Canvas
from ..core.parameters import PipelineParameters
from ..core.readiness import EngineReadiness
from ..core.scheduler import Scheduler
from ..io.image_source import SourceImage
from ..vision.engine import VisionEngine
from ..vision.preprocess import scaled_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunReport:
    run_id: int
    source_generation: int
    params: PipelineParameters
    ok: bool
    discarded: bool
    duration_ms: float


class PipelineController:
    def __init__(
        self,
        engine: VisionEngine,
        readiness: EngineReadiness,
        canvas: Optional[Canvas],
        scheduler: Scheduler,
        params: Optional[PipelineParameters] = None,
        slow_run_threshold_ms: float = 250.0,
    ) -> None:
        self.engine = engine
        self.readiness = readiness
        self.canvas = canvas
        self.scheduler = scheduler
        self.slow_run_threshold_ms = float(slow_run_threshold_ms)
        self._params = params or PipelineParameters()
        self._source: Optional[SourceImage] = None
        self._run_seq = 0
        self._listeners: List[Callable[[RunReport], None]] = []
        readiness.subscribe(self._on_engine_ready)

    # ------ State ------
    @property
    def params(self) -> PipelineParameters:
        return self._params

    @property
    def source(self) -> Optional[SourceImage]:
        return self._source

    @property
    def latest_run_id(self) -> int:
        return self._run_seq

    @property
    def can_run(self) -> bool:
        return self._source is not None and self.readiness.is_ready and self.canvas is not None

    def on_run_finished(self, listener: Callable[[RunReport], None]) -> None:
        self._listeners.append(listener)

    # ------ Triggers ------
    def set_source(self, source: SourceImage) -> Optional[int]:
        self._source = source
        return self._trigger(f"source #{source.generation}")

    def set_parameters(self, **changes) -> Optional[int]:
        """Apply parameter changes; a real change starts one run with all current values."""
        updated = self._params.with_changes(**changes)
        if updated == self._params:
            return None
        self._params = updated
        return self._trigger(", ".join(sorted(changes)))

    def rerun(self) -> Optional[int]:
        return self._trigger("manual")

    def _on_engine_ready(self) -> None:
        self._trigger("engine ready")

    def _trigger(self, reason: str) -> Optional[int]:
        if self._source is None or not self.readiness.is_ready:
            logger.debug("No run for %s: source=%s ready=%s", reason,
                          self._source is not None, self.readiness.is_ready)
            return None
        logger.debug("Run requested: %s", reason)
        return self.run(self._source, self._params)

    # ------ Run ------
    def run(self, source: SourceImage, params: PipelineParameters) -> Optional[int]:
        """Start one pipeline run. Returns its run number, or None if skipped."""
        if not self.readiness.is_ready or self.canvas is None:
            logger.warning("Vision engine not ready or canvas not available yet.")
            return None
        self._run_seq += 1
        run_id = self._run_seq
        self.scheduler.call_soon(lambda: self._load(run_id, source, params))
        return run_id

    def _is_stale(self, run_id: int) -> bool:
        return run_id != self._run_seq

    def _load(self, run_id: int, source: SourceImage, params: PipelineParameters) -> None:
        if self._is_stale(run_id):
            self._discard(run_id, source, params, "before draw")
            return
        t0 = time.perf_counter()
        try:
            self.canvas.draw_image(source.pixels)
        except Exception:
            logger.exception("Image loading error (run #%d)", run_id)
            dur_ms = (time.perf_counter() - t0) * 1000.0
            self._notify(RunReport(run_id, source.generation, params, False, False, dur_ms))
            return
        # Process on the next loop turn so the drawn frame is what gets read back.
        self.scheduler.call_soon(lambda: self._process(run_id, source, params, t0))

    def _process(self, run_id: int, source: SourceImage, params: PipelineParameters, t0: float) -> None:
        if self._is_stale(run_id):
            self._discard(run_id, source, params, "before processing")
            return
        ok = False
        try:
            self._execute(params)
            ok = True
        except Exception:
            logger.exception("Pipeline processing error (run #%d)", run_id)
        dur_ms = (time.perf_counter() - t0) * 1000.0
        if ok and dur_ms > self.slow_run_threshold_ms:
            logger.warning("pipeline: slow run #%d took %.1fms", run_id, dur_ms)
        elif ok:
            logger.info("pipeline: run #%d (%s) rendered in %.1fms", run_id, _describe(params), dur_ms)
        self._notify(RunReport(run_id, source.generation, params, ok, False, dur_ms))

    def _execute(self, params: PipelineParameters) -> None:
        engine = self.engine
        cv = engine.cv
        with engine.buffers() as scope:
            src = scope.adopt(engine.imread(self.canvas))
            width, height = src.cols, src.rows

            scaled = scope.new()
            engine.resize(src, scaled, scaled_size(width, height, params.scale_factor), 0, 0, cv.INTER_LINEAR)
            engine.cvt_color(scaled, scaled, cv.COLOR_BGRA2GRAY, 0)

            k = params.effective_kernel_size
            engine.gaussian_blur(scaled, scaled, (k, k), 0)
            engine.canny(scaled, scaled, params.canny_threshold1, params.canny_threshold2,
                         CANNY_APERTURE, CANNY_L2_GRADIENT)
            engine.bitwise_not(scaled, scaled)

            result = scope.new()
            engine.resize(scaled, result, (width, height), 0, 0, cv.INTER_LINEAR)
            engine.imshow(self.canvas, result)

    def _discard(self, run_id: int, source: SourceImage, params: PipelineParameters, stage: str) -> None:
        logger.debug("Run #%d superseded by #%d %s", run_id, self._run_seq, stage)
        self._notify(RunReport(run_id, source.generation, params, False, True, 0.0))

    def _notify(self, report: RunReport) -> None:
        for listener in list(self._listeners):
            try:
                listener(report)
            except Exception:
                logger.exception("run listener failed")


def _describe(params: PipelineParameters) -> str:
    return "scale=%.2f kernel=%d t1=%d t2=%d" % (
        params.scale_factor, params.effective_kernel_size,
        params.canny_threshold1, params.canny_threshold2,
    )
