"""Pytest configuration.

Ensures the src directory is on sys.path so tests can import `edgepaste.*`,
and provides a manual scheduler and inline workers so the pipeline can be
driven step by step without a Qt event loop.
"""

import sys
from collections import deque
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
for p in (str(PROJECT_ROOT), str(SRC_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

from edgepaste.core.canvas import Canvas  # noqa: E402
from edgepaste.core.readiness import EngineReadiness  # noqa: E402
from edgepaste.io.image_source import SourceImage  # noqa: E402


class _Handle:
    def __init__(self, interval_ms, callback):
        self.interval_ms = interval_ms
        self.callback = callback
        self.active = True
        self.elapsed = 0

    def stop(self):
        self.active = False

    def is_active(self):
        return self.active


class ManualScheduler:
    """Scheduler whose callbacks only run when the test says so."""

    def __init__(self):
        self.soon = deque()
        self.later = []
        self.repeating = []
        self.now_ms = 0

    def call_soon(self, callback):
        self.soon.append(callback)

    def call_later(self, delay_ms, callback):
        self.later.append((self.now_ms + delay_ms, callback))

    def call_repeating(self, interval_ms, callback):
        handle = _Handle(interval_ms, callback)
        self.repeating.append(handle)
        return handle

    def step(self):
        self.soon.popleft()()

    def run_pending(self, limit=1000):
        n = 0
        while self.soon:
            self.step()
            n += 1
            assert n < limit, "scheduler did not settle"

    def advance(self, ms):
        self.now_ms += ms
        for handle in list(self.repeating):
            handle.elapsed += ms
            while handle.active and handle.elapsed >= handle.interval_ms:
                handle.elapsed -= handle.interval_ms
                handle.callback()
        due = sorted((t, i, cb) for i, (t, cb) in enumerate(self.later) if t <= self.now_ms)
        self.later = [(t, cb) for (t, cb) in self.later if t > self.now_ms]
        for _t, _i, cb in due:
            cb()
        self.run_pending()


class InlineWorker:
    """Runs submitted jobs immediately on the calling thread."""

    def __init__(self):
        self.labels = []

    def submit(self, label, action, on_done, is_stale=None):
        self.labels.append(label)
        try:
            result, error = action(), None
        except Exception as e:
            result, error = None, e
        on_done(result, error)


class DeferredWorker:
    """Holds submitted jobs until complete(i) is called."""

    def __init__(self):
        self.jobs = []

    def submit(self, label, action, on_done, is_stale=None):
        self.jobs.append((label, action, on_done))

    def complete(self, index):
        _label, action, on_done = self.jobs[index]
        try:
            result, error = action(), None
        except Exception as e:
            result, error = None, e
        on_done(result, error)


def make_source(width=40, height=30, generation=1, seed=0):
    """Deterministic BGRA test image with some structure for Canny to find."""
    rng = np.random.default_rng(seed)
    px = np.zeros((height, width, 4), dtype=np.uint8)
    px[..., 3] = 255
    px[height // 4: 3 * height // 4, width // 4: 3 * width // 4, :3] = 220
    px[..., :3] = np.clip(px[..., :3].astype(int) + rng.integers(0, 20, size=(height, width, 3)), 0, 255)
    return SourceImage(pixels=px, width=width, height=height, generation=generation, origin="test")


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def canvas():
    return Canvas()


@pytest.fixture
def ready():
    r = EngineReadiness()
    r.mark_ready()
    return r


@pytest.fixture
def engine():
    cv2 = pytest.importorskip("cv2")
    from edgepaste.vision.engine import VisionEngine
    return VisionEngine(cv_module=cv2)
