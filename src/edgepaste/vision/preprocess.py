"""
Pure size and kernel helpers for the edge pipeline.

This module contains only stateless, side-effect-free functions used by the
pipeline controller and the parameter model. They do not touch cv2, so they
can be unit tested before the vision engine has loaded.
"""
from __future__ import annotations

from typing import Tuple

from ..config.pipeline import MIN_SCALED_DIM


def effective_kernel_size(size: int) -> int:
    """Return the odd Gaussian kernel side used for a stored kernel size.

    Even sizes are bumped to the next odd number, odd sizes pass through.
    """
    size = int(size)
    return size if size % 2 == 1 else size + 1


def scaled_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    """Return (w, h) of the working buffer for a scale factor.

    Each dimension is rounded and clamped to MIN_SCALED_DIM so a tiny image
    at a small scale never produces an empty buffer.
    """
    w = max(MIN_SCALED_DIM, int(round(width * scale)))
    h = max(MIN_SCALED_DIM, int(round(height * scale)))
    return w, h


def clamp(value, lo, hi):
    return max(lo, min(hi, value))
