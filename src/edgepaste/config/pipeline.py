"""
Pipeline knob centralization.

Parameter ranges, slider steps and defaults live here. The parameter model,
the controls and the config loader import from this module instead of
hardcoding values.
"""
from __future__ import annotations

from typing import Tuple

# (min, max, step)
SCALE_FACTOR_RANGE: Tuple[float, float, float] = (0.10, 1.00, 0.05)
BLUR_KERNEL_RANGE: Tuple[int, int, int] = (1, 21, 2)
CANNY_THRESHOLD1_RANGE: Tuple[int, int, int] = (0, 200, 1)
CANNY_THRESHOLD2_RANGE: Tuple[int, int, int] = (0, 300, 1)

# Defaults
DEFAULT_SCALE_FACTOR: float = 1.0
DEFAULT_BLUR_KERNEL_SIZE: int = 7
DEFAULT_CANNY_THRESHOLD1: int = 50
DEFAULT_CANNY_THRESHOLD2: int = 100

# Fixed Canny settings
CANNY_APERTURE: int = 3
CANNY_L2_GRADIENT: bool = False

# Smallest edge of an intermediate buffer after scaling
MIN_SCALED_DIM: int = 1

# Accepted image references
IMAGE_EXTENSIONS: Tuple[str, ...] = ("jpg", "jpeg", "png", "gif", "webp", "bmp")
IMAGE_URI_PREFIXES: Tuple[str, ...] = ("http://", "https://", "data:image/")

# Network fetch of pasted URLs: (connect, read) seconds
FETCH_TIMEOUT: Tuple[float, float] = (5.0, 30.0)
# Decode jobs that may run at once
DECODE_PARALLELISM = 4

__all__ = [
    "SCALE_FACTOR_RANGE",
    "BLUR_KERNEL_RANGE",
    "CANNY_THRESHOLD1_RANGE",
    "CANNY_THRESHOLD2_RANGE",
    "DEFAULT_SCALE_FACTOR",
    "DEFAULT_BLUR_KERNEL_SIZE",
    "DEFAULT_CANNY_THRESHOLD1",
    "DEFAULT_CANNY_THRESHOLD2",
    "CANNY_APERTURE",
    "CANNY_L2_GRADIENT",
    "MIN_SCALED_DIM",
    "IMAGE_EXTENSIONS",
    "IMAGE_URI_PREFIXES",
    "FETCH_TIMEOUT",
    "DECODE_PARALLELISM",
]
