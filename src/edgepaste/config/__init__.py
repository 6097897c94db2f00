"""Config subpackage.

- pipeline: parameter ranges, defaults and fixed edge-detection settings
"""
from .pipeline import (
    SCALE_FACTOR_RANGE,
    BLUR_KERNEL_RANGE,
    CANNY_THRESHOLD1_RANGE,
    CANNY_THRESHOLD2_RANGE,
    DEFAULT_SCALE_FACTOR,
    DEFAULT_BLUR_KERNEL_SIZE,
    DEFAULT_CANNY_THRESHOLD1,
    DEFAULT_CANNY_THRESHOLD2,
    CANNY_APERTURE,
    CANNY_L2_GRADIENT,
    MIN_SCALED_DIM,
    IMAGE_EXTENSIONS,
    IMAGE_URI_PREFIXES,
    FETCH_TIMEOUT,
    DECODE_PARALLELISM,
)

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
