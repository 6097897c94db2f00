"""Vision package: cv2 adapter, availability and pure helpers.

Submodules:
- preprocess: stateless kernel and size helpers
- engine: cv2 adapter with scoped buffers
- availability: readiness observer for the engine
"""
from .preprocess import effective_kernel_size, scaled_size
from .engine import BufferScope, Mat, VisionEngine
from .availability import AvailabilityObserver

__all__ = [
    "effective_kernel_size",
    "scaled_size",
    "BufferScope",
    "Mat",
    "VisionEngine",
    "AvailabilityObserver",
]
