"""Core subpackage.

- config: INI-backed settings
- logging_setup: session log files
- canvas: shared render target
- readiness: one-way engine readiness flag
- worker: background job thread
"""
from .config import ConfigManager
from .canvas import Canvas
from .readiness import EngineReadiness

__all__ = [
    "ConfigManager",
    "Canvas",
    "EngineReadiness",
]
