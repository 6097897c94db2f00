"""Exception hierarchy for EdgePaste.

Each component raises these internally and catches them at its own boundary,
so none of them reach a Qt slot.
"""
from __future__ import annotations

from typing import Optional


class EdgePasteError(Exception):
    """Base exception for EdgePaste."""

    def __init__(self, message: str, *, origin: Optional[str] = None) -> None:
        self.message = message
        self.origin = origin
        super().__init__(message)


class InputRejectedError(EdgePasteError):
    """Raised when pasted text or a selected file does not look like an image."""


class ImageDecodeError(EdgePasteError):
    """Raised when an accepted input cannot be fetched or decoded."""


class EngineUnavailableError(EdgePasteError):
    """Raised when a vision operation is requested before cv2 has loaded."""


class PipelineError(EdgePasteError):
    """Raised when a processing step fails."""


class ExportError(EdgePasteError):
    """Raised when the canvas cannot be encoded or written out."""
