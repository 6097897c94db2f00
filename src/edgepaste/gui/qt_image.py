"""Conversions between numpy pixels and Qt images, plus the Qt clipboard."""
from __future__ import annotations

import logging
from typing import Any, List, Tuple

import numpy as np
from PyQt6.QtCore import QByteArray, QMimeData
from PyQt6.QtGui import QGuiApplication, QImage

from ..core.errors import ExportError

logger = logging.getLogger(__name__)

_IMAGE_MIME_TYPES = ("image/png", "image/jpeg", "image/bmp", "image/gif", "image/webp")


def bgra_to_qimage(pixels: np.ndarray) -> QImage:
    """Convert a BGRA uint8 array into a detached QImage."""
    if pixels is None or pixels.size == 0:
        return QImage()
    h, w = pixels.shape[:2]
    rgba = np.ascontiguousarray(pixels[..., [2, 1, 0, 3]])
    qimg = QImage(rgba.data, w, h, 4 * w, QImage.Format.Format_RGBA8888)
    return qimg.copy()


def qimage_to_bgra(image: QImage) -> np.ndarray:
    """Convert any QImage into a BGRA uint8 array."""
    img = image.convertToFormat(QImage.Format.Format_RGBA8888)
    w, h = img.width(), img.height()
    ptr = img.constBits()
    ptr.setsize(img.sizeInBytes())
    rows = np.frombuffer(ptr, dtype=np.uint8).reshape(h, img.bytesPerLine())
    rgba = rows[:, : w * 4].reshape(h, w, 4)
    return np.ascontiguousarray(rgba[..., [2, 1, 0, 3]])


def paste_items(mime: QMimeData) -> List[Tuple[str, Any]]:
    """Flatten clipboard mime data into (mime_type, payload) pairs, images first."""
    items: List[Tuple[str, Any]] = []
    if mime is None:
        return items
    if mime.hasImage():
        img = mime.imageData()
        if isinstance(img, QImage) and not img.isNull():
            items.append(("image/qt", qimage_to_bgra(img)))
    if not items:
        for fmt in _IMAGE_MIME_TYPES:
            if mime.hasFormat(fmt):
                items.append((fmt, bytes(mime.data(fmt).data())))
                break
    if mime.hasUrls():
        for url in mime.urls():
            if url.isLocalFile():
                items.append(("text/plain", url.toLocalFile()))
    if mime.hasText():
        items.append(("text/plain", mime.text()))
    return items


class QtClipboard:
    """ClipboardWriter backed by the system clipboard."""

    def write_png(self, data: bytes) -> None:
        clipboard = QGuiApplication.clipboard()
        if clipboard is None:
            raise ExportError("system clipboard is not available")
        image = QImage.fromData(data, "PNG")
        if image.isNull():
            raise ExportError("encoded PNG could not be read back")
        mime = QMimeData()
        mime.setData("image/png", QByteArray(data))
        mime.setImageData(image)
        clipboard.setMimeData(mime)
