"""Image source: turns pasted or selected input into a SourceImage.

Accepted inputs:
- a pasted image (encoded bytes, or pixels already decoded by the GUI)
- pasted text that looks like an image reference: ends in a known image
  extension, or starts with http://, https:// or data:image/
- a selected file whose media type starts with image/

Everything else is logged and ignored. Accepted inputs are fetched and
decoded on worker threads; results come back on the UI thread. Each
accepted input takes the next generation number and a decode that finishes
after a newer input was accepted is dropped, so only one input is live.
"""
from __future__ import annotations

import base64
import binascii
import functools
import io
import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union
from urllib.parse import unquote_to_bytes, urlparse
from urllib.request import url2pathname

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from ..config.pipeline import FETCH_TIMEOUT, IMAGE_EXTENSIONS, IMAGE_URI_PREFIXES
from ..core.canvas import to_bgra
from ..core.errors import ImageDecodeError, InputRejectedError

logger = logging.getLogger(__name__)

_IMAGE_SUFFIX = re.compile(r"\.(%s)$" % "|".join(IMAGE_EXTENSIONS), re.IGNORECASE)


@dataclass(frozen=True)
class SourceImage:
    """Decoded BGRA pixels of the live input. Never mutated; replaced wholesale."""

    pixels: np.ndarray
    width: int
    height: int
    generation: int
    origin: str


def looks_like_image_reference(text: str) -> bool:
    t = (text or "").strip()
    if not t:
        return False
    return bool(_IMAGE_SUFFIX.search(t)) or t.startswith(IMAGE_URI_PREFIXES)


def decode_image_bytes(data: bytes) -> np.ndarray:
    """Decode any Pillow-readable image into a BGRA uint8 array."""
    if not data:
        raise ImageDecodeError("no image data")
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgba = np.asarray(img.convert("RGBA"))
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"cannot decode image: {e}") from e
    return np.ascontiguousarray(rgba[..., [2, 1, 0, 3]])


def _decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ImageDecodeError("malformed data URI", origin=uri[:32])
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=False)
        return unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"bad data URI payload: {e}", origin=uri[:32]) from e


def fetch_reference(ref: str, session: Optional[requests.Session] = None,
                    timeout: Tuple[float, float] = FETCH_TIMEOUT) -> bytes:
    """Return the raw bytes behind an image reference.

    http(s) URLs go through requests, data: URIs are decoded inline, file://
    URIs and bare paths are read from disk. `timeout` is the requests
    (connect, read) pair in seconds.
    """
    ref = ref.strip()
    if ref.startswith(("http://", "https://")):
        getter = session.get if session is not None else requests.get
        try:
            response = getter(ref, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageDecodeError(f"download failed: {e}", origin=ref) from e
        return response.content
    if ref.startswith("data:"):
        return _decode_data_uri(ref)
    path = Path(url2pathname(urlparse(ref).path)) if ref.startswith("file://") else Path(ref).expanduser()
    try:
        return path.read_bytes()
    except OSError as e:
        raise ImageDecodeError(f"cannot read {path}: {e}", origin=ref) from e


PastePayload = Union[bytes, bytearray, np.ndarray]


class ImageSource:
    def __init__(self, worker, fetcher: Optional[Callable[[str], bytes]] = None,
                 fetch_timeout: Tuple[float, float] = FETCH_TIMEOUT) -> None:
        self.worker = worker
        self.fetcher = fetcher or functools.partial(fetch_reference, timeout=fetch_timeout)
        self._generation = 0
        self._current: Optional[SourceImage] = None
        self._listeners: List[Callable[[SourceImage], None]] = []

    @property
    def current(self) -> Optional[SourceImage]:
        return self._current

    @property
    def generation(self) -> int:
        """Generation of the most recently accepted input."""
        return self._generation

    def on_source(self, listener: Callable[[SourceImage], None]) -> None:
        self._listeners.append(listener)

    # ------ Inputs ------
    def handle_paste(self, items: Iterable[Tuple[str, Any]]) -> bool:
        """Handle clipboard items given as (mime_type, payload) pairs.

        The first image item wins; otherwise the first text/plain item is
        treated as pasted text.
        """
        items = list(items)
        for mime, payload in items:
            if "image" in (mime or "").lower() and payload is not None:
                return self.paste_image(payload)
        for mime, payload in items:
            if (mime or "").lower() == "text/plain":
                return self.paste_text(str(payload))
        logger.info("Paste contained neither an image nor text")
        return False

    def paste_image(self, data: PastePayload, origin: str = "clipboard image") -> bool:
        if isinstance(data, np.ndarray):
            pixels = data.copy()
            return self._accept(origin, lambda: to_bgra(pixels))
        blob = bytes(data)
        return self._accept(origin, lambda: decode_image_bytes(blob))

    def paste_text(self, text: str) -> bool:
        ref = (text or "").strip()
        try:
            self._check_reference(ref)
        except InputRejectedError as e:
            logger.info("Pasted text is not an image reference: %r (%s)", ref[:200], e.message)
            return False
        return self._accept(ref, lambda: decode_image_bytes(self.fetcher(ref)))

    def select_file(self, path: Union[str, Path], media_type: Optional[str] = None) -> bool:
        p = Path(path)
        mt = media_type if media_type is not None else (mimetypes.guess_type(p.name)[0] or "")
        if not mt.lower().startswith("image/"):
            logger.info("Selected file %s is not an image (media type %r)", p, mt)
            return False
        return self._accept(str(p), lambda: decode_image_bytes(p.read_bytes()))

    # ------ Internals ------
    @staticmethod
    def _check_reference(ref: str) -> None:
        if not looks_like_image_reference(ref):
            raise InputRejectedError("no image extension or image URI scheme", origin=ref)

    def _accept(self, origin: str, loader: Callable[[], np.ndarray]) -> bool:
        self._generation += 1
        generation = self._generation
        logger.info("Loading image #%d from %s", generation, _short(origin))
        self.worker.submit(
            f"decode#{generation}",
            loader,
            lambda pixels, error: self._on_decoded(generation, origin, pixels, error),
            is_stale=lambda: generation != self._generation,
        )
        return True

    def _on_decoded(self, generation: int, origin: str, pixels: Optional[np.ndarray],
                    error: Optional[BaseException]) -> None:
        if error is not None:
            logger.error("Image loading error for %s: %s", _short(origin), error)
            return
        if generation != self._generation:
            logger.debug("Dropping image #%d, #%d is newer", generation, self._generation)
            return
        if pixels is None:
            logger.error("Image loading error for %s: decoder returned no pixels", _short(origin))
            return
        pixels.setflags(write=False)
        source = SourceImage(
            pixels=pixels,
            width=int(pixels.shape[1]),
            height=int(pixels.shape[0]),
            generation=generation,
            origin=origin,
        )
        self._current = source
        logger.info("Image #%d loaded: %dx%d", generation, source.width, source.height)
        for listener in list(self._listeners):
            try:
                listener(source)
            except Exception:
                logger.exception("source listener failed")


def _short(origin: str, limit: int = 80) -> str:
    return origin if len(origin) <= limit else origin[:limit] + "..."
