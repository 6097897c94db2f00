import base64
import io
import logging
import queue
import threading

import numpy as np
import pytest
import requests
from PIL import Image

from conftest import DeferredWorker, InlineWorker
from edgepaste.config.pipeline import FETCH_TIMEOUT
from edgepaste.controllers.pipeline import PipelineController
from edgepaste.core.errors import ImageDecodeError
from edgepaste.core.worker import Worker
from edgepaste.io import image_source
from edgepaste.io.image_source import (
    ImageSource,
    decode_image_bytes,
    fetch_reference,
    looks_like_image_reference,
)


def png_bytes(width=8, height=6, color=(255, 0, 0, 255)):
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.mark.parametrize("text,expected", [
    ("https://example.com/a.png", True),
    ("http://example.com/page", True),
    ("data:image/png;base64,AAAA", True),
    ("photo.JPG", True),
    ("  /tmp/shot.webp  ", True),
    ("notaurl", False),
    ("ftp://example.com/file", False),
    ("image.png.txt", False),
    ("", False),
])
def test_looks_like_image_reference(text, expected):
    assert looks_like_image_reference(text) is expected


def test_decode_converts_rgba_to_bgra():
    px = decode_image_bytes(png_bytes(color=(255, 10, 20, 200)))
    assert px.shape == (6, 8, 4)
    assert tuple(px[0, 0]) == (20, 10, 255, 200)


def test_decode_rejects_garbage():
    with pytest.raises(ImageDecodeError):
        decode_image_bytes(b"not an image at all")


def test_plain_text_is_rejected_and_triggers_nothing(caplog):
    worker = InlineWorker()
    src = ImageSource(worker, fetcher=lambda ref: pytest.fail("must not fetch"))
    seen = []
    src.on_source(seen.append)
    with caplog.at_level(logging.INFO):
        assert src.paste_text("notaurl") is False
    assert src.current is None
    assert src.generation == 0
    assert worker.labels == [] and seen == []
    assert any("not an image reference" in r.getMessage() for r in caplog.records)


def test_url_paste_updates_source_and_triggers_run(engine, ready, canvas, scheduler):
    fetched = []

    def fetcher(ref):
        fetched.append(ref)
        return png_bytes(12, 9)

    src = ImageSource(InlineWorker(), fetcher=fetcher)
    controller = PipelineController(engine, ready, canvas, scheduler)
    src.on_source(controller.set_source)

    assert src.paste_text("https://example.com/a.png") is True
    assert fetched == ["https://example.com/a.png"]
    assert src.current is not None and (src.current.width, src.current.height) == (12, 9)
    assert controller.source is src.current
    assert controller.latest_run_id == 1
    scheduler.run_pending()
    assert (canvas.width, canvas.height) == (12, 9)


def test_paste_image_bytes_and_arrays():
    src = ImageSource(InlineWorker())
    assert src.paste_image(png_bytes(4, 3))
    assert src.current.generation == 1 and src.current.width == 4

    gray = np.full((5, 7), 128, dtype=np.uint8)
    assert src.paste_image(gray)
    assert src.current.generation == 2
    assert src.current.pixels.shape == (5, 7, 4)
    assert not src.current.pixels.flags.writeable


def test_handle_paste_prefers_image_over_text():
    worker = InlineWorker()
    src = ImageSource(worker, fetcher=lambda ref: pytest.fail("text must be ignored"))
    items = [("text/plain", "https://example.com/x.png"), ("image/png", png_bytes(3, 3))]
    assert src.handle_paste(items) is True
    assert src.current.origin == "clipboard image"


def test_handle_paste_falls_back_to_first_text():
    src = ImageSource(InlineWorker(), fetcher=lambda ref: png_bytes(2, 2))
    assert src.handle_paste([("text/html", "<b>x</b>"), ("text/plain", "a.png"), ("text/plain", "b.png")])
    assert src.current.origin == "a.png"


def test_handle_paste_with_nothing_usable():
    src = ImageSource(InlineWorker())
    assert src.handle_paste([("text/html", "<p/>")]) is False
    assert src.current is None


def test_decode_failure_keeps_previous_source(caplog):
    src = ImageSource(InlineWorker(), fetcher=lambda ref: b"broken")
    src.paste_image(png_bytes(4, 4))
    previous = src.current
    with caplog.at_level(logging.ERROR):
        assert src.paste_text("https://example.com/broken.png") is True
    assert src.current is previous
    assert any("Image loading error" in r.getMessage() for r in caplog.records)


def test_older_decode_finishing_late_is_dropped():
    worker = DeferredWorker()
    src = ImageSource(worker)
    src.paste_image(png_bytes(4, 4))
    src.paste_image(png_bytes(9, 9))
    worker.complete(1)
    worker.complete(0)
    assert src.current.width == 9
    assert src.current.generation == 2


def test_select_file_checks_media_type(tmp_path):
    good = tmp_path / "shot.png"
    good.write_bytes(png_bytes(6, 5))
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")

    src = ImageSource(InlineWorker())
    assert src.select_file(notes) is False
    assert src.current is None
    assert src.select_file(good) is True
    assert (src.current.width, src.current.height) == (6, 5)
    # Declared media type wins over the file name
    assert src.select_file(good, media_type="application/octet-stream") is False


def test_fetch_reference_data_uri():
    data = png_bytes(2, 2)
    uri = "data:image/png;base64," + base64.b64encode(data).decode("ascii")
    assert fetch_reference(uri) == data


def test_fetch_reference_local_paths(tmp_path):
    f = tmp_path / "pic.bmp"
    f.write_bytes(b"bytes")
    assert fetch_reference(str(f)) == b"bytes"
    assert fetch_reference(f.as_uri()) == b"bytes"
    with pytest.raises(ImageDecodeError):
        fetch_reference(str(tmp_path / "missing.png"))


class _FakeResponse:
    def __init__(self, content=b"", status=200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_fetch_reference_http(monkeypatch):
    monkeypatch.setattr(image_source.requests, "get", lambda url, timeout=None: _FakeResponse(b"png!"))
    assert fetch_reference("https://example.com/a.png") == b"png!"


def test_fetch_reference_http_error(monkeypatch):
    monkeypatch.setattr(image_source.requests, "get", lambda url, timeout=None: _FakeResponse(status=404))
    with pytest.raises(ImageDecodeError):
        fetch_reference("https://example.com/missing.png")


def test_http_fetch_uses_connect_and_read_timeout(monkeypatch):
    seen = []

    def fake_get(url, timeout=None):
        seen.append(timeout)
        return _FakeResponse(b"png!")

    monkeypatch.setattr(image_source.requests, "get", fake_get)
    fetch_reference("https://example.com/a.png")
    fetch_reference("https://example.com/b.png", timeout=(1.0, 2.0))
    assert seen == [FETCH_TIMEOUT, (1.0, 2.0)]


def test_image_source_passes_configured_timeout(monkeypatch):
    seen = []

    def fake_get(url, timeout=None):
        seen.append(timeout)
        return _FakeResponse(png_bytes(2, 2))

    monkeypatch.setattr(image_source.requests, "get", fake_get)
    src = ImageSource(InlineWorker(), fetch_timeout=(3.0, 7.0))
    assert src.paste_text("https://example.com/a.png") is True
    assert seen == [(3.0, 7.0)]
    assert src.current.width == 2


def _run_next(delivered):
    delivered.get(timeout=5.0)()


def test_stalled_download_does_not_hold_up_newer_paste():
    release = threading.Event()
    started = threading.Event()

    def stalled_fetch(ref):
        started.set()
        release.wait(5.0)
        return png_bytes(3, 3)

    delivered = queue.Queue()
    worker = Worker(delivered.put, max_parallel=2)
    worker.start()
    src = ImageSource(worker, fetcher=stalled_fetch)
    try:
        assert src.paste_text("https://slow.example.com/a.png") is True
        assert started.wait(5.0)
        assert src.paste_image(png_bytes(9, 9)) is True
        _run_next(delivered)
        assert src.current is not None
        assert (src.current.width, src.current.generation) == (9, 2)
    finally:
        release.set()
        worker.stop()
        worker.join(5.0)

    # The download finishes eventually and is dropped as superseded
    _run_next(delivered)
    assert (src.current.width, src.current.generation) == (9, 2)


def test_superseded_job_is_skipped_before_it_starts():
    release = threading.Event()
    started = threading.Event()
    fetched = []

    def fetch(ref):
        fetched.append(ref)
        if ref.endswith("a.png"):
            started.set()
            release.wait(5.0)
        return png_bytes(4, 4)

    delivered = queue.Queue()
    worker = Worker(delivered.put, max_parallel=1)
    worker.start()
    src = ImageSource(worker, fetcher=fetch)
    try:
        src.paste_text("https://example.com/a.png")
        assert started.wait(5.0)
        src.paste_text("https://example.com/b.png")
        src.paste_text("https://example.com/c.png")
    finally:
        release.set()
        worker.stop()
    _run_next(delivered)
    _run_next(delivered)
    worker.join(5.0)

    assert fetched == ["https://example.com/a.png", "https://example.com/c.png"]
    assert src.current.generation == 3


class _EmptyResultWorker:
    def submit(self, label, action, on_done, is_stale=None):
        on_done(None, None)


def test_decoder_without_pixels_is_logged_and_ignored(caplog):
    src = ImageSource(_EmptyResultWorker())
    with caplog.at_level(logging.ERROR):
        assert src.paste_image(png_bytes(2, 2)) is True
    assert src.current is None
    assert any("decoder returned no pixels" in r.getMessage() for r in caplog.records)
