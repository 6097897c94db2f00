import io

import numpy as np
import pytest
from PIL import Image

from edgepaste.controllers.export import ExportState, OutputSink


class FakeClipboard:
    def __init__(self, fail=False):
        self.fail = fail
        self.writes = []

    def write_png(self, data):
        if self.fail:
            raise PermissionError("clipboard access denied")
        self.writes.append(data)


@pytest.fixture
def sink_parts(engine, canvas, scheduler):
    clip = FakeClipboard()
    sink = OutputSink(canvas, clip, scheduler, engine.encode_png, status_clear_ms=2000)
    return sink, clip


def test_copy_with_empty_canvas_fails(sink_parts):
    sink, clip = sink_parts
    status = sink.export_as_image()
    assert status.state is ExportState.FAILURE
    assert not status.ok
    assert clip.writes == []


def test_copy_writes_png(sink_parts, canvas):
    sink, clip = sink_parts
    canvas.put(np.full((10, 14), 200, dtype=np.uint8))
    status = sink.export_as_image()
    assert status.ok
    assert len(clip.writes) == 1
    with Image.open(io.BytesIO(clip.writes[0])) as img:
        assert img.format == "PNG"
        assert img.size == (14, 10)


def test_clipboard_error_is_reported_not_raised(engine, canvas, scheduler):
    sink = OutputSink(canvas, FakeClipboard(fail=True), scheduler, engine.encode_png)
    canvas.put(np.zeros((4, 4), dtype=np.uint8))
    status = sink.export_as_image()
    assert status.state is ExportState.FAILURE
    assert "denied" in status.message


def test_status_clears_after_display_time(sink_parts, canvas, scheduler):
    sink, _ = sink_parts
    seen = []
    sink.on_status(lambda s: seen.append(s.state))
    canvas.put(np.zeros((4, 4), dtype=np.uint8))
    sink.export_as_image()
    scheduler.advance(1999)
    assert sink.status.state is ExportState.SUCCESS
    scheduler.advance(1)
    assert sink.status.state is ExportState.IDLE
    assert seen == [ExportState.SUCCESS, ExportState.IDLE]


def test_newer_status_is_not_cleared_by_older_timer(sink_parts, canvas, scheduler):
    sink, _ = sink_parts
    sink.export_as_image()  # failure at t=0
    scheduler.advance(1500)
    canvas.put(np.zeros((4, 4), dtype=np.uint8))
    sink.export_as_image()  # success at t=1500
    scheduler.advance(500)
    assert sink.status.state is ExportState.SUCCESS
    scheduler.advance(1500)
    assert sink.status.state is ExportState.IDLE


def test_save_as_writes_file(sink_parts, canvas, tmp_path):
    sink, _ = sink_parts
    canvas.put(np.zeros((3, 5, 3), dtype=np.uint8))
    target = tmp_path / "edges.png"
    assert sink.save_as(target).ok
    with Image.open(target) as img:
        assert img.size == (5, 3)


def test_save_as_into_missing_directory_fails(sink_parts, canvas, tmp_path):
    sink, _ = sink_parts
    canvas.put(np.zeros((3, 5), dtype=np.uint8))
    status = sink.save_as(tmp_path / "nope" / "edges.png")
    assert status.state is ExportState.FAILURE
