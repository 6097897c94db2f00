"""Main Application entry point.

Initializes config and logging, builds the engine, image source, pipeline
controller and output sink, wires them to the main window and starts the
Qt event loop.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

# Add the src directory to the Python path when run as a script
if getattr(sys, 'frozen', False):
    application_path = os.path.dirname(sys.executable)
    src_path = os.path.join(application_path, 'src')
else:
    application_path = os.path.dirname(os.path.abspath(__file__))  # edgepaste dir
    src_path = os.path.dirname(application_path)  # src dir

if src_path not in sys.path:
    sys.path.insert(0, src_path)

from edgepaste.config.pipeline import DECODE_PARALLELISM, FETCH_TIMEOUT
from edgepaste.controllers.export import OutputSink
from edgepaste.controllers.pipeline import PipelineController, RunReport
from edgepaste.core.canvas import Canvas
from edgepaste.core.config import ConfigManager
from edgepaste.core.logging_setup import setup_logging
from edgepaste.core.parameters import PipelineParameters
from edgepaste.core.worker import Worker
from edgepaste.io.image_source import ImageSource, looks_like_image_reference
from edgepaste.vision.availability import AvailabilityObserver
from edgepaste.vision.engine import VisionEngine


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="edgepaste", description="Live edge sketch of a pasted image.")
    parser.add_argument("image", nargs="?", help="image file, URL or data URI to load at startup")
    parser.add_argument("--config", help="path to config.ini (default: per-user config dir)")
    parser.add_argument("--log-level", help="override DEFAULT.log_level")
    return parser.parse_args(argv)


RUN_FAILED_TEXT = "Processing failed, see log for details"


def run_status_text(report: RunReport, current: str) -> Optional[str]:
    """Status label text after a finished run, or None to leave the label alone.

    A successful run only clears the label when it still shows a run failure,
    so export messages keep their own timer.
    """
    if report.discarded:
        return None
    if not report.ok:
        return RUN_FAILED_TEXT
    return "" if current == RUN_FAILED_TEXT else None


def main(argv: Optional[List[str]] = None) -> None:
    """Build the components, wire the window and run the event loop."""
    args = _parse_args(argv)

    # Ensure a Qt application exists before any QObject is created
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication(sys.argv[:1])

    config_manager = ConfigManager(args.config)
    setup_logging(config_manager, level=args.log_level)
    log = logging.getLogger(__name__)

    def _excepthook(exc_type, exc, tb):
        log.exception("Unhandled exception:", exc_info=(exc_type, exc, tb))
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _excepthook

    # Import GUI modules after QApplication is guaranteed to exist
    from edgepaste.gui.main_window import MainWindow
    from edgepaste.gui.qt_image import QtClipboard
    from edgepaste.gui.scheduler import QtScheduler

    scheduler = QtScheduler()
    engine = VisionEngine()
    observer = AvailabilityObserver(
        engine, scheduler,
        poll_interval_ms=config_manager.get_int("engine_poll_interval_ms", 100),
    )

    canvas = Canvas()
    params = PipelineParameters.from_config(config_manager)
    controller = PipelineController(
        engine, observer.readiness, canvas, scheduler, params,
        slow_run_threshold_ms=config_manager.get_float("slow_run_threshold_ms", 250.0),
    )

    worker = Worker(scheduler.call_soon, max_parallel=DECODE_PARALLELISM)
    worker.start()
    source = ImageSource(worker, fetch_timeout=(
        config_manager.get_float("fetch_connect_timeout_s", FETCH_TIMEOUT[0]),
        config_manager.get_float("fetch_read_timeout_s", FETCH_TIMEOUT[1]),
    ))

    sink = OutputSink(
        canvas, QtClipboard(), scheduler, engine.encode_png,
        status_clear_ms=config_manager.get_int("status_clear_ms", 2000),
    )

    window = MainWindow(params, last_directory=config_manager.get("last_directory", fallback="") or "")

    # Model -> view
    observer.readiness.subscribe(lambda: window.set_engine_ready(True))
    canvas.on_change(lambda c: window.show_pixels(c.snapshot()))
    sink.on_status(window.set_export_status)

    def _on_source(src) -> None:
        window.set_image_loaded(True)
        controller.set_source(src)

    def _on_run_finished(report: RunReport) -> None:
        text = run_status_text(report, window.status_label.text())
        if text is not None:
            window.set_status(text)

    source.on_source(_on_source)
    controller.on_run_finished(_on_run_finished)

    # View -> model
    window.on_paste(source.handle_paste)
    window.on_file_selected(source.select_file)
    window.on_parameter_changed(lambda name, value: controller.set_parameters(**{name: value}))
    window.on_reprocess(controller.rerun)
    window.on_copy(sink.export_as_image)
    window.on_save(sink.save_as)

    def _shutdown() -> None:
        observer.stop()
        scheduler.stop_all()
        worker.stop()
        if config_manager.get_bool("remember_parameters", True):
            controller.params.to_config(config_manager)
        config_manager.set("last_directory", window.last_directory)
        try:
            config_manager.save()
        except OSError:
            log.exception("Could not save settings to %s", config_manager.config_path)

    app.aboutToQuit.connect(_shutdown)

    observer.start()
    engine.load_async()

    if args.image:
        if looks_like_image_reference(args.image):
            source.paste_text(args.image)
        else:
            source.select_file(args.image)

    window.show()
    app.exec()


if __name__ == "__main__":
    main()
