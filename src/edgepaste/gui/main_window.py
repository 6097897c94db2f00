import logging
import sys
from pathlib import Path
from typing import Optional

import numpy as np
from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QGuiApplication, QKeySequence, QPixmap, QShortcut
from PyQt6.QtWidgets import (
    QApplication, QFileDialog, QFrame, QHBoxLayout, QLabel, QMainWindow,
    QPushButton, QScrollArea, QVBoxLayout, QWidget,
)

from ..config.pipeline import (
    BLUR_KERNEL_RANGE,
    CANNY_THRESHOLD1_RANGE,
    CANNY_THRESHOLD2_RANGE,
    SCALE_FACTOR_RANGE,
)
from ..controllers.export import ExportState, ExportStatus
from ..core.parameters import PipelineParameters
from .qt_image import bgra_to_qimage, paste_items
from .widgets import ParamSlider

logger = logging.getLogger(__name__)

IMAGE_FILE_FILTER = "Images (*.png *.jpg *.jpeg *.gif *.webp *.bmp);;All files (*)"


class MainWindowSignals(QObject):
    paste = pyqtSignal(object)  # list of (mime_type, payload)
    file_selected = pyqtSignal(str)
    parameter_changed = pyqtSignal(str, object)  # field name, value
    reprocess = pyqtSignal()
    copy = pyqtSignal()
    save = pyqtSignal(str)


class PasteZone(QLabel):
    """Dashed drop target that takes focus on click so Ctrl+V lands here."""

    def __init__(self, text: str, parent=None):
        super().__init__(text, parent)
        self.setObjectName("pasteZone")
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setCursor(Qt.CursorShape.IBeamCursor)

    def mousePressEvent(self, ev):
        self.setFocus(Qt.FocusReason.MouseFocusReason)
        super().mousePressEvent(ev)


class MainWindow(QMainWindow):
    def __init__(self, params: Optional[PipelineParameters] = None, last_directory: str = ""):
        super().__init__()
        self._last_directory = last_directory
        self._image_loaded = False
        self._engine_ready = False
        params = params or PipelineParameters()

        self.setWindowTitle("EdgePaste")
        self.signals = MainWindowSignals(self)

        card = QWidget()
        card.setObjectName("card")
        self.setCentralWidget(card)
        root = QVBoxLayout(card)
        root.setContentsMargins(16, 16, 16, 16)
        root.setSpacing(12)

        title = QLabel("EdgePaste")
        title.setObjectName("title")
        root.addWidget(title)

        self.engine_label = QLabel()
        self.engine_label.setObjectName("engineStatus")
        root.addWidget(self.engine_label)

        self.paste_zone = PasteZone("Click here and paste an image (Ctrl+V / Cmd+V)")
        root.addWidget(self.paste_zone)

        # Parameters
        self.sliders = {
            "scale_factor": ParamSlider("Scale Factor", *SCALE_FACTOR_RANGE, initial=params.scale_factor,
                                        fmt=lambda v: f"{v:.2f}x"),
            "blur_kernel_size": ParamSlider("Gaussian Blur Kernel Size", *BLUR_KERNEL_RANGE,
                                            initial=params.blur_kernel_size),
            "canny_threshold1": ParamSlider("Canny Threshold 1", *CANNY_THRESHOLD1_RANGE,
                                            initial=params.canny_threshold1),
            "canny_threshold2": ParamSlider("Canny Threshold 2", *CANNY_THRESHOLD2_RANGE,
                                            initial=params.canny_threshold2),
        }
        for name, slider in self.sliders.items():
            slider.valueChanged.connect(lambda v, n=name: self.signals.parameter_changed.emit(n, v))
            root.addWidget(slider)

        # Actions
        actions = QHBoxLayout()
        actions.setSpacing(8)
        self.btn_open = QPushButton("Open image...")
        self.btn_reprocess = QPushButton("Reprocess Image")
        self.btn_copy = QPushButton("Copy to clipboard")
        self.btn_save = QPushButton("Save PNG...")
        for btn in (self.btn_open, self.btn_reprocess, self.btn_copy, self.btn_save):
            actions.addWidget(btn)
        actions.addStretch(1)
        root.addLayout(actions)

        self.btn_open.clicked.connect(self._choose_file)
        self.btn_reprocess.clicked.connect(lambda: self.signals.reprocess.emit())
        self.btn_copy.clicked.connect(lambda: self.signals.copy.emit())
        self.btn_save.clicked.connect(self._choose_save_path)

        self.status_label = QLabel("")
        self.status_label.setObjectName("status")
        root.addWidget(self.status_label)

        heading = QLabel("Processed Image:")
        heading.setObjectName("sectionTitle")
        root.addWidget(heading)

        self.canvas_view = QLabel()
        self.canvas_view.setObjectName("canvas")
        self.canvas_view.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)
        scroll.setWidget(self.canvas_view)
        root.addWidget(scroll, 1)

        self._paste_shortcut = QShortcut(QKeySequence(QKeySequence.StandardKey.Paste), self)
        self._paste_shortcut.activated.connect(self._paste_from_clipboard)

        self.set_engine_ready(False)
        self._update_controls_enabled()
        self._styles()
        self.resize(720, 860)

    # ------ Public API (signals wiring expected by main) ------
    def on_paste(self, slot): self.signals.paste.connect(slot)
    def on_file_selected(self, slot): self.signals.file_selected.connect(slot)
    def on_parameter_changed(self, slot): self.signals.parameter_changed.connect(slot)
    def on_reprocess(self, slot): self.signals.reprocess.connect(slot)
    def on_copy(self, slot): self.signals.copy.connect(slot)
    def on_save(self, slot): self.signals.save.connect(slot)

    @property
    def last_directory(self) -> str:
        return self._last_directory

    def set_engine_ready(self, ready: bool) -> None:
        self._engine_ready = bool(ready)
        self.engine_label.setText("OpenCV Status: Ready" if ready else "OpenCV Status: Loading...")
        self.engine_label.setProperty("state", "ready" if ready else "loading")
        self._repolish(self.engine_label)
        self._update_controls_enabled()

    def set_image_loaded(self, loaded: bool) -> None:
        self._image_loaded = bool(loaded)
        self._update_controls_enabled()

    def set_parameters(self, params: PipelineParameters) -> None:
        for name, value in params.as_dict().items():
            self.sliders[name].setValue(value)

    def show_pixels(self, pixels: Optional[np.ndarray]) -> None:
        if pixels is None:
            self.canvas_view.setPixmap(QPixmap())
            return
        self.canvas_view.setPixmap(QPixmap.fromImage(bgra_to_qimage(pixels)))

    def set_export_status(self, status: ExportStatus) -> None:
        variant = {ExportState.SUCCESS: "success", ExportState.FAILURE: "failure"}.get(status.state, "")
        self.status_label.setText(status.message)
        self.status_label.setProperty("variant", variant)
        self._repolish(self.status_label)

    def set_status(self, text: str) -> None:
        self.status_label.setText(text or "")

    # ------ Helpers ------
    def _update_controls_enabled(self) -> None:
        enabled = self._image_loaded and self._engine_ready
        for slider in self.sliders.values():
            slider.setEnabled(enabled)
        for btn in (self.btn_reprocess, self.btn_copy, self.btn_save):
            btn.setEnabled(enabled)

    def _paste_from_clipboard(self) -> None:
        clipboard = QGuiApplication.clipboard()
        mime = clipboard.mimeData() if clipboard is not None else None
        items = paste_items(mime)
        logger.debug("Paste with %d item(s): %s", len(items), [m for m, _ in items])
        self.signals.paste.emit(items)

    def _choose_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open image", self._last_directory, IMAGE_FILE_FILTER)
        if path:
            self._last_directory = str(Path(path).parent)
            self.signals.file_selected.emit(path)

    def _choose_save_path(self) -> None:
        start = str(Path(self._last_directory or ".") / "edges.png")
        path, _ = QFileDialog.getSaveFileName(self, "Save processed image", start, "PNG image (*.png)")
        if path:
            if not path.lower().endswith(".png"):
                path += ".png"
            self.signals.save.emit(path)

    @staticmethod
    def _repolish(widget: QWidget) -> None:
        st = widget.style()
        if st is not None:
            st.unpolish(widget)
            st.polish(widget)

    def _styles(self) -> None:
        try:
            if getattr(sys, "frozen", False):
                qss = Path(__file__).with_name("theme.qss").read_text(encoding="utf-8")
            else:
                from . import build_theme as theme_builder
                qss = theme_builder.render()
            self.setStyleSheet(qss)
        except Exception:
            logger.exception("Failed to apply themed stylesheet")


if __name__ == "__main__":
    app = QApplication(sys.argv)
    w = MainWindow()
    w.show()
    sys.exit(app.exec())
