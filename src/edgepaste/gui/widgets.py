from typing import Callable, Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import QLabel, QSlider, QVBoxLayout, QWidget


class ParamSlider(QWidget):
    """Labelled horizontal slider over a stepped numeric range.

    QSlider only knows integers, so the slider position is a step index and
    value() maps it back to min + index * step.
    """

    valueChanged = pyqtSignal(object)

    def __init__(self, title: str, vmin: float, vmax: float, step: float, initial: float,
                 fmt: Optional[Callable[[float], str]] = None, parent=None):
        super().__init__(parent)
        self._title = title
        self._min = vmin
        self._step = step
        self._is_float = isinstance(step, float) or isinstance(vmin, float)
        self._fmt = fmt or (lambda v: f"{v}")

        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 3)
        lay.setSpacing(5)
        self.label = QLabel()
        self.label.setObjectName("paramLabel")
        self.slider = QSlider(Qt.Orientation.Horizontal)
        self.slider.setMinimum(0)
        self.slider.setMaximum(int(round((vmax - vmin) / step)))
        self.slider.setSingleStep(1)
        self.slider.setPageStep(1)
        lay.addWidget(self.label)
        lay.addWidget(self.slider)

        self.setValue(initial)
        self.slider.valueChanged.connect(self._on_slider)

    def value(self):
        raw = self._min + self.slider.value() * self._step
        return round(raw, 4) if self._is_float else int(raw)

    def setValue(self, v) -> None:
        """Move the slider without emitting valueChanged."""
        self.slider.blockSignals(True)
        self.slider.setValue(int(round((v - self._min) / self._step)))
        self.slider.blockSignals(False)
        self._update_label()

    def _on_slider(self, _idx: int) -> None:
        self._update_label()
        self.valueChanged.emit(self.value())

    def _update_label(self) -> None:
        self.label.setText(f"{self._title}: {self._fmt(self.value())}")
