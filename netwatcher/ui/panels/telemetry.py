"""
Telemetry Panels

Disturbance gauge, oscilloscope strip, signal quality history bars and
the event log list.
"""

from typing import Optional, Sequence

import numpy as np
import pyqtgraph as pg
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QBrush, QColor
from PyQt6.QtWidgets import QLabel, QListWidget, QListWidgetItem, QProgressBar, QVBoxLayout, QWidget

from netwatcher.io.event_log import LOG_PANEL_LENGTH, LogEntry, Severity
from netwatcher.physics.constants import HISTORY_LENGTH
from netwatcher.simulation.readouts import (
    LOW_QUALITY_THRESHOLD,
    alert_flash_intensity,
    level_color,
    waveform_samples,
)

_TITLE_STYLE = """
    QLabel {
        color: #0ea5e9;
        font-family: 'Consolas', monospace;
        font-size: 11px;
        font-weight: bold;
        padding: 3px;
    }
"""

SEVERITY_COLORS = {
    Severity.INFO: "#94a3b8",
    Severity.WARNING: "#f59e0b",
    Severity.DANGER: "#ef4444",
    Severity.SUCCESS: "#22c55e",
    Severity.SYSTEM: "#22d3ee",
}


def _title(text: str) -> QLabel:
    label = QLabel(text)
    label.setStyleSheet(_TITLE_STYLE)
    return label


class DisturbanceGauge(QWidget):
    """Numeric disturbance level with a color-tiered bar and alert flash."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(_title("DISTURBANCE"))

        self.value_label = QLabel("0")
        self.value_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.value_label)

        self.bar = QProgressBar()
        self.bar.setRange(0, 100)
        self.bar.setTextVisible(False)
        layout.addWidget(self.bar)

        self.set_level(0.0)

    def set_level(self, level: float) -> None:
        color = level_color(level)
        flash = alert_flash_intensity(level)
        self.value_label.setText(f"{level:.0f}")
        self.value_label.setStyleSheet(
            f"color: {color}; font-family: 'Consolas', monospace; font-size: 28px; "
            f"font-weight: bold; background-color: rgba(239, 68, 68, {int(90 * flash)});"
        )
        self.bar.setValue(int(round(level)))
        self.bar.setStyleSheet(
            f"""
            QProgressBar {{
                border: 1px solid #075985;
                background: #020617;
                height: 10px;
            }}
            QProgressBar::chunk {{
                background-color: {color};
            }}
        """
        )


class WaveformScope(QWidget):
    """Oscilloscope strip whose amplitude and frequency track the disturbance."""

    def __init__(self, width_px: int = 320, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.width_px = width_px
        self._rng = np.random.default_rng()

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(_title("WAVEFORM"))

        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setBackground(QColor(2, 6, 23))
        self.plot_widget.hideAxis("left")
        self.plot_widget.hideAxis("bottom")
        self.plot_widget.setMouseEnabled(x=False, y=False)
        self.plot_widget.hideButtons()
        self.plot_widget.setXRange(0, width_px, padding=0)
        self.plot_widget.setYRange(-75, 75, padding=0)
        self.plot_widget.setMinimumHeight(90)
        layout.addWidget(self.plot_widget)

        self.curve = pg.PlotCurveItem(pen=pg.mkPen(color=level_color(0.0), width=1.5))
        self.plot_widget.addItem(self.curve)

    def update_trace(self, level: float, phase: float) -> None:
        x, y = waveform_samples(level, phase, self.width_px, rng=self._rng)
        self.curve.setData(x, y)
        self.curve.setPen(pg.mkPen(color=level_color(level), width=1.5))


class QualityHistoryBars(QWidget):
    """Bar chart of the signal quality history (oldest left)."""

    COLOR_OK = (34, 211, 238, 200)
    COLOR_LOW = (245, 158, 11, 220)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(_title("SIGNAL QUALITY HISTORY"))

        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setBackground(QColor(2, 6, 23))
        self.plot_widget.hideAxis("bottom")
        self.plot_widget.setMouseEnabled(x=False, y=False)
        self.plot_widget.hideButtons()
        self.plot_widget.setYRange(0, 100, padding=0)
        self.plot_widget.setMinimumHeight(90)
        layout.addWidget(self.plot_widget)

        self.threshold_line = pg.InfiniteLine(
            pos=LOW_QUALITY_THRESHOLD,
            angle=0,
            pen=pg.mkPen(color=(245, 158, 11, 120), style=Qt.PenStyle.DashLine),
        )
        self.plot_widget.addItem(self.threshold_line)

        self.bars = pg.BarGraphItem(
            x=np.arange(HISTORY_LENGTH), height=np.zeros(HISTORY_LENGTH), width=0.8
        )
        self.plot_widget.addItem(self.bars)

    def set_history(self, history: Sequence[float]) -> None:
        values = np.asarray(history, dtype=float)
        x = np.arange(len(values))
        brushes = [
            pg.mkBrush(*(self.COLOR_LOW if v < LOW_QUALITY_THRESHOLD else self.COLOR_OK))
            for v in values
        ]
        self.bars.setOpts(x=x, height=values, width=0.8, brushes=brushes)
        if len(values):
            self.plot_widget.setXRange(-0.5, len(values) - 0.5, padding=0)


class EventLogPanel(QWidget):
    """Scrolling event log, newest at the bottom."""

    def __init__(self, max_rows: int = LOG_PANEL_LENGTH, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.max_rows = max_rows

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(_title("EVENT LOG"))

        self.list_widget = QListWidget()
        self.list_widget.setStyleSheet(
            """
            QListWidget {
                background-color: #020617;
                border: 1px solid #075985;
                font-family: 'Consolas', monospace;
                font-size: 11px;
            }
        """
        )
        layout.addWidget(self.list_widget)

    def append_entry(self, entry: LogEntry) -> None:
        item = QListWidgetItem(entry.format())
        item.setForeground(QBrush(QColor(SEVERITY_COLORS[entry.severity])))
        self.list_widget.addItem(item)
        while self.list_widget.count() > self.max_rows:
            self.list_widget.takeItem(0)
        self.list_widget.scrollToBottom()

    def clear(self) -> None:
        self.list_widget.clear()
