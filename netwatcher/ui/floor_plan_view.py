"""
Floor Plan View

Top-down scanner display over the apartment floor plan.

Layers (back to front):
    - Signal strength heatmap
    - Phosphor persistence buffer
    - Walls and furniture (glow when the sweep crosses them)
    - Echo rings, ping rings, sweep line
    - Detection markers (live marker and rank-faded history)

The view never computes simulation state; it renders FrameSnapshot
copies handed over by the main window.
"""

from typing import List, Optional

import numpy as np
import pyqtgraph as pg
from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QPen
from PyQt6.QtWidgets import QGraphicsRectItem, QLabel, QVBoxLayout, QWidget

from netwatcher.physics.constants import ECHO_LIFETIME_S, PING_RING_COUNT
from netwatcher.simulation.console import FrameSnapshot
from netwatcher.simulation.objects import Room

# Heatmap: weak (deep red) -> fair (amber) -> strong (cyan)
HEATMAP_COLORS = [
    (40, 8, 16, 255),
    (127, 29, 29, 255),
    (217, 119, 6, 255),
    (250, 204, 21, 255),
    (6, 182, 212, 255),
]
HEATMAP_STOPS = [0.0, 0.25, 0.5, 0.7, 1.0]

MAX_PING_CURVES = 12


class FloorPlanView(QWidget):
    """
    Floor plan scanner display.

    Usage:
        view = FloorPlanView(console.room)
        view.update_display(console.snapshot())
    """

    COLOR_BACKGROUND = QColor(3, 10, 18)
    COLOR_SWEEP = (34, 211, 238, 200)
    COLOR_PING = (34, 211, 238)
    COLOR_EMITTER = (250, 250, 250)

    def __init__(self, room: Room, parent: QWidget = None):
        """
        Initialize floor plan view.

        Args:
            room: Floor plan to display
            parent: Parent widget
        """
        super().__init__(parent)
        self.room = room
        self._field_id: Optional[int] = None
        self._obstacle_items: List[QGraphicsRectItem] = []
        self._ping_curves: List[pg.PlotCurveItem] = []

        self._setup_ui()
        self.set_room(room)

    def _setup_ui(self):
        self.setMinimumSize(560, 460)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        header = QLabel("FLOOR PLAN SCAN")
        header.setStyleSheet(
            """
            QLabel {
                color: #22d3ee;
                font-family: 'Consolas', monospace;
                font-size: 14px;
                font-weight: bold;
                padding: 5px;
                background-color: rgba(8, 47, 73, 150);
            }
        """
        )
        header.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(header)

        pg.setConfigOptions(antialias=True)

        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setBackground(self.COLOR_BACKGROUND)
        self.plot_widget.setAspectLocked(True)
        self.plot_widget.hideAxis("left")
        self.plot_widget.hideAxis("bottom")
        self.plot_widget.setMouseEnabled(x=False, y=False)
        self.plot_widget.hideButtons()
        # Room coordinates grow downwards
        self.plot_widget.invertY(True)
        layout.addWidget(self.plot_widget)

        # Heatmap
        heatmap_cmap = pg.ColorMap(HEATMAP_STOPS, HEATMAP_COLORS)
        self.heatmap = pg.ImageItem(axisOrder="row-major")
        self.heatmap.setLookupTable(heatmap_cmap.getLookupTable(0.0, 1.0, 256))
        self.heatmap.setOpacity(0.55)
        self.heatmap.setZValue(-20)
        self.plot_widget.addItem(self.heatmap)

        # Persistence
        persistence_cmap = pg.ColorMap([0.0, 1.0], [(34, 211, 238, 0), (34, 211, 238, 150)])
        self.persistence = pg.ImageItem(axisOrder="row-major")
        self.persistence.setLookupTable(persistence_cmap.getLookupTable(0.0, 1.0, 256, alpha=True))
        self.persistence.setZValue(-10)
        self.plot_widget.addItem(self.persistence)

        # Echo rings
        self.echo_scatter = pg.ScatterPlotItem(pxMode=True)
        self.echo_scatter.setZValue(10)
        self.plot_widget.addItem(self.echo_scatter)

        # Ping rings
        for _ in range(MAX_PING_CURVES):
            curve = pg.PlotCurveItem()
            curve.setZValue(11)
            self.plot_widget.addItem(curve)
            self._ping_curves.append(curve)

        # Sweep line
        self.sweep_line = pg.PlotCurveItem(pen=pg.mkPen(color=self.COLOR_SWEEP, width=2))
        self.sweep_line.setZValue(12)
        self.plot_widget.addItem(self.sweep_line)

        # Emitter
        self.emitter_item = pg.ScatterPlotItem(
            size=10, symbol="o", pen=pg.mkPen(None), brush=pg.mkBrush(*self.COLOR_EMITTER)
        )
        self.emitter_item.setZValue(13)
        self.plot_widget.addItem(self.emitter_item)

        # Markers
        self.history_scatter = pg.ScatterPlotItem(pxMode=True)
        self.history_scatter.setZValue(14)
        self.plot_widget.addItem(self.history_scatter)

        self.live_scatter = pg.ScatterPlotItem(pxMode=True)
        self.live_scatter.setZValue(15)
        self.plot_widget.addItem(self.live_scatter)

        self.live_label = pg.TextItem("", color=(226, 232, 240), anchor=(0.0, 1.2))
        self.live_label.setFont(QFont("Consolas", 9))
        self.live_label.setZValue(16)
        self.plot_widget.addItem(self.live_label)

        self.status_label = QLabel("IDLE")
        self.status_label.setStyleSheet(
            """
            QLabel {
                color: #67e8f9;
                font-family: 'Consolas', monospace;
                font-size: 11px;
                padding: 3px;
                background-color: rgba(8, 30, 45, 200);
            }
        """
        )
        layout.addWidget(self.status_label)

    def set_room(self, room: Room) -> None:
        """Rebuild static layers (heatmap, obstacles, emitter) for a room."""
        self.room = room
        rect = QRectF(0.0, 0.0, room.width_m, room.height_m)

        signal_field = room.signal_field
        self.heatmap.setImage(signal_field.grid, levels=(0.0, 1.0))
        self.heatmap.setRect(rect)
        self._field_id = id(signal_field.grid)

        self.persistence.setImage(np.zeros((2, 2), dtype=np.float32), levels=(0.0, 1.0))
        self.persistence.setRect(rect)

        for item in self._obstacle_items:
            self.plot_widget.removeItem(item)
        self._obstacle_items = []
        for obs in room.obstacles:
            item = QGraphicsRectItem(obs.x, obs.y, obs.width, obs.height)
            pen = QPen(QColor(*obs.echo_color))
            pen.setCosmetic(True)
            pen.setWidth(1)
            item.setPen(pen)
            item.setBrush(QBrush(QColor(30, 41, 59, 200)))
            item.setZValue(0)
            self.plot_widget.addItem(item)
            self._obstacle_items.append(item)

        self.emitter_item.setData([room.emitter[0]], [room.emitter[1]])
        self.plot_widget.setXRange(0, room.width_m, padding=0.02)
        self.plot_widget.setYRange(0, room.height_m, padding=0.02)

    def update_display(self, snapshot: FrameSnapshot) -> None:
        """
        Render one frame.

        Args:
            snapshot: Console frame snapshot
        """
        if id(snapshot.signal_field) != self._field_id:
            self.heatmap.setImage(snapshot.signal_field, levels=(0.0, 1.0))
            self._field_id = id(snapshot.signal_field)

        self.persistence.setImage(snapshot.persistence, autoLevels=False, levels=(0.0, 1.0))
        self.persistence.setRect(QRectF(0.0, 0.0, self.room.width_m, self.room.height_m))

        self._update_obstacle_glow(snapshot.glows)
        self._update_echoes(snapshot)
        self._update_pings(snapshot)
        self._update_sweep_line(snapshot.sweep.angle)
        self._update_markers(snapshot)

        state = snapshot.disturbance
        self.status_label.setText(
            f"{'SCANNING' if snapshot.scanning else 'IDLE'} | "
            f"LAP: {snapshot.sweep.lap_count} | "
            f"ECHOES: {len(snapshot.echoes)} | "
            f"DISTURBANCE: {state.value:.0f} | "
            f"T: {snapshot.time:.1f}s"
        )

    def _update_obstacle_glow(self, glows) -> None:
        for item, obs, glow in zip(self._obstacle_items, self.room.obstacles, glows):
            r, g, b = obs.echo_color
            if glow > 0.0:
                item.setBrush(QBrush(QColor(r, g, b, int(60 + 140 * glow))))
            else:
                item.setBrush(QBrush(QColor(30, 41, 59, 200)))

    def _update_echoes(self, snapshot: FrameSnapshot) -> None:
        spots = []
        for echo in snapshot.echoes:
            phase = min(1.0, echo.age(snapshot.time) / ECHO_LIFETIME_S)
            alpha = int(220 * (1.0 - phase))
            spots.append(
                {
                    "pos": (echo.origin_x, echo.origin_y),
                    "size": 10 + 50 * phase,
                    "pen": pg.mkPen(color=(*echo.color_rgb, alpha), width=2),
                    "brush": pg.mkBrush(None),
                    "symbol": "o",
                }
            )
        self.echo_scatter.setData(spots=spots)

    def _update_pings(self, snapshot: FrameSnapshot) -> None:
        ex, ey = self.room.emitter
        max_radius = float(np.hypot(self.room.width_m, self.room.height_m)) * 0.6
        theta = np.linspace(0.0, 2.0 * np.pi, 72)

        curves = iter(self._ping_curves)
        for ping in snapshot.pings:
            for phase in ping.ring_phases(snapshot.time, PING_RING_COUNT):
                curve = next(curves, None)
                if curve is None:
                    break
                radius = phase * max_radius
                curve.setData(ex + radius * np.cos(theta), ey + radius * np.sin(theta))
                curve.setPen(pg.mkPen(color=(*self.COLOR_PING, int(140 * (1.0 - phase))), width=1))
        for curve in curves:
            curve.setData([], [])

    def _update_sweep_line(self, angle: float) -> None:
        ex, ey = self.room.emitter
        length = float(np.hypot(self.room.width_m, self.room.height_m))
        self.sweep_line.setData([ex, ex + length * np.cos(angle)], [ey, ey + length * np.sin(angle)])

    def _update_markers(self, snapshot: FrameSnapshot) -> None:
        w, h = self.room.width_m, self.room.height_m

        history_spots = []
        # Index 0 is the live marker, drawn separately
        for marker, opacity in snapshot.markers.history[1:]:
            history_spots.append(
                {
                    "pos": (marker.x * w, marker.y * h),
                    "size": 8,
                    "pen": pg.mkPen(None),
                    "brush": pg.mkBrush(*marker.color, int(140 * opacity)),
                    "symbol": "o",
                }
            )
        self.history_scatter.setData(spots=history_spots)

        live = snapshot.markers.live
        if live is None or live.expired:
            self.live_scatter.setData(spots=[])
            self.live_label.setText("")
            return

        alpha = int(255 * live.alpha)
        self.live_scatter.setData(
            spots=[
                {
                    "pos": (live.x * w, live.y * h),
                    "size": 16,
                    "pen": pg.mkPen(color=(255, 255, 255, alpha), width=2),
                    "brush": pg.mkBrush(*live.color, alpha),
                    "symbol": "d",
                }
            ]
        )
        self.live_label.setText(f"{live.label} {live.metrics.confidence_pct:.0f}%")
        self.live_label.setColor(QColor(226, 232, 240, alpha))
        self.live_label.setPos(live.x * w, live.y * h)
