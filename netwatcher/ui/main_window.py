"""
Main Window

Application shell for the NET-WATCHER operator console.

Components:
    - FloorPlanView (central display)
    - Control panel (right dock)
    - Telemetry (bottom dock): gauge, waveform, quality history, event log
    - Status bar

Scheduling is single-threaded: one QTimer drives ScannerConsole.step()
with the measured frame interval, and the console runs the 50 ms
disturbance tick internally. The GUI only visualizes snapshots.
"""

import logging
import time
from typing import Optional

import yaml
from PyQt6.QtCore import QSettings, Qt, QTimer
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import (
    QDockWidget,
    QFileDialog,
    QHBoxLayout,
    QInputDialog,
    QMainWindow,
    QMessageBox,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from netwatcher.io.event_log import EventLog
from netwatcher.io.exporter import export_room_to_yaml
from netwatcher.io.scenario_loader import ScenarioLoader
from netwatcher.simulation.console import ScannerConsole

from .floor_plan_view import FloorPlanView
from .panels import (
    ControlPanel,
    DisturbanceGauge,
    EventLogPanel,
    QualityHistoryBars,
    WaveformScope,
)

logger = logging.getLogger(__name__)

# Frame intervals longer than this (window drag, breakpoint) are clamped
MAX_FRAME_DT_S = 0.25


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, scenario_path: Optional[str] = None, frame_rate_hz: float = 60.0) -> None:
        super().__init__()

        self.setWindowTitle("NET-WATCHER - Wi-Fi Presence Scanner")
        self.setMinimumSize(1200, 800)
        self._apply_dark_theme()

        self.event_log = EventLog()
        self.frame_rate_hz = frame_rate_hz
        self.console = self._create_console(scenario_path)

        self._setup_ui()
        self._setup_menu()
        self._setup_status_bar()
        self._load_settings()

        self.event_log.subscribe(self.log_panel.append_entry)

        self._frame_timer = QTimer(self)
        self._frame_timer.timeout.connect(self._on_frame)
        self._last_frame_time = time.perf_counter()

        self._start_console()

    def _create_console(self, scenario_path: Optional[str]) -> ScannerConsole:
        if scenario_path:
            console = ScenarioLoader(scenario_path).create_console(event_log=self.event_log)
            self.frame_rate_hz = console.frame_rate_hz
            return console
        return ScannerConsole(event_log=self.event_log, frame_rate_hz=self.frame_rate_hz)

    def _apply_dark_theme(self) -> None:
        self.setStyleSheet(
            """
            QMainWindow {
                background-color: #020617;
            }
            QDockWidget {
                color: #22d3ee;
                font-family: 'Consolas', monospace;
            }
            QDockWidget::title {
                background-color: #082f49;
                padding: 4px;
            }
        """
        )

    def _setup_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(5, 5, 5, 5)

        self.floor_plan = FloorPlanView(self.console.room)
        main_layout.addWidget(self.floor_plan)

        # Right dock: controls
        control_dock = QDockWidget("CONTROLS", self)
        control_dock.setObjectName("controls_dock")
        control_dock.setFeatures(
            QDockWidget.DockWidgetFeature.DockWidgetMovable
            | QDockWidget.DockWidgetFeature.DockWidgetFloatable
        )
        self.control_panel = ControlPanel()
        self.control_panel.set_scan_callback(self._on_scan_toggled)
        self.control_panel.set_sensitivity_callback(self._on_sensitivity_changed)
        self.control_panel.set_trigger_callback(self._on_trigger)
        self.control_panel.set_sensitivity(self.console.disturbance.sensitivity)
        self.control_panel.set_zones(self.console.zone_readouts)
        control_dock.setWidget(self.control_panel)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, control_dock)

        # Bottom dock: telemetry
        telemetry_dock = QDockWidget("TELEMETRY", self)
        telemetry_dock.setObjectName("telemetry_dock")
        telemetry_dock.setFeatures(
            QDockWidget.DockWidgetFeature.DockWidgetMovable
            | QDockWidget.DockWidgetFeature.DockWidgetFloatable
        )
        telemetry = QWidget()
        telemetry_layout = QHBoxLayout(telemetry)
        telemetry_layout.setContentsMargins(0, 0, 0, 0)

        self.gauge = DisturbanceGauge()
        self.waveform = WaveformScope()
        self.history_bars = QualityHistoryBars()
        self.log_panel = EventLogPanel()
        telemetry_layout.addWidget(self.gauge, 1)
        telemetry_layout.addWidget(self.waveform, 2)
        telemetry_layout.addWidget(self.history_bars, 2)
        telemetry_layout.addWidget(self.log_panel, 3)

        telemetry_dock.setWidget(telemetry)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, telemetry_dock)

    def _setup_menu(self) -> None:
        menubar = self.menuBar()
        menubar.setStyleSheet(
            """
            QMenuBar {
                background-color: #082f49;
                color: #67e8f9;
                font-family: 'Consolas', monospace;
            }
            QMenuBar::item:selected {
                background-color: #075985;
            }
            QMenu {
                background-color: #082f49;
                color: #67e8f9;
            }
            QMenu::item:selected {
                background-color: #075985;
            }
        """
        )

        file_menu = menubar.addMenu("&File")

        load_action = QAction("&Load Floor Plan...", self)
        load_action.setShortcut("Ctrl+O")
        load_action.triggered.connect(self._on_load_scenario)
        file_menu.addAction(load_action)

        save_action = QAction("&Save Floor Plan As...", self)
        save_action.setShortcut("Ctrl+Shift+S")
        save_action.triggered.connect(self._on_save_scenario)
        file_menu.addAction(save_action)

        file_menu.addSeparator()

        exit_action = QAction("E&xit", self)
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        scan_menu = menubar.addMenu("&Scan")

        start_action = QAction("&Start", self)
        start_action.triggered.connect(lambda: self._set_scanning(True))
        scan_menu.addAction(start_action)

        stop_action = QAction("Sto&p", self)
        stop_action.triggered.connect(lambda: self._set_scanning(False))
        scan_menu.addAction(stop_action)

        trigger_action = QAction("&Trigger Event", self)
        trigger_action.setShortcut("Ctrl+T")
        trigger_action.triggered.connect(self._on_trigger)
        scan_menu.addAction(trigger_action)

    def _setup_status_bar(self) -> None:
        self.status_bar = QStatusBar()
        self.status_bar.setStyleSheet(
            """
            QStatusBar {
                background-color: #082f49;
                color: #0ea5e9;
                font-family: 'Consolas', monospace;
                font-size: 11px;
            }
        """
        )
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("NET-WATCHER Ready | Press SPACE to start scanning")

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def _start_console(self) -> None:
        self.console.start()
        self._last_frame_time = time.perf_counter()
        self._frame_timer.start(max(1, int(1000.0 / self.frame_rate_hz)))

    def _stop_console(self) -> None:
        self._frame_timer.stop()
        self.console.stop()

    def _on_frame(self) -> None:
        now = time.perf_counter()
        dt = min(now - self._last_frame_time, MAX_FRAME_DT_S)
        self._last_frame_time = now

        self.console.step(dt)
        snapshot = self.console.snapshot()

        self.floor_plan.update_display(snapshot)
        level = snapshot.disturbance.value
        self.gauge.set_level(level)
        self.waveform.update_trace(level, snapshot.time * self.frame_rate_hz)
        self.history_bars.set_history(snapshot.disturbance.history)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def _set_scanning(self, scanning: bool) -> None:
        self.control_panel.set_scanning(scanning)
        self._on_scan_toggled(scanning)

    def _on_scan_toggled(self, scanning: bool) -> None:
        self.console.set_scanning(scanning)
        self.status_bar.showMessage("Scan RUNNING" if scanning else "Scan STOPPED")

    def _on_sensitivity_changed(self, sensitivity: float) -> None:
        self.console.set_sensitivity(sensitivity)

    def _on_trigger(self) -> None:
        if self.console.trigger_manual_event() is None:
            self.status_bar.showMessage("Start scanning before triggering an event")

    # ------------------------------------------------------------------
    # Floor plan files
    # ------------------------------------------------------------------

    def _on_load_scenario(self) -> None:
        filepath, _ = QFileDialog.getOpenFileName(
            self, "Load Floor Plan", "scenarios", "YAML Files (*.yaml *.yml);;All Files (*)"
        )
        if not filepath:
            return

        try:
            loader = ScenarioLoader(filepath)
            console = loader.create_console(event_log=self.event_log)
        except FileNotFoundError:
            QMessageBox.critical(self, "Error", f"File not found:\n{filepath}")
            return
        except ValueError as e:
            QMessageBox.critical(self, "Error", f"Failed to load floor plan:\n{e}")
            return
        except yaml.YAMLError as e:
            QMessageBox.critical(self, "Error", f"Invalid YAML in floor plan:\n{e}")
            return
        except Exception as e:
            QMessageBox.critical(self, "Error", f"Failed to load floor plan:\n{str(e)}")
            return

        self._stop_console()
        self.console = console
        self.frame_rate_hz = console.frame_rate_hz
        self.floor_plan.set_room(console.room)
        self.control_panel.set_scanning(False)
        self.control_panel.set_sensitivity(console.disturbance.sensitivity)
        self.control_panel.set_zones(console.zone_readouts)
        self._start_console()

        logger.info("Loaded floor plan '%s' from %s", loader.get_scenario_name(), filepath)
        self.status_bar.showMessage(f"LOADED: {loader.get_scenario_name()}")

    def _on_save_scenario(self) -> None:
        filepath, _ = QFileDialog.getSaveFileName(
            self, "Save Floor Plan", "scenarios/custom_floor_plan.yaml", "YAML Files (*.yaml *.yml)"
        )
        if not filepath:
            return

        name, ok = QInputDialog.getText(
            self, "Floor Plan Name", "Enter floor plan name:", text=self.console.room.name
        )
        if not ok:
            name = self.console.room.name

        if export_room_to_yaml(self.console.room, filepath, scenario_name=name, console=self.console):
            self.status_bar.showMessage(f"Floor plan saved: {filepath}")
        else:
            self.status_bar.showMessage("Failed to save floor plan")

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def _load_settings(self) -> None:
        settings = QSettings("NetWatcher", "Scanner")

        geometry = settings.value("window/geometry")
        if geometry:
            self.restoreGeometry(geometry)

        sensitivity = settings.value("scanner/sensitivity", None)
        if sensitivity is not None:
            self.console.set_sensitivity(float(sensitivity))
            self.control_panel.set_sensitivity(self.console.disturbance.sensitivity)

    def _save_settings(self) -> None:
        settings = QSettings("NetWatcher", "Scanner")
        settings.setValue("window/geometry", self.saveGeometry())
        settings.setValue("scanner/sensitivity", self.console.disturbance.sensitivity)

    def keyPressEvent(self, event) -> None:
        key = event.key()

        # Space - scan toggle
        if key == Qt.Key.Key_Space and not event.modifiers():
            self._set_scanning(not self.console.scanning)
            return

        # T - manual trigger
        if key == Qt.Key.Key_T and not event.modifiers():
            self._on_trigger()
            return

        if key == Qt.Key.Key_F11:
            if self.isFullScreen():
                self.showNormal()
            else:
                self.showFullScreen()
            return

        super().keyPressEvent(event)

    def closeEvent(self, event) -> None:
        self._save_settings()
        self._stop_console()
        event.accept()
