"""
Scanner Controls Panel

Scan toggle, sensitivity slider, manual trigger and per-zone signal
quality readouts.
"""

from typing import Callable, Dict, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from netwatcher.physics.constants import DEFAULT_SENSITIVITY
from netwatcher.simulation.readouts import is_low_quality


class ControlPanel(QWidget):
    """
    Operator controls.

    Provides:
        - Scan start/stop toggle
        - Sensitivity (0-100)
        - Manual event trigger (only enabled while scanning)
        - Zone quality table
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self._scan_callback: Optional[Callable[[bool], None]] = None
        self._sensitivity_callback: Optional[Callable[[float], None]] = None
        self._trigger_callback: Optional[Callable[[], None]] = None
        self._zone_labels: Dict[str, QLabel] = {}

        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(15)

        header = QLabel("SCANNER CONTROLS")
        header.setStyleSheet(
            """
            QLabel {
                color: #22d3ee;
                font-family: 'Consolas', monospace;
                font-size: 14px;
                font-weight: bold;
                padding: 5px;
                background-color: rgba(8, 47, 73, 200);
                border: 1px solid #0891b2;
            }
        """
        )
        header.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(header)

        # Scan
        scan_group = self._create_control_group("SCAN")
        scan_layout = QHBoxLayout(scan_group)

        self.scan_btn = QPushButton("▶ START SCAN")
        self.scan_btn.setCheckable(True)
        self.scan_btn.toggled.connect(self._on_scan_toggled)
        self._style_button(self.scan_btn)
        scan_layout.addWidget(self.scan_btn)

        self.trigger_btn = QPushButton("⚡ TRIGGER")
        self.trigger_btn.setEnabled(False)
        self.trigger_btn.clicked.connect(self._on_trigger_clicked)
        self._style_button(self.trigger_btn)
        scan_layout.addWidget(self.trigger_btn)

        layout.addWidget(scan_group)

        # Sensitivity
        sens_group = self._create_control_group("SENSITIVITY")
        sens_layout = QVBoxLayout(sens_group)

        self.sensitivity_label = QLabel(f"{DEFAULT_SENSITIVITY:.0f}")
        self.sensitivity_label.setStyleSheet("color: #67e8f9; font-size: 16px; font-weight: bold;")
        self.sensitivity_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        sens_layout.addWidget(self.sensitivity_label)

        self.sensitivity_slider = QSlider(Qt.Orientation.Horizontal)
        self.sensitivity_slider.setRange(0, 100)
        self.sensitivity_slider.setValue(int(DEFAULT_SENSITIVITY))
        self.sensitivity_slider.valueChanged.connect(self._on_sensitivity_changed)
        self._style_slider(self.sensitivity_slider)
        sens_layout.addWidget(self.sensitivity_slider)

        layout.addWidget(sens_group)

        # Zones
        self.zone_group = self._create_control_group("ZONE SIGNAL QUALITY")
        self.zone_layout = QGridLayout(self.zone_group)
        layout.addWidget(self.zone_group)

        layout.addStretch()

    def _create_control_group(self, title: str) -> QGroupBox:
        group = QGroupBox(title)
        group.setStyleSheet(
            """
            QGroupBox {
                color: #0ea5e9;
                font-family: 'Consolas', monospace;
                font-size: 11px;
                font-weight: bold;
                border: 1px solid #075985;
                border-radius: 5px;
                margin-top: 10px;
                padding-top: 10px;
            }
            QGroupBox::title {
                subcontrol-origin: margin;
                left: 10px;
                padding: 0 5px;
            }
        """
        )
        return group

    def _style_slider(self, slider: QSlider) -> None:
        slider.setStyleSheet(
            """
            QSlider::groove:horizontal {
                border: 1px solid #075985;
                height: 8px;
                background: #082f49;
                margin: 2px 0;
                border-radius: 4px;
            }
            QSlider::handle:horizontal {
                background: #22d3ee;
                border: 1px solid #0891b2;
                width: 18px;
                margin: -5px 0;
                border-radius: 9px;
            }
        """
        )

    def _style_button(self, button: QPushButton) -> None:
        button.setStyleSheet(
            """
            QPushButton {
                color: #67e8f9;
                background-color: #0c4a6e;
                border: 1px solid #0891b2;
                padding: 8px 15px;
                font-family: 'Consolas', monospace;
                font-size: 12px;
                font-weight: bold;
                border-radius: 5px;
            }
            QPushButton:hover {
                background-color: #075985;
            }
            QPushButton:checked {
                background-color: #0891b2;
                color: #020617;
            }
            QPushButton:disabled {
                color: #334155;
                border-color: #1e293b;
            }
        """
        )

    def _on_scan_toggled(self, checked: bool) -> None:
        self.scan_btn.setText("■ STOP SCAN" if checked else "▶ START SCAN")
        self.trigger_btn.setEnabled(checked)
        if self._scan_callback:
            self._scan_callback(checked)

    def _on_sensitivity_changed(self, value: int) -> None:
        self.sensitivity_label.setText(f"{value}")
        if self._sensitivity_callback:
            self._sensitivity_callback(float(value))

    def _on_trigger_clicked(self) -> None:
        if self._trigger_callback:
            self._trigger_callback()

    def set_scan_callback(self, callback: Callable[[bool], None]) -> None:
        self._scan_callback = callback

    def set_sensitivity_callback(self, callback: Callable[[float], None]) -> None:
        self._sensitivity_callback = callback

    def set_trigger_callback(self, callback: Callable[[], None]) -> None:
        self._trigger_callback = callback

    def set_scanning(self, scanning: bool) -> None:
        """Sync the toggle without re-entering the callback."""
        self.scan_btn.blockSignals(True)
        self.scan_btn.setChecked(scanning)
        self.scan_btn.blockSignals(False)
        self.scan_btn.setText("■ STOP SCAN" if scanning else "▶ START SCAN")
        self.trigger_btn.setEnabled(scanning)

    def set_sensitivity(self, sensitivity: float) -> None:
        self.sensitivity_slider.blockSignals(True)
        self.sensitivity_slider.setValue(int(round(sensitivity)))
        self.sensitivity_slider.blockSignals(False)
        self.sensitivity_label.setText(f"{sensitivity:.0f}")

    def set_zones(self, zones: Dict[str, float]) -> None:
        """Rebuild the zone quality table."""
        for label in self._zone_labels.values():
            self.zone_layout.removeWidget(label)
            label.deleteLater()
        self._zone_labels = {}

        for row, (name, quality) in enumerate(zones.items()):
            name_label = QLabel(name)
            name_label.setStyleSheet("color: #94a3b8; font-family: 'Consolas', monospace;")
            value_label = QLabel(f"{quality:.0f}%")
            color = "#f59e0b" if is_low_quality(quality) else "#22d3ee"
            value_label.setStyleSheet(
                f"color: {color}; font-family: 'Consolas', monospace; font-weight: bold;"
            )
            value_label.setAlignment(Qt.AlignmentFlag.AlignRight)
            self.zone_layout.addWidget(name_label, row, 0)
            self.zone_layout.addWidget(value_label, row, 1)
            self._zone_labels[f"{name}:name"] = name_label
            self._zone_labels[name] = value_label
