"""
UI Panels Package

Components:
    - ControlPanel: Scan toggle, sensitivity, manual trigger, zone readouts
    - DisturbanceGauge, WaveformScope, QualityHistoryBars, EventLogPanel
"""

from .scanner_controls import ControlPanel
from .telemetry import DisturbanceGauge, EventLogPanel, QualityHistoryBars, WaveformScope

__all__ = [
    "ControlPanel",
    "DisturbanceGauge",
    "WaveformScope",
    "QualityHistoryBars",
    "EventLogPanel",
]
