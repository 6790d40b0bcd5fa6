"""
NET-WATCHER UI Module

PyQt6 operator console.

Components:
    - floor_plan_view: Heatmap, sweep, echoes, pings and markers
    - panels: Controls, gauge, waveform, quality history, event log
    - main_window: Application shell
"""

from .floor_plan_view import FloorPlanView
from .main_window import MainWindow

__all__ = [
    "FloorPlanView",
    "MainWindow",
]
