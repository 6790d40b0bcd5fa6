"""
NET-WATCHER Source Package

Simulated Wi-Fi presence scanner:
- Ray-cast signal strength heatmap over a floor plan
- Disturbance engine with random and manual events
- Sonar-style sweep display with echoes and detection markers
- PyQt6 operator console
"""

from netwatcher.io.event_log import EventLog, Severity
from netwatcher.physics import SignalField, compute_field
from netwatcher.simulation.console import ScannerConsole
from netwatcher.simulation.disturbance import DisturbanceEngine
from netwatcher.simulation.objects import Obstacle, Room, create_default_room
from netwatcher.simulation.sonar_clock import SonarAnimationClock

__version__ = "1.0.0"
__author__ = "NET-WATCHER Contributors"

__all__ = [
    # Physics
    "SignalField",
    "compute_field",
    # Simulation
    "Obstacle",
    "Room",
    "create_default_room",
    "DisturbanceEngine",
    "SonarAnimationClock",
    "ScannerConsole",
    # Logging
    "EventLog",
    "Severity",
]
