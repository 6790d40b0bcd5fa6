"""
NET-WATCHER Simulation Package

Floor plan model, disturbance engine, sweep animation clock, detection
markers and the headless runner.
"""

from .console import FrameSnapshot, ScannerConsole
from .disturbance import DisturbanceEngine, DisturbanceEvent, EventTier, ScanMode
from .headless_runner import HeadlessRunner, RunConfig, RunResult
from .markers import DetectionMarker, DetectionMarkerTracker, TargetType
from .objects import Obstacle, Room, Zone, create_default_room
from .sonar_clock import SonarAnimationClock

__all__ = [
    "Obstacle",
    "Room",
    "Zone",
    "create_default_room",
    "DisturbanceEngine",
    "DisturbanceEvent",
    "EventTier",
    "ScanMode",
    "SonarAnimationClock",
    "DetectionMarker",
    "DetectionMarkerTracker",
    "TargetType",
    "ScannerConsole",
    "FrameSnapshot",
    "HeadlessRunner",
    "RunConfig",
    "RunResult",
]
