"""
NET-WATCHER I/O Package

Event log sink, floor plan loading and export.
"""

from .event_log import EventLog, LogEntry, Severity
from .exporter import export_room_to_yaml
from .scenario_loader import ScenarioConfig, ScenarioLoader, load_scenario

__all__ = [
    "EventLog",
    "LogEntry",
    "Severity",
    "ScenarioConfig",
    "ScenarioLoader",
    "load_scenario",
    "export_room_to_yaml",
]
