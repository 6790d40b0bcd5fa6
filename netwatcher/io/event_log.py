"""
Event Log

Host-side log sink for scanner events. The engine calls
`emit(message, severity)` once per event; the sink timestamps the line,
keeps the most recent entries for the log panel and forwards them to the
standard `logging` hierarchy.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, List, Optional

logger = logging.getLogger("netwatcher.events")

# Entries shown by the log panel
LOG_PANEL_LENGTH = 31


class Severity(str, Enum):
    """Event log severities."""

    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"
    SUCCESS = "success"
    SYSTEM = "system"


_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.SYSTEM: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.DANGER: logging.ERROR,
}

EmitCallback = Callable[[str, str], None]


@dataclass(frozen=True)
class LogEntry:
    """Single log panel line."""

    time: str
    message: str
    severity: Severity

    def format(self) -> str:
        return f"[{self.time}] {self.severity.value.upper():<7} {self.message}"


def format_time(moment: Optional[datetime] = None) -> str:
    """HH:MM:SS, 24-hour clock."""
    return (moment or datetime.now()).strftime("%H:%M:%S")


class EventLog:
    """
    Bounded in-memory event log.

    Usage:
        log = EventLog()
        engine = DisturbanceEngine(emit=log.emit)
        for entry in log.entries:
            print(entry.format())
    """

    def __init__(self, max_entries: int = LOG_PANEL_LENGTH, clock: Callable[[], datetime] = None):
        """
        Initialize event log.

        Args:
            max_entries: Entries kept for display (oldest dropped first)
            clock: Time source for timestamps (defaults to datetime.now)
        """
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)
        self._clock = clock or datetime.now
        self._listeners: List[Callable[[LogEntry], None]] = []

    def emit(self, message: str, severity: str = Severity.INFO) -> LogEntry:
        """Record one event line. Unknown severities raise ValueError."""
        entry = LogEntry(
            time=format_time(self._clock()), message=message, severity=Severity(severity)
        )
        self._entries.append(entry)
        logger.log(_LEVELS[entry.severity], "%s", message)
        for listener in self._listeners:
            listener(entry)
        return entry

    __call__ = emit

    def subscribe(self, listener: Callable[[LogEntry], None]) -> None:
        """Register a callback invoked with every new entry."""
        self._listeners.append(listener)

    @property
    def entries(self) -> List[LogEntry]:
        """Oldest first."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
