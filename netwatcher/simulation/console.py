"""
Scanner Console

Host-side facade that wires the room, disturbance engine, sweep clock and
detection tracker together and exposes the control surface:

    set_scanning(bool), set_sensitivity(0..100), trigger_manual_event()

Scheduling is single-threaded. step(dt) is called once per animation
frame; the disturbance engine runs on its own fixed 50 ms period through a
SimulatedTimer fed with the same elapsed time. Renderers only receive
FrameSnapshot copies.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Tuple

import numpy as np

from netwatcher.io.event_log import EventLog, Severity
from netwatcher.physics.constants import (
    DEFAULT_SENSITIVITY,
    DEFAULT_SWEEP_PERIOD_S,
    DISTURBANCE_TICK_PERIOD_S,
    HISTORY_LENGTH,
)

from .disturbance import DisturbanceEngine, DisturbanceEvent, DisturbanceState
from .markers import DetectionMarkerTracker, MarkerSnapshot
from .objects import Room, create_default_room
from .sonar_clock import EchoEffect, PingWave, SonarAnimationClock, SweepState

logger = logging.getLogger(__name__)

# Recent events kept for inspection
EVENT_HISTORY_LENGTH = 100


class SimulatedTimer:
    """
    Fixed-period timer driven by elapsed time.

    advance(dt) fires the callback once for every full period contained in
    the accumulated time. stop() cancels synchronously and drops any
    partial period.
    """

    def __init__(self, period_s: float, callback: Callable[[], None]):
        if period_s <= 0:
            raise ValueError(f"period_s must be positive, got {period_s}")
        self.period_s = period_s
        self._callback = callback
        self._active = False
        self._accumulator = 0.0

    def start(self) -> None:
        self._active = True
        self._accumulator = 0.0

    def stop(self) -> None:
        self._active = False
        self._accumulator = 0.0

    @property
    def active(self) -> bool:
        return self._active

    def advance(self, dt: float) -> int:
        """Accumulate dt and fire due periods. Returns the number fired."""
        if not self._active:
            return 0
        self._accumulator += dt
        fired = 0
        # Tolerance keeps 0.05 + 0.05 + ... from missing a period to rounding
        while self._active and self._accumulator >= self.period_s - 1e-9:
            self._accumulator -= self.period_s
            self._callback()
            fired += 1
        return fired


@dataclass(frozen=True)
class FrameSnapshot:
    """
    Everything a renderer needs for one frame.

    Layer order: heatmap, persistence buffer, walls and furniture, then
    echoes, pings, sweep line and markers.
    """

    time: float
    scanning: bool
    signal_field: np.ndarray
    sweep: SweepState
    echoes: Tuple[EchoEffect, ...]
    pings: Tuple[PingWave, ...]
    glows: Tuple[float, ...]
    persistence: np.ndarray
    disturbance: DisturbanceState
    markers: MarkerSnapshot
    zones: Dict[str, float] = field(default_factory=dict)


class ScannerConsole:
    """
    Scanner core orchestration.

    Usage:
        console = ScannerConsole()
        console.start()
        console.set_scanning(True)
        for _ in range(600):
            console.step(1 / 60)
        frame = console.snapshot()
    """

    def __init__(
        self,
        room: Optional[Room] = None,
        sensitivity: float = DEFAULT_SENSITIVITY,
        rng: Optional[np.random.Generator] = None,
        event_log: Optional[EventLog] = None,
        sweep_period_s: float = DEFAULT_SWEEP_PERIOD_S,
        tick_period_s: float = DISTURBANCE_TICK_PERIOD_S,
        buffer_shape: Tuple[int, int] = (96, 120),
        history_length: int = HISTORY_LENGTH,
        seed: Optional[int] = None,
        frame_rate_hz: float = 60.0,
    ):
        """
        Initialize console.

        The signal field is computed here, so malformed room geometry
        fails construction instead of the first frame.

        Args:
            room: Floor plan (default apartment if None)
            sensitivity: Initial sensitivity (0-100)
            rng: Random source shared by the disturbance engine
            event_log: Log sink (a new EventLog if None)
            sweep_period_s: Sweep rotation period [s]
            tick_period_s: Disturbance tick period [s]
            buffer_shape: Persistence buffer (rows, cols)
            history_length: Signal quality samples kept by the engine
            seed: Seed for the default random source (ignored when rng is given)
            frame_rate_hz: Target animation frame rate, kept for hosts and export
        """
        self.room = room or create_default_room()
        self.event_log = event_log or EventLog()
        self.seed = seed
        self.frame_rate_hz = frame_rate_hz
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        self._field = self.room.signal_field
        self._zones = self.room.zone_readouts()

        self.disturbance = DisturbanceEngine(
            sensitivity=sensitivity,
            emit=self.event_log.emit,
            rng=self.rng,
            history_length=history_length,
            tick_period_s=tick_period_s,
        )
        self.clock = SonarAnimationClock.for_room(
            self.room, sweep_period_s=sweep_period_s, buffer_shape=buffer_shape
        )
        self.markers = DetectionMarkerTracker()
        self.timer = SimulatedTimer(tick_period_s, self._on_disturbance_tick)

        self.events: Deque[DisturbanceEvent] = deque(maxlen=EVENT_HISTORY_LENGTH)
        self.event_count = 0
        self._pending: List[DisturbanceEvent] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the animation clock."""
        if not self.clock.running:
            self.clock.start()
            self.event_log.emit("NET-WATCHER scanner core online", Severity.SYSTEM)

    def stop(self) -> None:
        """Stop scanning and cancel frame scheduling."""
        self.set_scanning(False)
        self.clock.stop()

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def set_scanning(self, scanning: bool) -> None:
        if scanning and not self.disturbance.is_active:
            self.disturbance.set_scanning(True)
            self.timer.start()
            self.event_log.emit("Scan engine started", Severity.SUCCESS)
        elif not scanning and self.disturbance.is_active:
            self.timer.stop()
            self.disturbance.set_scanning(False)
            self.markers.clear()
            self.event_log.emit("Scan engine stopped", Severity.WARNING)

    def set_sensitivity(self, sensitivity: float) -> None:
        self.disturbance.set_sensitivity(sensitivity)

    def trigger_manual_event(self) -> Optional[DisturbanceEvent]:
        event = self.disturbance.trigger_manual_event()
        if event is not None:
            self._record(event)
        return event

    @property
    def scanning(self) -> bool:
        return self.disturbance.is_active

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def step(self, dt: float) -> List[DisturbanceEvent]:
        """
        Advance one animation frame.

        Args:
            dt: Frame interval [s]

        Returns:
            Disturbance events fired during the frame
        """
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")

        self._pending = []
        self.timer.advance(dt)
        self.clock.tick(dt)
        self.markers.tick()
        return self._pending

    def run(self, duration_s: float, dt: float = 1.0 / 60.0) -> List[DisturbanceEvent]:
        """Step for duration_s and return every event fired."""
        fired = []
        for _ in range(int(round(duration_s / dt))):
            fired.extend(self.step(dt))
        return fired

    def _on_disturbance_tick(self) -> None:
        event = self.disturbance.tick()
        if event is not None:
            self._record(event)
            self._pending.append(event)

    def _record(self, event: DisturbanceEvent) -> None:
        self.events.append(event)
        self.event_count += 1
        if event.marker is not None:
            self.markers.add(event.marker)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @property
    def zone_readouts(self) -> Dict[str, float]:
        return dict(self._zones)

    def snapshot(self) -> FrameSnapshot:
        clock = self.clock.snapshot()
        return FrameSnapshot(
            time=clock.now,
            scanning=self.scanning,
            signal_field=self._field.grid,
            sweep=clock.sweep,
            echoes=clock.echoes,
            pings=clock.pings,
            glows=clock.glows,
            persistence=clock.persistence,
            disturbance=self.disturbance.snapshot(),
            markers=self.markers.snapshot(),
            zones=dict(self._zones),
        )
