"""
Disturbance Engine

Scalar interference simulation behind the anomaly gauge and waveform.

State machine:
    IDLE   - scanning off, value pinned at 0
    ACTIVE - fixed-period tick loop (50 ms):
             1. natural recovery towards 0
             2. countdown to the next random event (flicker / moderate / alert)
             3. derived signal quality sample pushed into the history ring

The random source is injected so tests can force each tier. Any object with
numpy Generator's random(), uniform(lo, hi) and integers(lo, hi) works.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Optional, Tuple

import numpy as np

from netwatcher.io.event_log import EmitCallback, Severity
from netwatcher.physics.constants import (
    DEFAULT_SENSITIVITY,
    DISTURBANCE_MAX,
    DISTURBANCE_TICK_PERIOD_S,
    EVENT_INTERVAL_RANGE_S,
    FIRST_EVENT_DELAY_RANGE_S,
    FLICKER_PROBABILITY,
    HISTORY_LENGTH,
    MANUAL_EVENT_BASE,
    MANUAL_EVENT_SENSITIVITY_SLOPE,
    MODERATE_PROBABILITY_CEILING,
    QUALITY_BASELINE,
    QUALITY_DISTURBANCE_SLOPE,
    QUALITY_NOISE_MAX,
    RECOVERY_BASE,
    RECOVERY_MIN,
    RECOVERY_SENSITIVITY_SLOPE,
    SENSITIVITY_REFERENCE,
    SEVERITY_DANGER_IMPACT,
    SEVERITY_WARNING_IMPACT,
)

from .markers import DetectionMarker, classify_impact

logger = logging.getLogger(__name__)


class ScanMode(Enum):
    IDLE = "idle"
    ACTIVE = "active"


class EventTier(Enum):
    """Disturbance event tiers with their impact ranges."""

    FLICKER = "flicker"
    MODERATE = "moderate"
    ALERT = "alert"
    MANUAL = "manual"

    @property
    def impact_range(self) -> Tuple[float, float]:
        return _TIER_IMPACTS[self]


_TIER_IMPACTS = {
    EventTier.FLICKER: (10.0, 30.0),
    EventTier.MODERATE: (35.0, 60.0),
    EventTier.ALERT: (65.0, 95.0),
    EventTier.MANUAL: (MANUAL_EVENT_BASE, DISTURBANCE_MAX),
}


@dataclass(frozen=True)
class DisturbanceEvent:
    """
    Result of one random or manual event.

    Attributes:
        tier: Event tier
        impact: Raw impact drawn for the tier
        value: Disturbance value after the event
        severity: Log severity
        message: Log line emitted for the event
        marker: Detection classified from the impact (if any)
    """

    tier: EventTier
    impact: float
    value: float
    severity: Severity
    message: str
    marker: Optional[DetectionMarker] = None


@dataclass(frozen=True)
class DisturbanceState:
    """Snapshot of engine state."""

    value: float
    history: Tuple[float, ...]
    next_event_countdown: int
    mode: ScanMode = ScanMode.IDLE


def select_tier(roll: float) -> EventTier:
    """Map a uniform roll in [0, 1) onto the 55 / 30 / 15 % tier split."""
    if roll < FLICKER_PROBABILITY:
        return EventTier.FLICKER
    if roll < MODERATE_PROBABILITY_CEILING:
        return EventTier.MODERATE
    return EventTier.ALERT


def severity_for_impact(impact: float) -> Severity:
    if impact > SEVERITY_DANGER_IMPACT:
        return Severity.DANGER
    if impact > SEVERITY_WARNING_IMPACT:
        return Severity.WARNING
    return Severity.INFO


def recovery_per_tick(sensitivity: float) -> float:
    """Natural decay per tick. Higher sensitivity holds disturbance longer."""
    return max(RECOVERY_MIN, RECOVERY_BASE - sensitivity * RECOVERY_SENSITIVITY_SLOPE)


def manual_event_value(sensitivity: float) -> float:
    return min(DISTURBANCE_MAX, MANUAL_EVENT_BASE + sensitivity * MANUAL_EVENT_SENSITIVITY_SLOPE)


class DisturbanceEngine:
    """
    Environmental interference state machine.

    External code only reads `value` / `history` and calls the control
    methods; all mutation happens in `tick()` and `trigger_manual_event()`.
    """

    def __init__(
        self,
        sensitivity: float = DEFAULT_SENSITIVITY,
        emit: Optional[EmitCallback] = None,
        rng=None,
        history_length: int = HISTORY_LENGTH,
        tick_period_s: float = DISTURBANCE_TICK_PERIOD_S,
    ):
        """
        Initialize disturbance engine.

        Args:
            sensitivity: Sensor sensitivity (0-100, clamped)
            emit: Log sink called as emit(message, severity)
            rng: Random source (defaults to numpy.random.default_rng())
            history_length: Quality samples kept in the history ring
            tick_period_s: Tick period used to convert event spacing to ticks
        """
        if tick_period_s <= 0:
            raise ValueError(f"tick_period_s must be positive, got {tick_period_s}")
        if history_length <= 0:
            raise ValueError(f"history_length must be positive, got {history_length}")

        self.rng = rng if rng is not None else np.random.default_rng()
        self.emit = emit
        self.tick_period_s = tick_period_s
        self.history_length = history_length

        self._sensitivity = 0.0
        self.set_sensitivity(sensitivity)

        self._mode = ScanMode.IDLE
        self._value = 0.0
        self._history: Deque[float] = deque([0.0] * history_length, maxlen=history_length)
        self._countdown = 0
        self.tick_count = 0

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def set_scanning(self, scanning: bool) -> None:
        """
        Switch between IDLE and ACTIVE.

        IDLE -> ACTIVE schedules the first event 3-8 s out.
        ACTIVE -> IDLE zeroes value, history and countdown immediately.
        """
        if scanning and self._mode is ScanMode.IDLE:
            self._mode = ScanMode.ACTIVE
            self._countdown = self._draw_countdown(FIRST_EVENT_DELAY_RANGE_S)
            logger.debug("Disturbance engine active, first event in %d ticks", self._countdown)
        elif not scanning and self._mode is ScanMode.ACTIVE:
            self._mode = ScanMode.IDLE
            self._reset_state()
            logger.debug("Disturbance engine idle")

    def set_sensitivity(self, sensitivity: float) -> None:
        """Set sensitivity, clamped to [0, 100]."""
        self._sensitivity = float(np.clip(sensitivity, 0.0, 100.0))

    def trigger_manual_event(self) -> Optional[DisturbanceEvent]:
        """
        Force an immediate disturbance, bypassing the countdown.

        Returns:
            The event, or None while IDLE (no-op)
        """
        if self._mode is not ScanMode.ACTIVE:
            return None

        self._value = manual_event_value(self._sensitivity)
        marker = classify_impact(self._value, self.rng)
        detail = f" · {marker.describe()}" if marker is not None else ""
        message = f"MANUAL INTERFERENCE · level {self._value:.0f}{detail}"
        return self._publish(EventTier.MANUAL, self._value, Severity.DANGER, message, marker)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> Optional[DisturbanceEvent]:
        """
        Advance one tick period. No-op while IDLE.

        Returns:
            The random event fired on this tick, if any
        """
        if self._mode is not ScanMode.ACTIVE:
            return None

        self.tick_count += 1

        # 1. Recovery
        self._value = max(0.0, self._value - recovery_per_tick(self._sensitivity))

        # 2. Random event
        event = None
        self._countdown -= 1
        if self._countdown <= 0:
            event = self._fire_random_event()
            self._countdown = self._draw_countdown(EVENT_INTERVAL_RANGE_S)

        # 3. Signal quality sample
        noise = self.rng.random() * QUALITY_NOISE_MAX
        quality = QUALITY_BASELINE + noise - self._value * QUALITY_DISTURBANCE_SLOPE
        self._history.append(float(np.clip(quality, 0.0, 100.0)))

        return event

    def _fire_random_event(self) -> DisturbanceEvent:
        tier = select_tier(self.rng.random())
        lo, hi = tier.impact_range
        impact = float(self.rng.uniform(lo, hi))

        self._value = min(
            DISTURBANCE_MAX, self._value + impact * self._sensitivity / SENSITIVITY_REFERENCE
        )

        marker = classify_impact(impact, self.rng)
        detail = f" · {marker.describe()}" if marker is not None else ""
        message = f"{tier.value.capitalize()} interference · impact {impact:.0f}{detail}"
        return self._publish(tier, impact, severity_for_impact(impact), message, marker)

    def _publish(
        self,
        tier: EventTier,
        impact: float,
        severity: Severity,
        message: str,
        marker: Optional[DetectionMarker],
    ) -> DisturbanceEvent:
        if self.emit is not None:
            self.emit(message, severity.value)
        return DisturbanceEvent(
            tier=tier,
            impact=impact,
            value=self._value,
            severity=severity,
            message=message,
            marker=marker,
        )

    def _draw_countdown(self, range_s: Tuple[float, float]) -> int:
        lo = max(1, int(round(range_s[0] / self.tick_period_s)))
        hi = max(lo, int(round(range_s[1] / self.tick_period_s)))
        return int(self.rng.integers(lo, hi + 1))

    def _reset_state(self) -> None:
        self._value = 0.0
        self._history = deque([0.0] * self.history_length, maxlen=self.history_length)
        self._countdown = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def mode(self) -> ScanMode:
        return self._mode

    @property
    def is_active(self) -> bool:
        return self._mode is ScanMode.ACTIVE

    @property
    def sensitivity(self) -> float:
        return self._sensitivity

    @property
    def value(self) -> float:
        return self._value

    @property
    def history(self) -> Tuple[float, ...]:
        return tuple(self._history)

    @property
    def next_event_countdown(self) -> int:
        return self._countdown

    def snapshot(self) -> DisturbanceState:
        return DisturbanceState(
            value=self._value,
            history=tuple(self._history),
            next_event_countdown=self._countdown,
            mode=self._mode,
        )
