"""
Detection Markers

Presentational detection state for the floor plan:

    - Impact classification table (disturbance impact -> target type)
    - DetectionMarker with a continuously fading alpha
    - DetectionMarkerTracker: ages the live marker and keeps a short,
      newest-first history whose opacity depends on rank, not time

The tracker never removes markers; renderers stop drawing a marker once
its alpha reaches zero.
"""

from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Deque, List, Optional, Tuple

import numpy as np

from netwatcher.physics.constants import (
    MARKER_ALPHA_EPSILON,
    MARKER_DECAY_PER_TICK,
    MARKER_HISTORY_LENGTH,
    MARKER_RANK_DIVISOR,
)


class TargetType(Enum):
    """Detected target categories."""

    BIRD = "bird"
    RABBIT = "rabbit"
    ANIMAL = "animal"
    ADOLESCENT = "adolescent"
    ADULT = "adult"


@dataclass(frozen=True)
class TargetClass:
    """
    Classification table row.

    Attributes:
        target_type: Category
        label: Display label
        description: Short description for the detection panel
        height_range_m: Body height range [m]
        detection_height_range_m: Height of the disturbed zone (centre of mass) [m]
        impact_range: Half-open [lo, hi) disturbance impact range
    """

    target_type: TargetType
    label: str
    description: str
    height_range_m: Tuple[float, float]
    detection_height_range_m: Tuple[float, float]
    impact_range: Tuple[float, float]


TARGET_CLASSES: Tuple[TargetClass, ...] = (
    TargetClass(TargetType.BIRD, "Bird", "Small flyer", (0.10, 0.35), (0.05, 0.30), (0.0, 15.0)),
    TargetClass(TargetType.RABBIT, "Rabbit", "Small mammal", (0.20, 0.45), (0.08, 0.25), (15.0, 25.0)),
    TargetClass(TargetType.ANIMAL, "Small animal", "Dog / Cat", (0.30, 0.60), (0.10, 0.40), (25.0, 39.0)),
    TargetClass(
        TargetType.ADOLESCENT, "Adolescent", "Youth 12-17", (1.30, 1.62), (0.65, 1.20), (39.0, 63.0)
    ),
    TargetClass(TargetType.ADULT, "Adult", "Grown person", (1.63, 1.92), (0.90, 1.55), (63.0, 100.01)),
)

# Marker colors per type (RGB)
TYPE_COLORS = {
    TargetType.BIRD: (56, 189, 248),
    TargetType.RABBIT: (167, 139, 250),
    TargetType.ANIMAL: (251, 191, 36),
    TargetType.ADOLESCENT: (251, 146, 60),
    TargetType.ADULT: (248, 113, 113),
}


@dataclass(frozen=True)
class MarkerMetrics:
    """Measured target metrics."""

    height_m: float
    distance_m: float
    confidence_pct: float
    detection_height_m: float = 0.0


@dataclass
class DetectionMarker:
    """
    Detection marker on the floor plan.

    Attributes:
        target_type: Detected category
        x: Normalized X position (0..1)
        y: Normalized Y position (0..1)
        metrics: Height, distance and confidence
        alpha: Current opacity (1 = fresh, 0 = expired)
        label: Display label
    """

    target_type: TargetType
    x: float
    y: float
    metrics: MarkerMetrics
    alpha: float = 1.0
    label: str = ""

    def __post_init__(self):
        self.target_type = TargetType(self.target_type)
        self.alpha = float(np.clip(self.alpha, 0.0, 1.0))
        if not self.label:
            self.label = self.target_type.value.capitalize()

    @property
    def expired(self) -> bool:
        return self.alpha <= MARKER_ALPHA_EPSILON

    @property
    def color(self) -> Tuple[int, int, int]:
        return TYPE_COLORS[self.target_type]

    def describe(self) -> str:
        """One-line summary used in event log messages."""
        m = self.metrics
        return (
            f"{self.label} {m.height_m:.2f}m · det. {m.detection_height_m:.2f}m · "
            f"{m.distance_m:.1f}m from router"
        )


def find_target_class(impact: float) -> Optional[TargetClass]:
    """Classification row whose impact range holds impact, or None."""
    for target_class in TARGET_CLASSES:
        lo, hi = target_class.impact_range
        if lo <= impact < hi:
            return target_class
    return None


def classify_impact(impact: float, rng: np.random.Generator) -> Optional[DetectionMarker]:
    """
    Turn a disturbance impact into a randomized detection marker.

    Distance from the router spans 1.2-14 m, confidence 62-94 %, and the
    position stays inside the central part of the floor plan.

    Args:
        impact: Disturbance impact (0-100)
        rng: Random source

    Returns:
        DetectionMarker, or None if impact is outside the table
    """
    target_class = find_target_class(impact)
    if target_class is None:
        return None

    h_lo, h_hi = target_class.height_range_m
    d_lo, d_hi = target_class.detection_height_range_m
    metrics = MarkerMetrics(
        height_m=round(h_lo + rng.random() * (h_hi - h_lo), 2),
        detection_height_m=round(d_lo + rng.random() * (d_hi - d_lo), 2),
        distance_m=round(1.2 + rng.random() * 12.8, 1),
        confidence_pct=float(62 + rng.integers(0, 33)),
    )
    return DetectionMarker(
        target_type=target_class.target_type,
        x=0.15 + rng.random() * 0.70,
        y=0.15 + rng.random() * 0.60,
        metrics=metrics,
        label=target_class.label,
    )


class DetectionMarkerTracker:
    """
    Ages the live detection marker and keeps a rank-faded history.

    The live marker fades linearly by `decay_rate` per tick. History
    entries are drawn with opacity 1 - rank / 7 regardless of age.
    """

    def __init__(
        self,
        decay_rate: float = MARKER_DECAY_PER_TICK,
        history_length: int = MARKER_HISTORY_LENGTH,
    ):
        if decay_rate <= 0:
            raise ValueError(f"decay_rate must be positive, got {decay_rate}")
        self.decay_rate = decay_rate
        self._live: Optional[DetectionMarker] = None
        self._history: Deque[DetectionMarker] = deque(maxlen=history_length)

    def add(self, marker: DetectionMarker) -> None:
        """
        Make marker the live marker and push a copy onto the history.

        The marker keeps its own alpha (1.0 for a fresh marker). History
        entries are copies, so fading the live marker leaves them untouched.
        """
        self._live = marker
        self._history.appendleft(replace(marker))

    def tick(self) -> None:
        """Fade the live marker by one step, floored at zero."""
        if self._live is None:
            return
        alpha = self._live.alpha - self.decay_rate
        self._live.alpha = 0.0 if alpha <= MARKER_ALPHA_EPSILON else alpha

    def clear(self) -> None:
        self._live = None
        self._history.clear()

    @property
    def live(self) -> Optional[DetectionMarker]:
        return self._live

    @property
    def history(self) -> Tuple[DetectionMarker, ...]:
        """Newest first."""
        return tuple(self._history)

    def ranked_history(self) -> List[Tuple[DetectionMarker, float]]:
        """History entries paired with their rank opacity."""
        return [
            (marker, 1.0 - rank / MARKER_RANK_DIVISOR) for rank, marker in enumerate(self._history)
        ]

    def snapshot(self) -> "MarkerSnapshot":
        """Copies of the live marker and history for renderers."""
        return MarkerSnapshot(
            live=replace(self._live) if self._live is not None else None,
            history=[(replace(m), opacity) for m, opacity in self.ranked_history()],
        )


@dataclass
class MarkerSnapshot:
    """Read-only view of tracker state for one frame."""

    live: Optional[DetectionMarker] = None
    history: List[Tuple[DetectionMarker, float]] = field(default_factory=list)
