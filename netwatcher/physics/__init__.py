"""
NET-WATCHER Physics Package

Stylized signal propagation for the floor plan heatmap.

Modules:
    - constants: Tunable simulation constants
    - signal_field: Ray-cast signal field and zone aggregation
"""

from .constants import (
    FALLOFF_EXPONENT,
    MIN_EMITTER_DISTANCE_M,
    OBSTACLE_LOSS_SCALE,
    ZONE_WINDOW_CELLS,
)
from .signal_field import (
    SignalField,
    compute_field,
    compute_raw_field,
    normalize_field,
    segment_intersects_box,
)

__all__ = [
    "FALLOFF_EXPONENT",
    "MIN_EMITTER_DISTANCE_M",
    "OBSTACLE_LOSS_SCALE",
    "ZONE_WINDOW_CELLS",
    "SignalField",
    "compute_field",
    "compute_raw_field",
    "normalize_field",
    "segment_intersects_box",
]
