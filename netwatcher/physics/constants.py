"""
Tunable Constants for the Scanner Simulation

The signal field is a stylized model chosen for visual contrast, not RF
accuracy. Distances are in meters, times in seconds, angles in radians.
"""

from typing import Final

# =============================================================================
# ROOM GEOMETRY
# =============================================================================

DEFAULT_ROOM_WIDTH_M: Final[float] = 10.0
"""Default floor plan width [m]"""

DEFAULT_ROOM_HEIGHT_M: Final[float] = 8.0
"""Default floor plan height [m]"""

DEFAULT_EMITTER_POSITION: Final[tuple] = (0.30, 0.50)
"""Default router position, normalized to the room size"""

DEFAULT_GRID_WIDTH: Final[int] = 60
"""Heatmap columns"""

DEFAULT_GRID_HEIGHT: Final[int] = 48
"""Heatmap rows"""

# =============================================================================
# SIGNAL FIELD
# =============================================================================

MIN_EMITTER_DISTANCE_M: Final[float] = 0.22
"""Distance clamp that keeps the falloff finite at the emitter [m]"""

FALLOFF_EXPONENT: Final[float] = 1.75
"""Inverse-power falloff exponent, picked empirically for heatmap contrast"""

OBSTACLE_LOSS_SCALE: Final[float] = 0.88
"""Fraction of an obstacle's attenuation applied per crossing"""

ZONE_WINDOW_CELLS: Final[int] = 11
"""Side of the square averaging window used for zone readouts [cells]"""

# =============================================================================
# DISTURBANCE ENGINE
# =============================================================================

DISTURBANCE_TICK_PERIOD_S: Final[float] = 0.05
"""Disturbance engine tick period [s] (20 Hz)"""

DISTURBANCE_MAX: Final[float] = 100.0

DEFAULT_SENSITIVITY: Final[float] = 65.0

SENSITIVITY_REFERENCE: Final[float] = 70.0
"""Sensitivity at which event impacts are applied unscaled"""

RECOVERY_BASE: Final[float] = 3.0
"""Per-tick recovery at zero sensitivity"""

RECOVERY_SENSITIVITY_SLOPE: Final[float] = 0.02

RECOVERY_MIN: Final[float] = 0.2
"""Per-tick recovery floor, reached at high sensitivity"""

FLICKER_PROBABILITY: Final[float] = 0.55
"""Roll below this selects the flicker tier"""

MODERATE_PROBABILITY_CEILING: Final[float] = 0.85
"""Roll below this (and above flicker) selects the moderate tier"""

EVENT_INTERVAL_RANGE_S: Final[tuple] = (4.0, 14.0)
"""Spacing between random events [s]"""

FIRST_EVENT_DELAY_RANGE_S: Final[tuple] = (3.0, 8.0)
"""Quiet period after scanning starts [s]"""

MANUAL_EVENT_BASE: Final[float] = 60.0
MANUAL_EVENT_SENSITIVITY_SLOPE: Final[float] = 0.4

SEVERITY_DANGER_IMPACT: Final[float] = 60.0
SEVERITY_WARNING_IMPACT: Final[float] = 30.0

HISTORY_LENGTH: Final[int] = 60
"""Signal quality samples kept for the history bars"""

QUALITY_BASELINE: Final[float] = 90.0
QUALITY_NOISE_MAX: Final[float] = 5.0
QUALITY_DISTURBANCE_SLOPE: Final[float] = 0.8

# =============================================================================
# SONAR ANIMATION
# =============================================================================

DEFAULT_SWEEP_PERIOD_S: Final[float] = 4.0
"""Time for one full sweep rotation [s]"""

ECHO_LIFETIME_S: Final[float] = 3.2

PING_INTERVAL_S: Final[float] = 3.5

PING_MAX_AGE_S: Final[float] = 5.5

PING_RING_COUNT: Final[int] = 3
"""Concentric rings drawn per ping"""

GLOW_DECAY_PER_TICK: Final[float] = 0.025

BEAM_WIDTH_RAD: Final[float] = 0.06
"""Angular width of the stamped beam wedge"""

PHOSPHOR_TIME_CONSTANT_S: Final[float] = 2.0
"""Minimum persistence decay time constant [s]"""

PERSISTENCE_VISIBLE_THRESHOLD: Final[float] = 0.05
"""Buffer intensity below which a trail no longer reads on screen"""

GLOW_STAMP_INTENSITY: Final[float] = 0.8

MAX_LIVE_ECHOES: Final[int] = 256
MAX_LIVE_PINGS: Final[int] = 4

# =============================================================================
# DETECTION MARKERS
# =============================================================================

MARKER_DECAY_PER_TICK: Final[float] = 0.003

MARKER_ALPHA_EPSILON: Final[float] = 1e-6

MARKER_HISTORY_LENGTH: Final[int] = 6

MARKER_RANK_DIVISOR: Final[float] = 7.0
"""History opacity is 1 - rank / MARKER_RANK_DIVISOR"""
