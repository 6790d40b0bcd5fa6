"""
Signal Field Model

Static 2D grid of signal strength over the floor plan, derived from a point
emitter and rectangular obstacles via line-of-sight attenuation.

Algorithm (per grid cell centre):
    1. distance = max(|cell - emitter|, MIN_EMITTER_DISTANCE_M)
    2. raw = 1 / distance ** FALLOFF_EXPONENT
    3. raw *= (1 - attenuation * OBSTACLE_LOSS_SCALE) for every obstacle
       crossed by the emitter -> cell segment (slab test)
    4. grid /= grid.max()

The model is stylized: the exponent and loss scale are tuned for heatmap
contrast, not RF accuracy.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

import numba
import numpy as np

from .constants import (
    FALLOFF_EXPONENT,
    MIN_EMITTER_DISTANCE_M,
    OBSTACLE_LOSS_SCALE,
    ZONE_WINDOW_CELLS,
)

# =============================================================================
# JIT KERNELS
# =============================================================================


@numba.jit(nopython=True, cache=True)
def _segment_hits_box(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    box_min_x: float,
    box_min_y: float,
    box_max_x: float,
    box_max_y: float,
) -> bool:
    """
    Slab test between the segment (x0, y0) -> (x1, y1) and an AABB.

    The segment is parametrized as p(t) = p0 + t * (p1 - p0), t in [0, 1].
    Each axis clips the admissible t interval; the segment hits the box
    when the interval stays non-empty after both axes.
    """
    t_enter = 0.0
    t_exit = 1.0

    # X slab
    dx = x1 - x0
    if abs(dx) < 1e-12:
        if x0 < box_min_x or x0 > box_max_x:
            return False
    else:
        ta = (box_min_x - x0) / dx
        tb = (box_max_x - x0) / dx
        if ta > tb:
            ta, tb = tb, ta
        t_enter = max(t_enter, ta)
        t_exit = min(t_exit, tb)
        if t_enter > t_exit:
            return False

    # Y slab
    dy = y1 - y0
    if abs(dy) < 1e-12:
        if y0 < box_min_y or y0 > box_max_y:
            return False
    else:
        ta = (box_min_y - y0) / dy
        tb = (box_max_y - y0) / dy
        if ta > tb:
            ta, tb = tb, ta
        t_enter = max(t_enter, ta)
        t_exit = min(t_exit, tb)
        if t_enter > t_exit:
            return False

    return True


@numba.jit(nopython=True, cache=True)
def _raw_field_kernel(
    emitter_x: float,
    emitter_y: float,
    boxes: np.ndarray,
    attenuations: np.ndarray,
    grid_w: int,
    grid_h: int,
    room_w: float,
    room_h: float,
    min_distance: float,
    exponent: float,
    loss_scale: float,
) -> np.ndarray:
    """
    JIT-compiled ray casting over every grid cell.

    Args:
        boxes: (N, 4) array of [min_x, min_y, max_x, max_y] per obstacle [m]
        attenuations: (N,) attenuation factor per obstacle

    Returns:
        (grid_h, grid_w) array of un-normalized intensities
    """
    grid = np.zeros((grid_h, grid_w))
    n_boxes = boxes.shape[0]

    for gy in range(grid_h):
        py = (gy + 0.5) / grid_h * room_h
        for gx in range(grid_w):
            px = (gx + 0.5) / grid_w * room_w

            dx = px - emitter_x
            dy = py - emitter_y
            distance = max(np.sqrt(dx * dx + dy * dy), min_distance)
            raw = 1.0 / distance**exponent

            for k in range(n_boxes):
                if _segment_hits_box(
                    emitter_x,
                    emitter_y,
                    px,
                    py,
                    boxes[k, 0],
                    boxes[k, 1],
                    boxes[k, 2],
                    boxes[k, 3],
                ):
                    raw *= 1.0 - attenuations[k] * loss_scale

            grid[gy, gx] = raw

    return grid


def _pack_obstacles(obstacles: Sequence) -> Tuple[np.ndarray, np.ndarray]:
    """Flatten obstacle objects into the arrays the kernel expects."""
    boxes = np.zeros((len(obstacles), 4), dtype=np.float64)
    attenuations = np.zeros(len(obstacles), dtype=np.float64)
    for k, obs in enumerate(obstacles):
        boxes[k] = (obs.x, obs.y, obs.x + obs.width, obs.y + obs.height)
        attenuations[k] = obs.attenuation
    return boxes, attenuations


# =============================================================================
# SIGNAL FIELD
# =============================================================================


@dataclass(frozen=True)
class SignalField:
    """
    Normalized signal strength grid.

    Attributes:
        grid: (H, W) read-only array of intensities in [0, 1], row-major
        room_width_m: Room width covered by the grid [m]
        room_height_m: Room height covered by the grid [m]
        peak_raw: Maximum raw intensity before normalization
    """

    grid: np.ndarray
    room_width_m: float
    room_height_m: float
    peak_raw: float = 1.0

    def __post_init__(self):
        self.grid.setflags(write=False)

    @property
    def grid_width(self) -> int:
        return self.grid.shape[1]

    @property
    def grid_height(self) -> int:
        return self.grid.shape[0]

    @property
    def cell_size(self) -> Tuple[float, float]:
        """(width, height) of one cell [m]."""
        return (self.room_width_m / self.grid_width, self.room_height_m / self.grid_height)

    def cell_center(self, gx: int, gy: int) -> Tuple[float, float]:
        """Room coordinates [m] of a cell centre."""
        cw, ch = self.cell_size
        return ((gx + 0.5) * cw, (gy + 0.5) * ch)

    def cell_index(self, x: float, y: float) -> Tuple[int, int]:
        """Grid cell (gx, gy) containing a room point, clipped to the grid."""
        cw, ch = self.cell_size
        gx = int(np.clip(np.floor(x / cw), 0, self.grid_width - 1))
        gy = int(np.clip(np.floor(y / ch), 0, self.grid_height - 1))
        return gx, gy

    def sample(self, x: float, y: float) -> float:
        """Field value at a room point [m]."""
        gx, gy = self.cell_index(x, y)
        return float(self.grid[gy, gx])

    def zone_quality(self, x: float, y: float, window: int = ZONE_WINDOW_CELLS) -> float:
        """
        Average field around a zone coordinate as a 0-100 percentage.

        The window is centred on the cell containing (x, y) and clipped
        at the grid boundary.

        Args:
            x: Zone X coordinate [m]
            y: Zone Y coordinate [m]
            window: Window side [cells]

        Returns:
            Signal quality [%]
        """
        gx, gy = self.cell_index(x, y)
        half = window // 2
        x0, x1 = max(0, gx - half), min(self.grid_width, gx + half + 1)
        y0, y1 = max(0, gy - half), min(self.grid_height, gy + half + 1)
        return float(self.grid[y0:y1, x0:x1].mean() * 100.0)


def compute_raw_field(
    emitter: Tuple[float, float],
    obstacles: Sequence,
    grid_w: int,
    grid_h: int,
    room_w: float,
    room_h: float,
) -> np.ndarray:
    """
    Un-normalized intensity grid.

    Args:
        emitter: (x, y) emitter position [m]
        obstacles: Objects with x, y, width, height, attenuation attributes
        grid_w: Grid columns
        grid_h: Grid rows
        room_w: Room width [m]
        room_h: Room height [m]

    Returns:
        (grid_h, grid_w) array of raw intensities
    """
    if grid_w <= 0 or grid_h <= 0:
        raise ValueError(f"Grid must be non-empty, got {grid_w}x{grid_h}")
    if room_w <= 0 or room_h <= 0:
        raise ValueError(f"Room size must be positive, got {room_w}x{room_h}")

    boxes, attenuations = _pack_obstacles(obstacles)
    return _raw_field_kernel(
        float(emitter[0]),
        float(emitter[1]),
        boxes,
        attenuations,
        int(grid_w),
        int(grid_h),
        float(room_w),
        float(room_h),
        MIN_EMITTER_DISTANCE_M,
        FALLOFF_EXPONENT,
        OBSTACLE_LOSS_SCALE,
    )


def normalize_field(grid: np.ndarray) -> np.ndarray:
    """Scale a grid so its maximum is exactly 1.0. Idempotent."""
    peak = float(np.max(grid))
    if peak <= 0.0:
        raise ValueError("Cannot normalize a field without positive intensity")
    return np.asarray(grid, dtype=np.float64) / peak


def compute_field(
    emitter: Tuple[float, float],
    obstacles: Sequence,
    grid_w: int,
    grid_h: int,
    room_w: float,
    room_h: float,
) -> SignalField:
    """Compute the normalized signal field. See module docstring."""
    raw = compute_raw_field(emitter, obstacles, grid_w, grid_h, room_w, room_h)
    return SignalField(
        grid=normalize_field(raw),
        room_width_m=float(room_w),
        room_height_m=float(room_h),
        peak_raw=float(raw.max()),
    )


def segment_intersects_box(
    start: Tuple[float, float], end: Tuple[float, float], obstacle
) -> bool:
    """True if the segment start -> end crosses the obstacle rectangle."""
    return bool(
        _segment_hits_box(
            float(start[0]),
            float(start[1]),
            float(end[0]),
            float(end[1]),
            float(obstacle.x),
            float(obstacle.y),
            float(obstacle.x + obstacle.width),
            float(obstacle.y + obstacle.height),
        )
    )


# =============================================================================
# VALIDATION
# =============================================================================


def validate_inverse_power_falloff(room_w: float = 10.0, room_h: float = 8.0) -> dict:
    """
    Validate that an empty room field decays with distance from the emitter.

    Returns:
        Dict with validation results
    """
    emitter = (room_w * 0.3, room_h * 0.5)
    field = compute_field(emitter, [], 60, 48, room_w, room_h)

    gy, gx = np.indices(field.grid.shape)
    cw, ch = field.cell_size
    distances = np.hypot((gx + 0.5) * cw - emitter[0], (gy + 0.5) * ch - emitter[1])

    outside_clamp = distances > MIN_EMITTER_DISTANCE_M
    order = np.argsort(distances[outside_clamp], kind="stable")
    d_sorted = distances[outside_clamp][order]
    v_sorted = field.grid[outside_clamp][order]

    distinct = np.diff(d_sorted) > 1e-9
    decreasing = bool(np.all(np.diff(v_sorted)[distinct] < 0))

    return {
        "parameters": {"room_w": room_w, "room_h": room_h, "emitter": emitter},
        "computed_values": {
            "peak": float(field.grid.max()),
            "min": float(field.grid.min()),
        },
        "validation": {
            "is_valid": decreasing and field.grid.max() == 1.0,
            "reference": f"raw = 1 / d^{FALLOFF_EXPONENT}",
        },
    }


def validate_obstacle_shadowing(attenuation: float = 0.7) -> dict:
    """
    Validate that a wall between emitter and cell scales the raw intensity
    by (1 - attenuation * OBSTACLE_LOSS_SCALE).

    Returns:
        Dict with validation results
    """

    @dataclass
    class _Wall:
        x: float
        y: float
        width: float
        height: float
        attenuation: float

    wall = _Wall(x=4.0, y=0.0, width=0.2, height=8.0, attenuation=attenuation)
    emitter = (2.0, 4.0)

    open_room = compute_raw_field(emitter, [], 10, 8, 10.0, 8.0)
    walled = compute_raw_field(emitter, [wall], 10, 8, 10.0, 8.0)

    # Column 7 (x = 7.5 m) sits fully behind the wall
    ratio = walled[:, 7] / open_room[:, 7]
    expected = 1.0 - attenuation * OBSTACLE_LOSS_SCALE

    return {
        "parameters": {"attenuation": attenuation},
        "computed_values": {"ratio": ratio.tolist(), "expected": expected},
        "validation": {
            "is_valid": bool(np.allclose(ratio, expected)),
            "reference": "multiplicative per-obstacle loss",
        },
    }
