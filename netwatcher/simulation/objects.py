"""
Simulation Objects

Static floor plan objects: obstacles, the obstacle map and the room that
owns the emitter and the cached signal field.

Coordinate system: room meters, origin at the top-left corner of the floor
plan, x to the right, y downwards (grid row order). Bearings are measured
with atan2(dy, dx) and wrapped to [0, 2*pi).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from netwatcher.physics.constants import (
    DEFAULT_EMITTER_POSITION,
    DEFAULT_GRID_HEIGHT,
    DEFAULT_GRID_WIDTH,
    DEFAULT_ROOM_HEIGHT_M,
    DEFAULT_ROOM_WIDTH_M,
)
from netwatcher.physics.signal_field import SignalField, compute_field

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * np.pi


def wrap_angle(angle: float) -> float:
    """Wrap an angle to [0, 2*pi)."""
    wrapped = float(angle % TWO_PI)
    # -1e-17 % 2pi rounds to exactly 2pi
    return 0.0 if wrapped >= TWO_PI else wrapped


@dataclass(frozen=True)
class Obstacle:
    """
    Axis-aligned rectangular obstacle.

    Attributes:
        x: Left edge [m]
        y: Top edge [m]
        width: Extent along x [m]
        height: Extent along y [m]
        attenuation: Fractional signal loss in [0, 1]
        echo_color: (r, g, b) used for echoes and glows
        name: Display label
    """

    x: float
    y: float
    width: float
    height: float
    attenuation: float
    echo_color: Tuple[int, int, int] = (34, 211, 238)
    name: str = ""

    def __post_init__(self):
        if not np.isfinite([self.x, self.y, self.width, self.height]).all():
            raise ValueError(f"Obstacle '{self.name}' has non-finite geometry")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Obstacle '{self.name}' must have positive size, got {self.width}x{self.height}"
            )
        if not 0.0 <= self.attenuation <= 1.0:
            raise ValueError(
                f"Obstacle '{self.name}' attenuation must be in [0, 1], got {self.attenuation}"
            )
        if len(self.echo_color) != 3 or any(not 0 <= c <= 255 for c in self.echo_color):
            raise ValueError(f"Obstacle '{self.name}' echo_color must be an RGB triple")
        object.__setattr__(self, "echo_color", tuple(int(c) for c in self.echo_color))

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    def bearing_from(self, origin: Tuple[float, float]) -> float:
        """Angle from origin to the obstacle centre [rad], in [0, 2*pi)."""
        cx, cy = self.center
        return wrap_angle(np.arctan2(cy - origin[1], cx - origin[0]))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "x_m": self.x,
            "y_m": self.y,
            "width_m": self.width,
            "height_m": self.height,
            "attenuation": self.attenuation,
            "echo_color": list(self.echo_color),
        }


class ObstacleMap:
    """
    Immutable, ordered collection of obstacles.

    Declaration order is significant: it is the tie-break order for
    obstacles that share a bearing.
    """

    def __init__(self, obstacles: Sequence[Obstacle] = ()):
        self._obstacles: Tuple[Obstacle, ...] = tuple(obstacles)

    def __len__(self) -> int:
        return len(self._obstacles)

    def __iter__(self) -> Iterator[Obstacle]:
        return iter(self._obstacles)

    def __getitem__(self, index: int) -> Obstacle:
        return self._obstacles[index]

    @property
    def obstacles(self) -> Tuple[Obstacle, ...]:
        return self._obstacles

    def bearings(self, origin: Tuple[float, float]) -> np.ndarray:
        """Bearing of every obstacle centre from origin, in declaration order."""
        return np.array([obs.bearing_from(origin) for obs in self._obstacles], dtype=np.float64)

    def colors(self) -> List[Tuple[int, int, int]]:
        return [obs.echo_color for obs in self._obstacles]


@dataclass(frozen=True)
class Zone:
    """Named readout location on the floor plan [m]."""

    name: str
    x: float
    y: float


class Room:
    """
    Floor plan with emitter, obstacles and readout zones.

    Owns the signal field: it is computed on first access to
    `signal_field` and reused for the lifetime of the room. Geometry errors
    surface at construction, before anything is rendered.
    """

    def __init__(
        self,
        width_m: float = DEFAULT_ROOM_WIDTH_M,
        height_m: float = DEFAULT_ROOM_HEIGHT_M,
        emitter: Optional[Tuple[float, float]] = None,
        obstacles: Sequence[Obstacle] = (),
        zones: Sequence[Zone] = (),
        grid_width: int = DEFAULT_GRID_WIDTH,
        grid_height: int = DEFAULT_GRID_HEIGHT,
        name: str = "Room",
    ):
        """
        Initialize room.

        Args:
            width_m: Room width [m]
            height_m: Room height [m]
            emitter: Emitter position [m] (defaults to DEFAULT_EMITTER_POSITION
                scaled to the room)
            obstacles: Obstacles in declaration order
            zones: Named readout zones
            grid_width: Heatmap columns
            grid_height: Heatmap rows
            name: Room label
        """
        if width_m <= 0 or height_m <= 0:
            raise ValueError(f"Room size must be positive, got {width_m}x{height_m}")
        if grid_width <= 0 or grid_height <= 0:
            raise ValueError(f"Grid must be non-empty, got {grid_width}x{grid_height}")

        self.name = name
        self.width_m = float(width_m)
        self.height_m = float(height_m)
        self.grid_width = int(grid_width)
        self.grid_height = int(grid_height)

        if emitter is None:
            emitter = (
                DEFAULT_EMITTER_POSITION[0] * self.width_m,
                DEFAULT_EMITTER_POSITION[1] * self.height_m,
            )
        ex, ey = float(emitter[0]), float(emitter[1])
        if not (0.0 <= ex <= self.width_m and 0.0 <= ey <= self.height_m):
            raise ValueError(f"Emitter {emitter} lies outside the {width_m}x{height_m} m room")
        self.emitter: Tuple[float, float] = (ex, ey)

        self.obstacle_map = ObstacleMap(obstacles)
        self.zones: Tuple[Zone, ...] = tuple(zones)

        self._signal_field: Optional[SignalField] = None

    @property
    def obstacles(self) -> Tuple[Obstacle, ...]:
        return self.obstacle_map.obstacles

    @property
    def signal_field(self) -> SignalField:
        """Normalized signal field, computed once on first access."""
        if self._signal_field is None:
            logger.info(
                "Computing %dx%d signal field for '%s' (%d obstacles)",
                self.grid_width,
                self.grid_height,
                self.name,
                len(self.obstacle_map),
            )
            self._signal_field = compute_field(
                self.emitter,
                self.obstacles,
                self.grid_width,
                self.grid_height,
                self.width_m,
                self.height_m,
            )
        return self._signal_field

    def bearings(self) -> np.ndarray:
        """Obstacle bearings from the emitter [rad]."""
        return self.obstacle_map.bearings(self.emitter)

    def zone_readouts(self) -> Dict[str, float]:
        """Signal quality [%] per named zone."""
        sf = self.signal_field
        return {zone.name: sf.zone_quality(zone.x, zone.y) for zone in self.zones}

    def distance_to_emitter(self, x: float, y: float) -> float:
        return float(np.hypot(x - self.emitter[0], y - self.emitter[1]))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "width_m": self.width_m,
            "height_m": self.height_m,
            "grid": {"width": self.grid_width, "height": self.grid_height},
            "emitter": {"x_m": self.emitter[0], "y_m": self.emitter[1]},
            "obstacles": [obs.to_dict() for obs in self.obstacles],
            "zones": [{"name": z.name, "x_m": z.x, "y_m": z.y} for z in self.zones],
        }


def create_default_room() -> Room:
    """
    Create the default 10 x 8 m apartment layout.

    Router at 30 % / 50 % of the floor, one interior wall, furniture and
    four readout zones.
    """
    obstacles = [
        Obstacle(6.0, 0.0, 0.2, 3.2, 0.75, (148, 163, 184), "Interior wall"),
        Obstacle(6.0, 4.8, 0.2, 3.2, 0.75, (148, 163, 184), "Interior wall (south)"),
        Obstacle(1.0, 6.2, 2.2, 0.9, 0.35, (251, 191, 36), "Sofa"),
        Obstacle(4.1, 1.2, 1.2, 0.8, 0.25, (167, 139, 250), "Table"),
        Obstacle(8.6, 0.4, 1.0, 0.6, 0.9, (248, 113, 113), "Refrigerator"),
        Obstacle(8.2, 6.4, 1.4, 0.6, 0.5, (56, 189, 248), "Wardrobe"),
    ]
    zones = [
        Zone("Living room", 2.5, 4.0),
        Zone("Dining", 4.7, 1.6),
        Zone("Kitchen", 8.5, 1.8),
        Zone("Bedroom", 8.2, 5.5),
    ]
    return Room(
        width_m=DEFAULT_ROOM_WIDTH_M,
        height_m=DEFAULT_ROOM_HEIGHT_M,
        obstacles=obstacles,
        zones=zones,
        name="Apartment",
    )
