"""
Sonar Animation Clock

Per-frame scheduler behind the floor plan sweep display.

Each tick(dt), in order:
    1. Obstacle glow decay (linear, floored at 0)
    2. Echo / ping pruning by age
    3. Sweep advance, lap counting and bearing-crossing detection
       (crossings spawn echoes and re-trigger glows)
    4. Ping spawning on a fixed cadence
    5. Phosphor persistence buffer update (fade, then stamp)

Time only advances through tick(dt), so tests can drive the clock with
synthetic frame intervals. Echoes and pings are appended in time order and
pruned from the front of bounded deques; glows live in an array parallel
to the obstacle list.

Reference: the PPI scope sweep with phosphor persistence.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from netwatcher.physics.constants import (
    BEAM_WIDTH_RAD,
    DEFAULT_SWEEP_PERIOD_S,
    ECHO_LIFETIME_S,
    GLOW_DECAY_PER_TICK,
    GLOW_STAMP_INTENSITY,
    MAX_LIVE_ECHOES,
    MAX_LIVE_PINGS,
    PERSISTENCE_VISIBLE_THRESHOLD,
    PHOSPHOR_TIME_CONSTANT_S,
    PING_INTERVAL_S,
    PING_MAX_AGE_S,
    PING_RING_COUNT,
)

from .objects import TWO_PI, Obstacle, Room, wrap_angle

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SweepState:
    """
    Sweep beam state.

    Attributes:
        angle: Current beam angle [rad], in [0, 2*pi)
        lap_count: Completed rotations
        last_angle: Beam angle before the latest tick [rad]
    """

    angle: float = 0.0
    lap_count: int = 0
    last_angle: float = 0.0


@dataclass(frozen=True)
class EchoEffect:
    """Transient echo spawned when the sweep crosses an obstacle bearing."""

    origin_x: float
    origin_y: float
    start_time: float
    color_rgb: Tuple[int, int, int]
    obstacle_index: int = -1

    def age(self, now: float) -> float:
        return now - self.start_time


@dataclass(frozen=True)
class PingWave:
    """Periodic expanding ring set centred on the emitter."""

    start_time: float

    def age(self, now: float) -> float:
        return now - self.start_time

    def ring_phases(
        self, now: float, ring_count: int = PING_RING_COUNT, max_age_s: float = PING_MAX_AGE_S
    ) -> List[float]:
        """
        Phase in [0, 1) of each concentric ring (0 = just emitted).

        Rings are staggered by 1 / ring_count; radius grows and opacity
        falls with phase.
        """
        base = self.age(now) / max_age_s
        return [(base + i / ring_count) % 1.0 for i in range(ring_count)]


class EffectRing(Generic[T]):
    """
    Bounded, append-only collection of time-ordered effects.

    Entries are appended in start_time order, so expired entries are
    always at the front and pruning only pops from the left.
    """

    def __init__(self, capacity: int, start_time: Callable[[T], float]):
        self._items: Deque[T] = deque(maxlen=capacity)
        self._start_time = start_time

    def append(self, item: T) -> None:
        self._items.append(item)

    def prune(self, now: float, max_age_s: float) -> int:
        """Drop entries older than max_age_s. Returns the number dropped."""
        dropped = 0
        while self._items and now - self._start_time(self._items[0]) > max_age_s:
            self._items.popleft()
            dropped += 1
        return dropped

    @property
    def newest(self) -> Optional[T]:
        return self._items[-1] if self._items else None

    def snapshot(self) -> Tuple[T, ...]:
        return tuple(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))


def bearings_in_arc(
    previous: float, new: float, swept: float, bearings: np.ndarray
) -> np.ndarray:
    """
    Boolean mask of bearings inside the swept arc (previous, new].

    When the arc wraps past 0 it is split into (previous, 2*pi) and
    [0, new]. An arc of a full turn or more contains every bearing.
    """
    if swept <= 0.0:
        return np.zeros(len(bearings), dtype=bool)
    if swept >= TWO_PI:
        return np.ones(len(bearings), dtype=bool)
    if new >= previous:
        return (bearings > previous) & (bearings <= new)
    return (bearings > previous) | (bearings <= new)


def persistence_time_constant(sweep_period_s: float) -> float:
    """
    Decay time constant that keeps a stamped trail above the visibility
    threshold for at least one full rotation.
    """
    minimum = sweep_period_s / np.log(1.0 / PERSISTENCE_VISIBLE_THRESHOLD)
    return max(PHOSPHOR_TIME_CONSTANT_S, 1.05 * minimum)


class PersistenceBuffer:
    """
    Phosphor persistence accumulator in room coordinates.

    Each update multiplies previous content by exp(-dt / tau) and then
    stamps the beam wedge and obstacle glows (max-composited). Renderers
    composite it over the heatmap and under walls and furniture.
    """

    def __init__(
        self,
        shape: Tuple[int, int],
        room_size: Tuple[float, float],
        origin: Tuple[float, float],
        time_constant_s: float = PHOSPHOR_TIME_CONSTANT_S,
        obstacles: Sequence[Obstacle] = (),
    ):
        """
        Args:
            shape: (rows, cols) of the buffer
            room_size: (width, height) covered by the buffer [m]
            origin: Beam origin (emitter) [m]
            time_constant_s: Exponential fade time constant [s]
            obstacles: Obstacles whose glow is stamped into the buffer
        """
        if time_constant_s <= 0:
            raise ValueError(f"time_constant_s must be positive, got {time_constant_s}")

        rows, cols = shape
        self.time_constant_s = time_constant_s
        self.data = np.zeros((rows, cols), dtype=np.float32)

        cell_w = room_size[0] / cols
        cell_h = room_size[1] / rows
        xs = (np.arange(cols) + 0.5) * cell_w
        ys = (np.arange(rows) + 0.5) * cell_h
        cx, cy = np.meshgrid(xs, ys)
        self._cell_bearings = np.arctan2(cy - origin[1], cx - origin[0]) % TWO_PI

        self._glow_masks: List[np.ndarray] = []
        for obs in obstacles:
            mask = (
                (cx >= obs.x) & (cx <= obs.x + obs.width) & (cy >= obs.y) & (cy <= obs.y + obs.height)
            )
            if not mask.any():
                # Obstacle smaller than a cell: light the cell holding its centre
                ox, oy = obs.center
                col = min(cols - 1, max(0, int(ox / cell_w)))
                row = min(rows - 1, max(0, int(oy / cell_h)))
                mask[row, col] = True
            self._glow_masks.append(mask)

    def fade(self, dt: float) -> None:
        self.data *= np.float32(np.exp(-dt / self.time_constant_s))

    def stamp_wedge(
        self, end_angle: float, swept: float, beam_width: float, intensity: float = 1.0
    ) -> None:
        """Stamp cells whose bearing lies within [end - swept - width, end]."""
        lag = (end_angle - self._cell_bearings) % TWO_PI
        wedge = lag <= swept + beam_width
        self.data[wedge] = np.maximum(self.data[wedge], np.float32(intensity))

    def stamp_glows(self, glows: np.ndarray, intensity: float = GLOW_STAMP_INTENSITY) -> None:
        for mask, glow in zip(self._glow_masks, glows):
            if glow > 0.0:
                self.data[mask] = np.maximum(self.data[mask], np.float32(glow * intensity))

    def clear(self) -> None:
        self.data.fill(0.0)

    def snapshot(self) -> np.ndarray:
        return self.data.copy()


@dataclass(frozen=True)
class ClockSnapshot:
    """Copy of clock state handed to renderers once per frame."""

    now: float
    sweep: SweepState
    echoes: Tuple[EchoEffect, ...]
    pings: Tuple[PingWave, ...]
    glows: Tuple[float, ...]
    persistence: np.ndarray


class SonarAnimationClock:
    """
    Explicit frame scheduler for the sweep display.

    Usage:
        clock = SonarAnimationClock.for_room(room)
        clock.start()
        clock.tick(1 / 60)
        frame = clock.snapshot()
    """

    def __init__(
        self,
        emitter: Tuple[float, float],
        obstacles: Sequence[Obstacle],
        room_size: Tuple[float, float],
        sweep_period_s: float = DEFAULT_SWEEP_PERIOD_S,
        start_angle: float = 0.0,
        buffer_shape: Tuple[int, int] = (96, 120),
        echo_lifetime_s: float = ECHO_LIFETIME_S,
        ping_interval_s: float = PING_INTERVAL_S,
        ping_max_age_s: float = PING_MAX_AGE_S,
        glow_decay: float = GLOW_DECAY_PER_TICK,
        beam_width_rad: float = BEAM_WIDTH_RAD,
    ):
        """
        Initialize clock.

        Args:
            emitter: Sweep origin [m]
            obstacles: Obstacles in declaration order
            room_size: (width, height) [m]
            sweep_period_s: Time per full rotation [s]
            start_angle: Initial beam angle [rad]
            buffer_shape: Persistence buffer (rows, cols)
            echo_lifetime_s: Echo lifetime [s]
            ping_interval_s: Spacing between pings [s]
            ping_max_age_s: Ping lifetime [s]
            glow_decay: Glow intensity lost per tick
            beam_width_rad: Width of the stamped beam wedge [rad]
        """
        if sweep_period_s <= 0:
            raise ValueError(f"sweep_period_s must be positive, got {sweep_period_s}")

        self.emitter = (float(emitter[0]), float(emitter[1]))
        self.obstacles: Tuple[Obstacle, ...] = tuple(obstacles)
        self.sweep_period_s = sweep_period_s
        self.angular_velocity = TWO_PI / sweep_period_s
        self.echo_lifetime_s = echo_lifetime_s
        self.ping_interval_s = ping_interval_s
        self.ping_max_age_s = ping_max_age_s
        self.glow_decay = glow_decay
        self.beam_width_rad = beam_width_rad

        self._bearings = np.array(
            [obs.bearing_from(self.emitter) for obs in self.obstacles], dtype=np.float64
        )
        self._start_angle = wrap_angle(start_angle)
        self._buffer_shape = buffer_shape
        self._room_size = room_size

        self._running = False
        self._reset_state()

    @classmethod
    def for_room(cls, room: Room, **kwargs) -> "SonarAnimationClock":
        return cls(room.emitter, room.obstacles, (room.width_m, room.height_m), **kwargs)

    def _reset_state(self) -> None:
        self.now = 0.0
        self.tick_count = 0
        self.echoes_spawned = 0
        self._sweep = SweepState(angle=self._start_angle, last_angle=self._start_angle)
        self._glow = np.zeros(len(self.obstacles), dtype=np.float64)
        self._echoes: EffectRing[EchoEffect] = EffectRing(
            MAX_LIVE_ECHOES, lambda e: e.start_time
        )
        self._pings: EffectRing[PingWave] = EffectRing(MAX_LIVE_PINGS, lambda p: p.start_time)
        self.persistence = PersistenceBuffer(
            self._buffer_shape,
            self._room_size,
            self.emitter,
            time_constant_s=persistence_time_constant(self.sweep_period_s),
            obstacles=self.obstacles,
        )

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._running = True
        logger.debug("Sweep clock started at t=%.3f s", self.now)

    def stop(self) -> None:
        """Cancel frame scheduling. State is kept; tick() becomes a no-op."""
        self._running = False
        logger.debug("Sweep clock stopped at t=%.3f s", self.now)

    def reset(self) -> None:
        """Return to t = 0 with no effects; keeps the running flag."""
        self._reset_state()

    @property
    def running(self) -> bool:
        return self._running

    def tick(self, dt: float) -> List[EchoEffect]:
        """
        Advance the animation by dt seconds.

        Args:
            dt: Frame interval [s]

        Returns:
            Echoes spawned during this tick (declaration order)
        """
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")
        if not self._running:
            return []

        self.now += dt
        self.tick_count += 1

        # 1. Glow decay comes first so a same-tick crossing resets to 1.0
        np.maximum(self._glow - self.glow_decay, 0.0, out=self._glow)

        # 2. Prune before spawning
        self._echoes.prune(self.now, self.echo_lifetime_s)
        self._pings.prune(self.now, self.ping_max_age_s)

        # 3. Sweep and bearing crossings
        swept = self.angular_velocity * dt
        previous = self._sweep.angle
        total = previous + swept
        new_angle = wrap_angle(total)
        self._sweep.last_angle = previous
        self._sweep.angle = new_angle
        self._sweep.lap_count += int(total // TWO_PI)

        spawned = []
        crossed = bearings_in_arc(previous, new_angle, swept, self._bearings)
        for index in np.flatnonzero(crossed):
            obs = self.obstacles[index]
            cx, cy = obs.center
            echo = EchoEffect(cx, cy, self.now, obs.echo_color, int(index))
            self._glow[index] = 1.0
            self._echoes.append(echo)
            spawned.append(echo)
        self.echoes_spawned += len(spawned)

        # 4. Ping cadence
        newest = self._pings.newest
        if newest is None or newest.age(self.now) > self.ping_interval_s:
            self._pings.append(PingWave(self.now))

        # 5. Persistence: fade, then stamp
        self.persistence.fade(dt)
        self.persistence.stamp_wedge(new_angle, swept, self.beam_width_rad)
        self.persistence.stamp_glows(self._glow)

        return spawned

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def sweep(self) -> SweepState:
        return SweepState(self._sweep.angle, self._sweep.lap_count, self._sweep.last_angle)

    @property
    def bearings(self) -> np.ndarray:
        return self._bearings.copy()

    @property
    def persistence_shape(self) -> Tuple[int, int]:
        return tuple(self._buffer_shape)

    @property
    def echoes(self) -> Tuple[EchoEffect, ...]:
        return self._echoes.snapshot()

    @property
    def pings(self) -> Tuple[PingWave, ...]:
        return self._pings.snapshot()

    @property
    def glows(self) -> Tuple[float, ...]:
        return tuple(float(g) for g in self._glow)

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(
            now=self.now,
            sweep=self.sweep,
            echoes=self.echoes,
            pings=self.pings,
            glows=self.glows,
            persistence=self.persistence.snapshot(),
        )
