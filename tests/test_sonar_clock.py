"""
NET-WATCHER Sonar Animation Clock Test Suite

Test ID | Description                                | Reference                  | Tolerance
--------|--------------------------------------------|----------------------------|----------
1       | One lap crosses every bearing exactly once | Swept arc (prev, new]      | Exact
2       | Arc >= 2*pi crosses each bearing once      | Large dt                   | Exact
3       | Shared bearings: declaration order         | Stable tie-break           | Exact
4       | Echo / ping lifetimes respected            | 3.2 s / 5.5 s              | Exact
5       | Ping cadence                               | 3.5 s interval             | Exact
6       | Glow decay and re-trigger                  | -0.025 per tick, floor 0   | 1e-12
7       | Persistence visible after one rotation     | exp(-T / tau) >= 0.05      | -
8       | Scheduler contract                         | start / stop / tick(dt)    | Exact
"""

import math
import os
import sys

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from netwatcher.physics.constants import (
    ECHO_LIFETIME_S,
    PERSISTENCE_VISIBLE_THRESHOLD,
    PING_INTERVAL_S,
    PING_MAX_AGE_S,
)
from netwatcher.simulation.objects import TWO_PI, Obstacle, create_default_room
from netwatcher.simulation.sonar_clock import (
    PingWave,
    SonarAnimationClock,
    bearings_in_arc,
    persistence_time_constant,
)

EMITTER = (5.0, 4.0)
ROOM_SIZE = (10.0, 8.0)

# Bearings pi/4, pi and 3*pi/2 from the emitter
OBSTACLES = [
    Obstacle(6.5, 5.5, 0.5, 0.5, 0.5, name="south-east"),
    Obstacle(1.0, 3.75, 0.5, 0.5, 0.5, name="west"),
    Obstacle(4.75, 1.0, 0.5, 0.5, 0.5, name="north"),
]


@pytest.fixture
def clock():
    c = SonarAnimationClock(EMITTER, OBSTACLES, ROOM_SIZE, sweep_period_s=4.0, buffer_shape=(32, 40))
    c.start()
    return c


# =============================================================================
# TEST 1-3: Bearing crossings
# =============================================================================


class TestCrossings:
    def test_one_lap_one_echo_per_obstacle(self, clock):
        dt = 4.0 / 200
        spawned = []
        # One step past a full turn so float drift cannot leave the lap open
        for _ in range(201):
            spawned.extend(clock.tick(dt))

        assert clock.sweep.lap_count == 1
        assert sorted(e.obstacle_index for e in spawned) == [0, 1, 2]
        assert clock.echoes_spawned == 3

    def test_echo_carries_obstacle_metadata(self, clock):
        spawned = []
        for _ in range(60):
            spawned.extend(clock.tick(1 / 60))
        # pi/4 is reached after 0.5 s
        echo = spawned[0]
        assert echo.obstacle_index == 0
        assert (echo.origin_x, echo.origin_y) == OBSTACLES[0].center
        assert echo.color_rgb == OBSTACLES[0].echo_color

    def test_full_turn_in_one_tick(self, clock):
        spawned = clock.tick(10.0)
        # 10 s at 4 s per turn = 2.5 turns
        assert [e.obstacle_index for e in spawned] == [0, 1, 2]
        assert clock.sweep.lap_count == 2
        assert clock.sweep.angle == pytest.approx(np.pi)

    def test_shared_bearing_declaration_order(self):
        same_centre = [
            Obstacle(6.25, 5.25, 1.0, 1.0, 0.3, name="large"),
            Obstacle(6.5, 5.5, 0.5, 0.5, 0.3, name="small"),
        ]
        c = SonarAnimationClock(EMITTER, same_centre, ROOM_SIZE, buffer_shape=(16, 20))
        c.start()
        spawned = c.tick(1.0)
        assert [e.obstacle_index for e in spawned] == [0, 1]

    def test_arc_wraps_at_zero(self):
        bearings = np.array([0.05, 6.2, 3.0])
        mask = bearings_in_arc(6.1, 0.1, 0.2832, bearings)
        assert mask.tolist() == [True, True, False]

    def test_arc_is_half_open(self):
        bearings = np.array([1.0, 2.0])
        mask = bearings_in_arc(1.0, 2.0, 1.0, bearings)
        assert mask.tolist() == [False, True]

    def test_zero_dt_crosses_nothing(self, clock):
        assert clock.tick(0.0) == []
        assert clock.sweep.lap_count == 0


# =============================================================================
# TEST 4-5: Echo and ping lifetimes
# =============================================================================


class TestLifetimes:
    def test_no_stale_effects_after_tick(self, clock):
        for _ in range(60 * 20):
            clock.tick(1 / 60)
            for echo in clock.echoes:
                assert echo.age(clock.now) <= ECHO_LIFETIME_S
            for ping in clock.pings:
                assert ping.age(clock.now) <= PING_MAX_AGE_S

    def test_echo_pruned_after_lifetime(self, clock):
        clock.tick(0.6)
        assert len(clock.echoes) == 1
        # Echo 0 expires at t = 3.8 s; the beam returns to pi/4 at t = 4.5 s
        clock.tick(3.25)
        assert [e.obstacle_index for e in clock.echoes] == [1, 2]

    def test_first_tick_spawns_ping(self, clock):
        clock.tick(1 / 60)
        assert len(clock.pings) == 1

    def test_ping_cadence(self, clock):
        dt = 0.05
        starts = []
        for _ in range(int(12.0 / dt)):
            clock.tick(dt)
            newest = clock.pings[-1]
            if not starts or newest.start_time != starts[-1]:
                starts.append(newest.start_time)

        gaps = np.diff(starts)
        assert len(starts) >= 3
        assert np.all(gaps > PING_INTERVAL_S)
        assert np.all(gaps <= PING_INTERVAL_S + dt + 1e-9)

    def test_ring_phases(self):
        ping = PingWave(start_time=1.0)
        phases = ping.ring_phases(now=1.0, ring_count=3, max_age_s=5.5)
        assert phases == pytest.approx([0.0, 1 / 3, 2 / 3])
        assert all(0.0 <= p < 1.0 for p in ping.ring_phases(now=6.0))


# =============================================================================
# TEST 6: Glow
# =============================================================================


class TestGlow:
    def test_crossing_sets_full_glow(self, clock):
        clock.tick(0.6)
        assert clock.glows[0] == 1.0
        assert clock.glows[1] == 0.0

    def test_linear_decay_floored(self, clock):
        clock.tick(0.6)
        clock.tick(0.01)
        assert clock.glows[0] == pytest.approx(0.975, abs=1e-12)

        for _ in range(60):
            clock.tick(0.001)
        assert clock.glows[0] == 0.0

    def test_retrigger_resets_to_one(self, clock):
        clock.tick(0.6)
        for _ in range(10):
            clock.tick(0.001)
        assert clock.glows[0] < 1.0
        # Wraps past 0 and back over pi/4
        clock.tick(3.9)
        assert clock.glows[0] == 1.0


# =============================================================================
# TEST 7: Persistence
# =============================================================================


class TestPersistence:
    @pytest.mark.parametrize("period", [1.0, 4.0, 10.0, 30.0])
    def test_trail_outlives_one_rotation(self, period):
        tau = persistence_time_constant(period)
        assert math.exp(-period / tau) >= PERSISTENCE_VISIBLE_THRESHOLD

    def test_swept_wedge_is_stamped(self, clock):
        clock.tick(1.0)
        buffer = clock.snapshot().persistence
        assert buffer.max() == pytest.approx(1.0)
        assert buffer.shape == (32, 40)

    def test_buffer_fades(self, clock):
        clock.tick(0.6)
        before = clock.snapshot().persistence.max()
        clock.persistence.fade(2.0)
        assert clock.persistence.data.max() < before

    def test_snapshot_is_a_copy(self, clock):
        clock.tick(0.6)
        snap = clock.snapshot()
        snap.persistence[:] = 0.0
        assert clock.persistence.data.max() > 0.0


# =============================================================================
# TEST 8: Scheduler contract
# =============================================================================


class TestScheduler:
    def test_stopped_clock_does_not_advance(self):
        c = SonarAnimationClock.for_room(create_default_room())
        assert c.tick(1.0) == []
        assert c.now == 0.0

        c.start()
        c.tick(1.0)
        c.stop()
        c.tick(1.0)
        assert c.now == pytest.approx(1.0)

    def test_negative_dt_rejected(self, clock):
        with pytest.raises(ValueError):
            clock.tick(-0.01)

    def test_reset(self, clock):
        clock.tick(5.0)
        clock.reset()
        assert clock.now == 0.0
        assert clock.sweep.lap_count == 0
        assert clock.echoes == ()
        assert clock.running

    def test_angle_stays_wrapped(self, clock):
        for _ in range(1000):
            clock.tick(0.037)
            assert 0.0 <= clock.sweep.angle < TWO_PI

    def test_sweep_property_is_a_copy(self, clock):
        clock.tick(0.6)
        sweep = clock.sweep
        sweep.angle = 3.0
        assert clock.sweep.angle != 3.0

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            SonarAnimationClock(EMITTER, OBSTACLES, ROOM_SIZE, sweep_period_s=0.0)
