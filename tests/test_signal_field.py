"""
NET-WATCHER Signal Field Test Suite

Test ID | Description                          | Reference                 | Tolerance
--------|--------------------------------------|---------------------------|------------
1       | Empty room decays with distance      | raw = 1 / d^1.75          | Strict
2       | Wall shadow scales raw intensity     | raw *= 1 - a * 0.88       | 1e-12 rel
3       | Normalized peak is exactly 1.0       | grid / max                | Exact
4       | Normalization is idempotent          | normalize(normalize(g))   | Exact
5       | Obstacle losses compound             | product of factors        | 1e-12 rel
6       | Slab test geometry                   | Ray-AABB intersection     | Exact
7       | Zone aggregation window              | 11 x 11 clipped mean      | 1e-12
8       | Geometry errors abort construction   | ValueError                | -
"""

import os
import sys

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from netwatcher.physics.constants import MIN_EMITTER_DISTANCE_M, OBSTACLE_LOSS_SCALE
from netwatcher.physics.signal_field import (
    SignalField,
    compute_field,
    compute_raw_field,
    normalize_field,
    segment_intersects_box,
    validate_inverse_power_falloff,
    validate_obstacle_shadowing,
)
from netwatcher.simulation.objects import Obstacle, Room, Zone, create_default_room

# =============================================================================
# TEST 1: Inverse power falloff
# =============================================================================


class TestFalloff:
    """Obstacle-free fields strictly decrease with distance from the emitter."""

    def test_validation_passes(self):
        result = validate_inverse_power_falloff()
        assert result["validation"]["is_valid"]

    @pytest.mark.parametrize("emitter", [(1.0, 1.0), (5.0, 4.0), (9.5, 7.2)])
    def test_monotonic_for_any_emitter(self, emitter):
        field = compute_field(emitter, [], 40, 32, 10.0, 8.0)
        cw, ch = field.cell_size
        gy, gx = np.indices(field.grid.shape)
        d = np.hypot((gx + 0.5) * cw - emitter[0], (gy + 0.5) * ch - emitter[1])

        mask = d > MIN_EMITTER_DISTANCE_M
        order = np.argsort(d[mask], kind="stable")
        d_sorted = d[mask][order]
        v_sorted = field.grid[mask][order]

        distinct = np.diff(d_sorted) > 1e-9
        assert np.all(np.diff(v_sorted)[distinct] < 0)

    def test_min_distance_clamp(self):
        """Cells closer than the clamp share the peak value."""
        # Emitter on the shared corner of four cells, all 0.177 m away
        field = compute_field((5.0, 4.0), [], 40, 32, 10.0, 8.0)
        assert field.grid[15, 19] == 1.0
        assert field.grid[16, 20] == 1.0


# =============================================================================
# TEST 2: Obstacle shadowing
# =============================================================================


class TestShadowing:
    """A wall on the line of sight scales raw intensity by (1 - a * 0.88)."""

    def test_validation_passes(self):
        result = validate_obstacle_shadowing(attenuation=0.7)
        assert result["validation"]["is_valid"]

    @pytest.mark.parametrize("attenuation", [0.0, 0.25, 0.75, 1.0])
    def test_blocked_cells_bounded(self, attenuation):
        wall = Obstacle(4.0, 0.0, 0.2, 8.0, attenuation)
        open_room = compute_raw_field((2.0, 4.0), [], 10, 8, 10.0, 8.0)
        walled = compute_raw_field((2.0, 4.0), [wall], 10, 8, 10.0, 8.0)

        factor = 1.0 - attenuation * OBSTACLE_LOSS_SCALE
        behind = walled[:, 5:] / open_room[:, 5:]
        assert np.all(behind <= factor + 1e-12)

        # Cells in front of the wall are untouched
        np.testing.assert_array_equal(walled[:, :4], open_room[:, :4])

    def test_losses_compound(self):
        walls = [Obstacle(4.0, 0.0, 0.2, 8.0, 0.5), Obstacle(6.0, 0.0, 0.2, 8.0, 0.3)]
        open_room = compute_raw_field((2.0, 4.0), [], 10, 8, 10.0, 8.0)
        walled = compute_raw_field((2.0, 4.0), walls, 10, 8, 10.0, 8.0)

        expected = (1 - 0.5 * OBSTACLE_LOSS_SCALE) * (1 - 0.3 * OBSTACLE_LOSS_SCALE)
        np.testing.assert_allclose(walled[:, 8] / open_room[:, 8], expected, rtol=1e-12)

    def test_order_independent(self):
        room = create_default_room()
        forward = compute_field(room.emitter, room.obstacles, 30, 24, 10.0, 8.0)
        backward = compute_field(room.emitter, room.obstacles[::-1], 30, 24, 10.0, 8.0)
        np.testing.assert_allclose(forward.grid, backward.grid, rtol=1e-12)


# =============================================================================
# TEST 3-4: Normalization
# =============================================================================


class TestNormalization:
    def test_peak_is_exactly_one(self):
        field = create_default_room().signal_field
        assert field.grid.max() == 1.0
        assert field.grid.min() > 0.0

    def test_idempotent(self):
        field = create_default_room().signal_field
        np.testing.assert_array_equal(normalize_field(field.grid), field.grid)

    def test_rejects_empty_intensity(self):
        with pytest.raises(ValueError):
            normalize_field(np.zeros((4, 4)))

    def test_grid_is_read_only(self):
        field = create_default_room().signal_field
        with pytest.raises(ValueError):
            field.grid[0, 0] = 0.5


# =============================================================================
# TEST 6: Slab test
# =============================================================================


class TestSegmentIntersection:
    box = Obstacle(2.0, 2.0, 1.0, 1.0, 0.5)

    def test_crossing(self):
        assert segment_intersects_box((0.0, 0.0), (4.0, 4.0), self.box)

    def test_miss(self):
        assert not segment_intersects_box((0.0, 0.0), (4.0, 1.0), self.box)

    def test_ends_before_box(self):
        assert not segment_intersects_box((0.0, 2.5), (1.5, 2.5), self.box)

    def test_ends_inside_box(self):
        assert segment_intersects_box((0.0, 2.5), (2.5, 2.5), self.box)

    def test_vertical_segment(self):
        assert segment_intersects_box((2.5, 0.0), (2.5, 5.0), self.box)
        assert not segment_intersects_box((1.5, 0.0), (1.5, 5.0), self.box)


# =============================================================================
# TEST 7: Zone aggregation
# =============================================================================


class TestZoneQuality:
    def test_corner_window_is_clipped(self):
        field = compute_field((5.0, 4.0), [], 40, 32, 10.0, 8.0)
        expected = field.grid[0:6, 0:6].mean() * 100.0
        assert field.zone_quality(0.0, 0.0) == pytest.approx(expected, abs=1e-12)

    def test_interior_window(self):
        field = compute_field((5.0, 4.0), [], 40, 32, 10.0, 8.0)
        gx, gy = field.cell_index(5.0, 4.0)
        expected = field.grid[gy - 5 : gy + 6, gx - 5 : gx + 6].mean() * 100.0
        assert field.zone_quality(5.0, 4.0) == pytest.approx(expected, abs=1e-12)

    def test_quality_in_percent_range(self):
        readouts = create_default_room().zone_readouts()
        assert set(readouts) == {"Living room", "Dining", "Kitchen", "Bedroom"}
        for quality in readouts.values():
            assert 0.0 < quality <= 100.0

    def test_near_zone_beats_far_zone(self):
        readouts = create_default_room().zone_readouts()
        assert readouts["Living room"] > readouts["Bedroom"]

    def test_cell_center_roundtrip(self):
        field = compute_field((5.0, 4.0), [], 40, 32, 10.0, 8.0)
        x, y = field.cell_center(7, 3)
        assert field.cell_index(x, y) == (7, 3)


# =============================================================================
# TEST 8: Geometry errors
# =============================================================================


class TestGeometryErrors:
    def test_zero_size_obstacle(self):
        with pytest.raises(ValueError):
            Obstacle(1.0, 1.0, 0.0, 1.0, 0.5)

    def test_attenuation_out_of_range(self):
        with pytest.raises(ValueError):
            Obstacle(1.0, 1.0, 1.0, 1.0, 1.5)

    def test_non_finite_geometry(self):
        with pytest.raises(ValueError):
            Obstacle(float("nan"), 1.0, 1.0, 1.0, 0.5)

    def test_emitter_outside_room(self):
        with pytest.raises(ValueError):
            Room(10.0, 8.0, emitter=(11.0, 4.0))

    def test_empty_grid(self):
        with pytest.raises(ValueError):
            compute_raw_field((1.0, 1.0), [], 0, 10, 10.0, 8.0)


class TestRoom:
    def test_field_computed_once(self):
        room = create_default_room()
        assert room.signal_field is room.signal_field

    def test_default_grid_shape(self):
        field = create_default_room().signal_field
        assert isinstance(field, SignalField)
        assert field.grid.shape == (48, 60)

    def test_bearings_follow_declaration_order(self):
        room = Room(
            10.0,
            8.0,
            emitter=(5.0, 4.0),
            obstacles=[Obstacle(7.0, 3.5, 1.0, 1.0, 0.5), Obstacle(2.0, 3.5, 1.0, 1.0, 0.5)],
            zones=[Zone("Centre", 5.0, 4.0)],
        )
        bearings = room.bearings()
        assert bearings[0] == pytest.approx(0.0, abs=1e-12)
        assert bearings[1] == pytest.approx(np.pi)
