"""
NET-WATCHER Detection Marker Test Suite

Test ID | Description                              | Reference                | Tolerance
--------|------------------------------------------|--------------------------|----------
1       | Impact classification table              | Half-open impact ranges  | Exact
2       | Live marker alpha fades to zero          | -0.003 per tick          | 1e-9
3       | History capped and rank-faded            | 1 - rank / 7             | Exact
4       | Randomized metrics inside table ranges   | TargetClass ranges       | Exact
"""

import math
import os
import sys

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from netwatcher.physics.constants import MARKER_DECAY_PER_TICK, MARKER_HISTORY_LENGTH
from netwatcher.simulation.markers import (
    TARGET_CLASSES,
    DetectionMarker,
    DetectionMarkerTracker,
    MarkerMetrics,
    TargetType,
    classify_impact,
    find_target_class,
)


def make_marker(target_type=TargetType.ADULT):
    return DetectionMarker(target_type, 0.5, 0.5, MarkerMetrics(1.8, 4.0, 80.0, 1.2))


# =============================================================================
# TEST 1: Classification table
# =============================================================================


class TestClassification:
    @pytest.mark.parametrize(
        "impact, target_type",
        [
            (0.0, TargetType.BIRD),
            (14.99, TargetType.BIRD),
            (15.0, TargetType.RABBIT),
            (25.0, TargetType.ANIMAL),
            (39.0, TargetType.ADOLESCENT),
            (62.9, TargetType.ADOLESCENT),
            (63.0, TargetType.ADULT),
            (100.0, TargetType.ADULT),
        ],
    )
    def test_ranges(self, impact, target_type):
        assert find_target_class(impact).target_type is target_type

    @pytest.mark.parametrize("impact", [-1.0, 120.0])
    def test_outside_table(self, impact):
        assert find_target_class(impact) is None
        assert classify_impact(impact, np.random.default_rng(0)) is None

    def test_ranges_are_contiguous(self):
        for lower, upper in zip(TARGET_CLASSES, TARGET_CLASSES[1:]):
            assert lower.impact_range[1] == upper.impact_range[0]


# =============================================================================
# TEST 2: Live marker decay
# =============================================================================


class TestLiveMarkerDecay:
    def test_alpha_reaches_zero(self):
        tracker = DetectionMarkerTracker()
        tracker.add(make_marker())

        alphas = []
        for _ in range(math.ceil(1.0 / MARKER_DECAY_PER_TICK)):
            tracker.tick()
            alphas.append(tracker.live.alpha)

        assert alphas[0] == pytest.approx(1.0 - MARKER_DECAY_PER_TICK, abs=1e-9)
        assert all(a >= b for a, b in zip(alphas, alphas[1:]))
        assert alphas[-1] == 0.0
        assert tracker.live.expired

    def test_alpha_stays_at_zero(self):
        tracker = DetectionMarkerTracker(decay_rate=0.5)
        tracker.add(make_marker())
        for _ in range(5):
            tracker.tick()
        assert tracker.live.alpha == 0.0

    def test_new_marker_replaces_live(self):
        tracker = DetectionMarkerTracker()
        tracker.add(make_marker(TargetType.BIRD))
        for _ in range(10):
            tracker.tick()

        tracker.add(make_marker(TargetType.RABBIT))
        assert tracker.live.target_type is TargetType.RABBIT
        assert tracker.live.alpha == 1.0

    def test_explicit_alpha_kept(self):
        tracker = DetectionMarkerTracker()
        marker = make_marker()
        marker.alpha = 0.3
        tracker.add(marker)

        assert tracker.live.alpha == 0.3
        for _ in range(math.ceil(0.3 / MARKER_DECAY_PER_TICK)):
            tracker.tick()
        assert tracker.live.alpha == 0.0

    def test_tick_without_marker(self):
        tracker = DetectionMarkerTracker()
        tracker.tick()
        assert tracker.live is None

    def test_invalid_decay_rate(self):
        with pytest.raises(ValueError):
            DetectionMarkerTracker(decay_rate=0.0)


# =============================================================================
# TEST 3: History
# =============================================================================


class TestHistory:
    def test_capped_newest_first(self):
        tracker = DetectionMarkerTracker()
        markers = [
            DetectionMarker(TargetType.ADULT, 0.05 * i, 0.5, MarkerMetrics(1.8, 4.0, 80.0, 1.2))
            for i in range(MARKER_HISTORY_LENGTH + 3)
        ]
        for marker in markers:
            tracker.add(marker)

        history = tracker.history
        assert len(history) == MARKER_HISTORY_LENGTH
        assert history[0].x == markers[-1].x
        assert history[-1].x == markers[3].x

    def test_history_keeps_full_alpha_while_live_fades(self):
        tracker = DetectionMarkerTracker()
        tracker.add(make_marker())
        for _ in range(50):
            tracker.tick()

        assert tracker.live.alpha == pytest.approx(1.0 - 50 * MARKER_DECAY_PER_TICK, abs=1e-9)
        assert tracker.history[0].alpha == 1.0
        assert tracker.history[0] is not tracker.live

    def test_rank_opacity(self):
        tracker = DetectionMarkerTracker()
        for _ in range(MARKER_HISTORY_LENGTH):
            tracker.add(make_marker())

        opacities = [opacity for _, opacity in tracker.ranked_history()]
        assert opacities == [1.0 - rank / 7.0 for rank in range(MARKER_HISTORY_LENGTH)]

    def test_snapshot_is_a_copy(self):
        tracker = DetectionMarkerTracker()
        tracker.add(make_marker())
        snap = tracker.snapshot()
        snap.live.alpha = 0.0
        assert tracker.live.alpha == 1.0

    def test_clear(self):
        tracker = DetectionMarkerTracker()
        tracker.add(make_marker())
        tracker.clear()
        assert tracker.live is None
        assert tracker.history == ()


# =============================================================================
# TEST 4: Randomized metrics
# =============================================================================


class TestClassifyImpact:
    @pytest.mark.parametrize("impact", [5.0, 20.0, 30.0, 50.0, 86.0])
    def test_metrics_within_class_ranges(self, impact):
        rng = np.random.default_rng(11)
        target_class = find_target_class(impact)
        h_lo, h_hi = target_class.height_range_m

        for _ in range(50):
            marker = classify_impact(impact, rng)
            assert marker.target_type is target_class.target_type
            assert marker.label == target_class.label
            assert h_lo <= marker.metrics.height_m <= h_hi
            assert 1.2 <= marker.metrics.distance_m <= 14.0
            assert 62.0 <= marker.metrics.confidence_pct <= 94.0
            assert 0.15 <= marker.x <= 0.85
            assert 0.15 <= marker.y <= 0.75
            assert marker.alpha == 1.0

    def test_describe(self):
        marker = make_marker()
        text = marker.describe()
        assert "1.80m" in text
        assert "4.0m from router" in text

    def test_color_per_type(self):
        colors = {make_marker(t).color for t in TargetType}
        assert len(colors) == len(TargetType)
