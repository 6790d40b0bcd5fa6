"""
NET-WATCHER Console Integration Test Suite

Test ID | Description                               | Reference                   | Tolerance
--------|-------------------------------------------|-----------------------------|----------
1       | Fixed-period timer fed by frame time      | 50 ms at 60 fps             | Exact
2       | Console lifecycle and log banners         | start / scan / stop         | Exact
3       | Disturbance and sweep share one timeline  | 10 s -> 200 ticks, 2 laps   | Exact
4       | Event log bounds and logging levels       | 31 entries, danger -> ERROR | Exact
5       | Dashboard readouts                        | Tiers, flash, waveform      | 1e-12
6       | Headless run statistics                   | Manual trigger, CSV export  | -
"""

import csv
import logging
import os
import sys
from datetime import datetime

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from netwatcher.io.event_log import LOG_PANEL_LENGTH, EventLog, LogEntry, Severity
from netwatcher.simulation.console import ScannerConsole, SimulatedTimer
from netwatcher.simulation.headless_runner import (
    HeadlessRunner,
    RunConfig,
    count_excursions,
    save_series_csv,
)
from netwatcher.simulation.markers import TargetType
from netwatcher.simulation.readouts import (
    alert_flash_intensity,
    is_low_quality,
    level_color,
    level_tier,
    waveform_amplitude,
    waveform_samples,
)


@pytest.fixture
def console():
    c = ScannerConsole(rng=np.random.default_rng(42))
    c.start()
    return c


# =============================================================================
# TEST 1: Simulated timer
# =============================================================================


class TestSimulatedTimer:
    def test_fires_once_per_period(self):
        calls = []
        timer = SimulatedTimer(0.05, lambda: calls.append(1))
        timer.start()

        fired = [timer.advance(1 / 60) for _ in range(3)]
        assert fired == [0, 0, 1]

    def test_catches_up_on_long_frame(self):
        calls = []
        timer = SimulatedTimer(0.05, lambda: calls.append(1))
        timer.start()
        assert timer.advance(0.5) == 10
        assert len(calls) == 10

    def test_stopped_timer_never_fires(self):
        calls = []
        timer = SimulatedTimer(0.05, lambda: calls.append(1))
        assert timer.advance(1.0) == 0

        timer.start()
        timer.advance(0.04)
        timer.stop()
        assert timer.advance(1.0) == 0
        assert calls == []

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            SimulatedTimer(0.0, lambda: None)


# =============================================================================
# TEST 2: Lifecycle
# =============================================================================


class TestLifecycle:
    def test_banners(self, console):
        console.set_scanning(True)
        console.stop()

        lines = [(e.message, e.severity) for e in console.event_log.entries]
        assert lines[0] == ("NET-WATCHER scanner core online", Severity.SYSTEM)
        assert lines[1] == ("Scan engine started", Severity.SUCCESS)
        assert lines[-1] == ("Scan engine stopped", Severity.WARNING)

    def test_start_is_idempotent(self, console):
        console.start()
        assert len(console.event_log.entries) == 1

    def test_repeated_set_scanning_logs_once(self, console):
        console.set_scanning(True)
        console.set_scanning(True)
        assert len(console.event_log.entries) == 2

    def test_idle_manual_trigger(self, console):
        assert console.trigger_manual_event() is None
        assert console.event_count == 0

    def test_manual_trigger_adds_live_marker(self, console):
        console.set_scanning(True)
        event = console.trigger_manual_event()

        assert event is not None
        assert console.disturbance.value == pytest.approx(86.0)
        assert console.markers.live.target_type is TargetType.ADULT
        assert console.event_log.entries[-1].severity is Severity.DANGER

    def test_stop_clears_markers(self, console):
        console.set_scanning(True)
        console.trigger_manual_event()
        console.set_scanning(False)

        assert console.markers.live is None
        assert console.disturbance.value == 0.0
        assert not console.scanning

    def test_sensitivity_clamped(self, console):
        console.set_sensitivity(140.0)
        assert console.disturbance.sensitivity == 100.0

    def test_negative_dt_rejected(self, console):
        with pytest.raises(ValueError):
            console.step(-1.0)


# =============================================================================
# TEST 3: Shared timeline
# =============================================================================


class TestTimeline:
    def test_ten_seconds(self, console):
        console.set_scanning(True)
        console.run(10.0)

        assert console.disturbance.tick_count == 200
        assert console.clock.sweep.lap_count == 2
        assert console.clock.now == pytest.approx(10.0)

    def test_sweep_runs_while_idle(self, console):
        console.run(4.5)
        assert console.clock.sweep.lap_count == 1
        assert console.disturbance.tick_count == 0

    def test_step_returns_random_events(self, console):
        console.set_scanning(True)
        fired = console.run(20.0)
        # First event within 8 s, later ones at most 14 s apart
        assert len(fired) >= 1
        assert console.event_count == len(fired)

    def test_snapshot(self, console):
        console.set_scanning(True)
        console.run(1.0)
        frame = console.snapshot()

        assert frame.scanning
        assert frame.time == pytest.approx(1.0)
        assert frame.signal_field.shape == (48, 60)
        assert frame.persistence.shape == (96, 120)
        assert len(frame.glows) == len(console.room.obstacles)
        assert len(frame.disturbance.history) == 60
        assert set(frame.zones) == set(console.zone_readouts)


# =============================================================================
# TEST 4: Event log
# =============================================================================


class TestEventLog:
    def test_bounded(self):
        log = EventLog()
        for i in range(LOG_PANEL_LENGTH + 9):
            log.emit(f"line {i}")

        entries = log.entries
        assert len(entries) == LOG_PANEL_LENGTH
        assert entries[0].message == "line 9"
        assert entries[-1].message == f"line {LOG_PANEL_LENGTH + 8}"

    def test_unknown_severity(self):
        log = EventLog()
        with pytest.raises(ValueError):
            log.emit("oops", "critical")

    def test_timestamp_and_format(self):
        log = EventLog(clock=lambda: datetime(2024, 1, 1, 13, 5, 9))
        entry = log.emit("Alert interference", "danger")

        assert entry.time == "13:05:09"
        assert entry.format() == "[13:05:09] DANGER  Alert interference"

    def test_forwarded_to_logging(self, caplog):
        log = EventLog()
        with caplog.at_level(logging.INFO, logger="netwatcher.events"):
            log.emit("quiet", "info")
            log.emit("loud", "danger")

        levels = {r.getMessage(): r.levelno for r in caplog.records}
        assert levels["quiet"] == logging.INFO
        assert levels["loud"] == logging.ERROR

    def test_subscribers_receive_entries(self):
        log = EventLog()
        received = []
        log.subscribe(received.append)
        log.emit("hello", Severity.SUCCESS)

        assert len(received) == 1
        assert isinstance(received[0], LogEntry)
        assert received[0].severity is Severity.SUCCESS

    def test_clear(self):
        log = EventLog()
        log.emit("x")
        log.clear()
        assert log.entries == []


# =============================================================================
# TEST 5: Readouts
# =============================================================================


class TestReadouts:
    @pytest.mark.parametrize(
        "level, tier", [(0.0, "nominal"), (29.9, "nominal"), (30.0, "elevated"), (59.9, "elevated"), (60.0, "alert")]
    )
    def test_level_tier(self, level, tier):
        assert level_tier(level) == tier

    def test_level_color_themes(self):
        assert level_color(10.0) == "#06b6d4"
        assert level_color(10.0, dark=False) == "#0891b2"
        assert level_color(90.0) == level_color(90.0, dark=False)

    @pytest.mark.parametrize("level, intensity", [(0.0, 0.0), (60.0, 0.0), (80.0, 0.5), (100.0, 1.0)])
    def test_alert_flash(self, level, intensity):
        assert alert_flash_intensity(level) == pytest.approx(intensity, abs=1e-12)

    def test_waveform_bounded_by_amplitude(self):
        x, y = waveform_samples(75.0, phase=12.0, width=100, rng=np.random.default_rng(1))
        assert len(x) == len(y) == 25
        assert np.all(np.abs(y) <= waveform_amplitude(75.0))

    def test_low_quality(self):
        assert is_low_quality(59.9)
        assert not is_low_quality(60.0)


# =============================================================================
# TEST 6: Headless runner
# =============================================================================


class TestHeadlessRunner:
    def test_manual_trigger_run(self):
        config = RunConfig(duration_s=21.0, seed=5, manual_triggers_s=[2.0])
        result = HeadlessRunner(config).run()

        assert len(result.values) == 1260
        assert result.laps == 5
        assert result.peak_value >= 80.0
        assert result.n_events >= 1
        assert result.n_excursions >= 1
        assert result.echoes_spawned >= 5 * 6
        assert any("Scan engine started" in line for line in result.log_lines)
        assert any("Scan engine stopped" in line for line in result.log_lines)

    def test_quiet_before_first_event(self):
        result = HeadlessRunner(RunConfig(duration_s=2.5, seed=1)).run()
        # No random event can fire in the first 3 s
        assert result.peak_value == 0.0
        assert result.n_events == 0

    def test_seed_reproducible(self):
        first = HeadlessRunner(RunConfig(duration_s=15.0, seed=9)).run()
        second = HeadlessRunner(RunConfig(duration_s=15.0, seed=9)).run()
        assert first.values == second.values

    def test_to_dict(self):
        result = HeadlessRunner(RunConfig(duration_s=1.0, seed=0)).run()
        stats = result.to_dict()
        assert stats["mean_value"] == 0.0
        assert stats["duration_s"] == 1.0

    def test_count_excursions(self):
        count, spans = count_excursions([0, 20, 20, 0, 15, 0, 30], 10.0)
        assert count == 3
        assert spans == [(1, 3), (4, 5), (6, 7)]
        assert count_excursions([0, 5], 10.0) == (0, [])

    def test_save_series_csv(self, tmp_path):
        result = HeadlessRunner(RunConfig(duration_s=1.0, seed=0)).run()
        path = tmp_path / "series.csv"
        save_series_csv(result, str(path))

        with open(path, newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 60
        assert list(rows[0]) == ["time_s", "disturbance"]
        assert float(rows[-1]["time_s"]) == pytest.approx(1.0)

    def test_history_and_buffer_settings_forwarded(self):
        runner = HeadlessRunner(RunConfig(duration_s=1.0, seed=0, history_length=20, persistence_shape=(40, 50)))
        runner.run()

        assert len(runner.console.disturbance.history) == 20
        assert runner.console.clock.persistence_shape == (40, 50)

    def test_invalid_history_length(self):
        with pytest.raises(ValueError):
            ScannerConsole(history_length=0)
