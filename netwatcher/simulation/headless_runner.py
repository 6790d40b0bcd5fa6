"""
Headless Scanner Runner

Runs the scanner console without a GUI for batch checks and demos.

Features:
    - Synthetic frame interval (no real-time waits)
    - Optional manual triggers at fixed times
    - Disturbance series, excursion statistics, sweep and echo counts

Usage:
    config = RunConfig(sensitivity=65.0, duration_s=50.0, seed=7)
    result = HeadlessRunner(config).run()
"""

import csv
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from netwatcher.io.event_log import EventLog
from netwatcher.physics.constants import (
    DEFAULT_SENSITIVITY,
    DEFAULT_SWEEP_PERIOD_S,
    DISTURBANCE_TICK_PERIOD_S,
    HISTORY_LENGTH,
)

from .console import ScannerConsole
from .objects import Room


@dataclass
class RunConfig:
    """
    Configuration for a headless run.

    Attributes:
        sensitivity: Sensor sensitivity (0-100)
        duration_s: Run duration [s]
        frame_dt_s: Animation frame interval [s]
        tick_period_s: Disturbance tick period [s]
        sweep_period_s: Sweep rotation period [s]
        manual_triggers_s: Times at which a manual event is triggered [s]
        excursion_threshold: Disturbance level counted as an excursion
        history_length: Signal quality samples kept by the engine
        persistence_shape: Sweep persistence buffer shape (rows, cols)
        seed: Random seed for reproducibility
    """

    sensitivity: float = DEFAULT_SENSITIVITY
    duration_s: float = 50.0
    frame_dt_s: float = 1.0 / 60.0
    tick_period_s: float = DISTURBANCE_TICK_PERIOD_S
    sweep_period_s: float = DEFAULT_SWEEP_PERIOD_S
    manual_triggers_s: List[float] = field(default_factory=list)
    excursion_threshold: float = 10.0
    history_length: int = HISTORY_LENGTH
    persistence_shape: Tuple[int, int] = (96, 120)
    seed: Optional[int] = None


@dataclass
class RunResult:
    """
    Results from a headless run.

    Attributes:
        config: Original configuration
        times_s: Sample times (one per frame) [s]
        values: Disturbance value per frame
        n_events: Random and manual events fired
        n_excursions: Separate runs of frames above the excursion threshold
        peak_value: Maximum disturbance value
        laps: Completed sweep rotations
        echoes_spawned: Echo effects created
        zone_quality: Signal quality per zone [%]
        log_lines: Formatted event log
        runtime_s: Wall-clock execution time
    """

    config: RunConfig
    times_s: List[float] = field(default_factory=list)
    values: List[float] = field(default_factory=list)
    n_events: int = 0
    n_excursions: int = 0
    peak_value: float = 0.0
    laps: int = 0
    echoes_spawned: int = 0
    zone_quality: Dict[str, float] = field(default_factory=dict)
    log_lines: List[str] = field(default_factory=list)
    runtime_s: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for CSV/JSON export."""
        return {
            "sensitivity": self.config.sensitivity,
            "duration_s": self.config.duration_s,
            "n_events": self.n_events,
            "n_excursions": self.n_excursions,
            "peak_value": self.peak_value,
            "mean_value": float(np.mean(self.values)) if self.values else 0.0,
            "laps": self.laps,
            "echoes_spawned": self.echoes_spawned,
            "runtime_s": self.runtime_s,
        }


def count_excursions(values: List[float], threshold: float) -> Tuple[int, List[Tuple[int, int]]]:
    """
    Count contiguous runs above threshold.

    Returns:
        (count, [(start_index, end_index_exclusive), ...])
    """
    above = np.asarray(values) > threshold
    if not above.any():
        return 0, []
    edges = np.diff(np.concatenate(([0], above.astype(np.int8), [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)
    spans = list(zip(starts.tolist(), ends.tolist()))
    return len(spans), spans


class HeadlessRunner:
    """Drives a ScannerConsole with a synthetic clock and collects statistics."""

    def __init__(self, config: RunConfig, room: Optional[Room] = None):
        """
        Initialize headless runner.

        Args:
            config: Run configuration
            room: Floor plan (default apartment if None)
        """
        self.config = config
        self.room = room
        self.console: Optional[ScannerConsole] = None

    def run(self) -> RunResult:
        """
        Execute the run.

        Returns:
            RunResult with the disturbance series and counters
        """
        start_time = time.perf_counter()
        cfg = self.config

        log = EventLog(max_entries=500)
        console = ScannerConsole(
            room=self.room,
            sensitivity=cfg.sensitivity,
            rng=np.random.default_rng(cfg.seed),
            event_log=log,
            sweep_period_s=cfg.sweep_period_s,
            tick_period_s=cfg.tick_period_s,
            buffer_shape=cfg.persistence_shape,
            history_length=cfg.history_length,
        )
        self.console = console
        console.start()
        console.set_scanning(True)

        result = RunResult(config=cfg, zone_quality=console.zone_readouts)
        pending_triggers = sorted(cfg.manual_triggers_s)

        n_frames = int(round(cfg.duration_s / cfg.frame_dt_s))
        for frame in range(n_frames):
            now = (frame + 1) * cfg.frame_dt_s
            while pending_triggers and pending_triggers[0] <= now:
                pending_triggers.pop(0)
                console.trigger_manual_event()

            console.step(cfg.frame_dt_s)
            result.times_s.append(now)
            result.values.append(console.disturbance.value)

        console.stop()

        result.n_events = console.event_count
        result.n_excursions, _ = count_excursions(result.values, cfg.excursion_threshold)
        result.peak_value = max(result.values) if result.values else 0.0
        result.laps = console.clock.sweep.lap_count
        result.echoes_spawned = console.clock.echoes_spawned
        result.log_lines = [entry.format() for entry in log.entries]
        result.runtime_s = time.perf_counter() - start_time
        return result


def run_single_simulation(config: RunConfig) -> RunResult:
    """Convenience wrapper for scripts."""
    return HeadlessRunner(config).run()


def save_series_csv(result: RunResult, filepath: str) -> None:
    """Save the per-frame disturbance series to a CSV file."""
    with open(filepath, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=["time_s", "disturbance"])
        writer.writeheader()
        for t, value in zip(result.times_s, result.values):
            writer.writerow({"time_s": f"{t:.4f}", "disturbance": f"{value:.3f}"})
