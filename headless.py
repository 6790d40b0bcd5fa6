#!/usr/bin/env python3
"""
Headless Scanner CLI

Run the scanner core without a GUI.

Usage:
    python headless.py                                  # Default apartment
    python headless.py --sensitivity 80 --duration 30   # Custom settings
    python headless.py --config scenarios/living_room.yaml

Examples:
    # Reproducible run with two manual triggers, series saved to CSV
    python headless.py --seed 7 --trigger-at 5 --trigger-at 12 --output run.csv

    # Machine-readable output (peak disturbance only)
    python headless.py --quiet
"""

import argparse
import logging
import os
import sys

import yaml

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from netwatcher.io.scenario_loader import ScenarioLoader
from netwatcher.simulation.headless_runner import HeadlessRunner, RunConfig, save_series_csv


def main():
    parser = argparse.ArgumentParser(description="Run headless Wi-Fi presence scan")

    parser.add_argument("--config", type=str, default=None, help="YAML floor plan file")

    parser.add_argument(
        "--sensitivity", type=float, default=None, help="Sensitivity 0-100 (default: 65)"
    )
    parser.add_argument(
        "--duration", type=float, default=50.0, help="Run duration in seconds (default: 50)"
    )
    parser.add_argument(
        "--fps", type=float, default=60.0, help="Synthetic frame rate in Hz (default: 60)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--trigger-at",
        type=float,
        action="append",
        default=[],
        help="Trigger a manual event at this time in seconds (repeatable)",
    )
    parser.add_argument(
        "--threshold", type=float, default=10.0, help="Excursion threshold (default: 10)"
    )
    parser.add_argument("--output", type=str, default=None, help="CSV file for the series")

    parser.add_argument("--quiet", action="store_true", help="Suppress output")
    parser.add_argument("--verbose", action="store_true", help="Log every event to stderr")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    room = None
    config = RunConfig(
        duration_s=args.duration,
        frame_dt_s=1.0 / args.fps,
        manual_triggers_s=args.trigger_at,
        excursion_threshold=args.threshold,
        seed=args.seed,
    )

    if args.config:
        if not os.path.exists(args.config):
            print(f"Error: Config file not found: {args.config}")
            return 1
        try:
            scenario = ScenarioLoader(args.config).get_config()
        except (ValueError, yaml.YAMLError) as e:
            print(f"Error: Invalid floor plan: {e}")
            return 1
        room = scenario.room
        config.sensitivity = scenario.engine.sensitivity
        config.tick_period_s = scenario.engine.tick_period_s
        config.sweep_period_s = scenario.display.sweep_period_s
        config.history_length = scenario.engine.history_length
        config.persistence_shape = scenario.display.persistence_shape
        if config.seed is None:
            config.seed = scenario.engine.seed

    if args.sensitivity is not None:
        config.sensitivity = min(100.0, max(0.0, args.sensitivity))

    if not args.quiet:
        print("=" * 60)
        print("NET-WATCHER Headless Mode")
        print("=" * 60)
        print(f"Floor plan: {room.name if room else 'Apartment (built-in)'}")
        print(f"Sensitivity: {config.sensitivity:.0f}")
        print(f"Duration: {config.duration_s:.1f} s @ {args.fps:.0f} fps")
        print(f"Manual triggers: {', '.join(f'{t:.1f}s' for t in config.manual_triggers_s) or '-'}")
        print(f"Seed: {config.seed if config.seed is not None else 'random'}")
        print("=" * 60)

    result = HeadlessRunner(config, room=room).run()

    if args.output:
        save_series_csv(result, args.output)
        if not args.quiet:
            print(f"Series saved to: {args.output}")

    if not args.quiet:
        stats = result.to_dict()
        print("\n--- ZONES ---")
        for name, quality in result.zone_quality.items():
            print(f"{name:<16} {quality:5.1f} %")
        print("\n--- EVENT LOG ---")
        for line in result.log_lines:
            print(line)
        print("\n--- RESULTS ---")
        print(f"Events: {result.n_events}")
        print(f"Excursions > {config.excursion_threshold:.0f}: {result.n_excursions}")
        print(f"Peak / mean disturbance: {result.peak_value:.1f} / {stats['mean_value']:.1f}")
        print(f"Sweep laps: {result.laps}")
        print(f"Echoes: {result.echoes_spawned}")
        print(f"Runtime: {result.runtime_s * 1000:.1f} ms")
        print("=" * 60)
    else:
        print(f"{result.peak_value:.2f}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
