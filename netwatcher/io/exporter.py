"""
Floor Plan Exporter

Serializes a room and console settings to the scenario YAML format read
by ScenarioLoader, so layouts can be saved and shared.
"""

from datetime import datetime
from typing import Any, Dict, Optional

import yaml


def export_room_to_yaml(
    room,
    filepath: str,
    scenario_name: str = "Custom Floor Plan",
    description: str = "",
    console=None,
) -> bool:
    """
    Export a floor plan to a YAML scenario file.

    Args:
        room: Room instance
        filepath: Output file path
        scenario_name: Human-readable scenario name
        description: Scenario description
        console: ScannerConsole whose engine/display settings are saved (optional)

    Returns:
        True if export successful, False otherwise
    """
    try:
        scenario_data = build_scenario_dict(room, scenario_name, description, console)

        with open(filepath, "w", encoding="utf-8") as f:
            yaml.dump(
                scenario_data, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

        print(f"[EXPORT] Floor plan saved to: {filepath}")
        return True

    except (OSError, yaml.YAMLError) as e:
        print(f"[EXPORT] Failed to export floor plan: {e}")
        return False


def build_scenario_dict(
    room, scenario_name: str = "Custom Floor Plan", description: str = "", console=None
) -> Dict[str, Any]:
    """Scenario mapping in the order it is written to disk."""
    layout = room.to_dict()
    data: Dict[str, Any] = {
        "scenario": {
            "name": scenario_name,
            "description": description
            or f"Exported on {datetime.now().strftime('%Y-%m-%d %H:%M')}",
            "version": "1.0",
        },
        "room": {
            "name": layout["name"],
            "width_m": layout["width_m"],
            "height_m": layout["height_m"],
            "grid": layout["grid"],
            "emitter": layout["emitter"],
        },
        "obstacles": layout["obstacles"],
        "zones": layout["zones"],
    }

    engine = _extract_engine(console)
    if engine:
        data["engine"] = engine
        data["display"] = _extract_display(console)
    return data


def _extract_engine(console) -> Optional[Dict[str, Any]]:
    if console is None:
        return None
    engine: Dict[str, Any] = {
        "sensitivity": float(console.disturbance.sensitivity),
        "tick_period_s": float(console.timer.period_s),
        "history_length": len(console.disturbance.history),
    }
    if console.seed is not None:
        engine["seed"] = int(console.seed)
    return engine


def _extract_display(console) -> Dict[str, Any]:
    rows, cols = console.clock.persistence_shape
    return {
        "sweep_period_s": float(console.clock.sweep_period_s),
        "frame_rate_hz": float(console.frame_rate_hz),
        "persistence_shape": [int(rows), int(cols)],
    }
