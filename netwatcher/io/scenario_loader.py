"""
Scenario Loader

YAML-based floor plan configuration parser.

Loads a room layout (size, heatmap grid, emitter, obstacles, zones) and
engine/display settings, and creates configured Room and ScannerConsole
instances.

Usage:
    loader = ScenarioLoader('scenarios/living_room.yaml')
    console = loader.create_console()
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import yaml

from netwatcher.physics.constants import (
    DEFAULT_EMITTER_POSITION,
    DEFAULT_GRID_HEIGHT,
    DEFAULT_GRID_WIDTH,
    DEFAULT_ROOM_HEIGHT_M,
    DEFAULT_ROOM_WIDTH_M,
    DEFAULT_SENSITIVITY,
    DEFAULT_SWEEP_PERIOD_S,
    DISTURBANCE_TICK_PERIOD_S,
    HISTORY_LENGTH,
)
from netwatcher.simulation.objects import Obstacle, Room, Zone


@dataclass
class EngineConfig:
    """Disturbance engine settings."""

    sensitivity: float = DEFAULT_SENSITIVITY
    tick_period_s: float = DISTURBANCE_TICK_PERIOD_S
    history_length: int = HISTORY_LENGTH
    seed: Optional[int] = None


@dataclass
class DisplayConfig:
    """Animation settings."""

    sweep_period_s: float = DEFAULT_SWEEP_PERIOD_S
    frame_rate_hz: float = 60.0
    persistence_shape: Tuple[int, int] = (96, 120)


@dataclass
class ScenarioConfig:
    """Complete scenario configuration."""

    name: str
    description: str
    room: Room
    engine: EngineConfig = field(default_factory=EngineConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


_REQUIRED = object()


def _mapping(value: Any, where: str, required: bool = False) -> Dict[str, Any]:
    """Return a YAML section as a dict; absent optional sections read as empty."""
    if value is None and not required:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{where} must be a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{where} must be a list, got {type(value).__name__}")
    return value


def _number(section: Dict[str, Any], key: str, where: str, default: Any = _REQUIRED) -> float:
    """Read a numeric field, raising ValueError that names the field."""
    if key not in section or section[key] is None:
        if default is _REQUIRED:
            raise ValueError(f"{where} is missing '{key}'")
        return float(default)
    value = section[key]
    if isinstance(value, bool):
        raise ValueError(f"{where}.{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{where}.{key} must be a number, got {value!r}") from None


class ScenarioLoader:
    """
    Loads floor plan scenarios from YAML files.

    Geometry errors (non-positive sizes, attenuation outside [0, 1],
    emitter outside the room) raise ValueError while parsing.
    """

    def __init__(self, filepath: Optional[str] = None):
        """
        Initialize scenario loader.

        Args:
            filepath: Path to YAML scenario file (optional)
        """
        self.filepath = filepath
        self.data: Dict[str, Any] = {}
        self._config: Optional[ScenarioConfig] = None

        if filepath:
            self.load(filepath)

    def load(self, filepath: str) -> bool:
        """
        Load scenario from YAML file.

        Raises:
            FileNotFoundError: If file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            ValueError: If the scenario geometry is invalid
        """
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Scenario file not found: {filepath}")

        self.filepath = filepath

        with open(filepath, "r", encoding="utf-8") as f:
            self.data = yaml.safe_load(f) or {}

        self._config = self._parse_config()
        return True

    def loads(self, text: str) -> ScenarioConfig:
        """Parse a scenario from a YAML string."""
        self.data = yaml.safe_load(text) or {}
        self._config = self._parse_config()
        return self._config

    def _parse_config(self) -> ScenarioConfig:
        if not isinstance(self.data, dict):
            raise ValueError("Scenario root must be a mapping")

        scenario = _mapping(self.data.get("scenario"), "scenario")
        return ScenarioConfig(
            name=str(scenario.get("name", "Unnamed Scenario")),
            description=str(scenario.get("description", "")),
            room=self._parse_room(),
            engine=self._parse_engine(),
            display=self._parse_display(),
        )

    def _parse_room(self) -> Room:
        room = _mapping(self.data.get("room"), "room")
        grid = _mapping(room.get("grid"), "room.grid")
        width = _number(room, "width_m", "room", DEFAULT_ROOM_WIDTH_M)
        height = _number(room, "height_m", "room", DEFAULT_ROOM_HEIGHT_M)

        emitter_data = _mapping(room.get("emitter"), "room.emitter")
        if "x_m" in emitter_data or "y_m" in emitter_data:
            emitter = (
                _number(emitter_data, "x_m", "room.emitter", DEFAULT_EMITTER_POSITION[0] * width),
                _number(emitter_data, "y_m", "room.emitter", DEFAULT_EMITTER_POSITION[1] * height),
            )
        else:
            emitter = (
                _number(emitter_data, "x_norm", "room.emitter", DEFAULT_EMITTER_POSITION[0]) * width,
                _number(emitter_data, "y_norm", "room.emitter", DEFAULT_EMITTER_POSITION[1]) * height,
            )

        scenario_name = _mapping(self.data.get("scenario"), "scenario").get("name", "Room")
        return Room(
            width_m=width,
            height_m=height,
            emitter=emitter,
            obstacles=self._parse_obstacles(),
            zones=self._parse_zones(),
            grid_width=int(_number(grid, "width", "room.grid", DEFAULT_GRID_WIDTH)),
            grid_height=int(_number(grid, "height", "room.grid", DEFAULT_GRID_HEIGHT)),
            name=str(room.get("name", scenario_name)),
        )

    def _parse_obstacles(self) -> List[Obstacle]:
        obstacles = []
        for idx, entry in enumerate(_sequence(self.data.get("obstacles"), "obstacles")):
            where = f"obstacles[{idx}]"
            o = _mapping(entry, where, required=True)
            color = o.get("echo_color", [34, 211, 238])
            if not isinstance(color, (list, tuple)) or len(color) != 3:
                raise ValueError(f"{where}.echo_color must be a list of three integers")
            try:
                rgb = tuple(int(c) for c in color)
            except (TypeError, ValueError):
                raise ValueError(f"{where}.echo_color must be a list of three integers") from None
            obstacles.append(
                Obstacle(
                    x=_number(o, "x_m", where),
                    y=_number(o, "y_m", where),
                    width=_number(o, "width_m", where),
                    height=_number(o, "height_m", where),
                    attenuation=_number(o, "attenuation", where, 0.5),
                    echo_color=rgb,
                    name=str(o.get("name", f"Obstacle_{idx}")),
                )
            )
        return obstacles

    def _parse_zones(self) -> List[Zone]:
        zones = []
        for idx, entry in enumerate(_sequence(self.data.get("zones"), "zones")):
            where = f"zones[{idx}]"
            z = _mapping(entry, where, required=True)
            zones.append(
                Zone(
                    name=str(z.get("name", f"Zone_{idx}")),
                    x=_number(z, "x_m", where),
                    y=_number(z, "y_m", where),
                )
            )
        return zones

    def _parse_engine(self) -> EngineConfig:
        engine = _mapping(self.data.get("engine"), "engine")
        history_length = int(_number(engine, "history_length", "engine", HISTORY_LENGTH))
        if history_length <= 0:
            raise ValueError(f"engine.history_length must be positive, got {history_length}")
        seed = engine.get("seed")
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            raise ValueError(f"engine.seed must be an integer, got {seed!r}")
        return EngineConfig(
            sensitivity=float(np.clip(_number(engine, "sensitivity", "engine", DEFAULT_SENSITIVITY), 0, 100)),
            tick_period_s=_number(engine, "tick_period_s", "engine", DISTURBANCE_TICK_PERIOD_S),
            history_length=history_length,
            seed=seed,
        )

    def _parse_display(self) -> DisplayConfig:
        display = _mapping(self.data.get("display"), "display")
        shape = display.get("persistence_shape", [96, 120])
        if not isinstance(shape, (list, tuple)) or len(shape) != 2:
            raise ValueError("display.persistence_shape must be [rows, cols]")
        frame_rate_hz = _number(display, "frame_rate_hz", "display", 60.0)
        if frame_rate_hz <= 0:
            raise ValueError(f"display.frame_rate_hz must be positive, got {frame_rate_hz}")
        return DisplayConfig(
            sweep_period_s=_number(display, "sweep_period_s", "display", DEFAULT_SWEEP_PERIOD_S),
            frame_rate_hz=frame_rate_hz,
            persistence_shape=(int(shape[0]), int(shape[1])),
        )

    def get_config(self) -> Optional[ScenarioConfig]:
        return self._config

    def get_scenario_name(self) -> str:
        if self._config:
            return self._config.name
        return "Unknown"

    def create_console(self, event_log=None):
        """
        Create a ScannerConsole from the loaded scenario.

        Raises:
            ValueError: If no scenario is loaded
        """
        if not self._config:
            raise ValueError("No scenario loaded. Call load() first.")

        # Import here to avoid circular dependencies
        from netwatcher.simulation.console import ScannerConsole

        cfg = self._config
        return ScannerConsole(
            room=cfg.room,
            sensitivity=cfg.engine.sensitivity,
            event_log=event_log,
            sweep_period_s=cfg.display.sweep_period_s,
            tick_period_s=cfg.engine.tick_period_s,
            buffer_shape=cfg.display.persistence_shape,
            history_length=cfg.engine.history_length,
            seed=cfg.engine.seed,
            frame_rate_hz=cfg.display.frame_rate_hz,
        )


def load_scenario(filepath: str) -> ScenarioConfig:
    """Convenience function to load a scenario file."""
    loader = ScenarioLoader(filepath)
    return loader.get_config()
