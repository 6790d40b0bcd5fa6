"""
Dashboard Readouts

Renderer-independent values derived from the disturbance level: gauge
color tier, alert flash intensity and the oscilloscope waveform.
"""

from typing import Tuple

import numpy as np

# Level color tiers (dark theme, light theme)
LEVEL_COLORS = {
    "nominal": ("#06b6d4", "#0891b2"),
    "elevated": ("#f59e0b", "#d97706"),
    "alert": ("#ef4444", "#ef4444"),
}

LOW_QUALITY_THRESHOLD = 60.0
ALERT_FLASH_ONSET = 60.0


def level_tier(level: float) -> str:
    """'nominal' below 30, 'elevated' below 60, otherwise 'alert'."""
    if level < 30:
        return "nominal"
    if level < 60:
        return "elevated"
    return "alert"


def level_color(level: float, dark: bool = True) -> str:
    """Hex color for a 0-100 disturbance level."""
    dark_color, light_color = LEVEL_COLORS[level_tier(level)]
    return dark_color if dark else light_color


def alert_flash_intensity(level: float) -> float:
    """0 up to the alert onset, rising linearly to 1 at level 100."""
    return float(np.clip((level - ALERT_FLASH_ONSET) / (100.0 - ALERT_FLASH_ONSET), 0.0, 1.0))


def waveform_amplitude(level: float) -> float:
    """Oscilloscope amplitude [px]."""
    return 10.0 + level * 0.6


def waveform_frequency(level: float) -> float:
    """Oscilloscope spatial frequency [rad/px]."""
    return 0.05 + level * 0.001


def waveform_samples(
    level: float,
    phase: float,
    width: int,
    step: int = 4,
    rng: np.random.Generator = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Jittered sine trace for the oscilloscope strip.

    y = sin(x * f - phase * 0.1) * A * u, u ~ U[0, 1)

    Args:
        level: Disturbance level (0-100)
        phase: Scan phase (advances with the scan line)
        width: Trace width [px]
        step: Sample spacing [px]
        rng: Random source for the jitter

    Returns:
        (x, y) sample arrays, y centred on 0
    """
    rng = rng if rng is not None else np.random.default_rng()
    x = np.arange(0, width, step, dtype=np.float64)
    jitter = rng.random(len(x))
    y = (
        np.sin(x * waveform_frequency(level) - phase * 0.1)
        * waveform_amplitude(level)
        * jitter
    )
    return x, y


def is_low_quality(sample: float) -> bool:
    """History bars below this are drawn in the warning color."""
    return sample < LOW_QUALITY_THRESHOLD
