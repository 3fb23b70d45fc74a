"""Piecewise-linear desirability curves and the fixed breakpoint tables.

A curve is a tuple of ``(metric value, desirability)`` control points sorted by
metric value. Desirability runs 0-100. Temperatures are °F, wind is mph,
visibility is metres, everything else is a percentage or an index.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Sequence, Tuple

Breakpoints = Sequence[Tuple[float, float]]

UNMAPPED_WEATHER_CODE_SCORE = 50.0


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp a value to ``[lo, hi]``."""
    return max(lo, min(hi, value))


def interpolate(value: float, breakpoints: Breakpoints) -> float:
    """Linearly interpolate ``value`` along ``breakpoints``, holding the end outputs flat."""
    first_x, first_y = breakpoints[0]
    last_x, last_y = breakpoints[-1]
    if value <= first_x:
        return first_y
    if value >= last_x:
        return last_y

    for (x0, y0), (x1, y1) in zip(breakpoints, breakpoints[1:]):
        if x0 <= value <= x1:
            if x1 == x0:
                return y0
            return y0 + (value - x0) / (x1 - x0) * (y1 - y0)
    return last_y


def curve_score(value: float, breakpoints: Breakpoints) -> float:
    """Sub-score for ``value`` on a curve, clamped to 0-100."""
    return clamp(interpolate(value, breakpoints))


def code_score(code: int, table: Mapping[int, float]) -> float:
    """Score a WMO weather code; unknown codes are neutral."""
    return clamp(table.get(int(code), UNMAPPED_WEATHER_CODE_SCORE))


# ---------------------------------------------------------------------------
# Temperature (°F)
# ---------------------------------------------------------------------------

TEMP_RUNNING: Breakpoints = (
    (10, 0), (20, 15), (30, 45), (40, 75), (50, 100),
    (60, 100), (70, 75), (80, 45), (90, 15), (100, 0),
)
TEMP_WALKING: Breakpoints = (
    (15, 0), (25, 10), (35, 30), (45, 60), (55, 100),
    (70, 100), (80, 70), (85, 45), (95, 15), (105, 0),
)
TEMP_CYCLING: Breakpoints = (
    (20, 0), (32, 20), (40, 45), (50, 75), (60, 100),
    (75, 100), (85, 70), (95, 30), (105, 0),
)
TEMP_DOG_WALKING: Breakpoints = (
    (10, 0), (20, 20), (32, 50), (40, 80), (50, 100),
    (65, 100), (75, 70), (85, 35), (95, 5), (100, 0),
)
# standing still at a telescope: comfortable band is warmer and wider
TEMP_STARGAZING: Breakpoints = (
    (0, 0), (20, 30), (35, 70), (45, 100), (70, 100),
    (80, 80), (95, 40), (105, 0),
)

# ---------------------------------------------------------------------------
# Humidity, UV, pavement
# ---------------------------------------------------------------------------

HUMIDITY: Breakpoints = (
    (0, 70), (30, 100), (50, 100), (65, 75), (80, 45), (85, 15), (100, 0),
)
UV: Breakpoints = (
    (0, 100), (2, 100), (5, 75), (7, 45), (8, 15), (11, 0),
)
UV_DOG_WALKING: Breakpoints = (
    (0, 100), (2, 100), (4, 70), (6, 40), (8, 10), (10, 0),
)
PAVEMENT_DOG_WALKING: Breakpoints = (
    (20, 20), (32, 60), (40, 90), (50, 100), (85, 100),
    (100, 70), (115, 35), (125, 10), (135, 0),
)

# ---------------------------------------------------------------------------
# Wind (mph)
# ---------------------------------------------------------------------------

WIND_RUNNING: Breakpoints = (
    (0, 100), (8, 100), (15, 75), (25, 45), (35, 15), (50, 0),
)
WIND_WALKING: Breakpoints = (
    (0, 100), (6, 100), (12, 75), (20, 45), (30, 15), (45, 0),
)
WIND_CYCLING: Breakpoints = (
    (0, 100), (5, 100), (10, 80), (15, 55), (20, 35), (30, 10), (40, 0),
)
WIND_STARGAZING: Breakpoints = (
    (0, 100), (5, 100), (10, 75), (15, 45), (25, 10), (35, 0),
)

# ---------------------------------------------------------------------------
# Precipitation probability (%)
# ---------------------------------------------------------------------------

PRECIPITATION: Breakpoints = (
    (0, 100), (10, 100), (30, 75), (60, 45), (80, 15), (100, 0),
)
PRECIPITATION_CYCLING: Breakpoints = (
    (0, 100), (10, 90), (30, 60), (50, 30), (70, 10), (100, 0),
)

# ---------------------------------------------------------------------------
# Sky (stargazing)
# ---------------------------------------------------------------------------

CLOUD_COVER: Breakpoints = (
    (0, 100), (10, 90), (25, 65), (50, 30), (75, 10), (100, 0),
)
VISIBILITY: Breakpoints = (
    (0, 0), (1000, 10), (5000, 40), (10000, 70), (20000, 90), (30000, 100),
)

# ---------------------------------------------------------------------------
# WMO weather codes
# ---------------------------------------------------------------------------

WEATHER_CODES: Mapping[int, float] = MappingProxyType({
    0: 100, 1: 95, 2: 90, 3: 75, 45: 55, 48: 50,
    51: 50, 53: 40, 55: 30, 56: 25, 57: 15,
    61: 30, 63: 15, 65: 5, 66: 10, 67: 5,
    71: 25, 73: 10, 75: 5, 77: 15,
    80: 30, 81: 15, 82: 5, 85: 15, 86: 5,
    95: 5, 96: 2, 99: 0,
})

# fog and wet roads hit riders harder
WEATHER_CODES_CYCLING: Mapping[int, float] = MappingProxyType({
    0: 100, 1: 95, 2: 90, 3: 80, 45: 30, 48: 25,
    51: 40, 53: 30, 55: 20, 56: 15, 57: 10,
    61: 20, 63: 10, 65: 0, 66: 5, 67: 0,
    71: 15, 73: 5, 75: 0, 77: 10,
    80: 20, 81: 10, 82: 0, 85: 10, 86: 0,
    95: 0, 96: 0, 99: 0,
})

WEATHER_CODES_STARGAZING: Mapping[int, float] = MappingProxyType({
    0: 100, 1: 85, 2: 55, 3: 10, 45: 5, 48: 0,
    51: 5, 53: 0, 55: 0, 56: 0, 57: 0,
    61: 0, 63: 0, 65: 0, 66: 0, 67: 0,
    71: 0, 73: 0, 75: 0, 77: 0,
    80: 0, 81: 0, 82: 0, 85: 0, 86: 0,
    95: 0, 96: 0, 99: 0,
})
