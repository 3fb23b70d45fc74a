"""Composite suitability scoring for a single forecast hour.

Each mode owns a fixed profile: the curves it scores with, the weather-code
table and a weight table summing to 1.0. A composite is the weighted sum of
the mode's sub-scores scaled by the hour's light factor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from run_planner import curves
from run_planner.curves import Breakpoints, code_score, curve_score
from run_planner.domain import HourSample, Mode, Rating, ScoredHour

# pavement heats with sun load: degrees °F added per UV index point under clear sky
PAVEMENT_UV_GAIN_F = 5.0

EXCELLENT_MIN = 80.0
GOOD_MIN = 65.0
FAIR_MIN = 45.0


@dataclass(frozen=True)
class ModeProfile:
    """Curves, weather-code table and weights for one activity mode."""
    mode: Mode
    temperature: Breakpoints
    wind: Breakpoints
    precipitation: Breakpoints
    weather_codes: Mapping[int, float]
    weights: Mapping[str, float]
    uv: Breakpoints = curves.UV
    pavement: Optional[Breakpoints] = None

    def __post_init__(self) -> None:
        total = sum(self.weights.values())
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Weights for {self.mode.value} sum to {total}, expected 1.0")


def _weights(**weights: float) -> Mapping[str, float]:
    return MappingProxyType(dict(weights))


PROFILES: Mapping[Mode, ModeProfile] = MappingProxyType({
    Mode.RUNNING: ModeProfile(
        mode=Mode.RUNNING,
        temperature=curves.TEMP_RUNNING,
        wind=curves.WIND_RUNNING,
        precipitation=curves.PRECIPITATION,
        weather_codes=curves.WEATHER_CODES,
        weights=_weights(
            temperature=0.25, feels_like=0.20, humidity=0.15, uv_index=0.10,
            wind_speed=0.10, precipitation_probability=0.10, weather_code=0.10,
        ),
    ),
    Mode.WALKING: ModeProfile(
        mode=Mode.WALKING,
        temperature=curves.TEMP_WALKING,
        wind=curves.WIND_WALKING,
        precipitation=curves.PRECIPITATION,
        weather_codes=curves.WEATHER_CODES,
        weights=_weights(
            temperature=0.25, feels_like=0.20, humidity=0.15, uv_index=0.10,
            wind_speed=0.10, precipitation_probability=0.10, weather_code=0.10,
        ),
    ),
    Mode.CYCLING: ModeProfile(
        mode=Mode.CYCLING,
        temperature=curves.TEMP_CYCLING,
        wind=curves.WIND_CYCLING,
        precipitation=curves.PRECIPITATION_CYCLING,
        weather_codes=curves.WEATHER_CODES_CYCLING,
        weights=_weights(
            temperature=0.20, feels_like=0.15, humidity=0.10, uv_index=0.05,
            wind_speed=0.25, precipitation_probability=0.15, weather_code=0.10,
        ),
    ),
    Mode.DOG_WALKING: ModeProfile(
        mode=Mode.DOG_WALKING,
        temperature=curves.TEMP_DOG_WALKING,
        wind=curves.WIND_WALKING,
        precipitation=curves.PRECIPITATION,
        weather_codes=curves.WEATHER_CODES,
        uv=curves.UV_DOG_WALKING,
        pavement=curves.PAVEMENT_DOG_WALKING,
        weights=_weights(
            temperature=0.20, feels_like=0.15, humidity=0.10, uv_index=0.10,
            wind_speed=0.05, precipitation_probability=0.10, weather_code=0.10,
            pavement=0.20,
        ),
    ),
    Mode.STARGAZING: ModeProfile(
        mode=Mode.STARGAZING,
        temperature=curves.TEMP_STARGAZING,
        wind=curves.WIND_STARGAZING,
        precipitation=curves.PRECIPITATION,
        weather_codes=curves.WEATHER_CODES_STARGAZING,
        weights=_weights(
            cloud_cover=0.35, weather_code=0.15, visibility=0.15, temperature=0.10,
            wind_speed=0.10, precipitation_probability=0.10, feels_like=0.05,
        ),
    ),
})


def pavement_temperature(hour: HourSample) -> float:
    """Estimate ground temperature (°F) from air temperature, UV and cloud cover."""
    clear_fraction = 1.0 - max(0.0, min(100.0, hour.cloud_cover)) / 100.0
    return hour.temperature + PAVEMENT_UV_GAIN_F * max(0.0, hour.uv_index) * clear_fraction


def sub_scores(hour: HourSample, mode: Mode) -> Dict[str, float]:
    """Every weighted sub-score (0-100) for the hour under ``mode``."""
    profile = PROFILES[Mode(mode)]
    scorers: Dict[str, Callable[[], float]] = {
        "temperature": lambda: curve_score(hour.temperature, profile.temperature),
        "feels_like": lambda: curve_score(hour.feels_like, profile.temperature),
        "humidity": lambda: curve_score(hour.humidity, curves.HUMIDITY),
        "uv_index": lambda: curve_score(hour.uv_index, profile.uv),
        "wind_speed": lambda: curve_score(hour.wind_speed, profile.wind),
        "precipitation_probability": lambda: curve_score(hour.precipitation_probability, profile.precipitation),
        "weather_code": lambda: code_score(hour.weather_code, profile.weather_codes),
        "pavement": lambda: curve_score(pavement_temperature(hour), profile.pavement or ()),
        "cloud_cover": lambda: curve_score(hour.cloud_cover, curves.CLOUD_COVER),
        "visibility": lambda: curve_score(hour.visibility, curves.VISIBILITY),
    }
    return {name: scorers[name]() for name in profile.weights}


def rating_for(score: float) -> Rating:
    """Map a composite score onto its qualitative band."""
    if score >= EXCELLENT_MIN:
        return Rating.EXCELLENT
    if score >= GOOD_MIN:
        return Rating.GOOD
    if score >= FAIR_MIN:
        return Rating.FAIR
    return Rating.POOR


def round_score(value: float) -> float:
    """Round to one decimal with halves going up (4.25 -> 4.3)."""
    return math.floor(value * 10 + 0.5) / 10


def score_hour(hour: HourSample, mode: Mode) -> ScoredHour:
    """Weighted composite for the hour, scaled by its light factor, to one decimal."""
    profile = PROFILES[Mode(mode)]
    subs = sub_scores(hour, profile.mode)
    composite = sum(profile.weights[name] * value for name, value in subs.items())
    composite *= max(0.0, min(1.0, hour.light_factor))
    composite = round_score(max(0.0, min(100.0, composite)))
    return ScoredHour(hour=hour, score=composite, rating=rating_for(composite))
