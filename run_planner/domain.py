"""Domain vocabulary for hourly activity scoring.

Enums for the activity modes and qualitative ratings, plus the immutable
records that flow between the forecast client, the light models and the
scorer. No scoring logic lives here.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

DEFAULT_CLOUD_COVER = 50.0
DEFAULT_VISIBILITY_M = 20000.0
DEFAULT_HUMIDITY = 50.0

# columns whose nulls fall back to a neutral value; temperature and weather
# code have no neutral value, so hours missing them are unusable
NEUTRAL_DEFAULTS = {
    "humidity": DEFAULT_HUMIDITY,
    "wind_speed": 0.0,
    "uv_index": 0.0,
    "precipitation_probability": 0.0,
}


class Mode(str, Enum):
    """Outdoor activity being planned."""
    RUNNING = "running"
    WALKING = "walking"
    CYCLING = "cycling"
    DOG_WALKING = "dog_walking"
    STARGAZING = "stargazing"


class Rating(str, Enum):
    """Qualitative band for a composite score."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


@dataclass(frozen=True)
class SunTimes:
    """Sunrise and sunset for one local calendar day."""
    sunrise: dt.datetime
    sunset: dt.datetime


@dataclass(frozen=True)
class LightInfo:
    """Light classification for an hour: lit flag plus score multiplier."""
    is_lit: bool
    factor: float


@dataclass(frozen=True)
class HourSample:
    """One forecast hour, ready to be scored."""
    time: dt.datetime
    temperature: float
    humidity: float
    feels_like: float
    weather_code: int
    wind_speed: float
    uv_index: float
    precipitation_probability: float
    is_lit: bool
    light_factor: float
    cloud_cover: float = DEFAULT_CLOUD_COVER
    visibility: float = DEFAULT_VISIBILITY_M


@dataclass(frozen=True)
class ScoredHour:
    """An hour with its composite score and rating."""
    hour: HourSample
    score: float
    rating: Rating

    @property
    def time(self) -> dt.datetime:
        return self.hour.time


@dataclass(frozen=True)
class AlternativeSlot:
    """Best-scoring replacement hour for a scheduled activity."""
    time: dt.datetime
    score: float


@dataclass
class ForecastSeries:
    """Index-aligned hourly forecast arrays plus the per-day sun table.

    ``times`` are timezone-aware local timestamps; ``days`` is keyed by local
    calendar date. Cloud cover and visibility are optional and fall back to
    neutral defaults when absent. Open-Meteo reports gaps as nulls; see
    ``value_at`` and ``is_usable``.
    """
    timezone: str
    times: List[dt.datetime]
    temperature: List[Optional[float]]
    humidity: List[Optional[float]]
    feels_like: List[Optional[float]]
    weather_code: List[Optional[int]]
    wind_speed: List[Optional[float]]
    uv_index: List[Optional[float]]
    precipitation_probability: List[Optional[float]]
    cloud_cover: Optional[List[Optional[float]]] = None
    visibility: Optional[List[Optional[float]]] = None
    days: Dict[dt.date, SunTimes] = field(default_factory=dict)

    def __post_init__(self) -> None:
        expected = len(self.times)
        columns = {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "feels_like": self.feels_like,
            "weather_code": self.weather_code,
            "wind_speed": self.wind_speed,
            "uv_index": self.uv_index,
            "precipitation_probability": self.precipitation_probability,
            "cloud_cover": self.cloud_cover,
            "visibility": self.visibility,
        }
        for name, values in columns.items():
            if values is not None and len(values) != expected:
                raise ValueError(f"Forecast column '{name}' has {len(values)} values, expected {expected}")

    def __len__(self) -> int:
        return len(self.times)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def localize(self, ts: dt.datetime) -> dt.datetime:
        """Express ``ts`` in the series timezone; naive values are read as local."""
        if ts.tzinfo is None:
            return ts.replace(tzinfo=self.tz)
        return ts.astimezone(self.tz)

    def cloud_cover_at(self, index: int) -> float:
        value = self.cloud_cover[index] if self.cloud_cover is not None else None
        return DEFAULT_CLOUD_COVER if value is None else float(value)

    def visibility_at(self, index: int) -> float:
        value = self.visibility[index] if self.visibility is not None else None
        return DEFAULT_VISIBILITY_M if value is None else float(value)

    def is_usable(self, index: int) -> bool:
        """True when the hour carries both a temperature and a weather code."""
        return self.temperature[index] is not None and self.weather_code[index] is not None

    def value_at(self, column: str, index: int) -> float:
        """Hourly value of ``column``, with nulls replaced by the column's neutral default."""
        value = getattr(self, column)[index]
        if value is not None:
            return float(value)
        if column == "feels_like":
            return float(self.temperature[index])
        return NEUTRAL_DEFAULTS[column]
