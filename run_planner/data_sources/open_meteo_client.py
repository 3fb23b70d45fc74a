"""Fetch hourly forecasts and sun times from the Open-Meteo forecast API."""
from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

import requests_cache
from retry_requests import retry

from run_planner.config import settings
from run_planner.domain import ForecastSeries, SunTimes
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="open_meteo_client")

cache_session = requests_cache.CachedSession(
    ".forecast_cache",
    expire_after=settings.forecast_cache_seconds,
)
session = retry(cache_session, retries=settings.forecast_http_retries, backoff_factor=0.2)

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

HOURLY_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "weather_code",
    "wind_speed_10m",
    "uv_index",
    "precipitation_probability",
    "cloud_cover",
    "visibility",
]
DAILY_VARS = ["sunrise", "sunset"]

EXPECTED_HOURLY_UNITS = {
    "temperature_2m": "°F",
    "relative_humidity_2m": "%",
    "apparent_temperature": "°F",
    "wind_speed_10m": "mph",
    "precipitation_probability": "%",
    "cloud_cover": "%",
}

# Acceptable alternative spellings that should not trigger warnings.
ALLOWED_UNIT_SYNONYMS = {
    "temperature_2m": {"°F", "F"},
    "relative_humidity_2m": {"%", "percent"},
    "apparent_temperature": {"°F", "F"},
    "wind_speed_10m": {"mph"},
    "precipitation_probability": {"%", "percent"},
    "cloud_cover": {"%", "percent"},
}


def _iso_to_dt_with_tz(s: str, tz_name: str) -> dt.datetime:
    """Interpret Open-Meteo local time string as being in tz_name."""
    naive = dt.datetime.fromisoformat(s)
    return naive.replace(tzinfo=ZoneInfo(tz_name))


def _warn_on_unexpected_units(units: dict, *, context: str) -> None:
    """Log a warning if Open-Meteo returns units the curves were not built for."""
    if not units:
        return
    for field, expected in EXPECTED_HOURLY_UNITS.items():
        actual = units.get(field)
        if actual and actual != expected and actual not in ALLOWED_UNIT_SYNONYMS.get(field, set()):
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": field, "unit": actual, "expected": expected},
            )


def _optional_column(hourly: dict, key: str, length: int) -> Optional[List[Optional[float]]]:
    """Return an optional hourly column, or None if the API omitted it."""
    values = hourly.get(key)
    if values is None:
        return None
    if len(values) != length:
        logger.warning(f"Dropping misaligned column {key}: {len(values)} values for {length} hours")
        return None
    return values


def parse_forecast(data: dict, timezone: str) -> ForecastSeries:
    """Convert an Open-Meteo forecast response into a ForecastSeries."""
    hourly = data.get("hourly") or {}
    _warn_on_unexpected_units(data.get("hourly_units") or {}, context="forecast_hourly")
    times = hourly.get("time") or []
    n = len(times)

    daily = data.get("daily") or {}
    days: Dict[dt.date, SunTimes] = {}
    for date_str, sunrise, sunset in zip(daily.get("time") or [], daily.get("sunrise") or [],
                                         daily.get("sunset") or []):
        if not sunrise or not sunset:
            continue
        days[dt.date.fromisoformat(date_str)] = SunTimes(
            sunrise=_iso_to_dt_with_tz(sunrise, timezone),
            sunset=_iso_to_dt_with_tz(sunset, timezone),
        )

    return ForecastSeries(
        timezone=timezone,
        times=[_iso_to_dt_with_tz(t, timezone) for t in times],
        temperature=hourly.get("temperature_2m", []),
        humidity=hourly.get("relative_humidity_2m", []),
        feels_like=hourly.get("apparent_temperature", []),
        weather_code=hourly.get("weather_code", []),
        wind_speed=hourly.get("wind_speed_10m", []),
        uv_index=hourly.get("uv_index", []),
        precipitation_probability=hourly.get("precipitation_probability", []),
        cloud_cover=_optional_column(hourly, "cloud_cover", n),
        visibility=_optional_column(hourly, "visibility", n),
        days=days,
    )


def fetch_forecast(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "America/Chicago",
    forecast_days: int = 2,
) -> ForecastSeries:
    """Fetch ``forecast_days`` of hourly weather plus sunrise/sunset for a location.

    Raises ``requests.HTTPError`` on a non-success status.
    """
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(HOURLY_VARS),
        "daily": ",".join(DAILY_VARS),
        "forecast_days": forecast_days,
        "timezone": timezone,
        "temperature_unit": "fahrenheit",
        "wind_speed_unit": "mph",
    }

    logger.debug(f"Fetching forecast for ({latitude}, {longitude}) tz={timezone} days={forecast_days}")
    resp = session.get(OPEN_METEO_FORECAST_URL, params=params, timeout=settings.http_timeout_seconds)
    resp.raise_for_status()
    return parse_forecast(resp.json(), timezone)
