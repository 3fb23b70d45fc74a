"""Forecast data sources."""

from .open_meteo_client import fetch_forecast, parse_forecast

__all__ = [
    "fetch_forecast",
    "parse_forecast",
]
