"""Daylight and darkness classification for forecast hours.

Both models look up the hour's local date in the sun table and split the day
into full light, a 30-minute twilight band on either side of sunrise and
sunset (inclusive at the boundary), and night. Unknown dates never raise.
"""

from __future__ import annotations

import datetime as dt
from typing import Mapping

from run_planner.domain import LightInfo, Mode, SunTimes

TWILIGHT = dt.timedelta(minutes=30)

DAYLIGHT_FULL = LightInfo(is_lit=True, factor=1.0)
DAYLIGHT_TWILIGHT_INSIDE = LightInfo(is_lit=True, factor=0.6)
DAYLIGHT_TWILIGHT_OUTSIDE = LightInfo(is_lit=False, factor=0.6)
DAYLIGHT_NIGHT = LightInfo(is_lit=False, factor=0.3)
DAYLIGHT_UNKNOWN = DAYLIGHT_FULL

DARKNESS_NIGHT = LightInfo(is_lit=False, factor=1.0)
DARKNESS_TWILIGHT_OUTSIDE = LightInfo(is_lit=False, factor=0.3)
DARKNESS_TWILIGHT_INSIDE = LightInfo(is_lit=True, factor=0.3)
DARKNESS_DAY = LightInfo(is_lit=True, factor=0.05)
DARKNESS_UNKNOWN = LightInfo(is_lit=False, factor=0.05)


def _classify(hour_time: dt.datetime, day: SunTimes) -> str:
    """Return 'day', 'inside' (twilight band within sunrise-sunset), 'outside' (band just beyond it) or 'night'."""
    sunrise, sunset = day.sunrise, day.sunset
    if sunrise <= hour_time <= sunset:
        if hour_time - sunrise <= TWILIGHT or sunset - hour_time <= TWILIGHT:
            return "inside"
        return "day"
    if hour_time < sunrise and sunrise - hour_time <= TWILIGHT:
        return "outside"
    if hour_time > sunset and hour_time - sunset <= TWILIGHT:
        return "outside"
    return "night"


def compute_daylight(hour_time: dt.datetime, days: Mapping[dt.date, SunTimes]) -> LightInfo:
    """Light info for daylight activities; unknown days count as full daylight."""
    day = days.get(hour_time.date())
    if day is None:
        return DAYLIGHT_UNKNOWN
    return {
        "day": DAYLIGHT_FULL,
        "inside": DAYLIGHT_TWILIGHT_INSIDE,
        "outside": DAYLIGHT_TWILIGHT_OUTSIDE,
        "night": DAYLIGHT_NIGHT,
    }[_classify(hour_time, day)]


def compute_darkness(hour_time: dt.datetime, days: Mapping[dt.date, SunTimes]) -> LightInfo:
    """Light info for stargazing: deep night scores fully, daylight almost not at all."""
    day = days.get(hour_time.date())
    if day is None:
        return DARKNESS_UNKNOWN
    return {
        "day": DARKNESS_DAY,
        "inside": DARKNESS_TWILIGHT_INSIDE,
        "outside": DARKNESS_TWILIGHT_OUTSIDE,
        "night": DARKNESS_NIGHT,
    }[_classify(hour_time, day)]


def light_for_mode(hour_time: dt.datetime, days: Mapping[dt.date, SunTimes], mode: Mode) -> LightInfo:
    """Pick the light model that fits the activity."""
    if Mode(mode) is Mode.STARGAZING:
        return compute_darkness(hour_time, days)
    return compute_daylight(hour_time, days)
