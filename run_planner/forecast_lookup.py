"""Resolve target times onto forecast hours and search for better nearby slots."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from run_planner.daylight import light_for_mode
from run_planner.domain import AlternativeSlot, ForecastSeries, HourSample, Mode, ScoredHour
from run_planner.scoring import score_hour
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_lookup")

# returned when the series holds no hours; a sentinel, not a measured score
NO_DATA_SCORE = 50.0
ALTERNATIVE_WINDOW = dt.timedelta(hours=4)


def build_hour_sample(series: ForecastSeries, index: int, mode: Mode) -> HourSample:
    """Assemble the hour at ``index`` with the light model that fits ``mode``.

    ``index`` must be usable (see ``ForecastSeries.is_usable``).
    """
    time = series.localize(series.times[index])
    light = light_for_mode(time, series.days, mode)
    return HourSample(
        time=time,
        temperature=float(series.temperature[index]),
        humidity=series.value_at("humidity", index),
        feels_like=series.value_at("feels_like", index),
        weather_code=int(series.weather_code[index]),
        wind_speed=series.value_at("wind_speed", index),
        uv_index=series.value_at("uv_index", index),
        precipitation_probability=series.value_at("precipitation_probability", index),
        is_lit=light.is_lit,
        light_factor=light.factor,
        cloud_cover=series.cloud_cover_at(index),
        visibility=series.visibility_at(index),
    )


def resolve_index(series: ForecastSeries, target: dt.datetime) -> Optional[int]:
    """Index of the hour matching ``target``: exact hour first, else the nearest sample.

    Hours missing a temperature or weather code are never chosen; None when
    no usable hour remains.
    """
    usable = [i for i in range(len(series)) if series.is_usable(i)]
    if not usable:
        return None
    local_target = series.localize(target)
    target_hour = local_target.replace(minute=0, second=0, microsecond=0)
    for i in usable:
        if series.localize(series.times[i]) == target_hour:
            return i

    best_index = usable[0]
    best_distance = None
    for i in usable:
        t = series.times[i]
        distance = abs((series.localize(t) - local_target).total_seconds())
        if best_distance is None or distance < best_distance:
            best_index, best_distance = i, distance
    return best_index


def resolve_and_score(series: ForecastSeries, target: dt.datetime, mode: Mode) -> float:
    """Composite score for the forecast hour nearest ``target``, or 50 with no data."""
    index = resolve_index(series, target)
    if index is None:
        logger.warning("No usable forecast hours; returning neutral score")
        return NO_DATA_SCORE
    return score_hour(build_hour_sample(series, index, mode), mode).score


def score_series(series: ForecastSeries, mode: Mode) -> List[ScoredHour]:
    """Score every usable hour of the series under ``mode``."""
    return [
        score_hour(build_hour_sample(series, i, mode), mode)
        for i in range(len(series))
        if series.is_usable(i)
    ]


def find_best_alternative(
    series: ForecastSeries,
    target: dt.datetime,
    mode: Mode,
    *,
    now: Optional[dt.datetime] = None,
) -> Optional[AlternativeSlot]:
    """
    Best future hour within four hours of ``target`` on the same local day.

    Skips the target slot itself, hours at or before ``now``, and hours whose
    light does not suit the mode (daylight for most modes, dark for
    stargazing) along with hours missing a temperature or weather code. Ties
    keep the first hour in series order. Returns None when nothing qualifies.
    """
    mode = Mode(mode)
    local_target = series.localize(target)
    current = series.localize(now or dt.datetime.now(dt.timezone.utc))
    want_lit = mode is not Mode.STARGAZING
    target_index = resolve_index(series, target)

    best: Optional[AlternativeSlot] = None
    for i, raw_time in enumerate(series.times):
        t = series.localize(raw_time)
        if t.date() != local_target.date():
            continue
        if t <= current:
            continue
        if abs(t - local_target) > ALTERNATIVE_WINDOW:
            continue
        if i == target_index or t == local_target:
            continue
        if not series.is_usable(i):
            continue

        sample = build_hour_sample(series, i, mode)
        if sample.is_lit != want_lit:
            continue

        scored = score_hour(sample, mode)
        if best is None or scored.score > best.score:
            best = AlternativeSlot(time=raw_time, score=scored.score)

    if best is None:
        logger.debug(f"No alternative slot for {mode.value} near {local_target.isoformat()}")
    return best
