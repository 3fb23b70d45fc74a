"""HTTP API for scheduling monitored activities and browsing hourly scores."""

import hmac
import uuid
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests
from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from run_planner import run_manager
from run_planner.config import settings
from run_planner.data_sources import fetch_forecast
from run_planner.domain import ForecastSeries, Mode, Rating
from run_planner.event_models import EventStatus, InitializeRequest
from run_planner.forecast_lookup import resolve_and_score, score_series
from run_planner.ics import CalendarEvent, activity_title, generate_ics
from run_planner.scoring import rating_for
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="run_planner/api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the static api_key setting."""
    # If no key is configured, allow requests (dev/default mode).
    if not settings.api_key:
        logger.debug("No API key configured; allowing all requests")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScheduleRequest(_ApiModel):
    """Incoming request to monitor a scheduled activity."""
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    mode: Mode
    scheduled_time: datetime
    duration_minutes: int = Field(gt=0, le=24 * 60)
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    tz: Optional[str] = None
    location_name: str


class ScheduleResponse(_ApiModel):
    """Identifier of the new monitor plus the score it will be compared against."""
    id: str
    initial_score: float


class HourScore(_ApiModel):
    """One scored forecast hour."""
    time: datetime
    score: float
    rating: Rating
    is_lit: bool


def _resolve_timezone(tz_name: Optional[str]) -> str:
    """Return a valid tz database name, defaulting from settings."""
    tz_str = tz_name or settings.default_timezone
    try:
        ZoneInfo(tz_str)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid timezone: {tz_str}")
    return tz_str


def _fetch(lat: float, lon: float, tz_str: str) -> ForecastSeries:
    """Fetch a forecast, mapping transport failures onto a 502."""
    try:
        return fetch_forecast(lat, lon, timezone=tz_str, forecast_days=settings.forecast_days)
    except requests.exceptions.RequestException as exc:
        logger.error(f"Forecast fetch failed for ({lat}, {lon}): {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Forecast provider unavailable")


def _get_event_or_404(event_id: str):
    event = run_manager.get_status(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Unknown event ID")
    return event


@router.post("/schedule", response_model=ScheduleResponse)
def schedule(req: ScheduleRequest):
    """Score the requested hour and start monitoring it."""
    tz_str = _resolve_timezone(req.tz)
    scheduled_time = req.scheduled_time
    if scheduled_time.tzinfo is None:
        scheduled_time = scheduled_time.replace(tzinfo=ZoneInfo(tz_str))

    series = _fetch(req.lat, req.lon, tz_str)
    initial_score = resolve_and_score(series, scheduled_time, req.mode)

    try:
        init = InitializeRequest(
            id=uuid.uuid4().hex,
            email=req.email,
            mode=req.mode,
            scheduled_time=scheduled_time,
            duration_minutes=req.duration_minutes,
            latitude=req.lat,
            longitude=req.lon,
            timezone=tz_str,
            location_name=req.location_name,
            initial_score=initial_score,
            resend_api_key=settings.resend_api_key or "",
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False),
        )

    event = run_manager.initialize_event(init)
    logger.info(f"Scheduled {req.mode.value} {event.id} with initial score {initial_score}")
    return ScheduleResponse(id=event.id, initial_score=initial_score)


@router.get("/schedule/{event_id}", response_model=EventStatus)
def get_schedule(event_id: str):
    """Return the monitored event, or 404 once it is unknown or expired."""
    return EventStatus.from_event(_get_event_or_404(event_id))


@router.get("/schedule/{event_id}/ics")
def get_schedule_ics(event_id: str):
    """Calendar invite for a monitored event."""
    event = _get_event_or_404(event_id)
    ics = generate_ics(
        CalendarEvent(
            title=activity_title(event.mode, event.location_name),
            start=event.scheduled_time,
            duration_minutes=event.duration_minutes,
            description=f"Weather score: {event.initial_score}/100 ({rating_for(event.initial_score).value})",
            location=event.location_name,
        ),
        uid=event.id,
    )
    return Response(
        content=ics,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{event.mode.value}.ics"'},
    )


@router.get("/scores", response_model=list[HourScore])
def get_scores(lat: float, lon: float, tz: Optional[str] = None, mode: Mode = Mode.RUNNING):
    """Score every forecast hour at a location for one activity."""
    tz_str = _resolve_timezone(tz)
    series = _fetch(lat, lon, tz_str)
    return [
        HourScore(time=scored.time, score=scored.score, rating=scored.rating, is_lit=scored.hour.is_lit)
        for scored in score_series(series, mode)
    ]
