"""Pydantic schemas for monitored events and their initialization payload.

Field names are snake_case in Python and camelCase on the wire
(``scheduledTime``, ``durationMinutes``); ``lat``/``lon``/``tz`` keep their
short public names.
"""

from __future__ import annotations

import datetime as dt
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from run_planner.domain import Mode


class _CamelModel(BaseModel):
    """Base model accepting either camelCase aliases or field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


def _validate_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {value}") from exc
    return value


class EventDetails(_CamelModel):
    """Fields shared by every monitored-event shape."""
    id: str = Field(min_length=1)
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    mode: Mode
    scheduled_time: dt.datetime
    duration_minutes: int = Field(gt=0, le=24 * 60)
    latitude: float = Field(ge=-90.0, le=90.0, alias="lat")
    longitude: float = Field(ge=-180.0, le=180.0, alias="lon")
    timezone: str = Field(alias="tz")
    location_name: str
    initial_score: float = Field(ge=0.0, le=100.0)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        """Reject names the tz database does not know."""
        return _validate_timezone(v)

    @model_validator(mode="after")
    def localize_scheduled_time(self):
        """Read a naive scheduled time as local time at the event location."""
        if self.scheduled_time.tzinfo is None:
            self.scheduled_time = self.scheduled_time.replace(tzinfo=ZoneInfo(self.timezone))
        return self


class InitializeRequest(EventDetails):
    """Everything a monitor needs to start watching an event."""
    resend_api_key: str = ""


class MonitoredEvent(InitializeRequest):
    """Persisted monitor state; ``alert_sent`` flips to True at most once."""
    alert_sent: bool = False


class EventStatus(EventDetails):
    """Public view of a monitored event (no notification credential)."""
    model_config = ConfigDict(extra="ignore")

    alert_sent: bool = False

    @classmethod
    def from_event(cls, event: MonitoredEvent) -> "EventStatus":
        return cls.model_validate(event.model_dump())
