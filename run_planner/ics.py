"""iCalendar (RFC 5545) export for scheduled activities."""

from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass
from typing import Optional

from run_planner.domain import Mode

PRODID = "-//Run Planner//EN"
UID_DOMAIN = "run-planner"

ACTIVITY_TITLES = {
    Mode.RUNNING: "Run",
    Mode.WALKING: "Walk",
    Mode.CYCLING: "Ride",
    Mode.DOG_WALKING: "Dog walk",
    Mode.STARGAZING: "Stargazing",
}

ACTIVITY_NOUNS = {
    Mode.RUNNING: "run",
    Mode.WALKING: "walk",
    Mode.CYCLING: "ride",
    Mode.DOG_WALKING: "dog walk",
    Mode.STARGAZING: "stargazing session",
}


@dataclass(frozen=True)
class CalendarEvent:
    """Inputs for a single calendar entry."""
    title: str
    start: dt.datetime
    duration_minutes: int
    description: str = ""
    location: str = ""


def activity_title(mode: Mode, location_name: str) -> str:
    """Calendar title such as 'Run — Riverside Park'."""
    return f"{ACTIVITY_TITLES[Mode(mode)]} — {location_name}"


def _format_utc(ts: dt.datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=dt.timezone.utc)
    return ts.astimezone(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def generate_ics(event: CalendarEvent, *, now: Optional[dt.datetime] = None, uid: Optional[str] = None) -> str:
    """Render ``event`` as a VCALENDAR with reminders at start-15m and at the finish."""
    end = event.start + dt.timedelta(minutes=event.duration_minutes)
    stamp = now or dt.datetime.now(dt.timezone.utc)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid or uuid.uuid4()}@{UID_DOMAIN}",
        f"DTSTAMP:{_format_utc(stamp)}",
        f"DTSTART:{_format_utc(event.start)}",
        f"DTEND:{_format_utc(end)}",
        f"SUMMARY:{_escape_text(event.title)}",
        f"DESCRIPTION:{_escape_text(event.description)}",
        f"LOCATION:{_escape_text(event.location)}",
        "BEGIN:VALARM",
        "TRIGGER:-PT15M",
        "ACTION:DISPLAY",
        "DESCRIPTION:Starting soon",
        "END:VALARM",
        "BEGIN:VALARM",
        f"TRIGGER:PT{event.duration_minutes}M",
        "ACTION:DISPLAY",
        f"DESCRIPTION:Time to finish your {_escape_text(event.title.lower())}",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"
