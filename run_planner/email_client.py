"""Deterioration notices sent through the Resend transactional email API."""

from __future__ import annotations

import base64
import datetime as dt
import html
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo

import requests

from run_planner.config import settings
from run_planner.domain import AlternativeSlot, Mode
from run_planner.ics import ACTIVITY_NOUNS, CalendarEvent, activity_title, generate_ics
from run_planner.scoring import rating_for
from utils.logging_utils import get_tagged_logger, mask_secret

logger = get_tagged_logger(__name__, tag="email_client")


class NotificationError(RuntimeError):
    """Raised when the email provider rejects or fails a send."""


@dataclass(frozen=True)
class DeteriorationNotice:
    """Everything the deterioration email needs to describe the change."""
    email: str
    mode: Mode
    scheduled_time: dt.datetime
    duration_minutes: int
    location_name: str
    timezone: str
    initial_score: float
    current_score: float
    alternative: Optional[AlternativeSlot] = None


def format_local_time(ts: dt.datetime, timezone: str) -> str:
    """Human-friendly local time, e.g. 'Sun, Jun 15, 7:00 AM'."""
    local = ts.astimezone(ZoneInfo(timezone)) if ts.tzinfo else ts
    hour = local.hour % 12 or 12
    return f"{local:%a, %b} {local.day}, {hour}:{local:%M} {local:%p}"


def _score_label(score: float) -> str:
    return f"{score}/100 ({rating_for(score).value})"


def build_subject(notice: DeteriorationNotice) -> str:
    return f"Weather alert: your {ACTIVITY_NOUNS[Mode(notice.mode)]} conditions have worsened"


def build_html(notice: DeteriorationNotice) -> str:
    """Render the HTML body, including the alternative slot when there is one."""
    activity = ACTIVITY_NOUNS[Mode(notice.mode)]
    location = html.escape(notice.location_name)
    when = format_local_time(notice.scheduled_time, notice.timezone)

    alt_section = ""
    if notice.alternative is not None:
        alt_when = format_local_time(notice.alternative.time, notice.timezone)
        alt_section = (
            f"<p><strong>Suggested alternative:</strong> {alt_when} - Score: "
            f"{_score_label(notice.alternative.score)}</p>\n"
            "<p>An updated calendar invite is attached for the better time slot.</p>"
        )

    return f"""
<div style="font-family: sans-serif; max-width: 500px;">
  <h2>Weather conditions have changed</h2>
  <p>Your scheduled {activity} at <strong>{location}</strong> on <strong>{when}</strong> has seen a weather change:</p>
  <table style="border-collapse: collapse; margin: 16px 0;">
    <tr>
      <td style="padding: 4px 12px; color: #666;">Original score</td>
      <td style="padding: 4px 12px; font-weight: bold;">{_score_label(notice.initial_score)}</td>
    </tr>
    <tr>
      <td style="padding: 4px 12px; color: #666;">Current score</td>
      <td style="padding: 4px 12px; font-weight: bold; color: #e53e3e;">{_score_label(notice.current_score)}</td>
    </tr>
  </table>
  {alt_section}
  <p style="color: #666; font-size: 0.85em; margin-top: 24px;">Run Planner</p>
</div>"""


def build_payload(notice: DeteriorationNotice) -> dict:
    """Resend request body; attaches a reschedule invite when an alternative exists."""
    payload = {
        "from": settings.email_from,
        "to": [notice.email],
        "subject": build_subject(notice),
        "html": build_html(notice),
    }
    if notice.alternative is not None:
        ics = generate_ics(CalendarEvent(
            title=activity_title(notice.mode, notice.location_name),
            start=notice.alternative.time,
            duration_minutes=notice.duration_minutes,
            description=f"Rescheduled: Score {notice.alternative.score}/100",
            location=notice.location_name,
        ))
        payload["attachments"] = [{
            "filename": "reschedule.ics",
            "content": base64.b64encode(ics.encode("utf-8")).decode("ascii"),
        }]
    return payload


def send_deterioration_email(notice: DeteriorationNotice, api_key: str) -> None:
    """POST the notice to Resend once; raise NotificationError on any failure."""
    payload = build_payload(notice)
    logger.info(
        f"Sending deterioration email for {Mode(notice.mode).value} at {notice.location_name} "
        f"(key {mask_secret(api_key)})"
    )
    try:
        resp = requests.post(
            settings.resend_url,
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=settings.http_timeout_seconds,
        )
    except requests.exceptions.RequestException as exc:
        raise NotificationError(f"Resend request failed: {exc}") from exc

    if not resp.ok:
        raise NotificationError(f"Resend API error: {resp.status_code} {(resp.text or '')[:200]}")
    logger.debug(f"Resend accepted email: {(resp.text or '')[:200]}")
