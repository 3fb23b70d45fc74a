"""Monitoring state machine for one scheduled activity.

A ``ScheduledRun`` is bound to one event id. ``initialize`` persists the event
and arms the first wake; every ``alarm`` re-scores the scheduled hour against a
fresh forecast and sends at most one deterioration notice before the event
time passes. Once the scheduled time is behind us the next wake deletes all
state for the event.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

from run_planner.domain import ForecastSeries
from run_planner.email_client import DeteriorationNotice
from run_planner.event_models import InitializeRequest, MonitoredEvent
from run_planner.event_store import EventStore
from run_planner.forecast_lookup import find_best_alternative, resolve_and_score
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="scheduled_run")

DETERIORATION_THRESHOLD = 15.0
RECHECK_INTERVAL = dt.timedelta(minutes=30)
FIRST_CHECK_DELAY = dt.timedelta(hours=1)
FIRST_CHECK_LEAD = dt.timedelta(hours=2)
MIN_ALARM_DELAY = dt.timedelta(minutes=1)

ForecastFetcher = Callable[..., ForecastSeries]
Notifier = Callable[[DeteriorationNotice, str], None]
Clock = Callable[[], dt.datetime]


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def first_alarm_time(now: dt.datetime, scheduled: dt.datetime) -> dt.datetime:
    """First wake: two hours ahead of the event, never sooner than a minute, never later than an hour."""
    return min(now + FIRST_CHECK_DELAY, max(now + MIN_ALARM_DELAY, scheduled - FIRST_CHECK_LEAD))


class ScheduledRun:
    """Per-event monitor over a durable store and injectable collaborators."""

    def __init__(
        self,
        event_id: str,
        store: EventStore,
        *,
        fetch_forecast: ForecastFetcher,
        notify: Notifier,
        clock: Clock = utcnow,
        forecast_days: int = 2,
    ) -> None:
        self.event_id = event_id
        self.store = store
        self.fetch_forecast = fetch_forecast
        self.notify = notify
        self.clock = clock
        self.forecast_days = forecast_days

    def initialize(self, request: InitializeRequest) -> MonitoredEvent:
        """Persist the event (alert not yet sent) and arm the first wake."""
        if request.id != self.event_id:
            raise ValueError(f"Request id {request.id!r} does not match monitor {self.event_id!r}")

        event = MonitoredEvent.model_validate({**request.model_dump(), "alert_sent": False})
        now = self.clock()
        wake = first_alarm_time(now, event.scheduled_time)
        self.store.save_event(event)
        self.store.set_alarm(self.event_id, wake)
        logger.info(
            f"Monitoring {event.mode.value} {self.event_id} at {event.scheduled_time.isoformat()}; "
            f"first check {wake.isoformat()}"
        )
        return event

    def status(self) -> Optional[MonitoredEvent]:
        return self.store.get_event(self.event_id)

    def alarm(self) -> None:
        """Handle one wake; never raises for collaborator failures."""
        event = self.store.get_event(self.event_id)
        if event is None:
            logger.debug(f"Wake for unknown event {self.event_id}; clearing alarm")
            self.store.clear_alarm(self.event_id)
            return

        now = self.clock()
        if now > event.scheduled_time:
            logger.info(f"Event {self.event_id} has passed; deleting state")
            self.store.delete_event(self.event_id)
            return

        try:
            self._check_conditions(event, now)
        except Exception:
            logger.exception(f"Condition check failed for event {self.event_id}")
        finally:
            self.store.set_alarm(self.event_id, now + RECHECK_INTERVAL)

    def _check_conditions(self, event: MonitoredEvent, now: dt.datetime) -> None:
        series = self.fetch_forecast(
            event.latitude,
            event.longitude,
            timezone=event.timezone,
            forecast_days=self.forecast_days,
        )
        current = resolve_and_score(series, event.scheduled_time, event.mode)
        drop = event.initial_score - current
        logger.debug(
            f"Event {self.event_id}: initial {event.initial_score}, current {current}, drop {drop:.1f}"
        )

        if drop < DETERIORATION_THRESHOLD or event.alert_sent:
            return
        if not event.resend_api_key:
            logger.warning(f"Event {self.event_id} deteriorated but no email credential is configured")
            return

        alternative = find_best_alternative(series, event.scheduled_time, event.mode, now=now)
        notice = DeteriorationNotice(
            email=event.email,
            mode=event.mode,
            scheduled_time=event.scheduled_time,
            duration_minutes=event.duration_minutes,
            location_name=event.location_name,
            timezone=event.timezone,
            initial_score=event.initial_score,
            current_score=current,
            alternative=alternative,
        )
        self.notify(notice, event.resend_api_key)
        self.store.mark_alert_sent(self.event_id)
        logger.info(f"Deterioration notice sent for event {self.event_id} (drop {drop:.1f})")
