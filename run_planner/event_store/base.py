"""Shared protocol for event storage backends."""

import datetime as dt
from typing import List, Optional, Protocol

from run_planner.event_models import MonitoredEvent


class EventStore(Protocol):
    """Per-event record plus at most one pending wake alarm per event id."""

    def save_event(self, event: MonitoredEvent) -> None:
        """Insert or replace the record for ``event.id``."""

    def get_event(self, event_id: str) -> Optional[MonitoredEvent]:
        """Return the stored record, or None if absent."""

    def mark_alert_sent(self, event_id: str) -> None:
        """Persist ``alert_sent=True``; no-op if the event is gone."""

    def delete_event(self, event_id: str) -> None:
        """Drop the record and any pending alarm."""

    def set_alarm(self, event_id: str, when: dt.datetime) -> None:
        """Arm (or re-arm) the single wake alarm for an event."""

    def get_alarm(self, event_id: str) -> Optional[dt.datetime]:
        """Return the pending alarm time, if any."""

    def clear_alarm(self, event_id: str) -> None:
        """Disarm the alarm without touching the record."""

    def due_alarms(self, now: dt.datetime) -> List[str]:
        """Event ids whose alarm time is at or before ``now``, earliest first."""

    def claim_alarm(self, event_id: str, now: dt.datetime) -> bool:
        """Atomically disarm the alarm if it is still due at ``now``.

        Returns True for exactly one caller per due alarm, so a wake is
        dispatched once even when several processes poll the same store.
        """

    def clear(self) -> None:
        """Remove every event and alarm."""
