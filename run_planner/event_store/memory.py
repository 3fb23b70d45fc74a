"""In-memory event store, intended for development and tests."""

import datetime as dt
import threading
from typing import Dict, List, Optional

from run_planner.event_models import MonitoredEvent
from run_planner.event_store.base import EventStore

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="event_store/in_memory_event_store")


class InMemoryEventStore(EventStore):
    """Thread-safe dict-backed store; state does not survive a restart."""

    def __init__(self) -> None:
        logger.debug("Initializing InMemoryEventStore")
        self._events: Dict[str, MonitoredEvent] = {}
        self._alarms: Dict[str, dt.datetime] = {}
        self._lock = threading.Lock()

    def save_event(self, event: MonitoredEvent) -> None:
        with self._lock:
            self._events[event.id] = event.model_copy(deep=True)

    def get_event(self, event_id: str) -> Optional[MonitoredEvent]:
        with self._lock:
            event = self._events.get(event_id)
            return event.model_copy(deep=True) if event else None

    def mark_alert_sent(self, event_id: str) -> None:
        with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return
            self._events[event_id] = event.model_copy(update={"alert_sent": True})

    def delete_event(self, event_id: str) -> None:
        with self._lock:
            self._events.pop(event_id, None)
            self._alarms.pop(event_id, None)

    def set_alarm(self, event_id: str, when: dt.datetime) -> None:
        with self._lock:
            self._alarms[event_id] = when

    def get_alarm(self, event_id: str) -> Optional[dt.datetime]:
        with self._lock:
            return self._alarms.get(event_id)

    def clear_alarm(self, event_id: str) -> None:
        with self._lock:
            self._alarms.pop(event_id, None)

    def due_alarms(self, now: dt.datetime) -> List[str]:
        with self._lock:
            due = [(when, event_id) for event_id, when in self._alarms.items() if when <= now]
        return [event_id for _when, event_id in sorted(due)]

    def claim_alarm(self, event_id: str, now: dt.datetime) -> bool:
        with self._lock:
            when = self._alarms.get(event_id)
            if when is None or when > now:
                return False
            del self._alarms[event_id]
            return True

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self._alarms.clear()
