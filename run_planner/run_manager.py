"""Event manager facade: routes every operation for an id through one monitor."""

import datetime as dt
import threading
from typing import Dict, List, Optional

import redis

from run_planner.config import settings
from run_planner.data_sources import fetch_forecast
from run_planner.email_client import send_deterioration_email
from run_planner.event_models import InitializeRequest, MonitoredEvent
from run_planner.event_store import EventStore, InMemoryEventStore, RedisEventStore, SqlEventStore
from run_planner.scheduled_run import RECHECK_INTERVAL, ScheduledRun, utcnow
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="run_manager")


def _init_store() -> EventStore:
    """Initialize the backing event store based on configuration."""
    logger.debug(
        f"Initializing event store: redis_url='{mask_url(settings.event_redis_url) or 'None'}', "
        f"database_url='{mask_url(settings.event_database_url) or 'None'}'"
    )
    if settings.event_redis_url:
        try:
            client = redis.Redis.from_url(settings.event_redis_url)
            client.ping()
            logger.info("Using RedisEventStore", extra={"redis_url": mask_url(settings.event_redis_url)})
            return RedisEventStore(client, prefix=settings.event_redis_prefix)
        except redis.exceptions.RedisError as exc:
            logger.warning("Redis unavailable; trying the next event store", extra={"error": str(exc)})
    if settings.event_database_url:
        return SqlEventStore.from_url(settings.event_database_url)
    logger.info("Using InMemoryEventStore; monitored events will not survive a restart")
    return InMemoryEventStore()


_store: EventStore = _init_store()

# collaborators resolved at call time so tests can patch them on this module
_clock = utcnow

_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(event_id: str) -> threading.Lock:
    with _locks_guard:
        return _locks.setdefault(event_id, threading.Lock())


def _existing_lock(event_id: str) -> Optional[threading.Lock]:
    with _locks_guard:
        return _locks.get(event_id)


def _release_lock(event_id: str) -> None:
    with _locks_guard:
        _locks.pop(event_id, None)


def _monitor(event_id: str) -> ScheduledRun:
    return ScheduledRun(
        event_id,
        _store,
        fetch_forecast=lambda *args, **kwargs: fetch_forecast(*args, **kwargs),
        notify=lambda notice, api_key: send_deterioration_email(notice, api_key),
        clock=lambda: _clock(),
        forecast_days=settings.forecast_days,
    )


def use_in_memory_store_for_tests() -> None:
    """Override store for tests to ensure isolation and determinism."""
    global _store
    _store = InMemoryEventStore()


def get_store() -> EventStore:
    return _store


def initialize_event(request: InitializeRequest) -> MonitoredEvent:
    """Persist a new monitored event and arm its first wake."""
    with _lock_for(request.id):
        return _monitor(request.id).initialize(request)


def get_status(event_id: str) -> Optional[MonitoredEvent]:
    """Fetch the monitored event by ID, or None once it is gone.

    Lookups never create a lock entry; ids without one have no writer to wait for.
    """
    lock = _existing_lock(event_id)
    if lock is None:
        return _monitor(event_id).status()
    with lock:
        return _monitor(event_id).status()


def dispatch_alarm(event_id: str) -> None:
    """Deliver one wake to the monitor for ``event_id``."""
    with _lock_for(event_id):
        _monitor(event_id).alarm()
        gone = _store.get_event(event_id) is None
    if gone:
        _release_lock(event_id)


def run_due_alarms(now: Optional[dt.datetime] = None) -> List[str]:
    """Fire every alarm due at ``now``; returns the ids that were woken.

    Each alarm is claimed in the store before dispatch, so pollers in other
    processes sharing the store skip it.
    """
    now = now or _clock()
    fired = []
    for event_id in _store.due_alarms(now):
        if not _store.claim_alarm(event_id, now):
            logger.debug(f"Alarm for event {event_id} already claimed")
            continue
        try:
            dispatch_alarm(event_id)
            fired.append(event_id)
        except Exception:
            logger.exception(f"Wake dispatch failed for event {event_id}")
            _rearm_after_failure(event_id, now)
    return fired


def _rearm_after_failure(event_id: str, now: dt.datetime) -> None:
    # the claim already disarmed the alarm
    try:
        _store.set_alarm(event_id, now + RECHECK_INTERVAL)
    except Exception:
        logger.exception(f"Could not re-arm alarm for event {event_id}")


def clear_events() -> None:
    """Clear all events from the backing store (dev/testing)."""
    _store.clear()
    with _locks_guard:
        _locks.clear()
