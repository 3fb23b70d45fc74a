"""Redis-backed event store: JSON records plus a sorted set of alarm times."""

import datetime as dt
from typing import List, Optional

from pydantic import ValidationError
from redis.exceptions import WatchError

from run_planner.event_models import MonitoredEvent
from run_planner.event_store.base import EventStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="event_store/redis_event_store")


class RedisEventStore(EventStore):
    """Stores each event under ``<prefix>event:<id>``; alarms live in ``<prefix>alarms``."""

    def __init__(self, client, prefix: str = "run_planner:") -> None:
        """Bind to a Redis client and key prefix."""
        logger.debug("Initializing RedisEventStore")
        self.client = client
        self.prefix = prefix

    def _key(self, event_id: str) -> str:
        """Return the Redis key for an event id."""
        return f"{self.prefix}event:{event_id}"

    @property
    def _alarm_key(self) -> str:
        return f"{self.prefix}alarms"

    @staticmethod
    def _decode(value) -> str:
        return value.decode("utf-8") if isinstance(value, bytes) else str(value)

    def save_event(self, event: MonitoredEvent) -> None:
        try:
            self.client.set(self._key(event.id), event.model_dump_json().encode("utf-8"))
        except Exception as exc:
            logger.error("Failed to write event to Redis: %s", exc)
            raise

    def get_event(self, event_id: str) -> Optional[MonitoredEvent]:
        try:
            raw = self.client.get(self._key(event_id))
        except Exception as exc:
            logger.error("Failed to read event from Redis: %s", exc)
            raise
        if not raw:
            return None
        try:
            return MonitoredEvent.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Discarding unreadable event %s: %s", event_id, exc)
            return None

    def mark_alert_sent(self, event_id: str) -> None:
        event = self.get_event(event_id)
        if event is None:
            return
        self.save_event(event.model_copy(update={"alert_sent": True}))

    def delete_event(self, event_id: str) -> None:
        try:
            self.client.delete(self._key(event_id))
            self.client.zrem(self._alarm_key, event_id)
        except Exception as exc:
            logger.error("Failed to delete event from Redis: %s", exc)
            raise

    def set_alarm(self, event_id: str, when: dt.datetime) -> None:
        try:
            self.client.zadd(self._alarm_key, {event_id: when.timestamp()})
        except Exception as exc:
            logger.error("Failed to set alarm in Redis: %s", exc)
            raise

    def get_alarm(self, event_id: str) -> Optional[dt.datetime]:
        score = self.client.zscore(self._alarm_key, event_id)
        if score is None:
            return None
        return dt.datetime.fromtimestamp(float(score), tz=dt.timezone.utc)

    def clear_alarm(self, event_id: str) -> None:
        self.client.zrem(self._alarm_key, event_id)

    def due_alarms(self, now: dt.datetime) -> List[str]:
        try:
            members = self.client.zrangebyscore(self._alarm_key, "-inf", now.timestamp())
        except Exception as exc:
            logger.error("Failed to read due alarms from Redis: %s", exc)
            return []
        return [self._decode(m) for m in members]

    def claim_alarm(self, event_id: str, now: dt.datetime) -> bool:
        """Remove the alarm under WATCH so only one poller wins it."""
        with self.client.pipeline() as pipe:
            try:
                pipe.watch(self._alarm_key)
                score = pipe.zscore(self._alarm_key, event_id)
                if score is None or float(score) > now.timestamp():
                    pipe.unwatch()
                    return False
                pipe.multi()
                pipe.zrem(self._alarm_key, event_id)
                removed = pipe.execute()[0]
            except WatchError:
                logger.debug("Alarm set changed while claiming %s; leaving it for the next poll", event_id)
                return False
        return bool(removed)

    def clear(self) -> None:
        """Best-effort clear for every key under the configured prefix."""
        try:
            for key in self.client.scan_iter(f"{self.prefix}*"):
                self.client.delete(key)
        except Exception as exc:
            logger.error("Failed to clear events from Redis: %s", exc)
