"""SQL-backed event store using SQLAlchemy Core.

Each event is one row in the ``event`` table: the JSON record in ``payload``
and the pending wake time, as epoch seconds, in ``alarm_at`` (NULL when no
alarm is armed).
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from run_planner.event_models import MonitoredEvent
from run_planner.event_store.base import EventStore
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="event_store/sql_event_store")

_CREATE_TABLE = text(
    "CREATE TABLE IF NOT EXISTS event ("
    " id VARCHAR(255) PRIMARY KEY,"
    " payload TEXT NOT NULL,"
    " alarm_at REAL"
    ")"
)


class SqlEventStore(EventStore):
    """Persist monitored events in a relational database."""

    def __init__(self, engine: Engine) -> None:
        """Bind to an engine and make sure the ``event`` table exists."""
        self.engine = engine
        with self.engine.begin() as conn:
            conn.execute(_CREATE_TABLE)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlEventStore":
        """Create an engine from a URL and build the store."""
        logger.info(f"Using SqlEventStore at {mask_url(database_url)}")
        engine = create_engine(database_url, future=True)
        return cls(engine)

    def save_event(self, event: MonitoredEvent) -> None:
        """Upsert the record, keeping any alarm already armed for it."""
        with self.engine.begin() as conn:
            existing = conn.execute(
                text("SELECT alarm_at FROM event WHERE id = :id"), {"id": event.id}
            ).first()
            alarm_at = existing[0] if existing else None
            conn.execute(text("DELETE FROM event WHERE id = :id"), {"id": event.id})
            conn.execute(
                text("INSERT INTO event (id, payload, alarm_at) VALUES (:id, :payload, :alarm_at)"),
                {"id": event.id, "payload": event.model_dump_json(), "alarm_at": alarm_at},
            )

    def get_event(self, event_id: str) -> Optional[MonitoredEvent]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT payload FROM event WHERE id = :id"), {"id": event_id}
            ).first()
        if row is None:
            return None
        try:
            return MonitoredEvent.model_validate_json(row[0])
        except ValidationError as exc:
            logger.error(f"Discarding unreadable event {event_id}: {exc}")
            return None

    def mark_alert_sent(self, event_id: str) -> None:
        event = self.get_event(event_id)
        if event is None:
            return
        with self.engine.begin() as conn:
            conn.execute(
                text("UPDATE event SET payload = :payload WHERE id = :id"),
                {"id": event_id, "payload": event.model_copy(update={"alert_sent": True}).model_dump_json()},
            )

    def delete_event(self, event_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("DELETE FROM event WHERE id = :id"), {"id": event_id})

    def set_alarm(self, event_id: str, when: dt.datetime) -> None:
        """Arm the alarm; events without a stored record cannot hold one."""
        with self.engine.begin() as conn:
            updated = conn.execute(
                text("UPDATE event SET alarm_at = :alarm_at WHERE id = :id"),
                {"id": event_id, "alarm_at": when.timestamp()},
            ).rowcount
        if updated == 0:
            logger.warning(f"Ignoring alarm for unknown event {event_id}")

    def get_alarm(self, event_id: str) -> Optional[dt.datetime]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT alarm_at FROM event WHERE id = :id"), {"id": event_id}
            ).first()
        if row is None or row[0] is None:
            return None
        return dt.datetime.fromtimestamp(float(row[0]), tz=dt.timezone.utc)

    def clear_alarm(self, event_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("UPDATE event SET alarm_at = NULL WHERE id = :id"), {"id": event_id})

    def due_alarms(self, now: dt.datetime) -> List[str]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                text(
                    "SELECT id FROM event WHERE alarm_at IS NOT NULL AND alarm_at <= :now "
                    "ORDER BY alarm_at, id"
                ),
                {"now": now.timestamp()},
            ).fetchall()
        return [row[0] for row in rows]

    def claim_alarm(self, event_id: str, now: dt.datetime) -> bool:
        with self.engine.begin() as conn:
            claimed = conn.execute(
                text(
                    "UPDATE event SET alarm_at = NULL "
                    "WHERE id = :id AND alarm_at IS NOT NULL AND alarm_at <= :now"
                ),
                {"id": event_id, "now": now.timestamp()},
            ).rowcount
        return claimed == 1

    def clear(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("DELETE FROM event"))
