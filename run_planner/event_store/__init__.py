"""Durable storage backends for monitored events and their wake alarms."""

from .base import EventStore
from .memory import InMemoryEventStore
from .redis import RedisEventStore
from .sql import SqlEventStore

__all__ = [
    "EventStore",
    "InMemoryEventStore",
    "RedisEventStore",
    "SqlEventStore",
]
