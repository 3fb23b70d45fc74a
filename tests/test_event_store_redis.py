import unittest

from redis.exceptions import WatchError

from event_store_contract import EventStoreContract, make_event
from forecast_factories import local
from run_planner.event_store.redis import RedisEventStore


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.zsets = {}

    def set(self, key, value):
        self.store[key] = value

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.store.pop(key, None)
        self.zsets.pop(key, None)

    def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)

    def zrem(self, key, member):
        return 0 if self.zsets.get(key, {}).pop(member, None) is None else 1

    def zscore(self, key, member):
        return self.zsets.get(key, {}).get(member)

    def zrangebyscore(self, key, lo, hi):
        lo = float(lo)
        items = sorted((score, member) for member, score in self.zsets.get(key, {}).items())
        return [member.encode("utf-8") for score, member in items if lo <= score <= float(hi)]

    def scan_iter(self, pattern):
        prefix = pattern.rstrip("*")
        keys = list(self.store.keys()) + list(self.zsets.keys())
        return [k for k in keys if k.startswith(prefix)]

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """WATCH/MULTI/EXEC over FakeRedis; ``conflict`` simulates a concurrent write."""

    conflict = False

    def __init__(self, client):
        self.client = client
        self.queued = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def watch(self, key):
        pass

    def unwatch(self):
        pass

    def zscore(self, key, member):
        return self.client.zscore(key, member)

    def multi(self):
        self.queued = []

    def zrem(self, key, member):
        self.queued.append((key, member))

    def execute(self):
        if FakePipeline.conflict:
            raise WatchError("watched key changed")
        return [self.client.zrem(key, member) for key, member in self.queued]


class TestRedisEventStore(EventStoreContract, unittest.TestCase):
    def make_store(self):
        self.client = FakeRedis()
        return RedisEventStore(self.client, prefix="test:")

    def test_key_layout(self):
        self.store.save_event(make_event())
        self.store.set_alarm("evt-1", local(9))
        self.assertIn("test:event:evt-1", self.client.store)
        self.assertEqual(self.client.zsets["test:alarms"]["evt-1"], local(9).timestamp())

    def test_get_event_handles_corrupt_data(self):
        self.client.store["test:event:bad"] = b"not-json"
        with self.assertLogs("run_planner.event_store.redis", level="ERROR"):
            self.assertIsNone(self.store.get_event("bad"))

    def test_clear_leaves_other_prefixes(self):
        self.client.store["other:event:x"] = b"{}"
        self.store.save_event(make_event())
        self.store.clear()
        self.assertEqual(list(self.client.store), ["other:event:x"])

    def test_due_alarms_survives_connection_errors(self):
        def boom(*_args, **_kwargs):
            raise ConnectionError("redis down")

        self.client.zrangebyscore = boom
        with self.assertLogs("run_planner.event_store.redis", level="ERROR"):
            self.assertEqual(self.store.due_alarms(local(12)), [])

    def test_claim_lost_to_concurrent_write_leaves_alarm(self):
        self.store.save_event(make_event())
        self.store.set_alarm("evt-1", local(9))
        FakePipeline.conflict = True
        try:
            self.assertFalse(self.store.claim_alarm("evt-1", local(12)))
        finally:
            FakePipeline.conflict = False
        self.assertEqual(self.store.due_alarms(local(12)), ["evt-1"])


if __name__ == "__main__":
    unittest.main()
