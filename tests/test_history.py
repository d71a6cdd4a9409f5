"""Tests for the history store and the sample cache."""

import random

from procstat.history import HistoryStore, SampleCache
from procstat.models import Identity, ProcessSample


def make_sample(pid: int) -> ProcessSample:
    return ProcessSample(
        pid=pid, ppid=1, state="S", command_name="x", command_line="x",
        cpu_percent=0.0, memory_kb=0, cpu_time_seconds=0.0,
    )


class TestHistoryStore:
    def test_get_unknown(self):
        assert HistoryStore().get(Identity(1)) is None

    def test_put_and_get(self):
        store = HistoryStore()
        store.put(Identity(1), 500, 10.0)

        entry = store.get(Identity(1))
        assert entry.total_ticks == 500
        assert entry.timestamp == 10.0
        assert Identity(1) in store

    def test_put_replaces(self):
        store = HistoryStore()
        store.put(Identity(1), 500, 10.0)
        store.put(Identity(1), 800, 12.0)

        assert len(store) == 1
        assert store.get(Identity(1)).total_ticks == 800

    def test_threads_are_separate_identities(self):
        store = HistoryStore()
        store.put(Identity(10), 1, 1.0)
        store.put(Identity(10, 11), 2, 1.0)

        assert store.get(Identity(10)).total_ticks == 1
        assert store.get(Identity(10, 11)).total_ticks == 2

    def test_evict_stale(self):
        store = HistoryStore()
        store.put(Identity(1), 1, 100.0)
        store.put(Identity(2), 1, 104.0)
        store.put(Identity(3), 1, 106.0)

        evicted = store.evict_stale(now=110.0, max_age=5.0)

        assert evicted == 2
        assert store.get(Identity(1)) is None
        assert store.get(Identity(2)) is None
        assert store.get(Identity(3)) is not None

    def test_entry_at_threshold_is_kept(self):
        store = HistoryStore()
        store.put(Identity(1), 1, 100.0)

        store.evict_stale(now=105.0, max_age=5.0)

        assert Identity(1) in store

    def test_evict_over_capacity_keeps_most_recent(self):
        store = HistoryStore()
        for pid, timestamp in [(1, 5.0), (2, 1.0), (3, 4.0), (4, 2.0), (5, 3.0)]:
            store.put(Identity(pid), pid, timestamp)

        evicted = store.evict_over_capacity(2)

        assert evicted == 3
        assert len(store) == 2
        assert Identity(1) in store
        assert Identity(3) in store

    def test_evict_over_capacity_noop_when_small(self):
        store = HistoryStore()
        store.put(Identity(1), 1, 1.0)

        assert store.evict_over_capacity(10) == 0
        assert len(store) == 1

    def test_put_never_exceeds_capacity(self):
        rng = random.Random(42)
        store = HistoryStore(capacity=50)
        now = 0.0
        for _ in range(5000):
            now += rng.uniform(0.0, 0.1)
            identity = Identity(rng.randint(1, 400), rng.choice([None, 1, 2]))
            store.put(identity, rng.randint(0, 10**6), now)
            assert len(store) <= 50

    def test_capacity_eviction_drops_least_recently_updated(self):
        store = HistoryStore(capacity=2)
        store.put(Identity(1), 1, 1.0)
        store.put(Identity(2), 1, 2.0)
        store.put(Identity(1), 2, 3.0)  # refresh 1
        store.put(Identity(3), 1, 4.0)

        assert Identity(2) not in store
        assert Identity(1) in store
        assert Identity(3) in store

    def test_clear(self):
        store = HistoryStore()
        store.put(Identity(1), 1, 1.0)
        store.clear()

        assert len(store) == 0


class TestSampleCache:
    def test_hit_within_ttl(self):
        cache = SampleCache(ttl=1.0)
        sample = make_sample(1)
        cache.put(Identity(1), sample, 100.0)

        assert cache.get(Identity(1), 100.5) is sample

    def test_miss_after_ttl(self):
        cache = SampleCache(ttl=1.0)
        cache.put(Identity(1), make_sample(1), 100.0)

        assert cache.get(Identity(1), 101.0) is None
        assert len(cache) == 0

    def test_miss_unknown(self):
        assert SampleCache().get(Identity(1), 0.0) is None

    def test_prune(self):
        cache = SampleCache(ttl=1.0)
        cache.put(Identity(1), make_sample(1), 100.0)
        cache.put(Identity(2), make_sample(2), 100.8)

        assert cache.prune(101.5) == 1
        assert cache.get(Identity(2), 101.5) is not None

    def test_capacity(self):
        cache = SampleCache(ttl=10.0, capacity=3)
        for pid in range(1, 6):
            cache.put(Identity(pid), make_sample(pid), 1.0)

        assert len(cache) == 3
        assert cache.get(Identity(1), 1.0) is None
        assert cache.get(Identity(5), 1.0) is not None
