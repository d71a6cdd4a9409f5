"""Bounded per-identity memory kept across sampling cycles."""

import heapq
import threading
from collections import OrderedDict

from procstat.models import HistoryEntry, Identity, ProcessSample

MAX_HISTORY_SIZE = 1_000_000
MAX_STATS_AGE = 5.0
CACHE_TTL = 1.0


class HistoryStore:
    """
    Last cumulative tick counters per process or thread.

    Delta-mode CPU percentages are computed against these entries. The
    store is bounded twice: by age, since an identity that has not been seen
    for several cycles has most likely exited, and by count, so that heavy
    process churn cannot grow it without limit.

    Access is serialized with a lock so readers may run on several threads.
    """

    def __init__(self, capacity: int = MAX_HISTORY_SIZE) -> None:
        self._capacity = max(1, capacity)
        self._entries: OrderedDict[Identity, HistoryEntry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._entries

    def get(self, identity: Identity) -> HistoryEntry | None:
        """Return the last entry for ``identity``, if any."""
        with self._lock:
            return self._entries.get(identity)

    def put(self, identity: Identity, total_ticks: int, timestamp: float) -> None:
        """Replace the entry for ``identity``, evicting the oldest when full."""
        with self._lock:
            self._entries.pop(identity, None)
            self._entries[identity] = HistoryEntry(identity, total_ticks, timestamp)
            while len(self._entries) > self._capacity:
                self._entries.popitem(last=False)

    def evict_stale(self, now: float, max_age: float = MAX_STATS_AGE) -> int:
        """Drop entries not updated within ``max_age`` seconds of ``now``."""
        with self._lock:
            stale = [
                identity
                for identity, entry in self._entries.items()
                if now - entry.timestamp > max_age
            ]
            for identity in stale:
                del self._entries[identity]
            return len(stale)

    def evict_over_capacity(self, max_entries: int) -> int:
        """Keep only the ``max_entries`` most recently updated entries."""
        max_entries = max(0, max_entries)
        with self._lock:
            excess = len(self._entries) - max_entries
            if excess <= 0:
                return 0
            keep = heapq.nlargest(
                max_entries, self._entries.values(), key=lambda entry: entry.timestamp
            )
            keep.sort(key=lambda entry: entry.timestamp)
            self._entries = OrderedDict((entry.identity, entry) for entry in keep)
            return excess

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class SampleCache:
    """
    Short-lived cache of derived rows.

    Within one refresh interval a repeated lookup of the same identity gets
    the row built a moment ago instead of parsing the records again. Rows
    older than ``ttl`` seconds are never served.
    """

    def __init__(self, ttl: float = CACHE_TTL, capacity: int = MAX_HISTORY_SIZE) -> None:
        self._ttl = ttl
        self._capacity = max(1, capacity)
        self._rows: OrderedDict[Identity, tuple[float, ProcessSample]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def get(self, identity: Identity, now: float) -> ProcessSample | None:
        with self._lock:
            cached = self._rows.get(identity)
            if cached is None:
                return None
            stored_at, sample = cached
            if now - stored_at >= self._ttl:
                del self._rows[identity]
                return None
            return sample

    def put(self, identity: Identity, sample: ProcessSample, now: float) -> None:
        with self._lock:
            self._rows.pop(identity, None)
            self._rows[identity] = (now, sample)
            while len(self._rows) > self._capacity:
                self._rows.popitem(last=False)

    def prune(self, now: float) -> int:
        """Drop every expired row."""
        with self._lock:
            expired = [
                identity
                for identity, (stored_at, _) in self._rows.items()
                if now - stored_at >= self._ttl
            ]
            for identity in expired:
                del self._rows[identity]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
