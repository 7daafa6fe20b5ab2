import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from music_admin.core.config import settings
from music_admin.core.errors import SessionExpired
from music_admin.core.logger import logger
from music_admin.core.single_flight import SingleFlight

QueryKey = Tuple[Any, ...]

# Root of every list query key, e.g. ("data", "users", 1, 10)
ROOT = "data"


def query_key(resource: str, *params: Any) -> QueryKey:
    return (ROOT, resource) + tuple(p for p in params if p is not None)


@dataclass
class _Entry:
    value: Any
    updated_at: float
    last_used: float
    stale: bool = False


class QueryCache:
    """
    Request-level cache for list/detail queries.

    - fresh for `stale_time` seconds, then refetched on next use
    - evicted after `gc_time` seconds without use
    - `retry` extra attempts on failure (session expiry is never retried)
    - concurrent fetches of the same key are coalesced into one call
    - `mark_reconnected()` makes everything stale; there is no focus refetch
    """

    def __init__(
        self,
        stale_time: Optional[float] = None,
        gc_time: Optional[float] = None,
        retry: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = settings.QUERY_STALE_TIME if stale_time is None else stale_time
        self.gc_time = settings.QUERY_GC_TIME if gc_time is None else gc_time
        self.retry = settings.QUERY_RETRY if retry is None else retry
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[QueryKey, _Entry] = {}
        self._flight = SingleFlight()

    def _collect_garbage(self, now: float):
        expired = [key for key, entry in self._entries.items() if now - entry.last_used > self.gc_time]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"🧹 Evicted {len(expired)} cached queries")

    def fetch(self, key: QueryKey, fn: Callable[[], Any]) -> Any:
        now = self._clock()
        with self._lock:
            self._collect_garbage(now)
            entry = self._entries.get(key)
            if entry:
                entry.last_used = now
                if not entry.stale and now - entry.updated_at < self.stale_time:
                    logger.debug(f"📦 Cache hit {key}")
                    return entry.value

        return self._flight.do(key, lambda: self._load(key, fn))

    def _load(self, key: QueryKey, fn: Callable[[], Any]) -> Any:
        attempts = self.retry + 1
        for attempt in range(1, attempts + 1):
            try:
                value = fn()
                break
            except SessionExpired:
                raise
            except Exception as e:
                if attempt >= attempts:
                    raise
                logger.warning(f"⚠️ Query {key} failed ({e}), retrying ({attempt}/{self.retry})")

        now = self._clock()
        with self._lock:
            self._entries[key] = _Entry(value=value, updated_at=now, last_used=now)
        return value

    def get(self, key: QueryKey) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            return entry.value if entry else None

    def invalidate(self, prefix: QueryKey = (ROOT,)) -> int:
        """Mark every entry whose key starts with `prefix` stale. Returns the count."""
        count = 0
        with self._lock:
            for key, entry in self._entries.items():
                if key[:len(prefix)] == prefix:
                    entry.stale = True
                    count += 1
        logger.debug(f"♻️ Invalidated {count} queries under {prefix}")
        return count

    def mark_reconnected(self):
        self.invalidate(())

    def clear(self):
        with self._lock:
            self._entries.clear()

query_cache = QueryCache()
