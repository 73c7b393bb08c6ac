"""SafeWatch Backend: In-memory cache with TTL"""

import time
import logging
from typing import Any, Callable, Optional

from config import REPORT_SNAPSHOT_TTL

logger = logging.getLogger("safewatch.cache")


class TTLCache:
    """In-memory cache with per-key TTL and max-size eviction."""

    def __init__(self, default_ttl: int = 30, max_size: int = 64, clock: Callable[[], float] = time.monotonic):
        self._store: dict[str, tuple[Any, float]] = {}
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._clock = clock

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() > expires_at:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None):
        if len(self._store) >= self._max_size and key not in self._store:
            self.evict_expired()
            # Still full: drop whatever expires soonest
            while len(self._store) >= self._max_size:
                oldest_key = min(self._store, key=lambda k: self._store[k][1])
                del self._store[oldest_key]
        ttl = self._default_ttl if ttl is None else ttl
        self._store[key] = (value, self._clock() + ttl)

    def clear(self):
        self._store.clear()

    def evict_expired(self):
        now = self._clock()
        expired = [k for k, (_, exp) in self._store.items() if now > exp]
        for k in expired:
            del self._store[k]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")


# Short-lived memo of crime-report snapshots, keyed by fetch limit
report_cache = TTLCache(default_ttl=REPORT_SNAPSHOT_TTL, max_size=16)
