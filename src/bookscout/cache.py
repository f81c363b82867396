"""In-memory TTL cache with a bounded size.

Entries expire ``ttl_seconds`` after insertion and are removed lazily on the
next read (or by ``purge_expired``, which the cleanup scheduler calls). When
the store is full, the single oldest-inserted entry is evicted before a new
key is added. Eviction follows insertion order, not access order.

Reads and writes never raise. Payloads are stored as-is and
must be treated as immutable by callers.

The store is process-wide shared state, so each public method holds an
internal lock. None of the critical sections await, so the lock is never held
across a suspension point.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Any

import structlog

from bookscout.models.cache import CacheEntry

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()


class MemoryCache:
    """TTL-bounded, capacity-bounded key/value store implementing CacheProtocol."""

    def __init__(
        self,
        *,
        ttl_seconds: float,
        capacity: int,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._ttl = ttl_seconds
        self._capacity = capacity
        self._name = name
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Any | None:
        """Return the payload for ``key``, or ``None`` if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.inserted_at > self._ttl:
                del self._entries[key]
                log.debug("cache_entry_expired", cache=self._name, key=key)
                return None
            return entry.payload

    def set(self, key: str, payload: Any) -> None:
        """Insert or overwrite ``key``, evicting the oldest entry when full."""
        with self._lock:
            if key in self._entries:
                # Overwrite counts as a fresh insertion
                del self._entries[key]
            elif len(self._entries) >= self._capacity:
                oldest_key, _ = self._entries.popitem(last=False)
                log.debug("cache_entry_evicted", cache=self._name, key=oldest_key)
            self._entries[key] = CacheEntry(key=key, payload=payload, inserted_at=self._clock())

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        # Does not check expiry and never evicts
        with self._lock:
            return key in self._entries

    def purge_expired(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [
                key
                for key, entry in self._entries.items()
                if now - entry.inserted_at > self._ttl
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            log.info("cache_purge_complete", cache=self._name, removed=len(expired))
        return len(expired)

    def clear(self) -> None:
        """Drop every entry (teardown / flush)."""
        with self._lock:
            self._entries.clear()
