"""In-memory TTL store for bucket snapshots and timeout markers.

Notes:
- Per-process only: running multiple workers gives each worker its own
  limits.
- Thread-safe: uses a lock around shared state. Read-modify-write sequences
  performed by a limiter are NOT atomic across calls.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

from rate_limiter.adapters.store.base import AbstractStore

logger = logging.getLogger(__name__)


@dataclass
class StoreItem:
    """Container for stored values with expiration metadata."""

    value: Any
    expires_at: float


class InMemoryStore(AbstractStore):
    """Thread-safe, in-memory TTL store with LRU eviction.

    Attributes:
        max_entries: Maximum number of stored items (None for unlimited).
    """

    def __init__(
        self,
        max_entries: int | None = 10000,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            max_entries: Maximum number of entries before LRU eviction.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If max_entries is not positive.
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._max_entries = max_entries
        self._clock = clock
        self._store: OrderedDict[str, StoreItem] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryStore(max_entries={self._max_entries}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses}, evictions={self._evictions})"
        )

    def _live_item(self, key: str) -> StoreItem | None:
        """Return the item for key, evicting it first if expired. Lock must be held."""
        item = self._store.get(key)
        if item is None:
            return None
        if self._is_expired(item):
            self._evict_single(key)
            return None
        return item

    def get(self, key: str) -> Any | None:
        with self._lock:
            item = self._live_item(key)
            if item is None:
                self._misses += 1
                logger.debug("store.miss", extra={"store_key": key})
                return None

            self._hits += 1
            self._store.move_to_end(key)
            return copy.deepcopy(item.value)

    def put(self, key: str, value: Any, ttl_minutes: float) -> None:
        with self._lock:
            self._evict_expired_locked()
            expires_at = self._clock() + ttl_minutes * 60
            self._store[key] = StoreItem(value=copy.deepcopy(value), expires_at=expires_at)
            self._store.move_to_end(key)
            self._evict_if_over_capacity_locked()

            logger.debug(
                "store.put",
                extra={
                    "store_key": key,
                    "size": len(self._store),
                    "ttl_min": ttl_minutes,
                },
            )

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_item(key) is not None

    def forget(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | None]:
        """Return lightweight store metrics without exposing values."""

        with self._lock:
            return {
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _evict_single(self, key: str) -> None:
        if key in self._store:
            self._store.pop(key, None)
            self._evictions += 1

    def _evict_expired_locked(self) -> None:
        expired_keys = [k for k, item in self._store.items() if self._is_expired(item)]
        for key in expired_keys:
            self._evict_single(key)

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._store) > self._max_entries:
            # popitem(last=False) removes the least recently used entry
            self._store.popitem(last=False)
            self._evictions += 1

    def _is_expired(self, item: StoreItem) -> bool:
        return self._clock() >= item.expires_at
