"""Store interface for limiter state.

The limiter depends on this abstraction (not a concrete backend) so bucket
snapshots and timeout markers can live in process memory, Redis, or any
other key-value store with per-entry expiry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractStore(ABC):
    """Key-value store with per-entry time-to-live."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None if absent/expired."""
        raise NotImplementedError

    @abstractmethod
    def put(self, key: str, value: Any, ttl_minutes: float) -> None:
        """Store a value that expires after ttl_minutes.

        Args:
            key: Entry key.
            value: JSON-compatible value (snapshot dict or integer timestamp).
            ttl_minutes: Lifetime of the entry in minutes.
        """
        raise NotImplementedError

    @abstractmethod
    def has(self, key: str) -> bool:
        """Return True if a non-expired entry exists for key."""
        raise NotImplementedError

    @abstractmethod
    def forget(self, key: str) -> bool:
        """Remove an entry. Returns True if something was removed."""
        raise NotImplementedError
