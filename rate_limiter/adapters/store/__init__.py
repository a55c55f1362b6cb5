"""Store adapters.

Limiter state lives behind a small get/put/has/forget interface so the
in-memory store can later be replaced by Redis or another shared store
without changing the limiter.
"""

from rate_limiter.adapters.store.base import AbstractStore
from rate_limiter.adapters.store.in_memory import InMemoryStore

__all__ = ["AbstractStore", "InMemoryStore"]
