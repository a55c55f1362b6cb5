"""Leaky bucket rate limiter with hierarchical scopes and a timeout latch."""

from rate_limiter.adapters.events import AbstractNotifier, LoggingNotifier, RecordingNotifier
from rate_limiter.adapters.store import AbstractStore, InMemoryStore
from rate_limiter.buckets import BucketKind, EventedBucket, LeakyBucket, create_bucket, rate_per
from rate_limiter.services.limiter import Limiter, create_limiter

__all__ = [
    "AbstractNotifier",
    "AbstractStore",
    "BucketKind",
    "EventedBucket",
    "InMemoryStore",
    "LeakyBucket",
    "Limiter",
    "LoggingNotifier",
    "RecordingNotifier",
    "create_bucket",
    "create_limiter",
    "rate_per",
]
