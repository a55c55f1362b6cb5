"""Leaky bucket implementations and their factory."""

from rate_limiter.buckets.base import BucketKind, LeakyBucket
from rate_limiter.buckets.evented import EventedBucket
from rate_limiter.buckets.factory import create_bucket, rate_per, resolve_kind

__all__ = [
    "BucketKind",
    "EventedBucket",
    "LeakyBucket",
    "create_bucket",
    "rate_per",
    "resolve_kind",
]
