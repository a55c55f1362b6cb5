"""Factory for creating bucket instances by kind."""

from __future__ import annotations

import time
from typing import Callable

from rate_limiter.adapters.events.base import AbstractNotifier
from rate_limiter.buckets.base import BucketKind, LeakyBucket
from rate_limiter.buckets.evented import EventedBucket
from rate_limiter.core.errors import ValidationAppError

_BUCKET_CLASSES: dict[BucketKind, type[LeakyBucket]] = {
    BucketKind.LEAKY: LeakyBucket,
    BucketKind.EVENTED: EventedBucket,
}


def rate_per(max_hits: int, seconds: float) -> float:
    """Convert "max_hits per seconds" into a drain rate in drips per second.

    Raises:
        ValidationAppError: If seconds is not positive.
    """
    if seconds <= 0:
        raise ValidationAppError(
            code="bucket_invalid_window",
            message="seconds must be > 0",
            details={"field": "seconds", "value": seconds},
        )
    return max_hits / seconds


def resolve_kind(kind: BucketKind | str) -> BucketKind:
    """Normalize a kind given as enum member or its string value.

    Raises:
        ValidationAppError: If the kind is unknown.
    """
    try:
        return BucketKind(kind.lower() if isinstance(kind, str) else kind)
    except ValueError as exc:
        supported = ", ".join(k.value for k in BucketKind)
        raise ValidationAppError(
            code="bucket_unknown_kind",
            message=f"Unknown bucket kind: '{kind}'. Supported kinds: {supported}",
            details={"field": "kind", "value": str(kind)},
        ) from exc


def create_bucket(
    kind: BucketKind | str,
    key: str,
    capacity: int,
    rate: float,
    *,
    notifier: AbstractNotifier | None = None,
    clock: Callable[[], float] = time.time,
) -> LeakyBucket:
    """Instantiate a fresh (empty) bucket of the requested kind.

    Args:
        kind: Bucket implementation to build.
        key: Bucket identity.
        capacity: Hits allowed before the bucket is full.
        rate: Drips drained per second.
        notifier: Event sink handed to evented buckets.
        clock: Time source returning UNIX time in seconds.

    Returns:
        LeakyBucket: The new bucket, timer set to now.

    Raises:
        ValidationAppError: If kind, capacity or rate are invalid.
    """
    bucket_cls = _BUCKET_CLASSES[resolve_kind(kind)]
    return bucket_cls(key, capacity, rate, clock=clock, notifier=notifier)
