"""Leaky bucket state machine.

A bucket fills by one drip per hit and drains continuously at `rate` drips
per second. It is "full" once `drips >= capacity`. Only `leak()` moves a
full bucket back to not-full (as time passes) and only `fill()` moves a
not-full bucket to full.

Buckets hold no I/O: persistence happens in the limiter through
`snapshot()` / `restore()`.
"""

from __future__ import annotations

import math
import time
from enum import Enum
from typing import Any, Callable, Mapping

from rate_limiter.adapters.events.base import AbstractNotifier
from rate_limiter.core.errors import ValidationAppError
from rate_limiter.schemas.bucket import BucketSnapshot


class BucketKind(str, Enum):
    """Bucket implementations known to the factory."""

    LEAKY = "leaky"
    EVENTED = "evented"


def _validate_limits(key: str, capacity: int, rate: float) -> None:
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise ValidationAppError(
            code="bucket_invalid_capacity",
            message="capacity must be an integer >= 1",
            details={"key": key, "field": "capacity", "value": capacity},
        )
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not rate > 0:
        raise ValidationAppError(
            code="bucket_invalid_rate",
            message="rate must be a number > 0",
            details={"key": key, "field": "rate", "value": rate},
        )
    if math.isinf(rate):
        raise ValidationAppError(
            code="bucket_invalid_rate",
            message="rate must be finite",
            details={"key": key, "field": "rate", "value": rate},
        )


class LeakyBucket:
    """Leaky bucket counter bound to a key.

    Attributes:
        key: Identity of the bucket; "parent:child" keys are namespaced.
        capacity: Maximum fill level.
        rate: Drain speed in drips per second.
        drips: Current (fractional) fill level.
        timer: Unix seconds of the last drain computation.
    """

    kind = BucketKind.LEAKY

    def __init__(
        self,
        key: str,
        capacity: int,
        rate: float,
        *,
        drips: float = 0.0,
        timer: float | None = None,
        clock: Callable[[], float] = time.time,
        notifier: AbstractNotifier | None = None,
    ) -> None:
        """Initialize a bucket.

        Args:
            key: Bucket identity.
            capacity: Hits allowed before the bucket is full.
            rate: Drips drained per second.
            drips: Initial fill level (clamped into [0, capacity]).
            timer: Initial drain timestamp; defaults to now.
            clock: Time source returning UNIX time in seconds.
            notifier: Optional event sink (only evented buckets use it).

        Raises:
            ValidationAppError: If capacity or rate are invalid.
        """
        _validate_limits(key, capacity, rate)

        self.key = key
        self.capacity = capacity
        self.rate = float(rate)
        self.clock = clock
        self.notifier = notifier
        self.timer = float(clock() if timer is None else timer)
        self.drips = self._clamp(drips)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"{type(self).__name__}(key={self.key!r}, capacity={self.capacity}, "
            f"rate={self.rate}, drips={self.drips:.3f}, timer={self.timer:.3f})"
        )

    def _clamp(self, drips: float) -> float:
        return min(float(self.capacity), max(0.0, float(drips)))

    def leak(self) -> "LeakyBucket":
        """Drain the bucket for the time elapsed since the last computation."""
        now = self.clock()
        elapsed = max(0.0, now - self.timer)
        self.drips = max(0.0, self.drips - elapsed * self.rate)
        self.timer = max(self.timer, now)
        return self

    def fill(self) -> "LeakyBucket":
        """Record one hit. A full bucket stays at capacity."""
        self.leak()
        self.drips = min(float(self.capacity), self.drips + 1)
        return self

    def reset(self) -> "LeakyBucket":
        self.drips = 0.0
        self.timer = float(self.clock())
        return self

    def is_full(self) -> bool:
        return self.drips >= self.capacity

    def is_empty(self) -> bool:
        return self.drips <= 0

    def hits(self) -> int:
        """Current fill level rounded up to whole hits."""
        # round() first so float noise like 2.0000000001 does not count as 3
        return math.ceil(round(self.drips, 9))

    def remaining(self) -> int:
        return max(0, self.capacity - self.hits())

    def duration(self) -> float:
        """Seconds for a full bucket to drain to empty."""
        return self.capacity / self.rate

    def ttl_minutes(self) -> int:
        """Store lifetime for this bucket's snapshot, in whole minutes."""
        return max(1, math.ceil(round(self.duration() / 60, 9)))

    def snapshot(self) -> dict[str, float]:
        return BucketSnapshot(drips=self.drips, timer=self.timer).model_dump()

    def restore(self, data: BucketSnapshot | Mapping[str, Any]) -> "LeakyBucket":
        """Overlay stored drips/timer, keeping the bound capacity and rate."""
        snapshot = (
            data if isinstance(data, BucketSnapshot) else BucketSnapshot.model_validate(data)
        )
        self.timer = snapshot.timer
        self.drips = self._clamp(snapshot.drips)
        return self

    def configure(
        self,
        *,
        capacity: int | None = None,
        rate: float | None = None,
        drips: float | None = None,
        timer: float | None = None,
    ) -> "LeakyBucket":
        """Merge the provided fields; omitted fields keep their current values.

        Raises:
            ValidationAppError: If the merged capacity or rate are invalid.
        """
        new_capacity = self.capacity if capacity is None else capacity
        new_rate = self.rate if rate is None else rate
        _validate_limits(self.key, new_capacity, new_rate)

        self.capacity = new_capacity
        self.rate = float(new_rate)
        if timer is not None:
            self.timer = float(timer)
        self.drips = self._clamp(self.drips if drips is None else drips)
        return self
