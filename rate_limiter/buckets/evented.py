"""Leaky bucket that reports leaks and fills to a notifier."""

from __future__ import annotations

from typing import Any

from rate_limiter.adapters.events.base import safe_notify
from rate_limiter.buckets.base import BucketKind, LeakyBucket


class EventedBucket(LeakyBucket):
    """LeakyBucket emitting `bucket.leaked` and `bucket.filled` events.

    Events are sent through `safe_notify`, so a failing sink is logged and
    ignored.
    """

    kind = BucketKind.EVENTED

    def _payload(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "drips": self.drips,
            "capacity": self.capacity,
            "full": self.is_full(),
        }

    def leak(self) -> "EventedBucket":
        before = self.drips
        super().leak()
        if self.drips < before:
            safe_notify(self.notifier, "bucket.leaked", {**self._payload(), "leaked": before - self.drips})
        return self

    def fill(self) -> "EventedBucket":
        # super().fill() calls self.leak(), so leak events are still sent.
        super().fill()
        safe_notify(self.notifier, "bucket.filled", self._payload())
        return self
