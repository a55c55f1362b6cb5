"""Hierarchical leaky-bucket limiter with a timeout latch.

A limiter is built per logical check (e.g. per incoming request) from a
prototype bucket. Keys of the form "parent:child" produce two buckets that
are always evaluated parent first, so one call site enforces a broad limit
(the whole API) and a narrow one (a single route) together.

Independently of bucket fill, `timeout()` arms a latch stored under
"<key>:timeout" that blocks admission until it expires or is cleared.

Concurrency: snapshots are loaded at construction and written back by
`hit()`. Two limiters for the same key running at the same time can both
read the same baseline and the last write wins, dropping a hit. Exact counts
across processes need a store with an atomic increment.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from rate_limiter.adapters.events.base import AbstractNotifier, safe_notify
from rate_limiter.adapters.store.base import AbstractStore
from rate_limiter.buckets.base import BucketKind, LeakyBucket
from rate_limiter.buckets.factory import create_bucket, rate_per
from rate_limiter.schemas.bucket import parse_snapshot

logger = logging.getLogger(__name__)

NAMESPACE_SEPARATOR = ":"
TIMEOUT_SUFFIX = ":timeout"


class Limiter:
    """Leaky bucket rate limiter over one bucket or a parent/child pair."""

    def __init__(
        self,
        store: AbstractStore,
        bucket: LeakyBucket,
        *,
        notifier: AbstractNotifier | None = None,
    ) -> None:
        """Load the bucket stack for the prototype's key.

        Args:
            store: Persistence for bucket snapshots and timeout markers.
            bucket: Prototype bucket carrying key, capacity, rate and kind.
                The limiter adopts it as the active bucket: its drips and
                timer are overwritten from the store and later mutated by
                `hit()`/`reset()`. Its notifier is left as given.
            notifier: Optional sink for `limiter.*` events and the parent
                bucket; defaults to the prototype's notifier.
        """
        self._store = store
        self._notifier = notifier if notifier is not None else bucket.notifier

        self._parent: LeakyBucket | None = None
        if NAMESPACE_SEPARATOR in bucket.key:
            parent_key, _ = bucket.key.split(NAMESPACE_SEPARATOR, 1)
            parent = create_bucket(
                bucket.kind,
                parent_key,
                bucket.capacity,
                bucket.rate,
                notifier=self._notifier,
                clock=bucket.clock,
            )
            self._parent = self._load(parent)

        self._active = self._load(bucket)

    def _load(self, bucket: LeakyBucket) -> LeakyBucket:
        snapshot = parse_snapshot(self._store.get(bucket.key))
        if snapshot is not None:
            bucket.restore(snapshot)
        return bucket

    def _now(self) -> float:
        return self._active.clock()

    def parent(self) -> LeakyBucket | None:
        """Broad-scope bucket, or None for flat keys."""
        return self._parent

    def active(self) -> LeakyBucket:
        """Narrowest-scope bucket, used for reporting and timeouts."""
        return self._active

    def buckets(self) -> tuple[LeakyBucket, ...]:
        """Buckets in evaluation order: parent first, then active."""
        if self._parent is None:
            return (self._active,)
        return (self._parent, self._active)

    def timeout_key(self, key: str | None = None) -> str:
        return f"{key if key is not None else self._active.key}{TIMEOUT_SUFFIX}"

    def configure(self, key: str, capacity: int, rate: float) -> "Limiter":
        """Rebind the active bucket to a key and limits.

        Changing the key discards the active bucket's accumulated fill (and
        its stored entry). State already stored under the new key is picked
        up. The parent bucket is not touched.

        Returns:
            Limiter: self, for chaining.
        """
        # Build first so invalid limits raise before any state is discarded.
        configured = create_bucket(
            self._active.kind,
            key,
            capacity,
            rate,
            notifier=self._active.notifier,
            clock=self._active.clock,
        )

        if self._active.key != key:
            self.reset()

        settings: dict[str, Any] = {
            "drips": self._active.drips,
            "timer": self._active.timer,
        }
        existing = parse_snapshot(self._store.get(key))
        if existing is not None:
            settings.update(existing.model_dump())

        self._active = configured.configure(**settings)
        return self

    def exceeded(self) -> bool:
        """Determine if the limit has been exceeded at any level."""
        if self.has_timeout():
            self._breach("timeout", self._active)
            return True

        for bucket in self.buckets():
            if bucket.leak().is_full():
                self._breach("bucket_full", bucket)
                return True

        return False

    def _breach(self, reason: str, bucket: LeakyBucket) -> None:
        logger.info(
            "limiter.exceeded",
            extra={"reason": reason, "scope": bucket.key, "capacity": bucket.capacity},
        )
        safe_notify(
            self._notifier,
            "limiter.exceeded",
            {
                "key": self._active.key,
                "scope": bucket.key,
                "reason": reason,
                "hits": bucket.hits(),
                "capacity": bucket.capacity,
            },
        )

    def has_timeout(self) -> bool:
        """True if a timeout is armed for any bucket in the stack."""
        return any(self._store.has(self.timeout_key(bucket.key)) for bucket in self.buckets())

    def timeout(self, duration: int = 1) -> None:
        """Block further hits for `duration` minutes.

        An armed timeout is never extended or overwritten; it must expire or
        be cleared first. A duration under one minute arms nothing.
        """
        if duration < 1:
            logger.debug(
                "limiter.timeout_skipped",
                extra={"scope": self._active.key, "duration_min": duration},
            )
            return
        if self.has_timeout():
            return

        expires_at = int(self._active.timer) + duration * 60
        self._store.put(self.timeout_key(), expires_at, duration)

        logger.info(
            "limiter.timeout",
            extra={"scope": self._active.key, "duration_min": duration, "expires_at": expires_at},
        )
        safe_notify(
            self._notifier,
            "limiter.timeout",
            {"key": self._active.key, "duration": duration, "expires_at": expires_at},
        )

    def hit(self) -> int:
        """Record one hit against every bucket and persist them.

        Returns:
            int: Hits now counted against the active bucket.
        """
        for bucket in self.buckets():
            bucket.fill()
            self._store.put(bucket.key, bucket.snapshot(), bucket.ttl_minutes())

        logger.debug(
            "limiter.hit",
            extra={"scope": self._active.key, "hits": self._active.hits(), "capacity": self._active.capacity},
        )
        return self._active.hits()

    def limit(self) -> int:
        return self._active.capacity

    def hits(self) -> int:
        return self._active.hits()

    def remaining(self) -> int:
        return self._active.remaining()

    def reset(self) -> bool:
        """Zero the active bucket and forget its stored state."""
        bucket = self._active.reset()
        return self._store.forget(bucket.key)

    def clear(self) -> None:
        """Reset the active bucket and remove its timeout."""
        self.reset()
        self._store.forget(self.timeout_key())

    def backoff(self) -> int:
        """Seconds until the active timeout expires (0 when none is armed)."""
        expires_at = self._store.get(self.timeout_key())
        if expires_at is None:
            return 0
        try:
            return max(0, int(expires_at) - int(self._now()))
        except (TypeError, ValueError):
            return 0


def create_limiter(
    store: AbstractStore,
    key: str,
    max_hits: int,
    seconds: float,
    *,
    kind: BucketKind | str = BucketKind.LEAKY,
    notifier: AbstractNotifier | None = None,
    clock: Callable[[], float] = time.time,
) -> Limiter:
    """Build a limiter allowing `max_hits` per `seconds` for key.

    Args:
        store: Persistence for bucket snapshots and timeouts.
        key: Plain or "parent:child" limiter key.
        max_hits: Bucket capacity.
        seconds: Time for a full bucket to drain.
        kind: Bucket implementation.
        notifier: Optional event sink.
        clock: Time source returning UNIX time in seconds.

    Raises:
        ValidationAppError: If the limits or kind are invalid.
    """
    bucket = create_bucket(
        kind,
        key,
        max_hits,
        rate_per(max_hits, seconds),
        notifier=notifier,
        clock=clock,
    )
    return Limiter(store, bucket, notifier=notifier)
