"""Rate limiting dependency for FastAPI routes.

This module wires the limiter into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency function only.
- Swap-friendly: the store can be replaced (e.g., Redis) behind
  AbstractStore.
- Hierarchical: with per-route limiting, the key is "<client>:<route>", so
  the client-wide bucket is checked before the route bucket.

Flow per request:
- exceeded() -> arm timeout, respond 429 with Retry-After
- otherwise hit() and expose X-RateLimit-* headers
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Annotated, Awaitable, Callable

from fastapi import Header, HTTPException, Request, Response, status

from rate_limiter.adapters.events.logging_notifier import LoggingNotifier
from rate_limiter.adapters.store.base import AbstractStore
from rate_limiter.adapters.store.in_memory import InMemoryStore
from rate_limiter.core.config import settings
from rate_limiter.core.logging import bind_limiter_key, clear_limiter_key
from rate_limiter.services.limiter import create_limiter

logger = logging.getLogger(__name__)


_store: AbstractStore | None = None
_store_config: int | None = None


def get_store() -> AbstractStore:
    """Return the process-wide store instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the store is rebuilt.
    """

    global _store, _store_config

    config = settings.store.max_entries
    if _store is None or _store_config != config:
        _store = InMemoryStore(max_entries=config, clock=time.time)
        _store_config = config

    return _store


def _hash_identity(identity: str) -> str:
    """Hash a client identity so keys and logs never carry secrets."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


def build_rate_limit_key(
    request: Request,
    x_api_key: str | None,
    *,
    per_route: bool = True,
) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.
        x_api_key: API key value from the X-API-Key header.
        per_route: Nest a per-route bucket under the client bucket.

    Returns:
        str: "<client>" or "<client>:<METHOD path>".
    """

    if x_api_key:
        client = _hash_identity(f"api_key|{x_api_key}")
    else:
        host = request.client.host if request.client else "unknown"
        client = _hash_identity(f"ip|{host}")

    if not per_route:
        return client
    return f"{client}:{request.method} {request.url.path}"


def rate_limited(
    max_hits: int | None = None,
    window_seconds: float | None = None,
    timeout_minutes: int | None = None,
) -> Callable[..., Awaitable[None]]:
    """Create a dependency enforcing a leaky bucket limit.

    Omitted arguments fall back to `settings.limiter` at request time.

    Args:
        max_hits: Bucket capacity.
        window_seconds: Seconds for a full bucket to drain.
        timeout_minutes: Backoff armed once the bucket overflows.

    Returns:
        Async dependency for use with `Depends(...)`.
    """

    async def dependency(
        request: Request,
        response: Response,
        x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    ) -> None:
        cfg = settings.limiter
        if not cfg.enabled:
            return

        hits_allowed = max_hits if max_hits is not None else cfg.max_hits
        window = window_seconds if window_seconds is not None else cfg.window_seconds
        timeout = timeout_minutes if timeout_minutes is not None else cfg.timeout_minutes

        key = build_rate_limit_key(request, x_api_key, per_route=cfg.per_route)
        bind_limiter_key(key)
        try:
            notifier = LoggingNotifier() if cfg.bucket_kind.lower() == "evented" else None
            limiter = create_limiter(
                get_store(),
                key,
                hits_allowed,
                window,
                kind=cfg.bucket_kind,
                notifier=notifier,
                clock=time.time,
            )

            if limiter.exceeded():
                limiter.timeout(timeout)
                retry_after = limiter.backoff()
                logger.warning(
                    "rate_limit.exceeded",
                    extra={
                        "limit": limiter.limit(),
                        "retry_after_s": retry_after,
                        "timeout_min": timeout,
                    },
                )

                headers: dict[str, str] = {}
                if cfg.include_headers:
                    headers["Retry-After"] = str(retry_after)
                    headers["X-RateLimit-Limit"] = str(limiter.limit())
                    headers["X-RateLimit-Remaining"] = "0"
                    headers["X-RateLimit-Reset"] = str(int(time.time()) + retry_after)

                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Rate limit exceeded. Try again later.",
                    headers=headers or None,
                )

            limiter.hit()
            logger.info(
                "rate_limit.allowed",
                extra={
                    "limit": limiter.limit(),
                    "remaining": limiter.remaining(),
                    "window_s": window,
                },
            )

            if cfg.include_headers:
                response.headers["X-RateLimit-Limit"] = str(limiter.limit())
                response.headers["X-RateLimit-Remaining"] = str(limiter.remaining())
        finally:
            clear_limiter_key()

    return dependency


enforce_rate_limit = rate_limited()
