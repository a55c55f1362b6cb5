"""Notifier interface.

Notifications are fire-and-forget: a broken sink must never change an
admission decision.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class AbstractNotifier(ABC):
    """Interface for limiter event sinks."""

    @abstractmethod
    def notify(self, event: str, payload: Mapping[str, Any]) -> None:
        """Publish an event.

        Args:
            event: Dotted event name (e.g., "bucket.filled").
            payload: Structured event data.
        """
        raise NotImplementedError


def safe_notify(
    notifier: AbstractNotifier | None,
    event: str,
    payload: Mapping[str, Any],
) -> None:
    """Send an event, logging and discarding any failure from the sink."""

    if notifier is None:
        return
    try:
        notifier.notify(event, payload)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "notifier.failed",
            extra={
                "event": event,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
            },
        )
