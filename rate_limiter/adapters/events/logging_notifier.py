"""Notifier implementations backed by logging or an in-memory list."""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from rate_limiter.adapters.events.base import AbstractNotifier


class LoggingNotifier(AbstractNotifier):
    """Emit each event as a structured log record."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger("rate_limiter.events")
        self._level = level

    def notify(self, event: str, payload: Mapping[str, Any]) -> None:
        self._logger.log(self._level, event, extra=dict(payload))


class RecordingNotifier(AbstractNotifier):
    """Keep events in memory, mostly useful for tests and debugging."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[tuple[str, dict[str, Any]]] = []

    def notify(self, event: str, payload: Mapping[str, Any]) -> None:
        with self._lock:
            self.events.append((event, dict(payload)))

    def names(self) -> list[str]:
        """Return recorded event names in order."""
        with self._lock:
            return [name for name, _ in self.events]
