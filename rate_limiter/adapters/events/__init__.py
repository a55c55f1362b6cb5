"""Notification adapters.

Limiters and evented buckets report fills and breaches through a small
notifier interface, so observability sinks can be swapped without touching
admission logic.
"""

from rate_limiter.adapters.events.base import AbstractNotifier, safe_notify
from rate_limiter.adapters.events.logging_notifier import LoggingNotifier, RecordingNotifier

__all__ = [
    "AbstractNotifier",
    "LoggingNotifier",
    "RecordingNotifier",
    "safe_notify",
]
