"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any import of the settings module.
"""

import os

import pytest

# CRITICAL: Set this before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LIMITER_ENABLED", "true")
os.environ.setdefault("LIMITER_MAX_HITS", "3")
os.environ.setdefault("LIMITER_WINDOW_SECONDS", "60")
os.environ.setdefault("LIMITER_TIMEOUT_MINUTES", "1")
os.environ.setdefault("LOG_LEVEL", "DEBUG")


class FakeTime:
    """Deterministic clock used to test drain and expiry logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def time(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeTime:
    return FakeTime()


@pytest.fixture
def store(clock: FakeTime):
    from rate_limiter.adapters.store.in_memory import InMemoryStore

    return InMemoryStore(max_entries=None, clock=clock)
