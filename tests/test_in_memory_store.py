"""Unit tests for the in-memory TTL store."""

import threading

import pytest

from rate_limiter.adapters.store.in_memory import InMemoryStore


def test_put_get_has_forget(store: InMemoryStore) -> None:
    assert store.get("missing") is None
    assert store.has("missing") is False

    store.put("api", {"drips": 1.0, "timer": 1000.0}, 1)

    assert store.has("api") is True
    assert store.get("api") == {"drips": 1.0, "timer": 1000.0}
    assert store.forget("api") is True
    assert store.forget("api") is False
    assert store.get("api") is None


def test_entry_expires_after_ttl_minutes(store: InMemoryStore, clock) -> None:
    store.put("api:timeout", 1060, 1)

    clock.advance(59)
    assert store.has("api:timeout") is True

    clock.advance(1)
    assert store.has("api:timeout") is False
    assert store.get("api:timeout") is None
    assert store.stats()["evictions"] == 1


def test_values_are_copied(store: InMemoryStore) -> None:
    value = {"drips": 1.0, "timer": 1000.0}
    store.put("api", value, 1)
    value["drips"] = 99.0

    fetched = store.get("api")
    fetched["drips"] = 42.0

    assert store.get("api") == {"drips": 1.0, "timer": 1000.0}


def test_lru_eviction_removes_least_recently_used(clock) -> None:
    store = InMemoryStore(max_entries=2, clock=clock)
    store.put("a", 1, 1)
    store.put("b", 2, 1)

    # Access "a" so that "b" becomes least recently used
    assert store.get("a") == 1

    store.put("c", 3, 1)

    assert store.get("a") == 1
    assert store.get("c") == 3
    assert store.get("b") is None


def test_stats_and_clear(store: InMemoryStore) -> None:
    store.get("missing")
    store.put("a", 1, 1)
    store.get("a")

    stats = store.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["entries"] == 1

    store.clear()

    assert store.stats() == {
        "max_entries": None,
        "entries": 0,
        "hits": 0,
        "misses": 0,
        "evictions": 0,
    }


def test_invalid_max_entries() -> None:
    with pytest.raises(ValueError):
        InMemoryStore(max_entries=0)


def test_thread_safety_under_concurrent_puts() -> None:
    store = InMemoryStore(max_entries=None)
    total_keys = 50

    def _writer(idx: int) -> None:
        store.put(f"k-{idx}", {"v": idx}, 1)

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(total_keys)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.stats()["entries"] == total_keys
    assert store.get("k-0") == {"v": 0}
    assert store.get("k-49") == {"v": 49}
