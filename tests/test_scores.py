"""Tests for the bounded score cache."""

import threading

import pytest

from riffmcp.scores import ScoreCache


def test_put_and_get_by_id() -> None:
    cache = ScoreCache()
    cache.put("a", {"title": "A"})
    assert cache.get("a") == {"title": "A"}
    assert cache.get("missing") is None
    assert "a" in cache
    assert len(cache) == 1


def test_get_without_id_returns_most_recent() -> None:
    cache = ScoreCache()
    assert cache.get() is None
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.get() == 2
    assert cache.last_id == "b"


def test_values_are_copied_in_and_out() -> None:
    cache = ScoreCache()
    original = {"tracks": [{"events": []}]}
    cache.put("a", original)

    original["tracks"].append("mutated")
    fetched = cache.get("a")
    fetched["tracks"][0]["events"].append("also mutated")

    assert cache.get("a") == {"tracks": [{"events": []}]}


def test_oldest_entries_are_evicted() -> None:
    cache = ScoreCache(capacity=2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("c", 3)

    assert "a" not in cache
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert len(cache) == 2
    assert cache.get() == 3


def test_reinserting_refreshes_position() -> None:
    cache = ScoreCache(capacity=2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("a", 10)
    cache.put("c", 3)

    assert "b" not in cache
    assert cache.get("a") == 10
    assert cache.last_id == "c"


def test_clear() -> None:
    cache = ScoreCache()
    cache.put("a", 1)
    cache.clear()
    assert len(cache) == 0
    assert cache.get() is None


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ScoreCache(capacity=0)


def test_concurrent_puts_stay_within_capacity() -> None:
    cache = ScoreCache(capacity=50)

    def writer(prefix: str) -> None:
        for i in range(200):
            cache.put(f"{prefix}-{i}", {"i": i})
            cache.get()

    threads = [threading.Thread(target=writer, args=(str(n),)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 50
    assert cache.get() is not None
