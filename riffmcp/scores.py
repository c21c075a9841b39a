"""Bounded, thread-safe store of played sequences, keyed by score id."""

from __future__ import annotations

import copy
import threading
from collections import OrderedDict
from typing import Any

DEFAULT_CAPACITY = 100


class ScoreCache:
    """
    Hands a sequence from ``play`` over to a later ``engrave``.

    Values are deep-copied on the way in and out so callers never share
    state with the cache. Once capacity is exceeded the oldest inserted ids
    are evicted.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._scores: OrderedDict[str, Any] = OrderedDict()
        self._last_id: str | None = None
        self._lock = threading.Lock()

    def put(self, score_id: str, value: Any) -> None:
        stored = copy.deepcopy(value)
        with self._lock:
            self._scores.pop(score_id, None)
            self._scores[score_id] = stored
            self._last_id = score_id
            while len(self._scores) > self.capacity:
                self._scores.popitem(last=False)

    def get(self, score_id: str | None = None) -> Any | None:
        """Exact lookup by id, or the most recently put score when no id is given."""
        with self._lock:
            key = score_id if score_id is not None else self._last_id
            if key is None or key not in self._scores:
                return None
            value = self._scores[key]
        return copy.deepcopy(value)

    def clear(self) -> None:
        with self._lock:
            self._scores.clear()
            self._last_id = None

    @property
    def last_id(self) -> str | None:
        with self._lock:
            return self._last_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._scores)

    def __contains__(self, score_id: str) -> bool:
        with self._lock:
            return score_id in self._scores
