"""Bounded last-access cache for materialized shards."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from sdk_assist.retrieval.index import InvertedIndex

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")
S = TypeVar("S")


@dataclass(slots=True)
class _Entry(Generic[V]):
    value: V
    last_access: float


@dataclass(slots=True)
class CachedShard(Generic[S]):
    """A loaded shard paired with the index built from it."""

    shard: S
    index: InvertedIndex
    last_access: float


class LRUCache(Generic[K, V]):
    """Evicts the entry with the oldest access stamp once capacity is reached.

    A hit re-stamps the entry and moves it to the end of iteration order, so
    when two stamps are equal the entry touched longest ago is still the first
    minimum found by the eviction scan.
    """

    def __init__(self, capacity: int = 4, *, clock: Callable[[], float] = time.monotonic) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._clock = clock
        self._entries: dict[K, _Entry[V]] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return None
            entry.last_access = self._clock()
            self._entries[key] = entry
            return entry.value

    def set(self, key: K, value: V) -> None:
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                self._evict_locked()
            self._entries.pop(key, None)
            self._entries[key] = _Entry(value=value, last_access=self._clock())

    def has(self, key: K) -> bool:
        return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[K]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def size(self) -> int:
        return len(self._entries)

    def _evict_locked(self) -> None:
        oldest_key: K | None = None
        oldest_time = float("inf")
        for key, entry in self._entries.items():
            if entry.last_access < oldest_time:
                oldest_time = entry.last_access
                oldest_key = key
        if oldest_key is not None:
            del self._entries[oldest_key]
            logger.debug("evicted cache entry %r", oldest_key)
