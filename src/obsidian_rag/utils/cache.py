"""Fixed-capacity least-recently-used cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Generic, Hashable, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True, slots=True)
class CacheStats:
    hits: int
    misses: int
    evictions: int
    size: int
    capacity: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class LRUCache(Generic[K, V]):
    """Key/value store that evicts the least recently used entry when full.

    Recency is a logical counter bumped on every ``get`` hit and ``set``, so
    operations issued within the same clock tick are still totally ordered.
    A capacity of 0 disables caching: ``set`` is a no-op and ``get`` misses.
    Not thread-safe.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = max(0, int(capacity))
        self._values: Dict[K, V] = {}
        self._recency: Dict[K, int] = {}
        self._clock = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def _touch(self, key: K) -> None:
        self._recency[key] = self._clock
        self._clock += 1

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Return the cached value, or ``default`` on a miss.

        A stored ``None`` looks like a miss with the default ``default``; pass
        a sentinel or check :meth:`has` first to tell the two apart.
        """
        if key in self._values:
            self.hits += 1
            self._touch(key)
            return self._values[key]
        self.misses += 1
        return default

    def set(self, key: K, value: V) -> None:
        if self.capacity == 0:
            return
        if key not in self._values and len(self._values) >= self.capacity:
            self._evict_lru()
        self._values[key] = value
        self._touch(key)

    def has(self, key: K) -> bool:
        return key in self._values

    def delete(self, key: K) -> bool:
        if key not in self._values:
            return False
        del self._values[key]
        del self._recency[key]
        return True

    def clear(self) -> None:
        self._values.clear()
        self._recency.clear()
        self._clock = 0

    def size(self) -> int:
        return len(self._values)

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self.hits,
            misses=self.misses,
            evictions=self.evictions,
            size=len(self._values),
            capacity=self.capacity,
        )

    def reset_stats(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def _evict_lru(self) -> None:
        if not self._recency:
            return
        oldest = min(self._recency, key=self._recency.__getitem__)
        del self._values[oldest]
        del self._recency[oldest]
        self.evictions += 1
        LOGGER.debug("Evicted %r from cache (capacity %d)", oldest, self.capacity)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)
