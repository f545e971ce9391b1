"""Bounded LRU cache for feature comparison scores."""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Hashable, Optional


logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache statistics for monitoring and optimization."""
    total_entries: int
    cache_hits: int
    cache_misses: int
    evictions: int
    hit_rate: float


class ComparisonCache:
    """
    LRU cache of ``(feature, feature) -> score``.

    Keys are unordered pairs, so a lookup of ``(b, a)`` hits an entry stored
    for ``(a, b)``. The cache lives for a single VSM build.
    """

    def __init__(self, max_entries: int = 100000):
        """
        Args:
            max_entries: Maximum number of cached scores
        """
        if max_entries <= 0:
            raise ValueError("Cache size must be positive")
        self.max_entries = max_entries
        self._cache: "OrderedDict[frozenset, float]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @staticmethod
    def _key(a: Hashable, b: Hashable) -> frozenset:
        return frozenset((a, b))

    def get(self, a: Hashable, b: Hashable) -> Optional[float]:
        """Cached score of the pair, or None on a miss."""
        key = self._key(a, b)
        score = self._cache.get(key)
        if score is None:
            self._misses += 1
            return None
        self._cache.move_to_end(key)
        self._hits += 1
        return score

    def put(self, a: Hashable, b: Hashable, score: float) -> None:
        key = self._key(a, b)
        self._cache[key] = score
        self._cache.move_to_end(key)
        while len(self._cache) > self.max_entries:
            self._cache.popitem(last=False)
            self._evictions += 1

    def clear(self) -> None:
        """Clear all cache entries and statistics."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get_stats(self) -> CacheStats:
        total_requests = self._hits + self._misses
        return CacheStats(
            total_entries=len(self._cache),
            cache_hits=self._hits,
            cache_misses=self._misses,
            evictions=self._evictions,
            hit_rate=self._hits / total_requests if total_requests > 0 else 0.0
        )

    def __len__(self) -> int:
        return len(self._cache)
