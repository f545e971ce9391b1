"""Caching components."""

from .cache import ComparisonCache, CacheStats

__all__ = [
    'ComparisonCache',
    'CacheStats'
]
