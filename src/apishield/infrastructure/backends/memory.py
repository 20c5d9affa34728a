"""In-memory cache backend implementation."""

import logging
from collections.abc import Iterator
from typing import Any

from cachetools import FIFOCache  # type: ignore[import-untyped]

from apishield.core.entities.cache_entry import CacheEntry

logger = logging.getLogger(__name__)


class _OldestFirstCache(FIFOCache):  # type: ignore[misc]
    """FIFOCache that logs the entries it evicts."""

    def popitem(self) -> tuple[str, CacheEntry[Any]]:
        key, entry = super().popitem()
        logger.debug("Evicted oldest cache entry: %s", key)
        return key, entry


class InMemoryCacheBackend:
    """In-memory cache backend with insertion-order eviction.

    Suitable for single-process deployments. Uses cachetools'
    FIFOCache, so when the store is full the entry inserted longest
    ago is evicted, no matter how recently it was read. Re-inserting
    an existing key moves it to the back of the line.
    """

    def __init__(self, maxsize: int = 1000) -> None:
        """Initialize the in-memory cache backend.

        Args:
            maxsize: Maximum number of entries in the cache.
        """
        self._cache: FIFOCache = _OldestFirstCache(maxsize=maxsize)

    def get(self, key: str) -> CacheEntry[Any] | None:
        """Retrieve the stored entry by key.

        Args:
            key: The cache key to retrieve.

        Returns:
            The stored entry, or None if not found.
        """
        entry = self._cache.get(key)
        return entry if isinstance(entry, CacheEntry) else None

    def set(self, key: str, entry: CacheEntry[Any]) -> None:
        """Store an entry.

        Args:
            key: The cache key.
            entry: The entry to store.
        """
        self._cache[key] = entry

    def delete(self, key: str) -> bool:
        """Delete a stored entry.

        Args:
            key: The cache key to delete.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        try:
            del self._cache[key]
            return True
        except KeyError:
            return False

    def items(self) -> Iterator[tuple[str, CacheEntry[Any]]]:
        """Iterate over a snapshot of (key, entry) pairs.

        The snapshot is taken up front so callers may delete while iterating.
        """
        return iter(list(self._cache.items()))

    def clear(self) -> None:
        """Clear all stored entries."""
        self._cache.clear()

    def resize(self, maxsize: int) -> None:
        """Change the capacity of the store.

        cachetools fixes ``maxsize`` at construction, so the entries are
        replayed into a new cache oldest first; the new cache evicts
        whatever no longer fits.

        Args:
            maxsize: The new maximum number of entries.
        """
        ordered = sorted(self._cache.items(), key=lambda item: item[1].created_at)
        resized = _OldestFirstCache(maxsize=maxsize)
        for key, entry in ordered:
            resized[key] = entry
        self._cache = resized

    def __len__(self) -> int:
        """Return the number of entries in the cache."""
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    @property
    def maxsize(self) -> int:
        """Return the maximum size of the cache."""
        return int(self._cache.maxsize)
