"""Cache backend interface."""

from collections.abc import Iterator
from typing import Any, Protocol

from apishield.core.entities.cache_entry import CacheEntry


class ICacheBackend(Protocol):
    """Contract for cache entry storage.

    Backends only store and evict entries. Expiry, statistics and tag
    bookkeeping belong to CacheService. Methods are synchronous so that
    every cache operation completes without yielding to the event loop.
    """

    def get(self, key: str) -> CacheEntry[Any] | None:
        """Retrieve the stored entry for a key.

        Args:
            key: The cache key to retrieve.

        Returns:
            The stored entry (possibly expired), or None if not present.
        """
        ...

    def set(self, key: str, entry: CacheEntry[Any]) -> None:
        """Store an entry, evicting the oldest one if the store is full.

        Args:
            key: The cache key.
            entry: The entry to store.
        """
        ...

    def delete(self, key: str) -> bool:
        """Delete a stored entry.

        Args:
            key: The cache key to delete.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        ...

    def items(self) -> Iterator[tuple[str, CacheEntry[Any]]]:
        """Iterate over a snapshot of stored (key, entry) pairs."""
        ...

    def clear(self) -> None:
        """Remove every stored entry."""
        ...

    def resize(self, maxsize: int) -> None:
        """Change the capacity, evicting oldest entries that no longer fit.

        Args:
            maxsize: The new maximum number of entries.
        """
        ...

    def __len__(self) -> int: ...
