"""Cache entry entity."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Immutable cache entry value object.

    Represents a cached value with associated metadata including
    insertion time, TTL and tags for invalidation. ``created_at`` is a
    reading of the owning cache's clock, in seconds.
    """

    key: str
    value: T
    created_at: float
    ttl: timedelta
    tags: tuple[str, ...] = ()

    @property
    def expires_at(self) -> float:
        """Calculate expiration time.

        Returns:
            The clock reading after which this entry is expired.
        """
        return self.created_at + self.ttl.total_seconds()

    def is_expired(self, now: float) -> bool:
        """Check if entry has expired.

        Args:
            now: Current reading of the owning cache's clock.

        Returns:
            True once more than ``ttl`` has elapsed since insertion.
        """
        return now - self.created_at > self.ttl.total_seconds()

    def has_tag(self, tag: str) -> bool:
        """Return True if the entry carries ``tag``."""
        return tag in self.tags

    @classmethod
    def create(
        cls,
        key: str,
        value: Any,
        created_at: float,
        ttl: timedelta,
        tags: list[str] | tuple[str, ...] | None = None,
    ) -> "CacheEntry[Any]":
        """Factory method to create a new cache entry.

        Args:
            key: The cache key.
            value: The value to cache.
            created_at: Clock reading at insertion.
            ttl: Time-to-live of the entry.
            tags: Optional list of tags for invalidation.

        Returns:
            A new CacheEntry instance.
        """
        return cls(
            key=key,
            value=value,
            created_at=created_at,
            ttl=ttl,
            tags=tuple(tags) if tags else (),
        )


@dataclass(frozen=True)
class CacheStats:
    """Read-only snapshot of cache statistics."""

    hits: int
    misses: int
    size: int

    @property
    def total(self) -> int:
        """Number of counted lookups."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hits over counted lookups, 0.0 when nothing was looked up yet."""
        if self.total == 0:
            return 0.0
        return self.hits / self.total
