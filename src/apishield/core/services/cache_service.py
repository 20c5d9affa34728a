"""Cache service - namespaced TTL cache with tag invalidation."""

import asyncio
import copy
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import timedelta
from typing import Any

from apishield.core.entities.cache_config import CacheConfig
from apishield.core.entities.cache_entry import CacheEntry, CacheStats
from apishield.core.interfaces.cache_backend import ICacheBackend
from apishield.core.interfaces.key_builder import IKeyBuilder
from apishield.infrastructure.backends.memory import InMemoryCacheBackend
from apishield.infrastructure.key_builders.default import DefaultKeyBuilder

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheService:
    """Domain service that owns the TTL cache.

    Composes a storage backend and a key builder, and keeps the expiry,
    tag and statistics rules in one place. Every method is synchronous;
    only the optional background sweep started by :meth:`start` runs on
    the event loop.

    Entries are logically absent once older than their TTL. They are
    removed lazily when a lookup finds them expired, or eagerly by
    :meth:`cleanup`.
    """

    def __init__(
        self,
        backend: ICacheBackend | None = None,
        key_builder: IKeyBuilder | None = None,
        config: CacheConfig | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize the cache service.

        Args:
            backend: Entry storage. Defaults to an InMemoryCacheBackend
                sized from ``config.max_size``.
            key_builder: Key builder for namespace/identifier pairs.
            config: Optional cache configuration. Uses defaults if not provided.
            clock: Monotonic time source in seconds.
        """
        self._config = config if config is not None else CacheConfig()
        self._backend = (
            backend
            if backend is not None
            else InMemoryCacheBackend(maxsize=self._config.max_size)
        )
        self._key_builder = (
            key_builder
            if key_builder is not None
            else DefaultKeyBuilder(separator=self._config.key_separator)
        )
        self._clock = clock
        self._cleanup_task: asyncio.Task[None] | None = None

        # Statistics
        self._hits = 0
        self._misses = 0

    @property
    def config(self) -> CacheConfig:
        """Get the cache configuration."""
        return self._config

    @property
    def stats(self) -> dict[str, float]:
        """Get cache statistics.

        Returns:
            Dictionary with hits, misses, total lookups, size and hit rate.
        """
        snapshot = self.get_stats()
        return {
            "hits": snapshot.hits,
            "misses": snapshot.misses,
            "total": snapshot.total,
            "size": snapshot.size,
            "hit_rate": snapshot.hit_rate,
        }

    def get_stats(self) -> CacheStats:
        """Return a snapshot of hit/miss counts and the current size."""
        return CacheStats(hits=self._hits, misses=self._misses, size=len(self._backend))

    def key_for(self, namespace: str, identifier: Any) -> str:
        """Return the key an identifier is stored under.

        Raises:
            KeySerializationError: If the identifier cannot be canonicalized.
        """
        return self._key_builder.build(namespace, identifier)

    def set(
        self,
        namespace: str,
        identifier: Any,
        data: Any,
        ttl: timedelta | None = None,
        tags: list[str] | None = None,
    ) -> CacheEntry[Any]:
        """Store a value.

        The value is deep-copied, so later mutation by the caller does not
        leak into the cache. If the cache is full, the oldest entry is
        evicted first.

        Args:
            namespace: Logical partition of the key space.
            identifier: String or JSON-compatible identifier.
            data: The value to cache.
            ttl: Optional TTL. Uses config default if not provided.
            tags: Optional tags for invalidation.

        Returns:
            The created CacheEntry.
        """
        key = self.key_for(namespace, identifier)
        effective_ttl = ttl if ttl is not None else self._config.default_ttl

        entry = CacheEntry.create(
            key=key,
            value=copy.deepcopy(data),
            created_at=self._clock(),
            ttl=effective_ttl,
            tags=tags,
        )

        if self._config.enabled:
            self._backend.set(key, entry)

        return entry

    def get(self, namespace: str, identifier: Any, default: Any = None) -> Any:
        """Look up a value, counting a hit or a miss.

        Args:
            namespace: Logical partition of the key space.
            identifier: String or JSON-compatible identifier.
            default: Returned on a miss.

        Returns:
            The cached value, or ``default`` if absent or expired.
        """
        entry = self._live_entry(self.key_for(namespace, identifier))

        if entry is None:
            self._misses += 1
            return default

        self._hits += 1
        return entry.value

    def has(self, namespace: str, identifier: Any) -> bool:
        """Check for a live entry without touching statistics."""
        return self._live_entry(self.key_for(namespace, identifier)) is not None

    def delete(self, namespace: str, identifier: Any) -> bool:
        """Delete one entry.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        return self._backend.delete(self.key_for(namespace, identifier))

    def delete_by_tag(self, tag: str) -> int:
        """Delete every entry carrying ``tag``.

        Args:
            tag: The tag to invalidate.

        Returns:
            Number of entries deleted.
        """
        count = 0
        for key, entry in self._backend.items():
            if entry.has_tag(tag) and self._backend.delete(key):
                count += 1

        if count:
            logger.debug("Invalidated %d entries tagged %r", count, tag)
        return count

    def invalidate(self, tags: list[str]) -> int:
        """Invalidate cached entries by tags.

        Args:
            tags: List of tags to invalidate.

        Returns:
            Number of entries invalidated.
        """
        return sum(self.delete_by_tag(tag) for tag in tags)

    def namespace_size(self, namespace: str) -> int:
        """Count stored entries (expired or not) in a namespace."""
        prefix = f"{namespace}{self._config.key_separator}"
        return sum(1 for key, _ in self._backend.items() if key.startswith(prefix))

    def set_max_size(self, max_size: int) -> None:
        """Change the capacity, evicting oldest entries if now over it.

        The configuration passed at construction is left untouched.

        Raises:
            ValueError: If ``max_size`` is less than 1.
        """
        self._config = replace(self._config, max_size=max_size)
        self._backend.resize(max_size)

    def cleanup(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [key for key, entry in self._backend.items() if entry.is_expired(now)]
        for key in expired:
            self._backend.delete(key)

        if expired:
            logger.info("Cache cleanup: removed %d expired entries", len(expired))
        return len(expired)

    def force_cleanup(self) -> int:
        """Run :meth:`cleanup` immediately."""
        return self.cleanup()

    def clear(self) -> None:
        """Clear all cached entries and reset statistics."""
        self._backend.clear()
        self._hits = 0
        self._misses = 0

    @property
    def is_running(self) -> bool:
        """True while the periodic cleanup task is scheduled."""
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start(self) -> None:
        """Start the periodic cleanup task on the running event loop.

        Calling it again while the task is alive does nothing.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        if self.is_running:
            return
        loop = asyncio.get_running_loop()
        self._cleanup_task = loop.create_task(self._cleanup_loop())

    def destroy(self) -> None:
        """Cancel the cleanup task and drop every entry."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            self._cleanup_task = None
        self.clear()

    async def _cleanup_loop(self) -> None:
        interval = self._config.cleanup_interval.total_seconds()
        while True:
            await asyncio.sleep(interval)
            self.cleanup()

    def _live_entry(self, key: str) -> CacheEntry[Any] | None:
        entry = self._backend.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            self._backend.delete(key)
            return None

        return entry
