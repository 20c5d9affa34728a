"""Tests for CacheService."""

import asyncio
from datetime import timedelta

import pytest

from apishield import (
    CacheConfig,
    CacheService,
    DefaultKeyBuilder,
    InMemoryCacheBackend,
    KeySerializationError,
)


@pytest.fixture
def cache_service(clock) -> CacheService:
    """Create a cache service for testing."""
    config = CacheConfig(default_ttl=timedelta(minutes=5), max_size=100)
    return CacheService(config=config, clock=clock)


class TestCacheService:
    """Tests for CacheService."""

    def test_set_and_get(self, cache_service: CacheService) -> None:
        """Test caching and retrieving a value."""
        cache_service.set("contact", "42", {"id": 42, "name": "Ann"})

        assert cache_service.get("contact", "42") == {"id": 42, "name": "Ann"}

    def test_cache_miss(self, cache_service: CacheService) -> None:
        """Test cache miss returns None or the given default."""
        sentinel = object()

        assert cache_service.get("contact", "missing") is None
        assert cache_service.get("contact", "missing", sentinel) is sentinel

    def test_value_is_copied_in(self, cache_service: CacheService) -> None:
        """Test that mutating the original after set does not affect the cache."""
        contact = {"id": 42, "tags": ["lead"]}
        cache_service.set("contact", "42", contact)

        contact["tags"].append("customer")

        assert cache_service.get("contact", "42") == {"id": 42, "tags": ["lead"]}

    def test_object_identifier_key_order(self, cache_service: CacheService) -> None:
        """Test that structurally equal identifiers hit the same entry."""
        cache_service.set("contact_list", {"a": 1, "b": 2}, ["x"])

        assert cache_service.get("contact_list", {"b": 2, "a": 1}) == ["x"]

    def test_cyclic_identifier_propagates(self, cache_service: CacheService) -> None:
        """Test that an identifier that cannot be serialized raises."""
        cyclic: dict = {}
        cyclic["loop"] = cyclic

        with pytest.raises(KeySerializationError):
            cache_service.set("contact_list", cyclic, [])

    def test_ttl_expiry(self, cache_service: CacheService, clock) -> None:
        """Test entries are visible before their TTL and absent after it."""
        cache_service.set("contact", "1", "value", ttl=timedelta(seconds=10))

        for _ in range(5):
            clock.advance(1.9)
            assert cache_service.get("contact", "1") == "value"

        clock.advance(0.6)
        assert cache_service.get("contact", "1") is None
        # Expired entry was physically removed by the miss
        assert cache_service.get_stats().size == 0

    def test_default_ttl(self, cache_service: CacheService, clock) -> None:
        """Test that the configured default TTL applies."""
        cache_service.set("contact", "1", "value")

        clock.advance(299)
        assert cache_service.has("contact", "1")

        clock.advance(2)
        assert not cache_service.has("contact", "1")

    def test_has_does_not_count(self, cache_service: CacheService) -> None:
        """Test that has() leaves statistics untouched."""
        cache_service.set("contact", "1", "value")

        assert cache_service.has("contact", "1")
        assert not cache_service.has("contact", "2")

        stats = cache_service.get_stats()
        assert stats.hits == 0
        assert stats.misses == 0

    def test_stats(self, cache_service: CacheService) -> None:
        """Test cache statistics tracking."""
        assert cache_service.get_stats().hit_rate == 0.0

        cache_service.get("contact", "1")  # miss
        cache_service.set("contact", "1", "value")
        cache_service.get("contact", "1")  # hit
        cache_service.get("contact", "1")  # hit

        stats = cache_service.get_stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.size == 1
        assert stats.hit_rate == pytest.approx(2 / 3)
        assert cache_service.stats["total"] == 3

    def test_delete(self, cache_service: CacheService) -> None:
        """Test deleting a single entry."""
        cache_service.set("contact", "1", "value")

        assert cache_service.delete("contact", "1") is True
        assert cache_service.delete("contact", "1") is False
        assert cache_service.get("contact", "1") is None

    def test_delete_by_tag(self, cache_service: CacheService) -> None:
        """Test tag invalidation across namespaces."""
        cache_service.set("contact", "1", "v", tags=["contact"])
        cache_service.set("contact_list", {}, "v2", tags=["contact", "list"])
        cache_service.set("ai_analysis", "1", "v3", tags=["ai"])

        assert cache_service.delete_by_tag("contact") == 2

        assert cache_service.get("contact", "1") is None
        assert cache_service.get("contact_list", {}) is None
        assert cache_service.get("ai_analysis", "1") == "v3"

    def test_invalidate_many_tags(self, cache_service: CacheService) -> None:
        """Test invalidating several tags at once."""
        cache_service.set("contact", "1", "v", tags=["contact"])
        cache_service.set("ai_analysis", "1", "v", tags=["ai"])
        cache_service.set("file", "1", "v", tags=["file"])

        assert cache_service.invalidate(["contact", "ai"]) == 2
        assert cache_service.has("file", "1")

    def test_eviction_under_capacity(self, clock) -> None:
        """Test that the oldest entry is evicted when full."""
        cache = CacheService(config=CacheConfig(max_size=2), clock=clock)

        cache.set("ns", "A", 1)
        clock.advance(1)
        cache.set("ns", "B", 2)
        clock.advance(1)
        cache.set("ns", "C", 3)

        assert not cache.has("ns", "A")
        assert cache.has("ns", "B")
        assert cache.has("ns", "C")

    def test_set_max_size_leaves_shared_config(self, clock) -> None:
        """Test that resizing one cache does not resize another sharing its config."""
        config = CacheConfig(max_size=10)
        first = CacheService(config=config, clock=clock)
        second = CacheService(config=config, clock=clock)

        first.set_max_size(2)

        assert first.config.max_size == 2
        assert config.max_size == 10
        assert second.config.max_size == 10

    def test_set_max_size_rejects_zero(self, cache_service: CacheService) -> None:
        """Test that a capacity below one is refused."""
        with pytest.raises(ValueError):
            cache_service.set_max_size(0)

    def test_set_max_size_evicts(self, cache_service: CacheService, clock) -> None:
        """Test shrinking the cache drops the oldest entries."""
        for i in range(4):
            cache_service.set("ns", str(i), i)
            clock.advance(1)

        cache_service.set_max_size(2)

        assert cache_service.config.max_size == 2
        assert cache_service.get_stats().size == 2
        assert cache_service.has("ns", "2")
        assert cache_service.has("ns", "3")

    def test_namespace_size(self, cache_service: CacheService) -> None:
        """Test counting entries per namespace."""
        cache_service.set("contact", "1", "v")
        cache_service.set("contact", "2", "v")
        cache_service.set("contact_list", {"page": 1}, "v")

        assert cache_service.namespace_size("contact") == 2
        assert cache_service.namespace_size("contact_list") == 1
        assert cache_service.namespace_size("file") == 0

    def test_cleanup(self, cache_service: CacheService, clock) -> None:
        """Test eager removal of expired entries."""
        cache_service.set("ns", "short", 1, ttl=timedelta(seconds=1))
        cache_service.set("ns", "long", 2, ttl=timedelta(hours=1))

        clock.advance(5)

        assert cache_service.cleanup() == 1
        assert cache_service.get_stats().size == 1
        assert cache_service.force_cleanup() == 0

    def test_clear_resets_stats(self, cache_service: CacheService) -> None:
        """Test clearing the cache."""
        cache_service.set("contact", "1", "v")
        cache_service.get("contact", "1")
        cache_service.get("contact", "2")

        cache_service.clear()

        stats = cache_service.get_stats()
        assert (stats.hits, stats.misses, stats.size) == (0, 0, 0)

    def test_disabled_cache_always_misses(self, clock) -> None:
        """Test that a disabled cache stores nothing."""
        cache = CacheService(config=CacheConfig(enabled=False), clock=clock)

        entry = cache.set("contact", "1", "v")

        assert entry.key == "contact:1"
        assert cache.get("contact", "1") is None


class TestCacheLifecycle:
    """Tests for the periodic cleanup task."""

    @pytest.mark.asyncio
    async def test_start_and_destroy(self) -> None:
        """Test that destroy cancels the cleanup task."""
        cache = CacheService()

        cache.start()
        assert cache.is_running
        cache.start()  # idempotent

        cache.destroy()
        assert not cache.is_running

    @pytest.mark.asyncio
    async def test_periodic_cleanup_runs(self, clock) -> None:
        """Test that the background sweep removes expired entries."""
        config = CacheConfig(cleanup_interval=timedelta(milliseconds=10))
        cache = CacheService(config=config, clock=clock)
        cache.set("ns", "1", "v", ttl=timedelta(seconds=1))
        clock.advance(2)

        cache.start()
        try:
            for _ in range(50):
                await asyncio.sleep(0.01)
                if cache.get_stats().size == 0:
                    break
            assert cache.get_stats().size == 0
        finally:
            cache.destroy()

    def test_start_requires_running_loop(self) -> None:
        """Test that start() outside an event loop raises."""
        with pytest.raises(RuntimeError):
            CacheService().start()


class TestCacheInjection:
    """Tests for injected collaborators."""

    def test_writes_into_injected_empty_backend(self, clock) -> None:
        """Test that an empty injected backend is used, not replaced."""
        backend = InMemoryCacheBackend(maxsize=2)

        cache = CacheService(backend=backend, clock=clock)
        cache.set("contact", "a", 1)

        assert len(backend) == 1
        assert "contact:a" in backend

    def test_uses_injected_key_builder(self, clock) -> None:
        """Test that the injected key builder shapes the stored keys."""
        backend = InMemoryCacheBackend()
        cache = CacheService(
            backend=backend,
            key_builder=DefaultKeyBuilder(separator="|"),
            clock=clock,
        )

        cache.set("contact", "a", 1)

        assert "contact|a" in backend
