"""apishield - request optimization and resilience for API clients.

An asyncio library sitting between an application's services and the
upstream APIs they call. It provides a namespaced TTL cache with tag
invalidation, per-service circuit breakers, exponential-backoff retry
with named presets, and a per-key priority queue that throttles and
batches concurrent requests.

Example:
    from datetime import timedelta

    from apishield import (
        ApiOptimizer,
        CacheConfig,
        CacheService,
        CONTACT_RETRY,
    )

    optimizer = ApiOptimizer(
        cache=CacheService(config=CacheConfig(default_ttl=timedelta(minutes=10))),
    )

    async with optimizer:
        contact = await optimizer.fetch(
            "contact",
            "42",
            lambda: supabase.get_contact(42),
            service_name="supabase",
            tags=["contact"],
            retry=CONTACT_RETRY,
        )

        # Later, after the contact was edited
        optimizer.cache.delete_by_tag("contact")

Decorators:
    from apishield.decorators import cached, configure, invalidates

    configure(optimizer)

    @cached("contact", key="{contact_id}", tags=["contact"])
    async def get_contact(contact_id: str) -> dict:
        return await supabase.get_contact(contact_id)

    @invalidates(tags=["contact"])
    async def update_contact(contact_id: str, data: dict) -> dict:
        return await supabase.update_contact(contact_id, data)
"""

from apishield.core.entities import (
    BATCH_RETRY,
    CONTACT_RETRY,
    FILE_RETRY,
    CacheConfig,
    CacheEntry,
    CacheStats,
    CircuitBreakerConfig,
    CircuitSnapshot,
    CircuitState,
    QueueConfig,
    QueuedRequest,
    QueueStats,
    RetryOptions,
    RetryResult,
    is_retryable_error,
    is_retryable_file_error,
)
from apishield.core.exceptions import (
    ApiShieldError,
    CircuitOpenError,
    KeySerializationError,
    RequestCancelledError,
    RequestQueueError,
    RequestTimeoutError,
    SerializationError,
)
from apishield.core.interfaces import ICacheBackend, IKeyBuilder, ISerializer
from apishield.core.services import (
    ApiOptimizer,
    CacheService,
    CircuitBreakerRegistry,
    ContactCache,
    RequestQueue,
    RetryService,
)
from apishield.decorators import (
    cached,
    circuit_breaker,
    configure,
    invalidates,
    retry,
)
from apishield.infrastructure import (
    DefaultKeyBuilder,
    InMemoryCacheBackend,
    JsonSerializer,
    canonical_key,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core entities
    "CacheConfig",
    "CacheEntry",
    "CacheStats",
    "CircuitBreakerConfig",
    "CircuitSnapshot",
    "CircuitState",
    "QueueConfig",
    "QueuedRequest",
    "QueueStats",
    # Retry policies
    "RetryOptions",
    "RetryResult",
    "CONTACT_RETRY",
    "FILE_RETRY",
    "BATCH_RETRY",
    "is_retryable_error",
    "is_retryable_file_error",
    # Errors
    "ApiShieldError",
    "SerializationError",
    "KeySerializationError",
    "CircuitOpenError",
    "RequestQueueError",
    "RequestTimeoutError",
    "RequestCancelledError",
    # Core interfaces
    "ICacheBackend",
    "IKeyBuilder",
    "ISerializer",
    # Core services
    "CacheService",
    "ContactCache",
    "CircuitBreakerRegistry",
    "RetryService",
    "RequestQueue",
    "ApiOptimizer",
    # Infrastructure implementations
    "InMemoryCacheBackend",
    "DefaultKeyBuilder",
    "JsonSerializer",
    "canonical_key",
    # Decorators
    "cached",
    "invalidates",
    "retry",
    "circuit_breaker",
    "configure",
]
