"""Core domain layer for apishield."""

from apishield.core.entities import (
    CacheConfig,
    CacheEntry,
    CacheStats,
    CircuitBreakerConfig,
    CircuitState,
    QueueConfig,
    RetryOptions,
    RetryResult,
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

__all__ = [
    # Entities
    "CacheConfig",
    "CacheEntry",
    "CacheStats",
    "CircuitBreakerConfig",
    "CircuitState",
    "QueueConfig",
    "RetryOptions",
    "RetryResult",
    # Errors
    "ApiShieldError",
    "SerializationError",
    "KeySerializationError",
    "CircuitOpenError",
    "RequestQueueError",
    "RequestTimeoutError",
    "RequestCancelledError",
    # Interfaces
    "ICacheBackend",
    "IKeyBuilder",
    "ISerializer",
    # Services
    "CacheService",
    "ContactCache",
    "CircuitBreakerRegistry",
    "RetryService",
    "RequestQueue",
    "ApiOptimizer",
]
