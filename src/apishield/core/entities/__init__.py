"""Domain entities for apishield."""

from apishield.core.entities.cache_config import (
    CacheConfig,
    CircuitBreakerConfig,
    QueueConfig,
)
from apishield.core.entities.cache_entry import CacheEntry, CacheStats
from apishield.core.entities.circuit_state import (
    CircuitBreakerState,
    CircuitSnapshot,
    CircuitState,
)
from apishield.core.entities.queued_request import QueuedRequest, QueueStats
from apishield.core.entities.retry_policy import (
    BATCH_RETRY,
    CONTACT_RETRY,
    FILE_RETRY,
    RetryOptions,
    RetryResult,
    is_retryable_error,
    is_retryable_file_error,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "CacheConfig",
    "CircuitBreakerConfig",
    "QueueConfig",
    "CircuitState",
    "CircuitBreakerState",
    "CircuitSnapshot",
    "QueuedRequest",
    "QueueStats",
    "RetryOptions",
    "RetryResult",
    "CONTACT_RETRY",
    "FILE_RETRY",
    "BATCH_RETRY",
    "is_retryable_error",
    "is_retryable_file_error",
]
