"""Domain services for apishield."""

from apishield.core.services.cache_service import CacheService
from apishield.core.services.circuit_breaker import CircuitBreakerRegistry
from apishield.core.services.contact_cache import ContactCache
from apishield.core.services.optimizer import ApiOptimizer
from apishield.core.services.request_queue import RequestQueue
from apishield.core.services.retry_service import RetryService

__all__ = [
    "CacheService",
    "ContactCache",
    "CircuitBreakerRegistry",
    "RetryService",
    "RequestQueue",
    "ApiOptimizer",
]
