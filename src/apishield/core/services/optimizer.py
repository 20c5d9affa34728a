"""API optimizer - composes cache, queue, circuit breakers and retry."""

import base64
import binascii
import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta
from types import TracebackType
from typing import Any, TypeVar

from apishield.core.entities.retry_policy import RetryOptions
from apishield.core.exceptions import SerializationError
from apishield.core.interfaces.serializer import ISerializer
from apishield.core.services.cache_service import CacheService
from apishield.core.services.circuit_breaker import CircuitBreakerRegistry
from apishield.core.services.request_queue import RequestQueue
from apishield.core.services.retry_service import RetryService
from apishield.infrastructure.serializers.json import JsonSerializer

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class ApiOptimizer:
    """Main entry point for optimized upstream calls.

    A fetch consults the cache first. On a miss the call is queued under
    the cache key, guarded by the service's circuit breaker, optionally
    retried, and its result written back to the cache.

    Example:
        async with ApiOptimizer() as api:
            contact = await api.fetch(
                "contact",
                "42",
                lambda: supabase.get_contact(42),
                service_name="supabase",
                tags=["contact"],
            )
    """

    def __init__(
        self,
        cache: CacheService | None = None,
        queue: RequestQueue | None = None,
        breakers: CircuitBreakerRegistry | None = None,
        retry: RetryService | None = None,
        serializer: ISerializer | None = None,
    ) -> None:
        """Initialize the optimizer.

        Args:
            cache: TTL cache. A default CacheService is created if None.
            queue: Request queue. A default RequestQueue is created if None.
            breakers: Circuit breaker registry.
            retry: Retry executor.
            serializer: Serializer behind compress_data/decompress_data.
        """
        self.cache = cache if cache is not None else CacheService()
        self.queue = queue if queue is not None else RequestQueue()
        self.breakers = breakers if breakers is not None else CircuitBreakerRegistry()
        self.retry = retry if retry is not None else RetryService()
        self._serializer = serializer if serializer is not None else JsonSerializer()

    async def fetch(
        self,
        namespace: str,
        identifier: Any,
        operation: Callable[[], Awaitable[T]],
        *,
        service_name: str | None = None,
        ttl: timedelta | None = None,
        tags: list[str] | None = None,
        priority: int = 0,
        timeout: float | None = None,
        retry: RetryOptions | None = None,
        use_cache: bool = True,
    ) -> T:
        """Return a cached value or perform the call and cache its result.

        Args:
            namespace: Cache namespace, e.g. "contact".
            identifier: String or JSON-compatible identifier.
            operation: Zero-argument coroutine factory performing the call.
            service_name: Upstream name for the circuit breaker. No breaker
                is used when None.
            ttl: TTL for the cached result.
            tags: Tags for the cached result.
            priority: Queue priority.
            timeout: Seconds the call may wait in the queue.
            retry: Retry budget. The call is not retried when None.
            use_cache: Skip the cache lookup and write when False.

        Returns:
            The cached or freshly fetched value.

        Raises:
            CircuitOpenError: If the service's circuit is open.
            RequestTimeoutError: If the call waited too long in the queue.
            Exception: The operation's own error once retries are spent.
        """
        if use_cache:
            cached = self.cache.get(namespace, identifier, _MISSING)
            if cached is not _MISSING:
                return cached  # type: ignore[no-any-return]

        key = self.cache.key_for(namespace, identifier)
        call = self._guard(key, operation, service_name, retry)
        result = await self.queue.queue_request(key, call, priority, timeout)

        if use_cache:
            self.cache.set(namespace, identifier, result, ttl, tags)
        return result

    async def prefetch(
        self,
        namespace: str,
        identifier: Any,
        operation: Callable[[], Awaitable[Any]],
        ttl: timedelta = timedelta(minutes=5),
        tags: list[str] | None = None,
    ) -> bool:
        """Warm the cache for a value that is likely to be requested soon.

        Failures are logged and swallowed.

        Returns:
            True if the value was fetched and cached.
        """
        key = self.cache.key_for(namespace, identifier)
        try:
            result = await operation()
        except Exception as e:
            logger.warning("Prefetch failed for %s: %s", key, e)
            return False

        self.cache.set(namespace, identifier, result, ttl, tags)
        logger.debug("Prefetched data for %s", key)
        return True

    def compress_data(self, data: Any) -> str:
        """Encode a payload as base64 text for storage or transmission.

        Raises:
            SerializationError: If the payload cannot be serialized.
        """
        return base64.b64encode(self._serializer.serialize(data)).decode("ascii")

    def decompress_data(self, compressed: str) -> Any:
        """Decode text produced by :meth:`compress_data`.

        Raises:
            SerializationError: If the text is not a valid encoded payload.
        """
        try:
            raw = base64.b64decode(compressed.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise SerializationError(f"Failed to decompress data: {e}") from e
        return self._serializer.deserialize(raw)

    def maintain(self) -> dict[str, int]:
        """Sweep expired cache entries and idle circuit breakers.

        Returns:
            Counts of removed cache entries and breakers.
        """
        return {
            "cache_entries": self.cache.cleanup(),
            "circuit_breakers": self.breakers.cleanup(),
        }

    def start(self) -> None:
        """Start background maintenance on the running loop."""
        self.cache.start()

    async def close(self) -> None:
        """Stop background work and reject requests still queued."""
        await self.queue.close()
        self.cache.destroy()

    async def __aenter__(self) -> "ApiOptimizer":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _guard(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        service_name: str | None,
        retry: RetryOptions | None,
    ) -> Callable[[], Awaitable[T]]:
        call = operation

        if service_name is not None:
            guarded, name = call, service_name

            async def call_with_breaker() -> T:
                return await self.breakers.execute(name, guarded)

            call = call_with_breaker

        if retry is not None:
            attempt, options = call, retry

            async def call_with_retry() -> T:
                return await self.retry.execute_operation(attempt, key, options)

            call = call_with_retry

        return call
