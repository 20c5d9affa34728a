"""Decorators for caching, invalidation, retry and circuit breaking.

``@cached`` and ``@invalidates`` use the ApiOptimizer registered with
:func:`configure`; when none is registered they call straight through.
``@retry`` and ``@circuit_breaker`` use the configured optimizer's
services as well. Without one, each decorated function gets its own
RetryService or CircuitBreakerRegistry when it is decorated, so nothing
is shared between functions until :func:`configure` is called.
"""

import functools
import re
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from apishield.core.entities.retry_policy import RetryOptions
from apishield.core.services.circuit_breaker import CircuitBreakerRegistry
from apishield.core.services.optimizer import ApiOptimizer
from apishield.core.services.retry_service import RetryService

F = TypeVar("F", bound=Callable[..., Any])

# Module-level optimizer reference
_optimizer: ApiOptimizer | None = None


def configure(optimizer: ApiOptimizer | None) -> None:
    """Configure the optimizer used by the decorators.

    Args:
        optimizer: The optimizer instance to use, or None to unset it.

    Example:
        optimizer = ApiOptimizer(cache=CacheService(config=CacheConfig()))
        configure(optimizer)
    """
    global _optimizer
    _optimizer = optimizer


def get_optimizer() -> ApiOptimizer | None:
    """Get the configured optimizer.

    Returns:
        The configured optimizer, or None if not configured.
    """
    return _optimizer


def cached(
    namespace: str | None = None,
    ttl: timedelta | None = None,
    tags: list[str] | None = None,
    key: str | Callable[..., Any] | None = None,
    service_name: str | None = None,
    priority: int = 0,
) -> Callable[[F], F]:
    """Decorator for caching async function results.

    Calls go through :meth:`ApiOptimizer.fetch`, so misses are queued
    under the cache key and concurrent misses for one key are throttled.

    Args:
        namespace: Cache namespace. Defaults to the function's qualified name.
        ttl: Time-to-live for cached results. Uses config default if None.
        tags: Tags for cache invalidation. Supports {arg_name} interpolation.
        key: Custom identifier or function to generate it.
            If string, supports {arg_name} interpolation.
            If callable, receives (*args, **kwargs) and returns the identifier.
        service_name: Circuit breaker to run misses under.
        priority: Queue priority of misses.

    Returns:
        Decorated function.

    Example:
        @cached("contact", ttl=timedelta(minutes=10), tags=["contact"], key="{id}")
        async def get_contact(id: str) -> dict:
            return await db.get_contact(id)
    """

    def decorator(func: F) -> F:
        cache_namespace = namespace or func.__qualname__

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            optimizer = _optimizer
            if optimizer is None:
                # Not configured, execute directly
                return await func(*args, **kwargs)

            identifier = _build_identifier(args, kwargs, key)
            return await optimizer.fetch(
                cache_namespace,
                identifier,
                lambda: func(*args, **kwargs),
                service_name=service_name,
                ttl=ttl,
                tags=_resolve_tags(tags, args, kwargs),
                priority=priority,
            )

        return wrapper  # type: ignore

    return decorator


def invalidates(
    tags: list[str],
) -> Callable[[F], F]:
    """Decorator for invalidating cache entries after a write.

    Executes the decorated function and then invalidates all cache
    entries matching the specified tags. Nothing is invalidated if the
    function raises.

    Args:
        tags: Tags to invalidate. Supports {arg_name} interpolation.

    Returns:
        Decorated function.

    Example:
        @invalidates(tags=["contact", "contact:{id}"])
        async def update_contact(id: str, data: dict) -> dict:
            return await db.update_contact(id, data)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            # Execute function first
            result = await func(*args, **kwargs)

            if _optimizer is not None:
                _optimizer.cache.invalidate(_resolve_tags(tags, args, kwargs))

            return result

        return wrapper  # type: ignore

    return decorator


def retry(
    options: RetryOptions | None = None,
    operation_name: str | None = None,
) -> Callable[[F], F]:
    """Decorator retrying an async function with exponential backoff.

    The final error is re-raised once the budget is spent.

    Args:
        options: Backoff budget and predicate, e.g. ``FILE_RETRY``.
        operation_name: Name used in log messages. Defaults to the
            function's qualified name.

    Returns:
        Decorated function.
    """

    def decorator(func: F) -> F:
        name = operation_name or func.__qualname__
        fallback = RetryService()

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            service = _optimizer.retry if _optimizer is not None else fallback
            return await service.execute_operation(
                lambda: func(*args, **kwargs), name, options
            )

        return wrapper  # type: ignore

    return decorator


def circuit_breaker(
    service_name: str,
    failure_threshold: int | None = None,
    recovery_timeout: float | None = None,
) -> Callable[[F], F]:
    """Decorator running an async function under a named circuit breaker.

    Args:
        service_name: Upstream the function talks to.
        failure_threshold: Failures that open the circuit.
        recovery_timeout: Seconds the circuit stays open before a trial.

    Returns:
        Decorated function.
    """

    def decorator(func: F) -> F:
        fallback = CircuitBreakerRegistry()

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            registry = _optimizer.breakers if _optimizer is not None else fallback
            return await registry.execute(
                service_name,
                lambda: func(*args, **kwargs),
                failure_threshold=failure_threshold,
                recovery_timeout=recovery_timeout,
            )

        return wrapper  # type: ignore

    return decorator


def _build_identifier(
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    custom_key: str | Callable[..., Any] | None,
) -> Any:
    """Build the cache identifier for a function call.

    Args:
        args: Positional arguments.
        kwargs: Keyword arguments.
        custom_key: Custom identifier or identifier builder function.

    Returns:
        A string or a JSON-compatible mapping of the arguments.
    """
    if custom_key is not None:
        if callable(custom_key):
            return custom_key(*args, **kwargs)
        return _interpolate_string(custom_key, args, kwargs)

    return {"args": list(args), "kwargs": kwargs}


def _resolve_tags(
    tags: list[str] | None,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> list[str]:
    """Resolve tags with argument interpolation.

    Args:
        tags: Tag patterns with optional {arg} placeholders.
        args: Positional arguments.
        kwargs: Keyword arguments.

    Returns:
        List of resolved tag strings.
    """
    if not tags:
        return []

    return [_interpolate_string(tag, args, kwargs) for tag in tags]


def _interpolate_string(
    template: str,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> str:
    """Interpolate {arg_name} placeholders in string.

    Args:
        template: String with {arg_name} placeholders.
        args: Positional arguments (ignored for name-based interpolation).
        kwargs: Keyword arguments for interpolation.

    Returns:
        Interpolated string.
    """
    pattern = r"\{(\w+)\}"

    def replacer(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in kwargs:
            return str(kwargs[name])
        return match.group(0)  # Keep original if not found

    return re.sub(pattern, replacer, template)
