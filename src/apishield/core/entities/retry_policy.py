"""Retry options, results and the transient-error predicates."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

from apishield.core.exceptions import CircuitOpenError

T = TypeVar("T")

RetryCondition = Callable[[BaseException], bool]

_TRANSIENT_MARKERS = (
    "network",
    "timeout",
    "fetch",
    "500",
    "502",
    "503",
    "504",
)

_FILE_TRANSIENT_MARKERS = _TRANSIENT_MARKERS + ("storage",)


def _status_of(error: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _is_transient(error: BaseException, markers: tuple[str, ...]) -> bool:
    if isinstance(error, CircuitOpenError):
        return False
    if isinstance(error, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True

    status = _status_of(error)
    if status is not None:
        return status >= 500

    message = str(error).lower()
    return any(marker in message for marker in markers)


def is_retryable_error(error: BaseException) -> bool:
    """Classify an operation failure as transient.

    Network errors, timeouts and 5xx-class failures are retryable. An open
    circuit is never retried, and neither is anything else (validation
    errors, 4xx responses, programming errors).

    Args:
        error: The exception raised by the operation.

    Returns:
        True if another attempt may succeed.
    """
    return _is_transient(error, _TRANSIENT_MARKERS)


def is_retryable_file_error(error: BaseException) -> bool:
    """Like :func:`is_retryable_error`, also retrying storage failures."""
    return _is_transient(error, _FILE_TRANSIENT_MARKERS)


@dataclass(frozen=True)
class RetryOptions:
    """Backoff budget for one retried operation.

    Delays are in seconds. The delay before attempt ``n + 1`` is
    ``min(initial_delay * backoff_multiplier ** (n - 1), max_delay)``.
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    retry_condition: RetryCondition = field(default=is_retryable_error)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(
                f"max_attempts must be at least 1, got {self.max_attempts}"
            )

    def delay_for(self, attempt: int) -> float:
        """Return the delay to wait after failed attempt number ``attempt``."""
        delay = self.initial_delay * self.backoff_multiplier ** (attempt - 1)
        return min(delay, self.max_delay)

    def with_overrides(self, **changes: Any) -> "RetryOptions":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass
class RetryResult(Generic[T]):
    """Outcome of :meth:`RetryService.execute_with_retry`."""

    success: bool
    attempts: int
    total_delay: float
    result: T | None = None
    error: BaseException | None = None


CONTACT_RETRY = RetryOptions(max_attempts=3, initial_delay=1.0, max_delay=10.0)

# File transfers are slow to fail, so fewer attempts with longer waits.
FILE_RETRY = RetryOptions(
    max_attempts=2,
    initial_delay=2.0,
    max_delay=15.0,
    retry_condition=is_retryable_file_error,
)

BATCH_RETRY = RetryOptions(max_attempts=2, initial_delay=3.0, max_delay=20.0)
