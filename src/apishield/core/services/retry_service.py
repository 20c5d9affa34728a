"""Retry executor with exponential backoff."""

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from apishield.core.entities.retry_policy import (
    BATCH_RETRY,
    CONTACT_RETRY,
    FILE_RETRY,
    RetryOptions,
    RetryResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = ParamSpec("P")

Sleep = Callable[[float], Awaitable[Any]]


class RetryService:
    """Runs operations with bounded exponential-backoff retry.

    :meth:`execute_with_retry` reports the outcome as a
    :class:`RetryResult` and never raises for operation failures.
    :meth:`execute_operation` and the named presets raise the last real
    error instead, after logging the attempt count and total delay.
    """

    def __init__(
        self,
        default_options: RetryOptions | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the retry service.

        Args:
            default_options: Options used when a call passes none.
            sleep: Coroutine used to wait between attempts.
        """
        self._default_options = (
            default_options if default_options is not None else RetryOptions()
        )
        self._sleep = sleep

    @property
    def default_options(self) -> RetryOptions:
        return self._default_options

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        options: RetryOptions | None = None,
    ) -> RetryResult[T]:
        """Run ``operation`` until it succeeds or the budget is spent.

        Args:
            operation: Zero-argument coroutine factory, invoked once per attempt.
            options: Backoff budget and retry predicate.

        Returns:
            A RetryResult. On failure ``error`` holds the last exception raised
            by the operation.
        """
        opts = options or self._default_options
        attempts = 0
        total_delay = 0.0
        last_error: BaseException | None = None

        while attempts < opts.max_attempts:
            attempts += 1

            try:
                result = await operation()
            except Exception as e:
                last_error = e
            else:
                return RetryResult(
                    success=True,
                    attempts=attempts,
                    total_delay=total_delay,
                    result=result,
                )

            if not opts.retry_condition(last_error):
                logger.info(
                    "Not retrying operation due to retry condition: %s (attempt %d)",
                    last_error,
                    attempts,
                )
                break

            if attempts >= opts.max_attempts:
                break

            delay = opts.delay_for(attempts)
            total_delay += delay
            logger.warning(
                "Operation failed: %s; retrying in %.2fs (attempt %d/%d)",
                last_error,
                delay,
                attempts,
                opts.max_attempts,
            )
            await self._sleep(delay)

        return RetryResult(
            success=False,
            attempts=attempts,
            total_delay=total_delay,
            error=last_error,
        )

    async def execute_operation(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        options: RetryOptions | None = None,
        **context: Any,
    ) -> T:
        """Run ``operation`` with retry, raising on final failure.

        Args:
            operation: Zero-argument coroutine factory.
            operation_name: Name used in log messages.
            options: Backoff budget and retry predicate.
            **context: Extra fields reported in the log messages.

        Returns:
            The operation's result.

        Raises:
            Exception: The last error raised by the operation.
        """
        outcome = await self.execute_with_retry(operation, options)
        details = "".join(f", {name}={value!r}" for name, value in context.items())

        if not outcome.success:
            logger.error(
                "%s failed after %d attempt(s), total delay %.2fs: %s%s",
                operation_name,
                outcome.attempts,
                outcome.total_delay,
                outcome.error,
                details,
            )
            raise outcome.error or RuntimeError(f"{operation_name} failed")

        if outcome.attempts > 1:
            logger.info(
                "%s succeeded after %d attempts, total delay %.2fs%s",
                operation_name,
                outcome.attempts,
                outcome.total_delay,
                details,
            )
        return outcome.result  # type: ignore[return-value]

    async def execute_contact_operation(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
    ) -> T:
        """Retry a contact API call with :data:`CONTACT_RETRY`."""
        return await self.execute_operation(operation, operation_name, CONTACT_RETRY)

    async def execute_file_operation(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        file_name: str | None = None,
    ) -> T:
        """Retry a file upload or download with :data:`FILE_RETRY`."""
        return await self.execute_operation(
            operation,
            f"File operation {operation_name}",
            FILE_RETRY,
            file_name=file_name,
        )

    async def execute_batch_operation(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        batch_size: int,
    ) -> T:
        """Retry a bulk operation with :data:`BATCH_RETRY`."""
        return await self.execute_operation(
            operation,
            f"Batch operation {operation_name}",
            BATCH_RETRY,
            batch_size=batch_size,
        )

    def create_retry_wrapper(
        self,
        func: Callable[P, Awaitable[T]],
        options: RetryOptions | None = None,
    ) -> Callable[P, Awaitable[RetryResult[T]]]:
        """Wrap a coroutine function so each call is retried.

        Args:
            func: The coroutine function to wrap.
            options: Backoff budget and retry predicate.

        Returns:
            A coroutine function with the same parameters, returning a
            RetryResult instead of raising.
        """

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> RetryResult[T]:
            return await self.execute_with_retry(lambda: func(*args, **kwargs), options)

        return wrapper
