"""Request queue - per-key priority queues drained in bounded batches."""

import asyncio
import bisect
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from apishield.core.entities.cache_config import QueueConfig
from apishield.core.entities.queued_request import QueuedRequest, QueueStats
from apishield.core.exceptions import RequestCancelledError, RequestTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestQueue:
    """Throttles concurrent invocations of keyed operations.

    Requests sharing a key wait in one queue ordered by descending
    priority, first-come first-served among equal priorities. Each key is
    drained by at most one loop at a time, and at most
    ``config.max_concurrent`` keys drain concurrently; a key that finds
    no free slot is polled again after ``config.poll_interval``.

    A drain splices up to ``config.batch_size`` requests from the front
    of the queue. A single request is awaited directly; several are run
    concurrently and each outcome is routed back to its own caller, so
    one failure never affects its siblings. Every operation is still
    invoked once per request: batching bounds concurrency, it does not
    coalesce calls.

    A request's timeout only applies while it waits in the queue. Once
    dispatched, the timer is cancelled and the caller gets whatever the
    operation produces.
    """

    def __init__(
        self,
        config: QueueConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the queue.

        Args:
            config: Batch size, concurrency ceiling and timing.
            clock: Time source used to stamp requests.
        """
        self._config = config if config is not None else QueueConfig()
        self._clock = clock
        self._queues: dict[str, list[QueuedRequest]] = {}
        self._processing: set[str] = set()
        self._active = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self._handles: set[asyncio.TimerHandle] = set()

    @property
    def config(self) -> QueueConfig:
        return self._config

    async def queue_request(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        priority: int = 0,
        timeout: float | None = None,
    ) -> T:
        """Queue ``operation`` under ``key`` and wait for its outcome.

        Args:
            key: Logical request identity, e.g. ``"contact:42"``.
            operation: Zero-argument coroutine factory performing the call.
            priority: Higher values are dispatched first.
            timeout: Seconds the request may wait before dispatch.
                Defaults to ``config.default_timeout``.

        Returns:
            The operation's result.

        Raises:
            RequestTimeoutError: If not dispatched within ``timeout``.
            RequestCancelledError: If cancelled via :meth:`cancel_requests`
                or :meth:`close` before dispatch.
            Exception: Whatever the operation raises.
        """
        loop = asyncio.get_running_loop()
        request = QueuedRequest.create(
            key=key,
            operation=operation,
            future=loop.create_future(),
            enqueue_time=self._clock(),
            priority=priority,
        )

        queue = self._queues.setdefault(key, [])
        # Insert after every request of greater or equal priority
        position = bisect.bisect_right(queue, -priority, key=lambda r: -r.priority)
        queue.insert(position, request)

        wait = timeout if timeout is not None else self._config.default_timeout
        request.timeout_handle = loop.call_later(wait, self._expire, request, wait)

        self._schedule(key)
        return await request.future  # type: ignore[no-any-return]

    def cancel_requests(self, key: str) -> int:
        """Reject every request still waiting under ``key``.

        In-flight requests are not affected.

        Returns:
            Number of requests cancelled.
        """
        queue = self._queues.pop(key, [])
        pending = list(queue)
        # A running drain may still hold this list
        queue.clear()

        for request in pending:
            request.cancel_timeout()
            request.reject(RequestCancelledError(key))

        if pending:
            logger.info("Cancelled %d pending requests for %s", len(pending), key)
        return len(pending)

    def get_queue_stats(self) -> QueueStats:
        """Return pending counts per key and the number of active drains."""
        queue_sizes = {key: len(queue) for key, queue in self._queues.items()}
        return QueueStats(
            total_queued=sum(queue_sizes.values()),
            active_requests=self._active,
            processing_batches=len(self._processing),
            queue_sizes=queue_sizes,
        )

    async def close(self) -> None:
        """Stop draining and reject everything still queued."""
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

        for key in list(self._queues):
            self.cancel_requests(key)

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _schedule(self, key: str, delay: float = 0.0) -> None:
        loop = asyncio.get_running_loop()
        if delay <= 0:
            self._spawn(key)
            return

        handle: asyncio.TimerHandle

        def fire() -> None:
            self._handles.discard(handle)
            self._spawn(key)

        handle = loop.call_later(delay, fire)
        self._handles.add(handle)

    def _spawn(self, key: str) -> None:
        task = asyncio.get_running_loop().create_task(self._process_queue(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _expire(self, request: QueuedRequest, timeout: float) -> None:
        request.timeout_handle = None
        queue = self._queues.get(request.key)
        if queue is None or request not in queue:
            # Already dispatched or cancelled
            return

        queue.remove(request)
        self._prune(request.key)
        if request.reject(RequestTimeoutError(request.key, timeout)):
            logger.warning("Request %s timed out after %.3fs", request.id, timeout)

    def _prune(self, key: str) -> None:
        if not self._queues.get(key) and key not in self._processing:
            self._queues.pop(key, None)

    async def _process_queue(self, key: str) -> None:
        queue = self._queues.get(key)
        if not queue or key in self._processing:
            return

        if self._active >= self._config.max_concurrent:
            self._schedule(key, self._config.poll_interval)
            return

        self._processing.add(key)
        self._active += 1

        try:
            while queue:
                batch = queue[: self._config.batch_size]
                del queue[: self._config.batch_size]
                for request in batch:
                    request.cancel_timeout()

                # Callers that gave up while waiting are skipped
                batch = [request for request in batch if not request.settled]
                try:
                    if len(batch) == 1:
                        await self._run_single(batch[0])
                    elif batch:
                        await self._run_batch(batch)
                except asyncio.CancelledError:
                    for request in batch:
                        request.reject(RequestCancelledError(key))
                    raise
        finally:
            self._processing.discard(key)
            self._active -= 1

            if self._queues.get(key):
                self._schedule(key, self._config.requeue_delay)
            else:
                self._prune(key)

    async def _run_single(self, request: QueuedRequest) -> None:
        try:
            result = await request.operation()
        except Exception as e:
            request.reject(e)
        else:
            request.resolve(result)

    async def _run_batch(self, batch: list[QueuedRequest]) -> None:
        results: list[Any] = await asyncio.gather(
            *(self._invoke(request) for request in batch),
            return_exceptions=True,
        )

        for request, outcome in zip(batch, results):
            if isinstance(outcome, BaseException):
                request.reject(outcome)
            else:
                request.resolve(outcome)

    @staticmethod
    async def _invoke(request: QueuedRequest) -> Any:
        return await request.operation()
