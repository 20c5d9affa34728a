"""Queued request entity."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

Operation = Callable[[], Awaitable[Any]]


@dataclass(eq=False)
class QueuedRequest:
    """One caller's pending invocation of a keyed operation.

    ``future`` is the caller's handle on the outcome. ``resolve`` and
    ``reject`` settle it at most once, so whichever of dispatch, timeout or
    cancellation reaches the request first wins and the others are no-ops.
    """

    id: str
    key: str
    operation: Operation
    future: asyncio.Future[Any]
    enqueue_time: float
    priority: int = 0
    timeout_handle: asyncio.TimerHandle | None = field(default=None, repr=False)

    @classmethod
    def create(
        cls,
        key: str,
        operation: Operation,
        future: asyncio.Future[Any],
        enqueue_time: float,
        priority: int = 0,
    ) -> "QueuedRequest":
        """Build a request with an id made of key, timestamp and a random suffix."""
        request_id = f"{key}_{enqueue_time:.6f}_{random.getrandbits(32):08x}"
        return cls(
            id=request_id,
            key=key,
            operation=operation,
            future=future,
            enqueue_time=enqueue_time,
            priority=priority,
        )

    @property
    def settled(self) -> bool:
        return self.future.done()

    def resolve(self, value: Any) -> bool:
        """Fulfil the caller's future. Returns False if it was already settled."""
        if self.future.done():
            return False
        self.future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        """Fail the caller's future. Returns False if it was already settled."""
        if self.future.done():
            return False
        self.future.set_exception(error)
        return True

    def cancel_timeout(self) -> None:
        if self.timeout_handle is not None:
            self.timeout_handle.cancel()
            self.timeout_handle = None


@dataclass(frozen=True)
class QueueStats:
    """Snapshot of the request queue."""

    total_queued: int
    active_requests: int
    processing_batches: int
    queue_sizes: dict[str, int]
