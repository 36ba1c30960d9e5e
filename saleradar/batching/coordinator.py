"""
Request batching

Coalesces independently submitted async operations into batches that are
flushed when ``batch_size`` requests are queued or ``batch_timeout``
seconds have passed since the first unflushed request, whichever comes
first. All operations of a batch run concurrently; every caller's future
settles with its own operation's outcome only after the whole batch has
settled.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Literal, TypeVar
from uuid import uuid4

from saleradar.core.config import settings
from saleradar.core.exceptions import ValidationError
from saleradar.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

FlushTrigger = Literal["size", "timeout", "manual"]


@dataclass
class BatchRequest(Generic[T]):
    """A queued operation and the future its caller is waiting on."""

    operation: Callable[[], Awaitable[T]]
    future: asyncio.Future[T]
    id: str = field(default_factory=lambda: uuid4().hex[:8])


class BatchCoordinator:
    """
    Size/time triggered batch dispatcher

    One instance per rate budget. ``get_batch_coordinator()`` returns the
    process-wide default; unrelated call sites construct their own.

    Usage:
        coordinator = BatchCoordinator(batch_size=10, batch_timeout=0.1)
        vector = await coordinator.submit(lambda: provider.embed("melk"))
    """

    def __init__(
        self,
        batch_size: int | None = None,
        batch_timeout: float | None = None,
    ) -> None:
        self.batch_size = batch_size if batch_size is not None else settings.batch_size
        self.batch_timeout = (
            batch_timeout if batch_timeout is not None else settings.batch_timeout_seconds
        )
        if self.batch_size < 1:
            raise ValidationError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.batch_timeout < 0:
            raise ValidationError(f"batch_timeout must be >= 0, got {self.batch_timeout}")

        self._pending: list[BatchRequest[Any]] = []
        self._timer: asyncio.TimerHandle | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def submit(self, operation: Callable[[], Awaitable[T]]) -> asyncio.Future[T]:
        """
        Queue ``operation`` for the next batch

        Must be called from within a running event loop.

        Args:
            operation: Zero-argument callable returning an awaitable

        Returns:
            Future resolved with the operation's result or rejected with its
            exception
        """
        loop = asyncio.get_running_loop()
        request: BatchRequest[T] = BatchRequest(operation=operation, future=loop.create_future())
        self._pending.append(request)

        if len(self._pending) >= self.batch_size:
            self._dispatch("size")
        elif self._timer is None:
            self._timer = loop.call_later(self.batch_timeout, self._on_timeout)

        return request.future

    async def flush(self) -> None:
        """Dispatch whatever is queued now and wait for every in-flight batch."""
        self._dispatch("manual")
        if self._inflight:
            await asyncio.gather(*self._inflight)

    # Internal helpers -------------------------------------------------

    def _on_timeout(self) -> None:
        self._timer = None
        self._dispatch("timeout")

    def _dispatch(self, trigger: FlushTrigger) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if not self._pending:
            return

        batch, self._pending = self._pending, []
        task = asyncio.get_running_loop().create_task(self._run_batch(batch, trigger))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_batch(self, batch: list[BatchRequest[Any]], trigger: FlushTrigger) -> None:
        outcomes = await asyncio.gather(
            *(self._invoke(request.operation) for request in batch),
            return_exceptions=True,
        )

        failures = 0
        for request, outcome in zip(batch, outcomes):
            if request.future.done():
                # caller gave up on it
                continue
            if isinstance(outcome, BaseException):
                failures += 1
                request.future.set_exception(outcome)
            else:
                request.future.set_result(outcome)

        logger.debug(
            "batch_flushed",
            trigger=trigger,
            size=len(batch),
            failures=failures,
        )

    @staticmethod
    async def _invoke(operation: Callable[[], Awaitable[T]]) -> T:
        return await operation()


_default_coordinator: BatchCoordinator | None = None


def get_batch_coordinator() -> BatchCoordinator:
    """
    Get the process-wide default BatchCoordinator

    Returns:
        Shared BatchCoordinator configured from settings
    """
    global _default_coordinator
    if _default_coordinator is None:
        _default_coordinator = BatchCoordinator()
    return _default_coordinator
