"""
Concurrency limiter

Caps the number of in-flight operations against an external provider.
Waiters are admitted in submission order (asyncio.Semaphore is FIFO);
completion order is not constrained.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from saleradar.core.exceptions import ValidationError

T = TypeVar("T")


class ConcurrencyLimiter:
    """At most ``concurrency`` operations run at once."""

    def __init__(self, concurrency: int) -> None:
        if concurrency < 1:
            raise ValidationError(f"concurrency must be >= 1, got {concurrency}")
        self.concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency)
        self._active = 0
        self._pending = 0

    @classmethod
    def with_concurrency(cls, concurrency: int) -> ConcurrencyLimiter:
        return cls(concurrency)

    @property
    def active_count(self) -> int:
        return self._active

    @property
    def pending_count(self) -> int:
        return self._pending

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` once a slot is free

        Exceptions raised by the operation propagate to this caller only.
        """
        self._pending += 1
        try:
            await self._semaphore.acquire()
        finally:
            self._pending -= 1

        self._active += 1
        try:
            return await operation()
        finally:
            self._active -= 1
            self._semaphore.release()
