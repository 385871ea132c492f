"""
Bounded-parallelism gate shared by every job in the process.

Asset downloads and image probes are admitted through one ConcurrencyLimiter
so that a burst of jobs cannot spawn an unbounded number of sockets or
ffprobe processes. Waiters are admitted in arrival order.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

from reelforge import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    """
    Admit at most ``max_concurrency`` units of work at once.

    Each unit resolves or raises on its own; a failing unit releases its slot
    and does not affect queued or running units.
    """

    def __init__(self, max_concurrency: Optional[int] = None):
        """
        Initialize limiter

        Args:
            max_concurrency: Pool size (None = CPU count minus one, minimum 1)
        """
        if max_concurrency is None:
            max_concurrency = settings.get_max_concurrency()
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self.active = 0
        self.peak = 0
        self.waiting = 0
        logger.info(f"ConcurrencyLimiter initialized with max_concurrency={max_concurrency}")

    async def run(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Run one coroutine function once a slot is free.

        Returns:
            Whatever the coroutine returns; its exception propagates unchanged
        """
        self.waiting += 1
        try:
            await self._semaphore.acquire()
        finally:
            self.waiting -= 1

        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            return await func(*args, **kwargs)
        finally:
            self.active -= 1
            self._semaphore.release()

    async def gather(self, thunks: Iterable[Callable[[], Awaitable[T]]]) -> List[Any]:
        """
        Run zero-argument coroutine functions through the gate.

        Results come back in input order. Failures are returned in place as
        exception objects rather than raised, so every unit gets to finish.
        """
        tasks = [self.run(thunk) for thunk in thunks]
        if not tasks:
            return []
        return await asyncio.gather(*tasks, return_exceptions=True)

    def __repr__(self) -> str:
        return (
            f"ConcurrencyLimiter(max={self.max_concurrency}, active={self.active}, "
            f"waiting={self.waiting}, peak={self.peak})"
        )
