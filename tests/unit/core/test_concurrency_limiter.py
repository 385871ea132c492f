"""
Unit tests for ConcurrencyLimiter.

Tests cover:
- Never more than N units in flight
- Results returned in input order
- A failing unit does not disturb the others
- FIFO admission with a pool of one
"""
import asyncio
import functools
from unittest.mock import patch

import pytest

from reelforge.core.concurrency import ConcurrencyLimiter


async def _echo(value, delay=0.01):
    await asyncio.sleep(delay)
    return value


class TestConcurrencyLimiter:
    """Test cases for ConcurrencyLimiter."""

    def test_rejects_pool_smaller_than_one(self):
        with pytest.raises(ValueError):
            ConcurrencyLimiter(max_concurrency=0)

    def test_default_pool_comes_from_settings(self):
        with patch("reelforge.core.concurrency.settings.get_max_concurrency", return_value=5):
            limiter = ConcurrencyLimiter()
        assert limiter.max_concurrency == 5

    @pytest.mark.asyncio
    async def test_never_exceeds_pool_size(self):
        limiter = ConcurrencyLimiter(max_concurrency=3)

        results = await limiter.gather([functools.partial(_echo, i) for i in range(20)])

        assert results == list(range(20))
        assert limiter.peak == 3
        assert limiter.active == 0
        assert limiter.waiting == 0

    @pytest.mark.asyncio
    async def test_results_keep_input_order_when_completion_order_differs(self):
        limiter = ConcurrencyLimiter(max_concurrency=4)
        delays = [0.05, 0.01, 0.03, 0.0]

        results = await limiter.gather(
            [functools.partial(_echo, i, delay) for i, delay in enumerate(delays)]
        )

        assert results == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self):
        limiter = ConcurrencyLimiter(max_concurrency=2)

        async def work(i):
            await asyncio.sleep(0)
            if i % 2:
                raise ValueError(f"unit {i} failed")
            return i

        results = await limiter.gather([functools.partial(work, i) for i in range(6)])

        assert [r for r in results if not isinstance(r, BaseException)] == [0, 2, 4]
        errors = [r for r in results if isinstance(r, BaseException)]
        assert len(errors) == 3
        assert all(isinstance(e, ValueError) for e in errors)
        assert str(results[3]) == "unit 3 failed"
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_run_propagates_exception_and_releases_slot(self):
        limiter = ConcurrencyLimiter(max_concurrency=1)

        async def boom():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            await limiter.run(boom)

        assert await limiter.run(_echo, "after", delay=0) == "after"

    @pytest.mark.asyncio
    async def test_admission_is_first_come_first_served(self):
        limiter = ConcurrencyLimiter(max_concurrency=1)
        started = []

        async def work(i):
            started.append(i)
            await asyncio.sleep(0)
            return i

        await limiter.gather([functools.partial(work, i) for i in range(8)])

        assert started == list(range(8))

    @pytest.mark.asyncio
    async def test_empty_gather(self):
        limiter = ConcurrencyLimiter(max_concurrency=2)
        assert await limiter.gather([]) == []
