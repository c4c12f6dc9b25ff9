"""Tests for CancelContext and the wait primitives."""

from __future__ import annotations

import asyncio
import time

import pytest

from retrycase import ContextCancelled, DeadlineExceeded
from retrycase.runtime.concurrency import CancelContext, race, sleep_or_cancel


# ─────────────────────────────────────────────────────────────────────────────
# CancelContext
# ─────────────────────────────────────────────────────────────────────────────


class TestCancelContext:
    def test_live_by_default(self) -> None:
        ctx = CancelContext()
        assert not ctx.cancelled
        assert ctx.cause is None
        assert ctx.remaining is None

    def test_cancel_records_default_cause(self) -> None:
        ctx = CancelContext()
        ctx.cancel()
        assert ctx.cancelled
        assert isinstance(ctx.cause, ContextCancelled)
        assert not isinstance(ctx.cause, DeadlineExceeded)

    def test_first_cause_wins(self) -> None:
        ctx = CancelContext()
        first = RuntimeError("first")
        ctx.cancel(first)
        ctx.cancel(RuntimeError("second"))
        assert ctx.cause is first

    def test_expired_deadline_observed_lazily(self) -> None:
        ctx = CancelContext(deadline=time.monotonic() - 1)
        assert isinstance(ctx.cause, DeadlineExceeded)
        assert ctx.remaining == 0.0

    def test_zero_timeout_is_already_expired(self) -> None:
        assert CancelContext(timeout=0).cancelled

    def test_negative_timeout_rejected(self) -> None:
        with pytest.raises(ValueError):
            CancelContext(timeout=-1)

    def test_timeout_and_deadline_take_earliest(self) -> None:
        deadline = time.monotonic() + 100
        ctx = CancelContext(timeout=1.0, deadline=deadline)
        assert ctx.deadline is not None and ctx.deadline < deadline

    def test_parent_cancellation_propagates(self) -> None:
        parent = CancelContext()
        child = parent.child()
        grandchild = child.with_timeout(60)
        cause = RuntimeError("stop")

        parent.cancel(cause)

        assert child.cause is cause
        assert grandchild.cause is cause

    def test_child_cancellation_does_not_touch_parent(self) -> None:
        parent = CancelContext()
        child = parent.child()
        child.cancel()
        assert child.cancelled
        assert not parent.cancelled

    def test_child_of_cancelled_parent_starts_cancelled(self) -> None:
        parent = CancelContext()
        parent.cancel()
        assert parent.child().cause is parent.cause

    def test_child_deadline_bounded_by_parent(self) -> None:
        parent = CancelContext(timeout=1.0)
        child = parent.with_timeout(100.0)
        assert child.deadline == parent.deadline

    @pytest.mark.asyncio
    async def test_wait_returns_cause(self) -> None:
        ctx = CancelContext()
        cause = RuntimeError("done")
        asyncio.get_running_loop().call_later(0.01, ctx.cancel, cause)
        assert await ctx.wait() is cause

    @pytest.mark.asyncio
    async def test_wait_on_deadline(self) -> None:
        ctx = CancelContext(timeout=0.02)
        assert isinstance(await ctx.wait(), DeadlineExceeded)

    @pytest.mark.asyncio
    async def test_context_manager_fires_deadline(self) -> None:
        parent = CancelContext()
        async with CancelContext(timeout=0.02, parent=parent) as ctx:
            await asyncio.sleep(0.05)
            assert isinstance(ctx._cause, DeadlineExceeded)
        assert not parent.cancelled

    @pytest.mark.asyncio
    async def test_context_manager_exit_disarms_timer(self) -> None:
        async with CancelContext(timeout=0.02) as ctx:
            pass
        await asyncio.sleep(0.05)
        assert ctx._cause is None
        # The deadline itself still applies when observed
        assert ctx.cancelled


# ─────────────────────────────────────────────────────────────────────────────
# race / sleep_or_cancel
# ─────────────────────────────────────────────────────────────────────────────


async def _after(delay: float, value: str) -> str:
    await asyncio.sleep(delay)
    return value


class TestRace:
    @pytest.mark.asyncio
    async def test_first_wins_and_losers_cancelled(self) -> None:
        finished: list[str] = []

        async def slow() -> str:
            await asyncio.sleep(10)
            finished.append("slow")
            return "slow"

        assert await race(_after(0.01, "fast"), slow()) == "fast"
        assert finished == []

    @pytest.mark.asyncio
    async def test_first_exception_propagates(self) -> None:
        async def boom() -> str:
            raise KeyError("x")

        with pytest.raises(KeyError):
            await race(boom(), _after(10, "late"))

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        with pytest.raises(asyncio.TimeoutError):
            await race(_after(10, "late"), timeout=0.01)

    @pytest.mark.asyncio
    async def test_requires_coroutines(self) -> None:
        with pytest.raises(ValueError):
            await race()


class TestSleepOrCancel:
    @pytest.mark.asyncio
    async def test_delay_elapses(self) -> None:
        assert await sleep_or_cancel(0.01, CancelContext()) is True

    @pytest.mark.asyncio
    async def test_cancel_wins(self) -> None:
        ctx = CancelContext()
        asyncio.get_running_loop().call_later(0.01, ctx.cancel)
        start = time.monotonic()
        assert await sleep_or_cancel(10, ctx) is False
        assert time.monotonic() - start < 5

    @pytest.mark.asyncio
    async def test_already_cancelled(self) -> None:
        ctx = CancelContext()
        ctx.cancel()
        assert await sleep_or_cancel(0, ctx) is False
        assert await sleep_or_cancel(10, ctx) is False

    @pytest.mark.asyncio
    async def test_zero_delay(self) -> None:
        assert await sleep_or_cancel(0, CancelContext()) is True

    @pytest.mark.asyncio
    async def test_deadline_beats_long_delay(self) -> None:
        assert await sleep_or_cancel(10, CancelContext(timeout=0.02)) is False
