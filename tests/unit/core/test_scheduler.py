"""Tests for RefreshScheduler."""

import asyncio

import pytest

from pages_cms.core.scheduler import RefreshScheduler


class TestRefreshScheduler:
    @pytest.mark.asyncio
    async def test_refresh_now_records_result(self) -> None:
        async def refresh() -> int:
            return 42

        scheduler = RefreshScheduler("test", refresh, interval=30)

        assert await scheduler.refresh_now() == 42
        assert scheduler.last_result == 42
        assert scheduler.last_error is None
        assert scheduler.is_busy is False

    @pytest.mark.asyncio
    async def test_failure_keeps_last_good_result(self) -> None:
        outcomes: list[int | Exception] = [1, RuntimeError("boom")]

        async def refresh() -> int:
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        scheduler = RefreshScheduler("test", refresh, interval=30)

        await scheduler.refresh_now()
        assert await scheduler.refresh_now() is None

        assert scheduler.last_result == 1
        assert isinstance(scheduler.last_error, RuntimeError)
        assert scheduler.is_busy is False

    @pytest.mark.asyncio
    async def test_overlapping_refresh_is_skipped(self) -> None:
        release = asyncio.Event()
        calls: list[int] = []

        async def refresh() -> int:
            calls.append(1)
            await release.wait()
            return len(calls)

        scheduler = RefreshScheduler("test", refresh, interval=30)

        first = asyncio.create_task(scheduler.refresh_now())
        await asyncio.sleep(0)
        assert scheduler.is_busy is True

        assert await scheduler.refresh_now() is None
        release.set()
        assert await first == 1
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_start_refreshes_immediately_and_on_interval(self) -> None:
        ticks: list[int] = []
        sleeps: list[float] = []
        third_tick = asyncio.Event()

        async def refresh() -> int:
            ticks.append(len(ticks) + 1)
            if len(ticks) == 3:
                third_tick.set()
            return len(ticks)

        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)
            await asyncio.sleep(0)

        scheduler = RefreshScheduler("test", refresh, interval=30, async_sleep=fake_sleep)

        await scheduler.start()
        await asyncio.wait_for(third_tick.wait(), timeout=1)
        await scheduler.stop()

        assert ticks[:3] == [1, 2, 3]
        assert sleeps[:2] == [30, 30]
        assert scheduler.is_running is False

    @pytest.mark.asyncio
    async def test_stop_without_start_is_a_no_op(self) -> None:
        async def refresh() -> None:
            return None

        scheduler = RefreshScheduler("test", refresh, interval=30)

        await scheduler.stop()

        assert scheduler.is_running is False
