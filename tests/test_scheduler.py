"""Unit tests for RefreshScheduler."""
import asyncio

import pytest

from feedcal.scheduler import RefreshScheduler


class Trigger:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class TestTick:
    """Single checks without the timer."""

    def test_tick_triggers_when_due(self):
        trigger = Trigger()
        scheduler = RefreshScheduler(is_due=lambda: True, trigger=trigger)

        assert scheduler.tick() is True
        assert trigger.calls == 1

    def test_tick_skips_when_fresh(self):
        trigger = Trigger()
        scheduler = RefreshScheduler(is_due=lambda: False, trigger=trigger)

        assert scheduler.tick() is False
        assert trigger.calls == 0

    def test_tick_survives_failing_check(self, caplog):
        def broken():
            raise RuntimeError("clock broke")

        scheduler = RefreshScheduler(is_due=broken, trigger=Trigger())

        assert scheduler.tick() is False
        assert "tick failed" in caplog.text

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            RefreshScheduler(is_due=lambda: True, trigger=Trigger(), interval=0)


class TestTimer:
    """The periodic asyncio task."""

    @pytest.mark.asyncio
    async def test_periodic_ticks(self):
        trigger = Trigger()
        scheduler = RefreshScheduler(is_due=lambda: True, trigger=trigger, interval=0.01)

        scheduler.start()
        await asyncio.sleep(0.1)
        scheduler.stop()

        assert trigger.calls >= 2
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_no_ticks_after_stop(self):
        trigger = Trigger()
        scheduler = RefreshScheduler(is_due=lambda: True, trigger=trigger, interval=0.01)

        scheduler.start()
        scheduler.stop()
        await asyncio.sleep(0.05)

        assert trigger.calls == 0

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        scheduler = RefreshScheduler(is_due=lambda: False, trigger=Trigger(), interval=10)

        scheduler.start()
        task = scheduler._task
        scheduler.start()

        assert scheduler._task is task
        scheduler.stop()
        scheduler.stop()
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_context_manager_stops_on_error(self):
        scheduler = RefreshScheduler(is_due=lambda: False, trigger=Trigger(), interval=10)

        with pytest.raises(KeyError):
            async with scheduler:
                assert scheduler.running
                raise KeyError("boom")

        assert not scheduler.running
