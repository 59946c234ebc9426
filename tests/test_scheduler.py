"""Unit tests for IntervalScheduler."""
import asyncio
import time

import pytest

from processor.scheduler import IntervalScheduler


class TestIntervalScheduler:
    """Test cases for IntervalScheduler class."""

    def test_rejects_non_positive_interval(self):
        """Test that a zero interval is refused."""
        with pytest.raises(ValueError):
            IntervalScheduler(lambda: None, 0)

    def test_tick_runs_callback(self):
        """Test a single tick."""
        calls = []
        scheduler = IntervalScheduler(lambda: calls.append(1), 60)

        scheduler.tick()

        assert calls == [1]
        assert scheduler.ticks == 1

    def test_tick_logs_and_survives_errors(self, caplog):
        """Test that a failing callback does not propagate."""
        def explode():
            raise RuntimeError("boom")

        scheduler = IntervalScheduler(explode, 60)

        scheduler.tick()

        assert scheduler.ticks == 1
        assert "Scheduled task failed: boom" in caplog.text

    def test_fires_repeatedly_after_interval(self):
        """Test that the timer waits one interval and then keeps firing."""
        calls = []
        scheduler = IntervalScheduler(lambda: calls.append(1), 0.01)

        async def scenario():
            scheduler.start()
            assert calls == []
            await asyncio.sleep(0.1)
            scheduler.stop()

        asyncio.run(scenario())

        assert len(calls) >= 2
        assert scheduler.running is False

    def test_keeps_running_after_failed_tick(self):
        """Test that an exception in one tick does not stop the schedule."""
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first tick fails")

        scheduler = IntervalScheduler(flaky, 0.01)

        async def scenario():
            scheduler.start()
            await asyncio.sleep(0.1)
            scheduler.stop()

        asyncio.run(scenario())

        assert len(calls) >= 2

    def test_start_is_idempotent(self):
        """Test that starting twice reuses the running task."""
        scheduler = IntervalScheduler(lambda: None, 60)

        async def scenario():
            first = scheduler.start()
            second = scheduler.start()
            scheduler.stop()
            return first is second

        assert asyncio.run(scenario()) is True

    def test_blocking_tick_does_not_stall_event_loop(self):
        """Test that other coroutines keep running while a tick blocks."""
        scheduler = IntervalScheduler(lambda: time.sleep(0.5), 0.01)

        async def scenario():
            scheduler.start()
            # Let the first tick start blocking in its worker thread
            await asyncio.sleep(0.03)
            started = time.monotonic()
            await asyncio.sleep(0.05)
            elapsed = time.monotonic() - started
            scheduler.stop()
            return elapsed

        elapsed = asyncio.run(scenario())

        assert scheduler.ticks == 1
        assert elapsed < 0.3
