"""
Tests for geoblock/workers/expiry_sweeper.py:
- sweep_once: removal count, run bookkeeping, error swallowing
- run: loop body, prompt exit on stop_event
- is_healthy: staleness window
"""
import asyncio
import logging
from datetime import timedelta
from unittest.mock import MagicMock, patch

from geoblock.models.blocked_country import BlockedCountry
from geoblock.workers.expiry_sweeper import ExpirySweeper, _wait_for_stop
from tests.conftest import START


class TestSweepOnce:
    def test_removes_expired_blocks(self, registry, clock):
        registry.add(BlockedCountry.temporary("DE", clock(), 1))
        registry.add(BlockedCountry.permanent("US", clock()))
        clock.advance(minutes=2)

        sweeper = ExpirySweeper(registry, interval_seconds=60, clock=clock)
        assert sweeper.sweep_once() == 1
        assert registry.count() == 1
        assert sweeper.runs == 1
        assert sweeper.last_run_at == clock()

    def test_nothing_to_remove(self, registry, clock):
        sweeper = ExpirySweeper(registry, clock=clock)
        assert sweeper.sweep_once() == 0
        assert sweeper.failures == 0

    def test_errors_are_logged_and_counted(self, clock, caplog):
        registry = MagicMock()
        registry.sweep_expired.side_effect = RuntimeError("boom")
        sweeper = ExpirySweeper(registry, clock=clock)

        with caplog.at_level(logging.ERROR, logger="geoblock.workers.expiry_sweeper"):
            assert sweeper.sweep_once() == 0

        assert sweeper.failures == 1
        assert sweeper.runs == 1
        assert sweeper.last_run_at == clock()
        assert any("boom" in r.getMessage() for r in caplog.records)


class TestRun:
    async def test_stops_when_event_already_set(self, registry, clock):
        sweeper = ExpirySweeper(registry, interval_seconds=300, clock=clock)
        stop = asyncio.Event()
        stop.set()

        await asyncio.wait_for(sweeper.run(stop), timeout=1)
        assert sweeper.runs == 0

    async def test_sweeps_then_exits_promptly_on_stop(self, registry, clock):
        registry.add(BlockedCountry.temporary("DE", clock(), 1))
        clock.advance(minutes=2)
        sweeper = ExpirySweeper(registry, interval_seconds=300, clock=clock)
        stop = asyncio.Event()

        task = asyncio.create_task(sweeper.run(stop))
        await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=1)

        assert sweeper.runs == 1
        assert registry.count() == 0

    async def test_loop_continues_after_failure(self, clock):
        registry = MagicMock()
        registry.sweep_expired.side_effect = [RuntimeError("boom"), 0, 0]
        sweeper = ExpirySweeper(registry, interval_seconds=300, clock=clock)
        stop = asyncio.Event()
        waits = []

        async def fake_wait(event, timeout):
            waits.append(timeout)
            if len(waits) == 3:
                return True
            return False

        with patch("geoblock.workers.expiry_sweeper._wait_for_stop", side_effect=fake_wait):
            await sweeper.run(stop)

        assert sweeper.runs == 3
        assert sweeper.failures == 1
        assert waits == [300, 300, 300]


class TestWaitForStop:
    async def test_returns_false_on_timeout(self):
        assert await _wait_for_stop(asyncio.Event(), 0.01) is False

    async def test_returns_true_when_set(self):
        event = asyncio.Event()
        event.set()
        assert await _wait_for_stop(event, 5) is True


class TestIsHealthy:
    def test_never_run_is_unhealthy(self, registry, clock):
        assert ExpirySweeper(registry, clock=clock).is_healthy() is False

    def test_recent_run_is_healthy(self, registry, clock):
        sweeper = ExpirySweeper(registry, interval_seconds=300, clock=clock)
        sweeper.sweep_once()
        clock.advance(seconds=599)
        assert sweeper.is_healthy() is True

    def test_stale_run_is_unhealthy(self, registry, clock):
        sweeper = ExpirySweeper(registry, interval_seconds=300, clock=clock)
        sweeper.sweep_once()
        assert sweeper.is_healthy(now=START + timedelta(seconds=601)) is False
