"""
Expiry sweeper — removes expired temporary blocks from the registry.
Runs every 5 minutes by default, independent of the lazy eviction done on reads.

Each sweep is a bounded in-memory pass under the registry lock. A failing
sweep is logged and the loop carries on. Shutdown is observed between sweeps:
the wait is on stop_event (or interrupted by task cancellation).
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from geoblock.services.blocked_countries import BlockedCountryRegistry, Clock, utc_now
from geoblock.utils.logging import set_action

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 300  # 5 minutes


class ExpirySweeper:
    def __init__(
        self,
        registry: BlockedCountryRegistry,
        interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        clock: Clock = utc_now,
    ):
        self.registry = registry
        self.interval_seconds = interval_seconds
        self._clock = clock
        self.last_run_at: Optional[datetime] = None
        self.runs = 0
        self.failures = 0

    def sweep_once(self) -> int:
        """Run one sweep. Errors are logged, counted and swallowed."""
        removed = 0
        try:
            removed = self.registry.sweep_expired()
            if removed > 0:
                logger.info("Expiry sweeper removed %d expired blocks", removed)
        except Exception as e:
            self.failures += 1
            logger.error("Expiry sweeper error: %s", str(e), exc_info=True)
        self.runs += 1
        self.last_run_at = self._clock()
        return removed

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Main sweeper loop. Returns once stop_event is set."""
        stop_event = stop_event or asyncio.Event()
        set_action("sweep")
        logger.info("Expiry sweeper started (interval=%ss)", self.interval_seconds)

        while not stop_event.is_set():
            self.sweep_once()
            if await _wait_for_stop(stop_event, self.interval_seconds):
                break

        logger.info("Expiry sweeper stopped after %d runs", self.runs)

    def is_healthy(self, now: Optional[datetime] = None) -> bool:
        """Healthy when the last sweep happened within two intervals."""
        if self.last_run_at is None:
            return False
        now = now or self._clock()
        return (now - self.last_run_at).total_seconds() <= self.interval_seconds * 2


async def _wait_for_stop(stop_event: asyncio.Event, timeout: float) -> bool:
    """Sleep up to timeout seconds. True if stop_event was set meanwhile."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        return False
