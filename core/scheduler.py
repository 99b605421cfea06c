"""Poll scheduler: one cycle immediately, then one every interval, plus out-of-band forced refreshes."""

import asyncio
import logging
from typing import Optional

from core.config import DEFAULT_POLL_INTERVAL
from core.engine import CycleReport, ReconciliationEngine

logger = logging.getLogger("dispatch_watch.scheduler")


class PollScheduler:
    def __init__(self, engine: ReconciliationEngine, interval: float = DEFAULT_POLL_INTERVAL):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.engine = engine
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start polling on the running event loop. Idempotent."""
        if self.running:
            return self._task
        logger.info("poll scheduler starting interval=%.1fs", self.interval)
        self._task = asyncio.get_running_loop().create_task(self._loop(), name="cad-poll")
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("poll scheduler stopped")

    async def force_refresh(self) -> CycleReport:
        """Run a cycle now; waits for any in-flight cycle first."""
        return await self.engine.force_refresh()

    async def _loop(self) -> None:
        while True:
            try:
                await self.engine.refresh()
            except asyncio.CancelledError:
                raise
            except Exception:
                # fetch errors never reach here; keep polling regardless
                logger.exception("poll cycle crashed")
            await asyncio.sleep(self.interval)
