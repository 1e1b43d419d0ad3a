"""
Wind Farm Monitor - Periodic Ticker

Runs an async callable after a startup delay and then on a fixed interval
until cancelled. The sleep function is injectable so tests can drive ticks
without waiting on the wall clock.
"""

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTicker:
    def __init__(
        self,
        tick: Callable[[], Awaitable[object]],
        interval: float,
        startup_delay: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        name: str = "ticker",
    ):
        self.tick = tick
        self.interval = interval
        self.startup_delay = startup_delay
        self.name = name
        self.ticks = 0
        self.failures = 0
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    async def run(self):
        """Loop forever. A failing tick is logged and the schedule continues."""
        await self._sleep(self.startup_delay)
        while True:
            self.ticks += 1
            try:
                await self.tick()
            except Exception:
                self.failures += 1
                logger.exception("%s tick %d failed", self.name, self.ticks)
            await self._sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name=self.name)
            logger.info("%s started (delay %ss, every %ss)", self.name, self.startup_delay, self.interval)
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("%s stopped", self.name)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
