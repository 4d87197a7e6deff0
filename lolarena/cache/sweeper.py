# cache/sweeper.py – Periodic purge of expired durable cache entries

import asyncio
import logging
from typing import Optional

from lolarena.cache.store import CacheStore
from lolarena.riot.clock import Clock, SYSTEM_CLOCK

log = logging.getLogger(__name__)


class CacheSweeper:
    """Runs CacheStore.sweep() every `interval` seconds, off the request path."""

    def __init__(self, store: CacheStore, interval: float = 6 * 3600, clock: Clock = SYSTEM_CLOCK):
        self.store = store
        self.interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run(), name="cache-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        log.info(f"Cache sweeper started (every {self.interval / 3600:.1f}h)")
        while True:
            try:
                await self.store.sweep()
            except Exception as e:
                log.error(f"Cache sweep crashed: {e}", exc_info=True)
            await self._clock.sleep(self.interval)
