# riot/clock.py – Time source shared by the limiter, the retry policy and the cache

import asyncio
import time


class Clock:
    """Real clock. Tests swap in a fake with the same three methods."""

    def monotonic(self) -> float:
        return time.monotonic()

    def time(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


SYSTEM_CLOCK = Clock()
