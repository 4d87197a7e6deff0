# backend.py – Wires limiter, client, queue, cache and lookup from the settings

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from lolarena.cache.base import DurableStore
from lolarena.cache.durable import RedisDurableStore, SqlDurableStore
from lolarena.cache.store import CacheStore
from lolarena.cache.sweeper import CacheSweeper
from lolarena.config import Settings
from lolarena.database import init_db, make_engine, make_session_factory
from lolarena.riot.client import RiotClient
from lolarena.riot.clock import Clock, SYSTEM_CLOCK
from lolarena.riot.lookup import PlayerLookup
from lolarena.riot.queue import RequestQueue
from lolarena.riot.rate_limiter import RateLimiter

log = logging.getLogger(__name__)


def make_durable_store(settings: Settings, clock: Clock = SYSTEM_CLOCK) -> Optional[DurableStore]:
    """Durable cache tier selected by CACHE_BACKEND (sql | redis | memory)."""
    if settings.CACHE_BACKEND == "memory":
        return None
    if settings.CACHE_BACKEND == "redis":
        if not settings.REDIS_URL:
            raise ValueError("CACHE_BACKEND=redis requires REDIS_URL")
        return RedisDurableStore.from_url(settings.REDIS_URL, clock=clock)

    try:
        engine = make_engine(settings.DB_URL)
        init_db(engine)
    except (SQLAlchemyError, OSError) as e:
        log.warning(f"Durable cache unavailable at startup, running memory-only: {e}")
        return None
    return SqlDurableStore(make_session_factory(engine))


@dataclass
class Backend:
    """Everything a request handler needs, sharing one limiter and one queue."""
    rate_limiter: RateLimiter
    client: RiotClient
    queue: RequestQueue
    cache: CacheStore
    sweeper: CacheSweeper
    lookup: PlayerLookup

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = SYSTEM_CLOCK) -> "Backend":
        rate_limiter = RateLimiter(
            max_calls=settings.RIOT_MAX_CALLS,
            window_seconds=settings.RIOT_WINDOW_SECONDS,
            min_spacing=settings.RIOT_MIN_SPACING_SECONDS,
            poison_cooldown=settings.RIOT_POISON_COOLDOWN_SECONDS,
            clock=clock,
        )
        client = RiotClient(
            settings.RIOT_API_KEY,
            rate_limiter=rate_limiter,
            clock=clock,
            timeout=settings.HTTP_TIMEOUT,
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            base_delay=settings.RETRY_BASE_DELAY,
            retry_after_default=settings.RETRY_AFTER_DEFAULT,
        )
        queue = RequestQueue(
            client,
            rate_limiter,
            clock=clock,
            tick_seconds=settings.QUEUE_TICK_SECONDS,
            max_pending=settings.QUEUE_MAX_PENDING,
            max_requeues=settings.QUEUE_MAX_REQUEUES,
        )
        cache = CacheStore(
            make_durable_store(settings, clock),
            clock=clock,
            max_entries=settings.MEMORY_CACHE_MAX_ENTRIES,
        )
        sweeper = CacheSweeper(cache, interval=settings.CACHE_SWEEP_INTERVAL_HOURS * 3600, clock=clock)
        lookup = PlayerLookup(
            queue,
            cache,
            clock=clock,
            ttl=settings.PLAYER_CACHE_TTL,
            default_region=settings.DEFAULT_REGION,
        )
        log.info(
            f"Backend ready: {settings.RIOT_MAX_CALLS} calls / {settings.RIOT_WINDOW_SECONDS:.0f}s, "
            f"cache={settings.CACHE_BACKEND}"
        )
        return cls(rate_limiter, client, queue, cache, sweeper, lookup)

    def start(self) -> None:
        """Needs a running event loop."""
        self.queue.start()
        self.sweeper.start()

    async def close(self) -> None:
        await self.sweeper.stop()
        await self.queue.stop()
        await self.client.close()
        await self.cache.close()

    def stats(self) -> Dict[str, Any]:
        return {
            "queue": self.queue.stats(),
            "rate_limiter": self.rate_limiter.stats(),
            "cache": self.cache.stats(),
        }
