#!/usr/bin/env python3
"""
tools/sweep_cache.py
One-off purge of expired entries in the durable Riot cache.
The web app already does this every CACHE_SWEEP_INTERVAL_HOURS; this is for cron / manual use.

    python -m lolarena.tools.sweep_cache
"""
import asyncio
import sys

from lolarena.backend import make_durable_store
from lolarena.cache.store import CacheStore
from lolarena.config import get_settings
from lolarena.logging_config import get_logger, setup_logging

log = get_logger("lolarena.tools.sweep_cache")


async def main() -> int:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    durable = make_durable_store(settings)
    if durable is None:
        log.info("CACHE_BACKEND=memory, nothing durable to sweep")
        return 0

    store = CacheStore(durable)
    try:
        removed = await store.sweep()
    finally:
        await store.close()
    print(f"✔️  {removed} expired cache entries removed.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
