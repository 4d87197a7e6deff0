# cache/store.py – Two-tier read-through cache: process memory, then a durable store

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, Optional

from lolarena.cache.base import CacheEntry, DurableStore
from lolarena.riot.clock import Clock, SYSTEM_CLOCK
from lolarena.riot.errors import CacheUnavailableError

log = logging.getLogger(__name__)


class MemoryTier:
    """Bounded in-process tier, safe for concurrent access."""

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()

    def get(self, key: str, now: float) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_valid(now):
                del self._entries[key]
                return None
            return entry

    def put(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries.pop(entry.key, None)
            while len(self._entries) >= self.max_entries:
                oldest, _ = self._entries.popitem(last=False)
                log.debug(f"Memory cache full, evicted {oldest}")
            self._entries[entry.key] = entry

    def sweep(self, now: float) -> int:
        with self._lock:
            expired = [k for k, e in self._entries.items() if not e.is_valid(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class CacheStore:
    """
    Read-through cache in front of the Riot API.

    get() checks memory, then the durable tier, and back-fills memory on a
    durable hit. set() writes both tiers. A durable tier failure is logged and
    the store keeps working from memory alone: caching is an optimisation,
    never a dependency.
    """

    def __init__(
        self,
        durable: Optional[DurableStore] = None,
        clock: Clock = SYSTEM_CLOCK,
        max_entries: int = 1000,
    ):
        self.memory = MemoryTier(max_entries)
        self.durable = durable
        self._clock = clock
        self._stats = {"memory_hits": 0, "durable_hits": 0, "misses": 0, "durable_errors": 0}

    def _durable_failed(self, op: str, error: CacheUnavailableError) -> None:
        self._stats["durable_errors"] += 1
        log.warning(f"Durable cache {op} failed, continuing from memory: {error}")

    async def get(self, key: str) -> Optional[Any]:
        now = self._clock.time()
        entry = self.memory.get(key, now)
        if entry is not None:
            self._stats["memory_hits"] += 1
            return entry.payload

        if self.durable is not None:
            try:
                entry = await self.durable.get(key)
            except CacheUnavailableError as e:
                self._durable_failed("read", e)
                entry = None
            if entry is not None and entry.is_valid(now):
                self.memory.put(entry)
                self._stats["durable_hits"] += 1
                return entry.payload

        self._stats["misses"] += 1
        return None

    async def set(self, key: str, payload: Any, ttl: float) -> None:
        now = self._clock.time()
        entry = CacheEntry(key=key, payload=payload, created_at=now, expires_at=now + ttl)
        self.memory.put(entry)
        if self.durable is not None:
            try:
                await self.durable.put(entry)
            except CacheUnavailableError as e:
                self._durable_failed("write", e)

    async def sweep(self) -> int:
        """Drop expired entries from both tiers; returns the durable count."""
        now = self._clock.time()
        dropped = self.memory.sweep(now)
        removed = 0
        if self.durable is not None:
            try:
                removed = await self.durable.delete_expired(now)
            except CacheUnavailableError as e:
                self._durable_failed("sweep", e)
        log.info(f"Cache sweep: {removed} durable / {dropped} memory entries removed")
        return removed

    async def close(self) -> None:
        if self.durable is not None:
            await self.durable.close()

    def stats(self) -> Dict[str, Any]:
        return {
            "memory_entries": len(self.memory),
            "durable": type(self.durable).__name__ if self.durable else None,
            **self._stats,
        }
