# cache/durable.py – Durable cache tiers: SQL table (SQLAlchemy) or Redis

from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError, ResponseError
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from lolarena.cache.base import CacheEntry, DurableStore
from lolarena.db.riot_cache import RiotCacheRow
from lolarena.riot.clock import Clock, SYSTEM_CLOCK
from lolarena.riot.errors import CacheUnavailableError

log = logging.getLogger(__name__)


class SqlDurableStore(DurableStore):
    """riot_cache table. Blocking SQLAlchemy calls run in a worker thread."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _put(self, entry: CacheEntry) -> None:
        with self._session_factory() as db:
            db.merge(RiotCacheRow(
                key=entry.key,
                payload=entry.payload,
                created_at=entry.created_at,
                expires_at=entry.expires_at,
            ))
            db.commit()

    def _get(self, key: str) -> Optional[CacheEntry]:
        with self._session_factory() as db:
            row = db.get(RiotCacheRow, key)
            if row is None:
                return None
            return CacheEntry(
                key=row.key,
                payload=row.payload,
                created_at=row.created_at,
                expires_at=row.expires_at,
            )

    def _delete_expired(self, now: float) -> int:
        with self._session_factory() as db:
            result = db.execute(delete(RiotCacheRow).where(RiotCacheRow.expires_at <= now))
            db.commit()
            return result.rowcount or 0

    async def put(self, entry: CacheEntry) -> None:
        try:
            await asyncio.to_thread(self._put, entry)
        except SQLAlchemyError as e:
            raise CacheUnavailableError(f"SQL cache write failed for {entry.key}: {e}") from e

    async def get(self, key: str) -> Optional[CacheEntry]:
        try:
            return await asyncio.to_thread(self._get, key)
        except SQLAlchemyError as e:
            raise CacheUnavailableError(f"SQL cache read failed for {key}: {e}") from e

    async def delete_expired(self, now: float) -> int:
        try:
            return await asyncio.to_thread(self._delete_expired, now)
        except SQLAlchemyError as e:
            raise CacheUnavailableError(f"SQL cache sweep failed: {e}") from e


class RedisDurableStore(DurableStore):
    """Redis tier. Keys carry a native TTL, so sweeping has nothing to do."""

    def __init__(self, client: aioredis.Redis, prefix: str = "lolarena:cache:", clock: Clock = SYSTEM_CLOCK):
        self._redis = client
        self.prefix = prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisDurableStore":
        client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, **kwargs)

    async def put(self, entry: CacheEntry) -> None:
        ttl = math.ceil(entry.remaining(self._clock.time()))
        if ttl <= 0:
            return
        data = json.dumps({
            "payload": entry.payload,
            "created_at": entry.created_at,
            "expires_at": entry.expires_at,
        })
        try:
            await self._redis.set(self.prefix + entry.key, data, ex=ttl)
        except RedisError as e:
            raise CacheUnavailableError(f"Redis write failed for {entry.key}: {e}") from e

    async def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = await self._redis.get(self.prefix + key)
        except ResponseError:
            # Wrong type under that key: drop it and report a miss
            try:
                await self._redis.delete(self.prefix + key)
            except RedisError as e:
                raise CacheUnavailableError(f"Redis cleanup failed for {key}: {e}") from e
            return None
        except RedisError as e:
            raise CacheUnavailableError(f"Redis read failed for {key}: {e}") from e

        if raw is None:
            return None
        try:
            data = json.loads(raw)
            return CacheEntry(
                key=key,
                payload=data["payload"],
                created_at=float(data["created_at"]),
                expires_at=float(data["expires_at"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            log.warning(f"Corrupt Redis cache entry {key}: {e}")
            return None

    async def delete_expired(self, now: float) -> int:
        return 0

    async def close(self) -> None:
        await self._redis.aclose()
