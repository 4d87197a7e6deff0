# cache/base.py – Cache entry and the contract every durable tier honours

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any            # JSON-serialisable
    created_at: float       # epoch seconds
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)


class DurableStore(abc.ABC):
    """
    Key-value store that outlives the process.

    Implementations convert their own library errors into
    CacheUnavailableError; CacheStore relies on that to degrade cleanly.
    """

    @abc.abstractmethod
    async def put(self, entry: CacheEntry) -> None:
        ...

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry, expired or not. Expiry is the caller's call."""

    @abc.abstractmethod
    async def delete_expired(self, now: float) -> int:
        """Remove entries with expires_at <= now and return how many went."""

    async def close(self) -> None:
        pass
