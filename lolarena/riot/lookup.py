# riot/lookup.py – Account → summoner → masteries, cached and queued

import dataclasses
import logging
from typing import Any, Dict

from lolarena.cache.store import CacheStore
from lolarena.models.player import Account, PlayerRecord
from lolarena.riot import endpoints
from lolarena.riot.clock import Clock, SYSTEM_CLOCK
from lolarena.riot.errors import UpstreamRequestError, UpstreamUnavailableError
from lolarena.riot.queue import RequestQueue

log = logging.getLogger(__name__)


class PlayerLookup:
    """
    Builds PlayerRecords on top of the request queue and the cache.

    The three upstream calls are sequential (each needs the previous result)
    and each goes through the shared queue. Any failure stops the chain and
    propagates; nothing partial is cached.
    """

    def __init__(
        self,
        queue: RequestQueue,
        cache: CacheStore,
        clock: Clock = SYSTEM_CLOCK,
        ttl: float = 600,
        default_region: str = "euw1",
    ):
        self.queue = queue
        self.cache = cache
        self.ttl = ttl
        self.default_region = endpoints.normalize_region(default_region)
        self._clock = clock

    @staticmethod
    def cache_key(kind: str, game_name: str, tag_line: str, region: str) -> str:
        """Riot IDs are case-insensitive, so is the key."""
        parts = (kind, region, game_name, tag_line)
        return ":".join(p.strip().lower() for p in parts)

    async def account(self, game_name: str, tag_line: str, region: str) -> Dict[str, Any]:
        """Riot ID → {gameName, tagLine, puuid}. Unknown regions route like the default region."""
        region = endpoints.normalize_region(region)
        if region not in endpoints.PLATFORMS:
            log.warning(f"Unknown region {region}, routing account lookup through {self.default_region}")
            region = self.default_region
        key = self.cache_key("account", game_name, tag_line, region)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        raw = await self.queue.enqueue(endpoints.account_by_riot_id_url(region, game_name, tag_line))
        try:
            account = Account.from_api(raw).to_dict()
        except (KeyError, TypeError) as e:
            raise UpstreamUnavailableError(f"Unexpected account payload for {game_name}#{tag_line}") from e
        await self.cache.set(key, account, self.ttl)
        return account

    async def lookup(self, game_name: str, tag_line: str, region: str) -> PlayerRecord:
        """
        Full player data for a Riot ID on a platform (euw1, na1, kr…).

        Raises:
            NotFoundError: Unknown Riot ID (or no summoner on that platform)
            RateLimitedError: Upstream kept answering 429
            UpstreamUnavailableError: Upstream down or answering garbage
            BackpressureError: Local queue is full
            UpstreamRequestError: Unknown platform, or a 400/401/403 upstream
        """
        region = endpoints.normalize_region(region)
        if region not in endpoints.PLATFORMS:
            raise UpstreamRequestError(f"Unknown region {region}", status=400)

        key = self.cache_key("player", game_name, tag_line, region)
        cached = await self.cache.get(key)
        if cached is not None:
            try:
                record = PlayerRecord.from_dict(cached)
            except (KeyError, TypeError, ValueError) as e:
                log.warning(f"Unreadable cached record under {key}, refetching: {e}")
            else:
                log.info(f"Cache hit for {record.riot_id} ({region})")
                return dataclasses.replace(record, served_from_cache=True)

        log.info(f"Loading {game_name}#{tag_line} ({region}) from the Riot API")
        account = await self.queue.enqueue(endpoints.account_by_riot_id_url(region, game_name, tag_line))
        try:
            puuid = account["puuid"]
        except (KeyError, TypeError) as e:
            raise UpstreamUnavailableError(f"Unexpected account payload for {game_name}#{tag_line}") from e

        summoner = await self.queue.enqueue(endpoints.summoner_by_puuid_url(region, puuid))
        masteries = await self.queue.enqueue(endpoints.masteries_by_puuid_url(region, puuid))

        try:
            record = PlayerRecord.from_api(region, account, summoner, masteries, self._clock.time())
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(f"Unexpected payload while assembling {game_name}#{tag_line}") from e

        log.info(f"Loaded {record.riot_id}: level {record.profile.level}, {len(record.masteries)} masteries")
        await self.cache.set(key, record.to_dict(), self.ttl)
        return record
