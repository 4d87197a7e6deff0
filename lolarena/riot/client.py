# riot/client.py

import asyncio
import logging
from typing import Any, Mapping, Optional

import aiohttp

from lolarena.riot.clock import Clock, SYSTEM_CLOCK
from lolarena.riot.errors import (
    NotFoundError,
    RateLimitedError,
    TransientUpstreamError,
    UpstreamRequestError,
    UpstreamUnavailableError,
)
from lolarena.riot.rate_limiter import RateLimiter

log = logging.getLogger(__name__)


class RiotClient:
    """Async Riot API client: one GET with bounded retries and 429 handling."""

    def __init__(
        self,
        api_key: str,
        rate_limiter: Optional[RateLimiter] = None,
        clock: Clock = SYSTEM_CLOCK,
        timeout: float = 10.0,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        retry_after_default: float = 60.0,
    ):
        self.api_key = api_key
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.retry_after_default = retry_after_default
        self._clock = clock
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"X-Riot-Token": self.api_key},
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _retry_after(self, headers: Mapping[str, str]) -> float:
        """Seconds to wait after a 429; the configured default when the hint is missing."""
        raw = headers.get("Retry-After") if headers else None
        if raw is None:
            return self.retry_after_default
        try:
            return max(0.0, float(raw))
        except (TypeError, ValueError):
            log.debug(f"Unparseable Retry-After header {raw!r}")
            return self.retry_after_default

    async def _fetch(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Optional[Mapping[str, str]],
    ) -> Any:
        """Single attempt. Classifies the outcome into the riot.errors taxonomy."""
        try:
            async with session.get(url, headers=headers) as resp:
                status = resp.status
                if status == 429:
                    raise RateLimitedError(
                        f"429 Rate limited: {url}",
                        retry_after=self._retry_after(resp.headers),
                    )
                if status == 404:
                    log.debug(f"404 Not Found: {url}")
                    raise NotFoundError(f"404 Not Found: {url}")
                if status >= 500:
                    raise TransientUpstreamError(f"Server error {status}: {url}", status=status)
                if status >= 400:
                    raise UpstreamRequestError(f"API error {status}: {url}", status=status)
                try:
                    return await resp.json()
                except ValueError as e:
                    # Truncated or non-JSON body on a 200: treat like a flaky server
                    raise TransientUpstreamError(f"Undecodable body on {url}: {e}", status=status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientUpstreamError(f"Network error on {url}: {e!r}") from e

    async def call(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        max_attempts: Optional[int] = None,
    ) -> Any:
        """
        Make an async GET request with retry logic.

        Args:
            url: The full URL to request
            headers: Extra headers on top of the API key
            max_attempts: Tries allowed for transient failures (network, timeout, 5xx)

        Returns:
            JSON response from the API

        Raises:
            NotFoundError: On 404, after exactly one try
            UpstreamRequestError: On other 4xx, never retried
            RateLimitedError: When a 429 repeats after the explicit-delay retry
            UpstreamUnavailableError: When every attempt failed transiently
        """
        max_attempts = max_attempts or self.max_attempts
        session = await self._get_session()

        last_error: Optional[TransientUpstreamError] = None
        attempt = 1
        slot_rate_limited = False

        while attempt <= max_attempts:
            try:
                return await self._fetch(session, url, headers)
            except RateLimitedError as e:
                if self.rate_limiter is not None:
                    self.rate_limiter.poison()
                if slot_rate_limited:
                    log.warning(f"429 again on {url}, giving up (retry after {e.retry_after:.0f}s)")
                    raise
                slot_rate_limited = True
                log.warning(f"429 Rate limited, retrying after {e.retry_after:.1f}s (attempt {attempt}/{max_attempts})")
                await self._clock.sleep(e.retry_after)
            except TransientUpstreamError as e:
                last_error = e
                slot_rate_limited = False
                if attempt < max_attempts:
                    wait = self.base_delay * 2 ** (attempt - 1)  # Exponential backoff
                    log.warning(f"{e}, retrying in {wait:.1f}s (attempt {attempt}/{max_attempts})")
                    await self._clock.sleep(wait)
                attempt += 1

        log.error(f"Giving up on {url} after {max_attempts} attempts")
        raise UpstreamUnavailableError(
            f"Failed after {max_attempts} attempts: {last_error}", last_error=last_error
        ) from last_error
