"""Unit tests for the async RiotClient (single call, retries, 429 handling)."""

import asyncio
import json

import aiohttp
import pytest
from unittest.mock import AsyncMock, MagicMock

from lolarena.riot.client import RiotClient
from lolarena.riot.errors import (
    NotFoundError,
    RateLimitedError,
    TransientUpstreamError,
    UpstreamRequestError,
    UpstreamUnavailableError,
)
from lolarena.riot.rate_limiter import RateLimiter

URL = "https://europe.api.riotgames.com/riot/account/v1/accounts/by-riot-id/Ana/EUW"


def _response(status, payload=None, headers=None):
    resp = MagicMock()
    resp.status = status
    resp.headers = headers or {}
    resp.json = AsyncMock(return_value=payload)
    resp.__aenter__.return_value = resp
    resp.__aexit__.return_value = None
    return resp


def _client(clock, *responses, **kwargs):
    """RiotClient wired to a fake session answering `responses` in order."""
    session = MagicMock()
    session.closed = False
    if len(responses) == 1 and not isinstance(responses[0], list):
        session.get.return_value = responses[0]
    else:
        session.get.side_effect = list(responses)
    client = RiotClient("test_key", clock=clock, **kwargs)
    client._session = session
    return client, session


@pytest.mark.asyncio
class TestRiotClientSession:
    """Session lifecycle and headers."""

    async def test_client_initialization(self):
        client = RiotClient("test_api_key")
        assert client.api_key == "test_api_key"
        assert client._session is None

    async def test_get_session_creates_session(self):
        client = RiotClient("test_key")
        session = await client._get_session()

        assert isinstance(session, aiohttp.ClientSession)
        assert not session.closed
        assert session.headers["X-Riot-Token"] == "test_key"

        await client.close()

    async def test_context_manager(self):
        async with RiotClient("test_key") as client:
            session = await client._get_session()
            assert not session.closed

        assert client._session.closed


@pytest.mark.asyncio
class TestRiotClientCall:
    """Outcome classification and retry policy."""

    async def test_success_returns_json(self, clock):
        client, session = _client(clock, _response(200, {"puuid": "p"}))

        assert await client.call(URL) == {"puuid": "p"}
        assert session.get.call_count == 1
        assert clock.sleeps == []

    async def test_extra_headers_are_forwarded(self, clock):
        client, session = _client(clock, _response(200, {}))

        await client.call(URL, headers={"Accept-Language": "de"})
        assert session.get.call_args.kwargs["headers"] == {"Accept-Language": "de"}

    async def test_404_is_never_retried(self, clock):
        client, session = _client(clock, _response(404))

        with pytest.raises(NotFoundError):
            await client.call(URL, max_attempts=5)

        assert session.get.call_count == 1
        assert clock.sleeps == []

    @pytest.mark.parametrize("status", [400, 401, 403])
    async def test_client_errors_are_not_retried(self, clock, status):
        client, session = _client(clock, _response(status))

        with pytest.raises(UpstreamRequestError) as exc_info:
            await client.call(URL)

        assert exc_info.value.status == status
        assert session.get.call_count == 1

    async def test_retry_exhaustion_makes_exactly_max_attempts(self, clock):
        client, session = _client(clock, _response(503), max_attempts=3, base_delay=1.0)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await client.call(URL)

        assert session.get.call_count == 3
        assert clock.sleeps == [1.0, 2.0]
        assert isinstance(exc_info.value.last_error, TransientUpstreamError)
        assert exc_info.value.last_error.status == 503

    async def test_backoff_grows_exponentially(self, clock):
        client, session = _client(clock, _response(500), base_delay=0.5)

        with pytest.raises(UpstreamUnavailableError):
            await client.call(URL, max_attempts=4)

        assert clock.sleeps == [0.5, 1.0, 2.0]

    async def test_transient_then_success(self, clock):
        client, session = _client(clock, _response(502), _response(200, {"ok": True}))

        assert await client.call(URL) == {"ok": True}
        assert session.get.call_count == 2
        assert clock.sleeps == [1.0]

    async def test_network_error_is_transient(self, clock):
        client, session = _client(clock)
        session.get.side_effect = aiohttp.ClientConnectionError("connection reset")

        with pytest.raises(UpstreamUnavailableError):
            await client.call(URL, max_attempts=2)

        assert session.get.call_count == 2

    async def test_timeout_is_transient(self, clock):
        client, session = _client(clock)
        session.get.side_effect = [asyncio.TimeoutError(), _response(200, [1, 2])]

        assert await client.call(URL) == [1, 2]
        assert clock.sleeps == [1.0]

    async def test_undecodable_body_is_transient(self, clock):
        garbled = _response(200)
        garbled.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
        client, session = _client(clock, garbled)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await client.call(URL, max_attempts=2)

        assert isinstance(exc_info.value.last_error, TransientUpstreamError)
        assert session.get.call_count == 2

    async def test_undecodable_body_then_success(self, clock):
        garbled = _response(200)
        garbled.json.side_effect = json.JSONDecodeError("Expecting value", "", 0)
        client, session = _client(clock, garbled, _response(200, {"ok": True}))

        assert await client.call(URL) == {"ok": True}
        assert clock.sleeps == [1.0]

    async def test_429_waits_retry_after_and_poisons_limiter(self, clock):
        limiter = RateLimiter(min_spacing=0, clock=clock)
        client, session = _client(
            clock,
            _response(429, headers={"Retry-After": "7"}),
            _response(200, {"data": "success"}),
            rate_limiter=limiter,
        )

        assert await client.call(URL) == {"data": "success"}
        assert clock.sleeps == [7.0]
        assert limiter.call_count == limiter.max_calls

    async def test_429_does_not_use_up_an_attempt(self, clock):
        client, session = _client(
            clock,
            _response(429, headers={"Retry-After": "1"}),
            _response(200, "ok"),
        )

        assert await client.call(URL, max_attempts=1) == "ok"
        assert session.get.call_count == 2

    async def test_repeated_429_raises_rate_limited(self, clock):
        client, session = _client(clock, _response(429, headers={"Retry-After": "3"}))

        with pytest.raises(RateLimitedError) as exc_info:
            await client.call(URL, max_attempts=3)

        assert exc_info.value.retry_after == 3.0
        assert session.get.call_count == 2
        assert clock.sleeps == [3.0]

    async def test_429_without_hint_uses_default(self, clock):
        client, session = _client(
            clock,
            _response(429),
            _response(200, {}),
            retry_after_default=60.0,
        )

        await client.call(URL)
        assert clock.sleeps == [60.0]

    async def test_unparseable_retry_after_uses_default(self, clock):
        client, session = _client(
            clock,
            _response(429, headers={"Retry-After": "soon"}),
            _response(200, {}),
            retry_after_default=45.0,
        )

        await client.call(URL)
        assert clock.sleeps == [45.0]

    async def test_each_attempt_slot_gets_one_explicit_delay_retry(self, clock):
        client, session = _client(
            clock,
            _response(429, headers={"Retry-After": "5"}),
            _response(500),
            _response(429, headers={"Retry-After": "5"}),
            _response(200, "done"),
            base_delay=1.0,
        )

        assert await client.call(URL, max_attempts=2) == "done"
        assert clock.sleeps == [5.0, 1.0, 5.0]
