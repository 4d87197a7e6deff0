"""Shared fixtures: a controllable clock and canned Riot payloads."""

import asyncio

import pytest


class FakeClock:
    """Clock whose time only moves when told to (or when something sleeps on it)."""

    def __init__(self, monotonic: float = 1_000.0, wall: float = 1_700_000_000.0):
        self._monotonic = monotonic
        self._wall = wall
        self.sleeps = []

    def monotonic(self) -> float:
        return self._monotonic

    def time(self) -> float:
        return self._wall

    def advance(self, seconds: float) -> None:
        self._monotonic += seconds
        self._wall += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


ACCOUNT = {"puuid": "puuid-ana", "gameName": "Ana", "tagLine": "EUW"}

SUMMONER = {
    "id": "summ-ana",
    "puuid": "puuid-ana",
    "profileIconId": 4568,
    "summonerLevel": 312,
}

MASTERIES = [
    {"championId": 103, "championLevel": 12, "championPoints": 154_320, "lastPlayTime": 1_699_990_000_000,
     "championPointsSinceLastLevel": 11_320, "championPointsUntilNextLevel": 0, "tokensEarned": 1},
    {"championId": 22, "championLevel": 7, "championPoints": 61_004, "lastPlayTime": 1_699_000_000_000},
    {"championId": 89, "championLevel": 3, "championPoints": 8_120, "lastPlayTime": 1_690_000_000_000,
     "championPointsSinceLastLevel": 2_120, "championPointsUntilNextLevel": 4_380},
]


def riot_upstream(account=ACCOUNT, summoner=SUMMONER, masteries=MASTERIES):
    """side_effect for a mocked RiotClient.call that routes on the URL."""
    async def call(url, headers=None, max_attempts=None):
        if "/riot/account/v1/accounts/by-riot-id/" in url:
            if isinstance(account, Exception):
                raise account
            return account
        if "/lol/summoner/v4/summoners/by-puuid/" in url:
            if isinstance(summoner, Exception):
                raise summoner
            return summoner
        if "/lol/champion-mastery/v4/champion-masteries/by-puuid/" in url:
            if isinstance(masteries, Exception):
                raise masteries
            return masteries
        raise AssertionError(f"unexpected url {url}")
    return call
