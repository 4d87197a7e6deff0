# lolarena/models/player.py
# ============================================================================
# Player record assembled from account-v1, summoner-v4 and champion-mastery-v4
# Immutable once built; it is the unit stored in the cache.
# ============================================================================

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Account:
    game_name: str
    tag_line: str
    puuid: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Account":
        return cls(game_name=data["gameName"], tag_line=data["tagLine"], puuid=data["puuid"])

    def to_dict(self) -> Dict[str, Any]:
        return {"gameName": self.game_name, "tagLine": self.tag_line, "puuid": self.puuid}


@dataclass(frozen=True)
class Profile:
    id: Optional[str]                  # encrypted summoner id, no longer sent by every shard
    level: int
    icon_id: int

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Profile":
        return cls(id=data.get("id"), level=int(data["summonerLevel"]), icon_id=int(data["profileIconId"]))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        return cls(id=data.get("id"), level=int(data["level"]), icon_id=int(data["iconId"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "level": self.level, "iconId": self.icon_id}


@dataclass(frozen=True)
class Mastery:
    champion_id: str
    level: int
    points: int
    last_played_at: int                # epoch millis, as sent by Riot
    points_since_last_level: int = 0
    points_until_next_level: int = 0
    tokens_earned: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Mastery":
        return cls(
            champion_id=str(data["championId"]),
            level=int(data["championLevel"]),
            points=int(data["championPoints"]),
            last_played_at=int(data["lastPlayTime"]),
            points_since_last_level=int(data.get("championPointsSinceLastLevel") or 0),
            points_until_next_level=int(data.get("championPointsUntilNextLevel") or 0),
            tokens_earned=int(data.get("tokensEarned") or 0),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Mastery":
        return cls(
            champion_id=str(data["championId"]),
            level=int(data["level"]),
            points=int(data["points"]),
            last_played_at=int(data["lastPlayedAt"]),
            points_since_last_level=int(data.get("pointsSinceLastLevel", 0)),
            points_until_next_level=int(data.get("pointsUntilNextLevel", 0)),
            tokens_earned=int(data.get("tokensEarned", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "championId": self.champion_id,
            "level": self.level,
            "points": self.points,
            "lastPlayedAt": self.last_played_at,
            "pointsSinceLastLevel": self.points_since_last_level,
            "pointsUntilNextLevel": self.points_until_next_level,
            "tokensEarned": self.tokens_earned,
        }


@dataclass(frozen=True)
class PlayerRecord:
    """Account + profile + masteries (upstream order kept) for one Riot ID."""
    account: Account
    profile: Profile
    masteries: Tuple[Mastery, ...]
    region: str
    loaded_at: str                     # ISO-8601, UTC

    # Observability only: two records differing by this flag still compare equal
    served_from_cache: bool = field(default=False, compare=False)

    # --------------------------------------------------------------------- #
    @classmethod
    def from_api(
        cls,
        region: str,
        account: Dict[str, Any],
        summoner: Dict[str, Any],
        masteries: List[Dict[str, Any]],
        loaded_at: float,
    ) -> "PlayerRecord":
        """Build the record from the three raw upstream payloads."""
        return cls(
            account=Account.from_api(account),
            profile=Profile.from_api(summoner),
            masteries=tuple(Mastery.from_api(m) for m in masteries),
            region=region,
            loaded_at=dt.datetime.fromtimestamp(loaded_at, tz=dt.timezone.utc).isoformat(),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerRecord":
        """Inverse of to_dict(), used when reading the cache."""
        return cls(
            account=Account.from_api(data["account"]),
            profile=Profile.from_dict(data["profile"]),
            masteries=tuple(Mastery.from_dict(m) for m in data["masteries"]),
            region=data["region"],
            loaded_at=data["loadedAt"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account.to_dict(),
            "profile": self.profile.to_dict(),
            "masteries": [m.to_dict() for m in self.masteries],
            "region": self.region,
            "loadedAt": self.loaded_at,
        }

    @property
    def riot_id(self) -> str:
        return f"{self.account.game_name}#{self.account.tag_line}"
