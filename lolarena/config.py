# config.py – Settings loaded through pydantic-settings

from functools import lru_cache
from typing import Literal, Optional

from limits import parse_many
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lolarena.riot.endpoints import PLATFORMS, normalize_region


class Settings(BaseSettings):
    # -- Tokens & API Keys --
    RIOT_API_KEY: str

    # -- Database & cache backends --
    DB_URL: str = "sqlite:///data/lolarena.db"
    REDIS_URL: Optional[str] = None
    CACHE_BACKEND: Literal["sql", "redis", "memory"] = "sql"

    # -- Riot API Configuration --
    DEFAULT_REGION: str = "euw1"
    HTTP_TIMEOUT: float = 10.0          # seconds per upstream call

    # -- Local rate limiter (kept below the dev quota of 100 req / 120 s) --
    RIOT_MAX_CALLS: int = 80
    RIOT_WINDOW_SECONDS: float = 120.0
    RIOT_MIN_SPACING_SECONDS: float = 3.0
    RIOT_POISON_COOLDOWN_SECONDS: float = 60.0

    # -- Request queue --
    QUEUE_TICK_SECONDS: float = 3.0
    QUEUE_MAX_PENDING: int = 100
    QUEUE_MAX_REQUEUES: int = 3

    # -- Retry policy --
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY: float = 1.0
    RETRY_AFTER_DEFAULT: float = 60.0

    # -- Cache --
    PLAYER_CACHE_TTL: int = 600
    MEMORY_CACHE_MAX_ENTRIES: int = 1000
    CACHE_SWEEP_INTERVAL_HOURS: float = 6.0

    # -- Inbound limit per client IP on /api (limits syntax) --
    API_RATE_LIMIT: str = "20 per 2 minutes"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("RIOT_API_KEY")
    @classmethod
    def _check_key_format(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith("RGAPI-"):
            raise ValueError("RIOT_API_KEY must start with RGAPI-")
        return value

    @field_validator("DEFAULT_REGION")
    @classmethod
    def _check_region(cls, value: str) -> str:
        value = normalize_region(value)
        if value not in PLATFORMS:
            raise ValueError(f"DEFAULT_REGION must be one of {sorted(PLATFORMS)}")
        return value

    @field_validator("API_RATE_LIMIT")
    @classmethod
    def _check_rate_limit(cls, value: str) -> str:
        parse_many(value)
        return value


@lru_cache
def get_settings() -> Settings:
    """Build settings once, on first use."""
    return Settings()
