"""
Application configuration — all values overridable via environment variables.
Use .env for local dev.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── API ────────────────────────────────────────────────────────────────────
    API_VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3002

    # ── Database ───────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./privalytics-api.db"

    # ── Ingestion ──────────────────────────────────────────────────────────────
    # Reject /api/track calls whose siteId is not a registered site
    VALIDATE_SITE_ID: bool = False
    # Only enable behind a reverse proxy that overwrites these headers
    TRUST_PROXY_HEADERS: bool = False
    COUNTRY_HEADER: str | None = Field(
        default="CF-IPCountry",
        description="Request header carrying an ISO country code, if any",
    )

    # ── Rate limiting ──────────────────────────────────────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REGISTER: str = "10/minute"
    RATE_LIMIT_TRACK: str = "600/minute"
    RATE_LIMIT_STATS: str = "120/minute"

    # ── CORS ───────────────────────────────────────────────────────────────────
    # Beacons arrive from arbitrary client sites
    CORS_ORIGINS: list[str] = ["*"]

    # ── Logging ────────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
