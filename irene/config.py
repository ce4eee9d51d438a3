"""
Irene — Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Irene compatibility service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Compatibility point budget (must sum to 100)
    # ------------------------------------------------------------------ #
    PERSONALITY_POINTS: float = 40.0
    INTEREST_POINTS: float = 25.0
    GEOGRAPHY_POINTS: float = 15.0
    DEMOGRAPHIC_POINTS: float = 15.0
    ACTIVITY_POINTS: float = 5.0

    # ------------------------------------------------------------------ #
    # Match generation
    # ------------------------------------------------------------------ #
    MIN_COMPATIBILITY: float = 60.0
    MATCH_LIMIT: int = 20

    # ------------------------------------------------------------------ #
    # Discovery feed
    # ------------------------------------------------------------------ #
    DIVERSITY_BONUS_MAX: float = 5.0
    DIVERSITY_SEED: Optional[int] = None
    FEED_CACHE_SIZE: int = 20
    FEED_CACHE_TTL_SECONDS: float = 300.0

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @field_validator(
        "PERSONALITY_POINTS",
        "INTEREST_POINTS",
        "GEOGRAPHY_POINTS",
        "DEMOGRAPHIC_POINTS",
        "ACTIVITY_POINTS",
        "DIVERSITY_BONUS_MAX",
    )
    @classmethod
    def _points_must_be_non_negative(cls, v: float) -> float:
        if v < 0.0:
            raise ValueError(f"Points must be non-negative, got {v}")
        return v

    @field_validator("MIN_COMPATIBILITY")
    @classmethod
    def _threshold_must_be_a_score(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"MIN_COMPATIBILITY must be between 0 and 100, got {v}")
        return v

    @model_validator(mode="after")
    def _budget_must_total_100(self) -> "Settings":
        total = (
            self.PERSONALITY_POINTS
            + self.INTEREST_POINTS
            + self.GEOGRAPHY_POINTS
            + self.DEMOGRAPHIC_POINTS
            + self.ACTIVITY_POINTS
        )
        if abs(total - 100.0) > 1e-6:
            raise ValueError(f"Compatibility points must sum to 100, got {total}")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from irene.config import get_settings
        settings = get_settings()
    """
    return Settings()
