"""
Configuration settings for the medq adaptive learning engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are read with the ``MEDQ_`` prefix (e.g. ``MEDQ_DESIRED_RETENTION``).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MEDQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Spaced repetition (FSRS)
    # ========================================
    desired_retention: float = Field(
        default=0.90,
        description="Target recall probability used to derive review intervals",
    )
    min_interval_days: int = Field(
        default=1,
        ge=0,
        description="Shortest interval the scheduler will hand out",
    )
    max_interval_days: int = Field(
        default=365,
        ge=1,
        description="Longest interval the scheduler will hand out (1 year)",
    )

    # ========================================
    # Weakness analysis
    # ========================================
    weak_topics_limit: int = Field(
        default=5,
        ge=0,
        description="Number of weakest topics surfaced per course",
    )
    expected_time_sec: float = Field(
        default=60.0,
        gt=0,
        description="Baseline seconds per question for the course speed penalty",
    )

    # ========================================
    # Assessment sessions
    # ========================================
    default_level: str = Field(
        default="MD3",
        description="Assessment level used when the caller does not name one",
    )
    default_assessment_count: int = Field(
        default=20,
        ge=5,
        le=40,
        description="Questions per assessment session",
    )
    random_seed: int | None = Field(
        default=None,
        description="Seed for question shuffling (unset = nondeterministic)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Loguru level for the CLI sink",
    )

    @field_validator("desired_retention")
    @classmethod
    def _retention_in_open_unit_interval(cls, value: float) -> float:
        if not 0 < value < 1:
            raise ValueError("desired_retention must be strictly between 0 and 1")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return str(value).upper()

    @model_validator(mode="after")
    def _interval_bounds_ordered(self) -> Settings:
        if self.min_interval_days > self.max_interval_days:
            raise ValueError("min_interval_days must not exceed max_interval_days")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
