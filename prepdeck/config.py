"""
Configuration settings for prepdeck.

Uses Pydantic Settings for environment variable management with .env file support.
Every setting can be overridden with a ``PREPDECK_`` prefixed variable.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from prepdeck.engine.models import SessionKind


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PREPDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Minimum loguru level written to stderr",
    )

    # ========================================
    # History
    # ========================================
    history_dir: Path = Field(
        default=Path.home() / ".prepdeck" / "history",
        description="Directory holding one JSON history file per session kind",
    )

    # ========================================
    # Item Bank
    # ========================================
    bank_url: str | None = Field(
        default=None,
        description="Base URL of the remote item bank; local fallback items are used when unset",
    )
    bank_api_key: str | None = Field(
        default=None,
        description="Sent as X-API-Key to the item bank",
    )
    bank_timeout_seconds: float = Field(default=10.0, gt=0)
    bank_retry_attempts: int = Field(default=3, ge=1)

    # ========================================
    # Session Defaults
    # ========================================
    default_item_count: int = Field(default=10, ge=1, le=100)
    mcq_duration_seconds: int = Field(default=1800, ge=1)
    coding_duration_seconds: int = Field(default=3600, ge=1)
    interview_duration_seconds: int = Field(default=1800, ge=1)
    learning_mode: bool = Field(
        default=False,
        description="Show explanations immediately after each answer",
    )

    def duration_for(self, kind: SessionKind) -> int:
        """Default session length for a kind, in seconds."""
        return {
            SessionKind.MCQ: self.mcq_duration_seconds,
            SessionKind.CODING: self.coding_duration_seconds,
            SessionKind.INTERVIEW: self.interview_duration_seconds,
        }[kind]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
