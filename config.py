"""
Configuration settings for the skillfade tracker.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///skillfade.db",
        description="SQLAlchemy connection string",
    )

    # ========================================
    # Identity
    # ========================================
    default_user_id: str = Field(
        default="local",
        description="User id attached to CLI calls when --user is not given",
    )

    # ========================================
    # Decay Model Defaults
    # ========================================
    default_half_life: float = Field(
        default=7.0,
        ge=3.0,
        le=30.0,
        description="Half-life (days) assigned to newly created skills",
    )
    default_proficiency: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Initial proficiency used when a skill is created without one",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
