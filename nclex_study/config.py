"""
Configuration settings for the nclex-study service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

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
        default="sqlite:///nclex_study.db",
        description="SQLAlchemy connection string (SQLite or PostgreSQL)",
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

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8100,
        description="API server port",
    )

    # ========================================
    # SM-2 Settings (spaced repetition)
    # ========================================
    sm2_initial_ease_factor: float = Field(
        default=2.5,
        description="Ease factor for a never-reviewed question",
    )
    sm2_minimum_ease_factor: float = Field(
        default=1.3,
        description="Floor for the ease factor",
    )
    sm2_bootstrap_interval_days: int = Field(
        default=6,
        description="Interval after the first successful review (days)",
    )
    sm2_max_interval_days: int | None = Field(
        default=None,
        description="Optional cap on review intervals (None = uncapped)",
    )

    # ========================================
    # Adaptive Simulation (CAT)
    # ========================================
    difficulty_min: int = Field(
        default=1,
        description="Lowest difficulty level (Easy)",
    )
    difficulty_max: int = Field(
        default=3,
        description="Highest difficulty level (Hard)",
    )
    default_starting_difficulty: str = Field(
        default="medium",
        description="Starting difficulty when the caller does not supply one",
    )
    cat_total_questions: int = Field(
        default=75,
        description="Questions per computer-adaptive simulation",
    )
    standard_total_questions: int = Field(
        default=25,
        description="Questions per standard simulation",
    )
    expected_response_ms: int = Field(
        default=60000,
        description="Expected answer time used to derive review quality from simulations",
    )

    # ========================================
    # AI Integration (question generation)
    # ========================================
    ai_provider: Literal["anthropic", "openai"] = Field(
        default="anthropic",
        description="LLM API used for question generation",
    )
    ai_model: str = Field(
        default="claude-3-5-sonnet-latest",
        description="Model name passed to the LLM API",
    )
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key",
    )
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    ai_timeout_seconds: float = Field(
        default=60.0,
        description="Timeout for LLM requests",
    )
    ai_max_tokens: int = Field(
        default=2000,
        description="Maximum tokens per generation request",
    )
    ai_allow_fallback: bool = Field(
        default=True,
        description="Serve backup questions (degraded mode) when LLM output is unusable",
    )

    def has_ai_configured(self) -> bool:
        """Check if the selected AI provider has credentials."""
        if self.ai_provider == "openai":
            return bool(self.openai_api_key)
        return bool(self.anthropic_api_key)

    def get_sm2_config(self) -> dict[str, Any]:
        """Get SM-2 parameters as a dictionary."""
        return {
            "initial_ease_factor": self.sm2_initial_ease_factor,
            "minimum_ease_factor": self.sm2_minimum_ease_factor,
            "bootstrap_interval": self.sm2_bootstrap_interval_days,
            "max_interval": self.sm2_max_interval_days,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
