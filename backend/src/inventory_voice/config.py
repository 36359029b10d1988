"""Centralized configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables.

    All fields are optional with sensible defaults.
    Validation occurs on first get_settings() call.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Oracle (Ollama-compatible chat endpoint)
    oracle_base_url: str = "http://localhost:11434"
    oracle_model: str = "qwen3-coder-next"
    oracle_timeout_seconds: float = 30.0

    # Admission control for outbound oracle calls
    rate_limit_max_requests: int = 15
    rate_limit_window_seconds: float = 60.0

    stt_postprocess_enabled: bool = True
    audit_max_events: int = 500
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(sorted(valid_levels))}")
        return upper

    @field_validator(
        "oracle_timeout_seconds",
        "rate_limit_max_requests",
        "rate_limit_window_seconds",
        "audit_max_events",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary."""
        return {
            "oracle_base_url": self.oracle_base_url,
            "oracle_model": self.oracle_model,
            "oracle_timeout_seconds": self.oracle_timeout_seconds,
            "rate_limit_max_requests": self.rate_limit_max_requests,
            "rate_limit_window_seconds": self.rate_limit_window_seconds,
            "stt_postprocess_enabled": self.stt_postprocess_enabled,
            "audit_max_events": self.audit_max_events,
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached Settings singleton.

    Use this function for dependency injection and testing overrides.
    The cache ensures only one Settings instance exists per process.

    For testing: override with get_settings.cache_clear() then set env vars.
    """
    return Settings()
