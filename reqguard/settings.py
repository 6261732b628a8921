"""
Validator defaults using pydantic-settings.

Every value can be set through a REQGUARD_* environment variable or a .env
file. Options passed explicitly to build_validator always take precedence.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Process-wide validation defaults loaded from environment variables.

    Settings are read once and cached; call get_settings.cache_clear() after
    changing the environment in tests.
    """

    model_config = SettingsConfigDict(
        env_prefix="REQGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars not defined here
        case_sensitive=False,
    )

    # === Schema library options ===
    abort_early: bool = Field(
        default=True,
        description="Report only the first violation of a failing segment",
    )
    convert: bool = Field(
        default=True,
        description="Allow type coercion (e.g. '12' -> 12); False validates strictly",
    )

    # === Orchestration options ===
    req_context: bool = Field(
        default=False,
        description="Expose the whole request as validation context to every schema",
    )

    # === Error rendering ===
    error_status_code: int = Field(
        default=400,
        ge=400,
        le=599,
        description="HTTP status used by the validation error handler",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
