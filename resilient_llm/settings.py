"""
Settings using Pydantic Settings.

Loads configuration from environment variables and .env file.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # OpenRouter
    # ==========================================================================

    openrouter_api_key: str = Field(
        default="",
        description="OpenRouter API key (validated when a client config is built)"
    )

    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL"
    )

    app_referer: str = Field(
        default="",
        description="Optional HTTP-Referer attribution header"
    )

    app_title: str = Field(
        default="",
        description="Optional X-Title attribution header"
    )

    # ==========================================================================
    # Retry
    # ==========================================================================

    max_retries: int = Field(
        default=3,
        ge=1,
        description="Total attempts for the primary model"
    )

    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial backoff delay in seconds"
    )

    retry_max_delay: float = Field(
        default=10.0,
        ge=0,
        description="Backoff delay cap in seconds"
    )

    retry_jitter: bool = Field(
        default=True,
        description="Add up to one second of random jitter to each delay"
    )

    fallback_max_retries: int = Field(
        default=2,
        ge=1,
        description="Total attempts for each fallback model"
    )

    fallback_base_delay: float = Field(
        default=0.5,
        ge=0,
        description="Initial backoff delay for fallback models"
    )

    # ==========================================================================
    # Timeouts
    # ==========================================================================

    connect_timeout: float = Field(
        default=10.0,
        description="Time to establish a connection, in seconds"
    )

    read_timeout: float = Field(
        default=120.0,
        description="Time to receive a non-streamed response, in seconds"
    )

    stream_timeout: float = Field(
        default=60.0,
        description="Deadline for a whole streaming session, in seconds"
    )

    # ==========================================================================
    # Logging
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level"
    )

    log_format: str = Field(
        default="text",
        description="Log format: text or json"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = {"text", "json"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower

    def to_safe_dict(self) -> dict:
        """Return settings as dict with secrets redacted."""
        data = self.model_dump(exclude={"openrouter_api_key"})

        if self.openrouter_api_key:
            key = self.openrouter_api_key
            data["openrouter_api_key"] = f"{key[:8]}...{key[-4:]}" if len(key) > 12 else "***"
        else:
            data["openrouter_api_key"] = "(not set)"

        return data


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings from environment."""
    get_settings.cache_clear()
    return get_settings()
