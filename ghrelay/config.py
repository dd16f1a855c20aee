"""
Configuration Management Module

This module handles all application configuration using Pydantic Settings.
Configuration is loaded from environment variables with strong typing and validation.

Design Decisions:
- Use Pydantic Settings for automatic environment variable loading
- Provide sensible defaults for optional settings
- Validate configuration at startup (fail-fast approach)
- Allow-lists are plain comma-separated strings, split into tuples on demand
"""

from functools import lru_cache
from typing import Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ghrelay.models import ChatConfig, FilterConfig, Visibility


def _split_csv(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All sensitive values are loaded from environment variables only,
    never hardcoded or logged.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # =========================================================================
    # GitHub Configuration
    # =========================================================================
    github_webhook_secret: str = Field(
        description="Webhook secret for signature verification"
    )

    # =========================================================================
    # Telegram Configuration
    # =========================================================================
    telegram_bot_token: str = Field(
        description="Telegram bot token"
    )

    telegram_chat_id: str = Field(
        description="Destination chat id (numeric id or @channel)"
    )

    telegram_thread_id: Optional[int] = Field(
        default=None,
        description="Forum topic id inside the destination chat"
    )

    telegram_api_base: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API root URL"
    )

    telegram_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for the sendMessage call in seconds"
    )

    # =========================================================================
    # Event Filters
    # =========================================================================
    allowed_owners: str = Field(
        default="",
        description="Comma-separated repository owners to relay (empty = all)"
    )

    allowed_repos: str = Field(
        default="",
        description="Comma-separated repository names to relay (empty = all)"
    )

    visibility_filter: Visibility = Field(
        default=Visibility.ALL,
        description="Which repositories to relay: public, private or all"
    )

    environment: Optional[str] = Field(
        default=None,
        description="Environment label shown as a badge in messages"
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port to bind the server"
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    log_json_format: bool = Field(
        default=True,
        description="Enable JSON logging format"
    )

    log_requests: bool = Field(
        default=False,
        description="Enable request/response logging"
    )

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("visibility_filter", mode="before")
    @classmethod
    def normalize_visibility(cls, v):
        """Accept any casing and treat an empty value as 'all'."""
        if isinstance(v, str):
            return v.strip().lower() or Visibility.ALL.value
        return v

    @field_validator("environment", mode="before")
    @classmethod
    def blank_environment_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("telegram_thread_id", mode="before")
    @classmethod
    def blank_thread_id_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================
    @property
    def allowed_owners_list(self) -> Tuple[str, ...]:
        """Get the owner allow-list."""
        return _split_csv(self.allowed_owners)

    @property
    def allowed_repos_list(self) -> Tuple[str, ...]:
        """Get the repository-name allow-list."""
        return _split_csv(self.allowed_repos)

    def filter_config(self) -> FilterConfig:
        """Build the immutable filter configuration used by the event filter."""
        return FilterConfig(
            allowed_owners=self.allowed_owners_list,
            allowed_repos=self.allowed_repos_list,
            visibility=self.visibility_filter,
        )

    def chat_config(self) -> ChatConfig:
        """Build the immutable Telegram destination used by the notifier."""
        return ChatConfig(
            bot_token=self.telegram_bot_token,
            chat_id=self.telegram_chat_id,
            thread_id=self.telegram_thread_id,
            api_base=self.telegram_api_base.rstrip("/"),
            timeout=self.telegram_timeout,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once,
    which is important for performance and consistency.

    Returns:
        Settings instance
    """
    return Settings()
