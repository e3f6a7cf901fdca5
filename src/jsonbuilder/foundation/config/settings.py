"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Settings never reach a builder implicitly: pass them through
`Builder.from_settings()` or `cache_from_settings()`.

Example:
    >>> from jsonbuilder.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.cache.write_budget
    50
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # JSONBUILDER_CACHE_WRITE_BUDGET=10
    # JSONBUILDER_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import (
    Field,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    computed_field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WRITE_BUDGET = 50


class CacheSettings(BaseSettings):
    """Cache-related configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JSONBUILDER_CACHE_",
        extra="ignore",
    )

    enabled: bool = True
    ttl: PositiveFloat = Field(default=3600.0, description="Default cache TTL in seconds")
    max_size: PositiveInt = Field(default=1000, description="Max in-memory cache entries")
    write_budget: NonNegativeInt = Field(
        default=DEFAULT_WRITE_BUDGET,
        description="Max cache writes issued by one array build",
    )
    strict: bool = Field(default=False, description="Raise on cache backend failures instead of logging")
    prefix: str = "jsonbuilder:"
    redis_url: SecretStr | None = Field(default=None, description="Redis URL for distributed cache")
    memcached_server: str | None = Field(default=None, description="Memcached host:port")

    @computed_field
    @property
    def backend(self) -> Literal["memory", "redis", "memcached"]:
        """Determine cache backend from configuration."""
        if self.redis_url:
            return "redis"
        return "memcached" if self.memcached_server else "memory"


class EncoderSettings(BaseSettings):
    """JSON output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JSONBUILDER_ENCODER_",
        extra="ignore",
    )

    indent: bool = False
    sort_keys: bool = False


class BuilderSettings(BaseSettings):
    """Builder execution configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JSONBUILDER_BUILDER_",
        extra="ignore",
    )

    max_workers: NonNegativeInt = Field(
        default=0,
        description="Thread pool size for array element construction (0 or 1 = sequential)",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JSONBUILDER_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "text"
    include_timestamps: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class JsonBuilderSettings(BaseSettings):
    """Root settings for jsonbuilder.

    Loads configuration from environment variables with JSONBUILDER_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        JSONBUILDER_CACHE_REDIS_URL=redis://localhost:6379/0
        JSONBUILDER_CACHE_WRITE_BUDGET=100
        JSONBUILDER_ENCODER_INDENT=true
        JSONBUILDER_BUILDER_MAX_WORKERS=4
        JSONBUILDER_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="JSONBUILDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    cache: CacheSettings = Field(default_factory=CacheSettings)
    encoder: EncoderSettings = Field(default_factory=EncoderSettings)
    builder: BuilderSettings = Field(default_factory=BuilderSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> JsonBuilderSettings:
    """Get the settings instance loaded from the environment (cached)."""
    return JsonBuilderSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
