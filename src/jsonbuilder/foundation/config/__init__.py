"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    DEFAULT_WRITE_BUDGET,
    BuilderSettings,
    CacheSettings,
    EncoderSettings,
    JsonBuilderSettings,
    LoggingSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "DEFAULT_WRITE_BUDGET",
    "BuilderSettings",
    "CacheSettings",
    "EncoderSettings",
    "JsonBuilderSettings",
    "LoggingSettings",
    "clear_settings_cache",
    "get_settings",
]
