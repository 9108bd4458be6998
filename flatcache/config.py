"""
Centralized configuration management powered by pydantic-settings.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseModel):
    """Location and identity of the disk cache."""

    file: Path | None = Field(
        default=None, description="Path of the flat file backing the cache."
    )
    name: str = Field(
        default="disk", description="Cache name reported to the profiler."
    )

    @field_validator("file", mode="before")
    @classmethod
    def expand_file(cls, value: object) -> object:
        """Treat an empty value as unset and expand a leading '~'."""
        if value in (None, ""):
            return None
        return Path(str(value)).expanduser()

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Cache name must be a non-empty string.")
        return value.strip()


class LoggingSettings(BaseModel):
    """Logging configuration shared across the project."""

    level: str = Field(default="INFO", description="Root logging level.")
    format: str = Field(
        default="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        description="Standard logging format string.",
    )
    directory: Path | None = Field(
        default=None, description="Directory for log files; console only when unset."
    )
    file_name: str = Field(default="flatcache.log", description="Primary log file name.")
    max_bytes: PositiveInt = Field(
        default=5 * 1024 * 1024, description="Maximum file size before rotating."
    )
    backup_count: PositiveInt = Field(default=5, description="Number of rotated log files to keep.")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        normalized = value.upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unsupported log level: {value}")
        return normalized


class ProfilingSettings(BaseModel):
    """Service-call profiling toggles."""

    enabled: bool = Field(default=False, description="Record cache service calls.")
    log_calls: bool = Field(
        default=True, description="Log every completed service call at DEBUG level."
    )


class Settings(BaseSettings):
    """Top-level settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="FLATCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()
    profiling: ProfilingSettings = ProfilingSettings()


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance loaded from the current environment."""

    return Settings()


__all__ = [
    "CacheSettings",
    "LoggingSettings",
    "ProfilingSettings",
    "Settings",
    "get_settings",
]
