"""
Custom exception hierarchy for the disk key-value cache.
"""

from __future__ import annotations

from typing import Any


class KeyValueCacheError(Exception):
    """Base exception for all cache-related errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(KeyValueCacheError):
    """Raised when the cache is used before its backing file is configured."""


class CacheContractError(KeyValueCacheError):
    """Raised when the load/save protocol is driven in an invalid order."""


class StorageReadError(KeyValueCacheError):
    """Raised when the backing file cannot be decoded into a snapshot."""


class StorageWriteError(KeyValueCacheError):
    """Raised when a snapshot cannot be written to the backing file."""


__all__ = [
    "CacheContractError",
    "ConfigurationError",
    "KeyValueCacheError",
    "StorageReadError",
    "StorageWriteError",
]
