from .base import KeyValueCache
from .config import Settings, get_settings
from .disk import DiskKeyValueCache
from .exceptions import (
    CacheContractError,
    ConfigurationError,
    KeyValueCacheError,
    StorageReadError,
    StorageWriteError,
)
from .logger import setup_logging
from .profiling import NullProfiler, Profiler, ServiceCallProfiler
from .types import CacheEntry

__all__ = [
    "CacheContractError",
    "CacheEntry",
    "ConfigurationError",
    "DiskKeyValueCache",
    "KeyValueCache",
    "KeyValueCacheError",
    "NullProfiler",
    "Profiler",
    "ServiceCallProfiler",
    "Settings",
    "StorageReadError",
    "StorageWriteError",
    "get_settings",
    "setup_logging",
]
