"""
Shared key-value cache abstraction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from .profiling import NullProfiler, Profiler


class KeyValueCache(ABC):
    """Abstract base class for batch key-value caches with profiler wiring.

    Keys reach implementations already normalized; single-key helpers are
    thin wrappers over the batch operations.
    """

    def __init__(self, *, profiler: Profiler | None = None) -> None:
        self._profiler: Profiler = profiler or NullProfiler()

    @property
    def profiler(self) -> Profiler:
        """Return the profiler receiving service-call events."""

        return self._profiler

    def set_profiler(self, profiler: Profiler | None) -> KeyValueCache:
        """Replace the profiler; ``None`` restores the no-op profiler."""

        self._profiler = profiler or NullProfiler()
        return self

    def get_key(self, key: str, default: Any = None) -> Any:
        """Return the cached value for ``key`` or ``default`` on a miss."""

        return self.get_keys([key]).get(key, default)

    def set_key(self, key: str, value: Any, ttl: int | None = None) -> KeyValueCache:
        """Store a single value, optionally expiring after ``ttl`` seconds."""

        return self.set_keys({key: value}, ttl=ttl)

    def delete_key(self, key: str) -> KeyValueCache:
        """Remove a single key."""

        return self.delete_keys([key])

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the cache can currently serve requests."""

    @abstractmethod
    def get_keys(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return found, unexpired values for the requested keys."""

    @abstractmethod
    def set_keys(self, entries: Mapping[str, Any], ttl: int | None = None) -> KeyValueCache:
        """Store a batch of values, optionally expiring after ``ttl`` seconds."""

    @abstractmethod
    def delete_keys(self, keys: Iterable[str]) -> KeyValueCache:
        """Remove a batch of keys; absent keys are ignored."""

    @abstractmethod
    def destroy_cache(self) -> KeyValueCache:
        """Discard all cached data."""


__all__ = ["KeyValueCache"]
