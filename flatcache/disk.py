"""
Key-value cache persisted to a single flat file.

This cache is slow compared to in-memory caches and is meant as a fallback
when none is available. Reading or writing any key loads or saves the whole
cache file, so batch operations are much cheaper than repeated single-key
calls. It is not a general-purpose data store.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from .base import KeyValueCache
from .config import Settings, get_settings
from .exceptions import ConfigurationError
from .profiling import Profiler, ServiceCallProfiler, service_call
from .storage import SnapshotStorage
from .types import CacheEntry, Snapshot

LOGGER = logging.getLogger(__name__)


class DiskKeyValueCache(KeyValueCache):
    """Whole-file disk cache with TTL support and advisory locking."""

    def __init__(
        self,
        cache_file: Path | str | None = None,
        *,
        name: str = "disk",
        profiler: Profiler | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(profiler=profiler)
        self.name = name
        self._clock = clock
        self._storage: SnapshotStorage | None = None
        self._cache: Snapshot = {}
        if cache_file is not None:
            self.set_cache_file(cache_file)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> DiskKeyValueCache:
        """Build a cache from runtime settings."""

        runtime_settings = settings or get_settings()
        profiler = None
        if runtime_settings.profiling.enabled:
            profiler = ServiceCallProfiler(log_calls=runtime_settings.profiling.log_calls)
        return cls(
            runtime_settings.cache.file,
            name=runtime_settings.cache.name,
            profiler=profiler,
        )

    def set_cache_file(self, cache_file: Path | str) -> DiskKeyValueCache:
        """Point the cache at a backing file and forget the loaded snapshot."""

        self._storage = SnapshotStorage(cache_file)
        self._cache = {}
        LOGGER.debug("Cache '%s' backed by %s.", self.name, self._storage.path)
        return self

    @property
    def cache_file(self) -> Path:
        return self._get_storage().path

    def is_available(self) -> bool:
        return True

    def get_keys(self, keys: Iterable[str]) -> dict[str, Any]:
        storage = self._get_storage()
        requested = list(keys)
        event = {"type": "kvcache-get", "name": self.name, "keys": requested}

        with service_call(self.profiler, event) as call:
            now = self._clock()
            results: dict[str, Any] = {}
            reloaded = False
            for key in requested:
                # Serve from the loaded snapshot; on a miss reload once per call.
                while True:
                    entry = self._cache.get(key)
                    if entry is not None and entry.is_fresh(now):
                        results[key] = entry.value
                        break
                    if reloaded:
                        break
                    self._cache = storage.load()
                    reloaded = True
            call["hits"] = list(results)

        return results

    def set_keys(self, entries: Mapping[str, Any], ttl: int | None = None) -> DiskKeyValueCache:
        storage = self._get_storage()
        expires_at = self._clock() + ttl if ttl else None
        updates = {key: CacheEntry(value, expires_at) for key, value in entries.items()}
        event = {"type": "kvcache-set", "name": self.name, "keys": list(updates), "ttl": ttl}

        with service_call(self.profiler, event):
            with storage.load_for_update() as lease:
                lease.snapshot.update(updates)
                lease.save()
            self._cache = lease.snapshot

        return self

    def delete_keys(self, keys: Iterable[str]) -> DiskKeyValueCache:
        storage = self._get_storage()
        removed = list(keys)
        event = {"type": "kvcache-del", "name": self.name, "keys": removed}

        with service_call(self.profiler, event):
            with storage.load_for_update() as lease:
                for key in removed:
                    lease.snapshot.pop(key, None)
                lease.save()
            self._cache = lease.snapshot

        return self

    def destroy_cache(self) -> DiskKeyValueCache:
        """Remove the backing file. Not coordinated with concurrent loads or saves."""

        self._get_storage().remove()
        self._cache = {}
        return self

    def _get_storage(self) -> SnapshotStorage:
        if self._storage is None:
            raise ConfigurationError("Call set_cache_file() before using a disk cache.")
        return self._storage


__all__ = ["DiskKeyValueCache"]
