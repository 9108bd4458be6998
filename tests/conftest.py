"""
Shared pytest fixtures for cache files, clocks, profilers, and settings.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from flatcache.config import Settings
from flatcache.disk import DiskKeyValueCache
from flatcache.profiling import ServiceCallProfiler
from tests.factories import FakeClock


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """Return a cache file location inside a not-yet-created directory."""

    return tmp_path / "cache" / "kvcache.bin"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def profiler() -> ServiceCallProfiler:
    return ServiceCallProfiler(log_calls=False)


@pytest.fixture
def cache(cache_path: Path, clock: FakeClock, profiler: ServiceCallProfiler) -> DiskKeyValueCache:
    """Disk cache wired to the fake clock and a recording profiler."""

    return DiskKeyValueCache(cache_path, clock=clock, profiler=profiler)


@pytest.fixture
def settings_override(monkeypatch: pytest.MonkeyPatch, cache_path: Path) -> Iterator[Settings]:
    """Override global settings with a temporary cache file."""

    from flatcache import config as config_module
    from flatcache import disk as disk_module

    base_settings = config_module.Settings()
    overrides = base_settings.model_copy(
        update={"cache": base_settings.cache.model_copy(update={"file": cache_path})}
    )
    monkeypatch.setattr(config_module, "get_settings", lambda: overrides)
    monkeypatch.setattr(disk_module, "get_settings", lambda: overrides)
    yield overrides
