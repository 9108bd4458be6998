"""
Service-call profiling hooks for cache operations.

This module provides:
- The ``Profiler`` protocol that cache handles report to
- A no-op ``NullProfiler`` used when nothing is configured
- ``ServiceCallProfiler`` which records timed calls and aggregates statistics
- The ``service_call`` context manager bracketing a single operation

Example usage:
    from flatcache.profiling import ServiceCallProfiler

    profiler = ServiceCallProfiler()
    cache = DiskKeyValueCache("/tmp/cache.bin", profiler=profiler)
    cache.get_keys(["a", "b"])

    for stats in profiler.summary().values():
        print(stats)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

LOGGER = logging.getLogger(__name__)


class Profiler(Protocol):
    """Protocol describing a collaborator that observes cache service calls."""

    def begin_service_call(self, event: dict[str, Any]) -> Any:
        """Record the start of a call and return an opaque call identifier."""

    def end_service_call(self, call_id: Any, result: dict[str, Any]) -> None:
        """Record the completion of the call started with ``call_id``."""


class NullProfiler:
    """Profiler that ignores every call."""

    def begin_service_call(self, event: dict[str, Any]) -> None:  # noqa: ARG002
        return None

    def end_service_call(self, call_id: Any, result: dict[str, Any]) -> None:  # noqa: ARG002
        return None


@dataclass(slots=True)
class ServiceCall:
    """
    Single recorded cache service call.
    """

    call_id: int
    type: str
    name: str
    keys: list[str]
    ttl: int | None = None
    hits: list[str] | None = None
    error: str | None = None
    started_at: float = 0.0
    elapsed_sec: float | None = None

    @property
    def completed(self) -> bool:
        return self.elapsed_sec is not None


@dataclass(slots=True)
class CallStats:
    """
    Statistical summary of completed calls of one type.
    """

    call_type: str
    total_calls: int
    total_time_sec: float
    avg_time_sec: float
    min_time_sec: float
    max_time_sec: float
    std_dev_sec: float
    errors: int = 0
    timings: list[float] = field(default_factory=list, repr=False)

    def __str__(self) -> str:
        return (
            f"CallStats({self.call_type}):\n"
            f"  Calls: {self.total_calls}\n"
            f"  Errors: {self.errors}\n"
            f"  Total: {self.total_time_sec:.4f}s\n"
            f"  Avg: {self.avg_time_sec:.6f}s\n"
            f"  Min: {self.min_time_sec:.6f}s\n"
            f"  Max: {self.max_time_sec:.6f}s\n"
            f"  StdDev: {self.std_dev_sec:.6f}s"
        )


def _calculate_std_dev(values: list[float], mean: float) -> float:
    """Calculate standard deviation."""
    if len(values) < 2:
        return 0.0
    variance = sum((x - mean) ** 2 for x in values) / (len(values) - 1)
    return variance**0.5


class ServiceCallProfiler:
    """
    Profiler that keeps every cache call in memory with its wall-clock timing.

    Usage:
        profiler = ServiceCallProfiler(log_calls=True)
        cache.set_profiler(profiler)
        ...
        print(profiler.calls[-1].elapsed_sec)
    """

    def __init__(self, *, log_calls: bool = True) -> None:
        self.log_calls = log_calls
        self._calls: list[ServiceCall] = []
        self._lock = threading.Lock()

    @property
    def calls(self) -> list[ServiceCall]:
        """Return a copy of the recorded calls in start order."""
        with self._lock:
            return list(self._calls)

    def begin_service_call(self, event: dict[str, Any]) -> int:
        with self._lock:
            call = ServiceCall(
                call_id=len(self._calls),
                type=str(event.get("type", "unknown")),
                name=str(event.get("name", "")),
                keys=list(event.get("keys", ())),
                ttl=event.get("ttl"),
                started_at=time.perf_counter(),
            )
            self._calls.append(call)
        return call.call_id

    def end_service_call(self, call_id: int, result: dict[str, Any]) -> None:
        with self._lock:
            call = self._calls[call_id]
            call.elapsed_sec = time.perf_counter() - call.started_at
            if "hits" in result:
                call.hits = list(result["hits"])
            call.error = result.get("error")

        if self.log_calls:
            LOGGER.debug(
                "%s[%s]: %d key(s) in %.4fs%s",
                call.type,
                call.name,
                len(call.keys),
                call.elapsed_sec,
                f" (error: {call.error})" if call.error else "",
            )

    def summary(self) -> dict[str, CallStats]:
        """Aggregate completed calls by call type."""

        grouped: dict[str, list[ServiceCall]] = {}
        for call in self.calls:
            if call.completed:
                grouped.setdefault(call.type, []).append(call)

        stats: dict[str, CallStats] = {}
        for call_type, calls in grouped.items():
            timings = [call.elapsed_sec or 0.0 for call in calls]
            total_time = sum(timings)
            avg_time = total_time / len(timings)
            stats[call_type] = CallStats(
                call_type=call_type,
                total_calls=len(calls),
                total_time_sec=total_time,
                avg_time_sec=avg_time,
                min_time_sec=min(timings),
                max_time_sec=max(timings),
                std_dev_sec=_calculate_std_dev(timings, avg_time),
                errors=sum(1 for call in calls if call.error),
                timings=timings,
            )
        return stats

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()


@contextmanager
def service_call(
    profiler: Profiler, event: dict[str, Any]
) -> Generator[dict[str, Any], None, None]:
    """
    Bracket a cache operation with begin/end profiler calls.

    The yielded dict is reported to ``end_service_call``; callers add
    completion details such as ``hits`` to it. The call is always ended,
    with an ``error`` entry naming the exception when the body raises.

    Usage:
        with service_call(profiler, {"type": "kvcache-get", ...}) as result:
            result["hits"] = list(found)
    """
    call_id = profiler.begin_service_call(event)
    result: dict[str, Any] = {}
    try:
        yield result
    except BaseException as exc:
        result["error"] = type(exc).__name__
        raise
    finally:
        profiler.end_service_call(call_id, result)


__all__ = [
    "CallStats",
    "NullProfiler",
    "Profiler",
    "ServiceCall",
    "ServiceCallProfiler",
    "service_call",
]
