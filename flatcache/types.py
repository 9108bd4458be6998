"""Cache entry and snapshot types shared by storage and cache handles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(slots=True)
class CacheEntry:
    """A cached value and its absolute expiry in epoch seconds."""

    value: Any
    expires_at: float | None = None

    def is_fresh(self, now: float) -> bool:
        return self.expires_at is None or self.expires_at >= now


Snapshot = Dict[str, CacheEntry]

__all__ = ["CacheEntry", "Snapshot"]
