"""
Whole-file snapshot storage guarded by an advisory file lock.

Every load reads the complete cache file and every save rewrites it. Saves
go through a ``SnapshotLease`` returned by ``SnapshotStorage.load_for_update``
so the lock taken for the read is the one held across the write.
"""

from __future__ import annotations

import contextlib
import logging
import os
import pickle
import threading
from pathlib import Path
from typing import Any

from filelock import FileLock

from .exceptions import CacheContractError, StorageReadError, StorageWriteError
from .types import CacheEntry, Snapshot

LOGGER = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"
TEMP_SUFFIX = ".new"


def encode_snapshot(snapshot: Snapshot) -> bytes:
    """Serialize a snapshot into the on-disk representation."""

    payload: dict[str, dict[str, Any]] = {}
    for key, entry in snapshot.items():
        record: dict[str, Any] = {"value": entry.value}
        if entry.expires_at is not None:
            record["expires_at"] = entry.expires_at
        payload[key] = record
    try:
        return pickle.dumps(payload, protocol=pickle.HIGHEST_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as exc:
        raise StorageWriteError(
            "Cache snapshot contains a value that cannot be serialized.",
            context={"reason": str(exc)},
        ) from exc


def decode_snapshot(data: bytes) -> Snapshot:
    """Deserialize the on-disk representation into a snapshot."""

    if not data:
        return {}
    try:
        payload = pickle.loads(data)
    except Exception as exc:  # noqa: BLE001
        raise StorageReadError(
            "Cache file is not a valid snapshot.", context={"reason": repr(exc)}
        ) from exc

    if not payload:
        return {}
    if not isinstance(payload, dict):
        raise StorageReadError(
            "Cache file does not contain a mapping.",
            context={"type": type(payload).__name__},
        )

    snapshot: Snapshot = {}
    for key, record in payload.items():
        if not isinstance(key, str) or not isinstance(record, dict) or "value" not in record:
            raise StorageReadError("Malformed cache record.", context={"key": repr(key)})
        expires_at = record.get("expires_at")
        try:
            expiry = float(expires_at) if expires_at is not None else None
        except (TypeError, ValueError) as exc:
            raise StorageReadError(
                "Malformed cache record.",
                context={"key": repr(key), "expires_at": repr(expires_at)},
            ) from exc
        snapshot[key] = CacheEntry(value=record["value"], expires_at=expiry)
    return snapshot


class SnapshotLease:
    """
    Exclusive hold on a cache file obtained by ``load_for_update``.

    ``snapshot`` may be mutated freely while the lease is held. ``save``
    persists it and releases the lock; leaving the ``with`` block without
    saving releases the lock and discards the changes.
    """

    def __init__(self, storage: SnapshotStorage, lock: FileLock, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
        self._storage = storage
        self._lock: FileLock | None = lock

    @property
    def held(self) -> bool:
        return self._lock is not None

    def save(self) -> None:
        """Write the snapshot over the cache file and release the lock."""

        if self._lock is None:
            raise CacheContractError(
                "Call load_for_update() before saving the cache.",
                context={"path": str(self._storage.path)},
            )
        lock, self._lock = self._lock, None
        try:
            self._storage._write(self.snapshot)
        finally:
            self._storage._release(lock)

    def release(self) -> None:
        """Release the lock without writing anything."""

        if self._lock is None:
            return
        lock, self._lock = self._lock, None
        self._storage._release(lock)

    def __enter__(self) -> SnapshotLease:
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


class SnapshotStorage:
    """Load and save complete cache snapshots for one file path."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + LOCK_SUFFIX)
        self.temp_path = self.path.with_name(self.path.name + TEMP_SUFFIX)
        # Guards the file lock for threads sharing this storage.
        self._mutex = threading.Lock()
        self._owner: int | None = None

    @property
    def locked(self) -> bool:
        return self._owner is not None

    def load(self) -> Snapshot:
        """Read the current snapshot, holding the lock only while reading."""

        lock = self._acquire()
        try:
            return self._read()
        finally:
            self._release(lock)

    def load_for_update(self) -> SnapshotLease:
        """Read the current snapshot and keep the lock for a following save."""

        lock = self._acquire()
        try:
            snapshot = self._read()
        except BaseException:
            self._release(lock)
            raise
        return SnapshotLease(self, lock, snapshot)

    def remove(self) -> None:
        """Delete the cache file. The lock is not taken."""

        self.path.unlink(missing_ok=True)
        LOGGER.debug("Removed cache file %s.", self.path)

    def _acquire(self) -> FileLock:
        if self._owner == threading.get_ident():
            raise CacheContractError(
                "Trying to load the cache while already holding its lock.",
                context={"path": str(self.path)},
            )
        self._mutex.acquire()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lock = FileLock(str(self.lock_path), thread_local=False)
            lock.acquire()
        except BaseException:
            self._mutex.release()
            raise
        self._owner = threading.get_ident()
        return lock

    def _release(self, lock: FileLock) -> None:
        try:
            lock.release()
        finally:
            self._owner = None
            self._mutex.release()

    def _read(self) -> Snapshot:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        try:
            snapshot = decode_snapshot(data)
        except StorageReadError as exc:
            LOGGER.warning(
                "Ignoring unreadable cache file %s (%s): %s", self.path, exc, exc.context
            )
            return {}
        LOGGER.debug("Loaded %d cache entries from %s.", len(snapshot), self.path)
        return snapshot

    def _write(self, snapshot: Snapshot) -> None:
        data = encode_snapshot(snapshot)
        # The lock is held, so a fixed sibling name is safe. Same directory
        # keeps the rename on one volume.
        try:
            with self.temp_path.open("wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(self.temp_path, self.path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                self.temp_path.unlink(missing_ok=True)
            raise StorageWriteError(
                "Failed to write cache file.",
                context={"path": str(self.path), "reason": str(exc)},
            ) from exc
        LOGGER.debug("Saved %d cache entries to %s.", len(snapshot), self.path)


__all__ = [
    "SnapshotLease",
    "SnapshotStorage",
    "decode_snapshot",
    "encode_snapshot",
]
