"""
In-memory store of parsed tabular files.

Each entry holds the decoded rows of one source together with its key
indexes and the time at which it was built. An entry is valid while its
age is below the store TTL. Validity is checked on every read; expired
entries are physically removed only by sweep(), evict() or clear().

Entries are never mutated after creation: a rebuild replaces the
whole entry through put().
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Final

from .decode import RowRecord
from .index import SheetIndex

DEFAULT_TTL_SECONDS: Final[float] = 24 * 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS: Final[float] = 10 * 60

log = logging.getLogger("sheetcache/store")


@dataclass(frozen=True, kw_only=True)
class CacheEntry:
    """
    Parsed tabular file ready for lookups.

    Attributes:
        source_key: identifier of the source (usually a blob URL)
        header: field names derived from the header row
        rows: records in file order; rows[i] is file row i + 2
        index: key indexes over rows
        built_at: UNIX timestamp at which parsing completed
        fetch_seconds: time spent fetching the source bytes
    """

    source_key: str
    header: tuple[str, ...]
    rows: list[RowRecord]
    index: SheetIndex
    built_at: float
    fetch_seconds: float = 0.0

    def age(self, now: float) -> float:
        """Return the entry age in seconds at time now."""
        return now - self.built_at


@dataclass(frozen=True, kw_only=True)
class CacheFileStats:
    """Observability data about a single entry."""

    source_key: str
    file_name: str
    row_count: int
    cached_at: str
    age_seconds: float
    expires_in_seconds: float
    is_expired: bool
    size_bytes: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_key": self.source_key,
            "file_name": self.file_name,
            "row_count": self.row_count,
            "cached_at": self.cached_at,
            "age_seconds": self.age_seconds,
            "expires_in_seconds": self.expires_in_seconds,
            "is_expired": self.is_expired,
            "size_bytes": self.size_bytes,
        }


@dataclass(frozen=True, kw_only=True)
class CacheStats:
    """Aggregate statistics about the store."""

    total_files: int
    total_rows: int
    total_size: int
    ttl_seconds: float
    files: list[CacheFileStats] = field(default_factory=list)

    @property
    def total_size_mb(self) -> float:
        return round(self.total_size / 1024 / 1024, 2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_files": self.total_files,
            "total_rows": self.total_rows,
            "total_size": self.total_size,
            "total_size_mb": self.total_size_mb,
            "ttl_seconds": self.ttl_seconds,
            "files": [entry.to_dict() for entry in self.files],
        }


def serialized_size(rows: list[RowRecord]) -> int:
    """Return the approximate memory footprint of rows as JSON bytes."""
    return len(json.dumps(rows, default=str).encode())


def _file_name(source_key: str) -> str:
    return source_key.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1] or source_key


class CacheStore:
    """Thread-safe mapping from source key to CacheEntry with a TTL."""

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def is_valid(self, entry: CacheEntry) -> bool:
        """Return whether entry is younger than the TTL."""
        return entry.age(self.clock()) < self.ttl_seconds

    def get(self, source_key: str) -> CacheEntry | None:
        """Return the entry for source_key, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(source_key)
        if entry is None or not self.is_valid(entry):
            return None
        return entry

    def put(self, entry: CacheEntry) -> None:
        """Store entry, replacing any previous entry for the same source."""
        with self._lock:
            self._entries[entry.source_key] = entry

    def evict(self, source_key: str) -> bool:
        """Remove the entry for source_key and return whether it existed."""
        with self._lock:
            removed = self._entries.pop(source_key, None) is not None
        if removed:
            log.info("evicted %s", source_key)
        return removed

    def clear(self) -> int:
        """Remove all entries and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        log.info("cleared %d entries", count)
        return count

    def sweep(self) -> int:
        """Remove all expired entries and return how many were removed."""
        now = self.clock()
        with self._lock:
            expired = [
                key
                for key, entry in self._entries.items()
                if entry.age(now) >= self.ttl_seconds
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            log.info("swept %d expired entries", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        """Return aggregate and per-entry statistics, newest entries first."""
        now = self.clock()
        with self._lock:
            entries = list(self._entries.values())

        files = []
        for entry in entries:
            age = entry.age(now)
            files.append(
                CacheFileStats(
                    source_key=entry.source_key,
                    file_name=_file_name(entry.source_key),
                    row_count=len(entry.rows),
                    cached_at=datetime.fromtimestamp(entry.built_at, tz=timezone.utc).isoformat(),
                    age_seconds=age,
                    expires_in_seconds=self.ttl_seconds - age,
                    is_expired=age >= self.ttl_seconds,
                    size_bytes=serialized_size(entry.rows),
                )
            )
        files.sort(key=lambda item: item.age_seconds)

        return CacheStats(
            total_files=len(files),
            total_rows=sum(item.row_count for item in files),
            total_size=sum(item.size_bytes for item in files),
            ttl_seconds=self.ttl_seconds,
            files=files,
        )


class Sweeper:
    """
    Background thread calling CacheStore.sweep periodically.

    Use as a context manager or call start() and stop() explicitly:

        with Sweeper(store, interval_seconds=600):
            serve()
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.store = store
        self.interval_seconds = interval_seconds
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sweeper thread unless it is already running."""
        if self.running:
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._loop, name="sheetcache-sweeper", daemon=True)
        self._thread.start()
        log.info("sweeper started (interval %.0fs)", self.interval_seconds)

    def stop(self) -> None:
        """Stop the sweeper thread and wait for it to exit."""
        self._stopped.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        log.info("sweeper stopped")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.stop()
        return False

    def _loop(self) -> None:
        while not self._stopped.wait(self.interval_seconds):
            try:
                self.store.sweep()
            except Exception as exc:
                log.warning("sweeping... failure: %s", exc)
