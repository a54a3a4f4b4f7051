"""
Lookup engine serving rows of cached tabular files.

The engine resolves a source key to a CacheEntry, rebuilding it from the
blob source when the store has no valid entry, and then serves:

- get_row: one row by file row number, raising RowNotFoundError on miss
- get_rows: many rows by file row number, with None for each miss
- search_rows: one row per key query, the first match in file order

File row numbers are 1-based and count the header, so the first data row
is row 2 and row p lives at rows[p - 2].

Concurrent misses on the same source wait for a single rebuild. Source
and decoding failures propagate to the caller and are never retried.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, Final

from .decode import RowRecord, decode_table
from .index import build_index
from .keys import KeyColumns, KeyQuery, combined_key, normalize
from .source import BlobSource
from .store import CacheEntry, CacheStats, CacheStore
from .warm import Warmer, WarmReport

FIRST_DATA_ROW: Final[int] = 2

log = logging.getLogger("sheetcache/lookup")


class RowNotFoundError(LookupError):
    """Error emitted when a file row number has no corresponding row."""


class _InFlight:
    """Lock shared by the callers rebuilding the same source."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


def row_at(rows: Sequence[RowRecord], position: int) -> RowRecord | None:
    """Return the row at the given file row number or None."""
    index = position - FIRST_DATA_ROW
    if 0 <= index < len(rows):
        return rows[index]
    return None


class LookupEngine:
    """Public query surface over the cache store."""

    def __init__(
        self,
        *,
        source: BlobSource,
        store: CacheStore | None = None,
        key_columns: KeyColumns | None = None,
    ) -> None:
        """
        Initialize the engine.

        Parameters:
            source: blob source used to fetch files on a cache miss.
            store: cache store; a store with the default TTL if None.
            key_columns: business key columns; the defaults if None.
        """
        self.source = source
        self.store = store if store is not None else CacheStore()
        self.key_columns = key_columns if key_columns is not None else KeyColumns()
        self._guard = threading.Lock()
        self._inflight: dict[str, _InFlight] = {}

    @contextmanager
    def source_lock(self, source_key: str) -> Iterator[None]:
        """Hold the rebuild lock for source_key."""
        with self._guard:
            inflight = self._inflight.setdefault(source_key, _InFlight())
            inflight.users += 1
        try:
            with inflight.lock:
                yield
        finally:
            with self._guard:
                inflight.users -= 1
                if inflight.users == 0:
                    del self._inflight[source_key]

    def rebuild(self, source_key: str) -> CacheEntry:
        """
        Fetch, decode and index source_key, then store the new entry.

        Callers hold source_lock(source_key).
        """
        log.info("building %s... start", source_key)
        t0 = time.monotonic()
        data = self.source.fetch_bytes(source_key)
        t1 = time.monotonic()
        table = decode_table(data)
        entry = CacheEntry(
            source_key=source_key,
            header=table.header,
            rows=table.rows,
            index=build_index(table.rows, self.key_columns),
            built_at=self.store.clock(),
            fetch_seconds=t1 - t0,
        )
        self.store.put(entry)
        log.info(
            "building %s... ok (%d rows, %d primary keys, %d secondary keys, "
            "fetch %.3fs, total %.3fs)",
            source_key,
            len(entry.rows),
            len(entry.index.primary),
            len(entry.index.secondary),
            entry.fetch_seconds,
            time.monotonic() - t0,
        )
        return entry

    def load(self, source_key: str) -> CacheEntry:
        """Return a valid entry for source_key, rebuilding it on a miss."""
        entry = self.store.get(source_key)
        if entry is not None:
            return entry
        with self.source_lock(source_key):
            # Another caller may have rebuilt it while we were waiting
            entry = self.store.get(source_key)
            if entry is not None:
                return entry
            return self.rebuild(source_key)

    def get_row(self, source_key: str, position: int) -> RowRecord:
        """
        Return the row at the given file row number.

        Raises:
            RowNotFoundError: if position is outside [2, len(rows) + 2).
            SourceUnavailableError: if the source cannot be fetched.
            DecodeError: if the source is not a usable tabular file.
        """
        entry = self.load(source_key)
        row = row_at(entry.rows, position)
        if row is None:
            raise RowNotFoundError(
                f"row {position} not found in {source_key} "
                f"(index {position - FIRST_DATA_ROW}, {len(entry.rows)} data rows)"
            )
        return row

    def get_rows(self, source_key: str, positions: Sequence[int]) -> list[RowRecord | None]:
        """
        Return the rows at the given file row numbers, in the same order.

        Positions without a row yield None instead of failing the batch.
        """
        entry = self.load(source_key)
        result = []
        for position in positions:
            row = row_at(entry.rows, position)
            if row is None:
                log.debug("row %d not found in %s", position, source_key)
            result.append(row)
        return result

    def search_rows(
        self,
        source_key: str,
        queries: Sequence[KeyQuery | Mapping[str, Any]],
    ) -> list[RowRecord | None]:
        """
        Return the first row matching each query, in the same order.

        A query with both keys uses the combined index, one with only a
        primary or only a secondary key uses that key's index. Queries
        without keys and queries without matches yield None. Repeated
        queries for a duplicated key all get the same first row.
        """
        entry = self.load(source_key)
        return [self._search_one(entry, KeyQuery.of(query)) for query in queries]

    def _search_one(self, entry: CacheEntry, query: KeyQuery) -> RowRecord | None:
        primary = normalize(query.primary)
        secondary = normalize(query.secondary)
        if primary and secondary:
            matches = entry.index.combined.get(combined_key(primary, secondary))
        elif primary:
            matches = entry.index.primary.get(primary)
        elif secondary:
            matches = entry.index.secondary.get(secondary)
        else:
            return None
        if not matches:
            log.debug("no match in %s for %s|%s", entry.source_key, primary, secondary)
            return None
        return matches[0]

    def evict(self, source_key: str) -> bool:
        """Drop the cached entry for source_key."""
        return self.store.evict(source_key)

    def clear(self) -> int:
        """Drop all cached entries."""
        return self.store.clear()

    def stats(self) -> CacheStats:
        """Return the cache store statistics."""
        return self.store.stats()

    def warm(self, source_keys: Sequence[str]) -> WarmReport:
        """Populate the cache for source_keys and return a WarmReport."""
        return Warmer(self).warm(source_keys)
