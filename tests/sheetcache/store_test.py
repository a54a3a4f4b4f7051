"""Tests for the sheetcache.store module."""

import json
import time

import pytest

from sheetcache.index import SheetIndex
from sheetcache.store import (
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_TTL_SECONDS,
    CacheEntry,
    CacheStore,
    Sweeper,
)

_TTL = 100.0


def _entry(source_key: str, built_at: float, rows=None) -> CacheEntry:
    rows = rows if rows is not None else [{"a": 1}, {"a": 2}]
    return CacheEntry(
        source_key=source_key,
        header=("a",),
        rows=rows,
        index=SheetIndex(),
        built_at=built_at,
    )


@pytest.fixture
def store(clock) -> CacheStore:
    return CacheStore(ttl_seconds=_TTL, clock=clock)


class TestCacheStoreDefaults:
    def test_defaults(self):
        assert DEFAULT_TTL_SECONDS == 24 * 60 * 60
        assert DEFAULT_SWEEP_INTERVAL_SECONDS == 10 * 60
        assert CacheStore().ttl_seconds == DEFAULT_TTL_SECONDS

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_invalid_ttl(self, ttl):
        with pytest.raises(ValueError, match="ttl_seconds must be positive"):
            CacheStore(ttl_seconds=ttl)


class TestCacheStoreGetPut:
    """Tests for get and put."""

    def test_missing(self, store):
        assert store.get("nope") is None

    def test_fresh_entry(self, store, clock):
        entry = _entry("a.xlsx", clock())
        store.put(entry)
        assert store.get("a.xlsx") is entry

    def test_put_overwrites(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        newer = _entry("a.xlsx", clock(), rows=[{"a": 3}])
        store.put(newer)
        assert store.get("a.xlsx") is newer
        assert len(store) == 1

    def test_valid_just_before_ttl(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        clock.advance(_TTL - 0.001)
        assert store.get("a.xlsx") is not None

    def test_expired_entry_is_absent_but_not_deleted(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        clock.advance(_TTL)
        assert store.get("a.xlsx") is None
        assert len(store) == 1
        assert store.stats().total_files == 1


class TestCacheStoreRemoval:
    """Tests for evict, clear and sweep."""

    def test_evict(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        assert store.evict("a.xlsx") is True
        assert store.get("a.xlsx") is None
        assert len(store) == 0

    def test_evict_missing_is_noop(self, store):
        assert store.evict("nope") is False

    def test_clear(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        store.put(_entry("b.xlsx", clock()))
        assert store.clear() == 2
        assert len(store) == 0

    def test_sweep_removes_only_expired(self, store, clock):
        store.put(_entry("old.xlsx", clock()))
        clock.advance(60)
        store.put(_entry("new.xlsx", clock()))
        clock.advance(50)
        assert store.sweep() == 1
        assert store.stats().total_files == 1
        assert store.get("new.xlsx") is not None

    def test_sweep_nothing_expired(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        assert store.sweep() == 0
        assert len(store) == 1


class TestCacheStoreStats:
    """Tests for stats."""

    def test_empty(self, store):
        stats = store.stats()
        assert stats.total_files == 0
        assert stats.total_rows == 0
        assert stats.total_size == 0
        assert stats.ttl_seconds == _TTL
        assert stats.files == []

    def test_aggregates(self, store, clock):
        rows = [{"a": 1, "b": "x"}]
        store.put(_entry("https://storage.googleapis.com/bucket/dir/old.xlsx?sig=1", clock(), rows))
        clock.advance(30)
        store.put(_entry("new.xlsx", clock()))
        clock.advance(10)

        stats = store.stats()
        assert stats.total_files == 2
        assert stats.total_rows == 3
        assert stats.total_size == sum(item.size_bytes for item in stats.files)

        newest, oldest = stats.files
        assert newest.source_key == "new.xlsx"
        assert newest.age_seconds == 10
        assert newest.expires_in_seconds == _TTL - 10
        assert newest.is_expired is False
        assert oldest.file_name == "old.xlsx"
        assert oldest.row_count == 1
        assert oldest.age_seconds == 40
        assert oldest.size_bytes == len(json.dumps(rows).encode())

    def test_expired_flag(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        clock.advance(_TTL + 1)
        (item,) = store.stats().files
        assert item.is_expired is True
        assert item.expires_in_seconds == -1

    def test_to_dict_is_json_serializable(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        data = store.stats().to_dict()
        assert data["total_files"] == 1
        assert data["files"][0]["cached_at"].startswith("2023-11-14T")
        json.dumps(data)


class TestSweeper:
    """Tests for the Sweeper background thread."""

    def test_invalid_interval(self, store):
        with pytest.raises(ValueError, match="interval_seconds must be positive"):
            Sweeper(store, interval_seconds=0)

    def test_sweeps_periodically(self, store, clock):
        store.put(_entry("a.xlsx", clock()))
        clock.advance(_TTL)
        with Sweeper(store, interval_seconds=0.01) as sweeper:
            assert sweeper.running
            deadline = time.monotonic() + 5
            while len(store) and time.monotonic() < deadline:
                time.sleep(0.01)
        assert len(store) == 0
        assert not sweeper.running

    def test_start_twice_and_stop(self, store):
        sweeper = Sweeper(store, interval_seconds=60)
        sweeper.start()
        thread = sweeper._thread
        sweeper.start()
        assert sweeper._thread is thread
        sweeper.stop()
        assert not sweeper.running
