"""
Tests for the bucket cache stores.

Tests cover:
- MemoryCache TTL expiry, copy semantics, ttl <= 0, forget of absent keys, statistics
- SqliteCache round trip, expiry, upsert and forget over an in-memory sqlite-utils Database
- build_cache backend selection
"""

import pytest
from sqlite_utils import Database

from repodata.cache import CacheStore, MemoryCache, SqliteCache, build_cache
from repodata.config import CacheSettings

# region Fixtures


class TickingClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def tick() -> TickingClock:
    return TickingClock()


@pytest.fixture
def sqlite_cache(tick) -> SqliteCache:
    return SqliteCache(Database(memory=True), clock=tick)


# endregion
# region MemoryCache


class TestMemoryCache:
    def test_satisfies_protocol(self):
        assert isinstance(MemoryCache(), CacheStore)

    def test_get_missing_returns_none(self):
        assert MemoryCache().get("github_data:clients/org-1") is None

    def test_set_then_get(self, tick):
        cache = MemoryCache(clock=tick)
        cache.set("k", [{"id": "1"}], ttl=60)
        assert cache.get("k") == [{"id": "1"}]

    def test_entry_expires_after_ttl(self, tick):
        cache = MemoryCache(clock=tick)
        cache.set("k", [1], ttl=60)
        tick.now += 59
        assert cache.get("k") == [1]
        tick.now += 1
        assert cache.get("k") is None
        assert "k" not in cache.keys()

    def test_ttl_none_never_expires(self, tick):
        cache = MemoryCache(clock=tick)
        cache.set("k", [1])
        tick.now += 10**9
        assert cache.get("k") == [1]

    def test_ttl_zero_stores_nothing(self):
        cache = MemoryCache()
        cache.set("k", [1], ttl=0)
        assert cache.get("k") is None

    def test_returned_value_is_a_copy(self):
        cache = MemoryCache()
        records = [{"id": "1", "name": "Acme"}]
        cache.set("k", records, ttl=60)
        records[0]["name"] = "Changed before read"
        fetched = cache.get("k")
        fetched[0]["name"] = "Changed after read"
        assert cache.get("k") == [{"id": "1", "name": "Acme"}]

    def test_forget_absent_key_is_noop(self):
        cache = MemoryCache()
        cache.forget("never-set")
        cache.forget("never-set")
        assert cache.keys() == []

    def test_stats(self):
        cache = MemoryCache()
        cache.get("k")
        cache.set("k", 1, ttl=60)
        cache.get("k")
        cache.forget("k")
        stats = cache.stats()
        assert (stats.hits, stats.misses, stats.sets, stats.forgets) == (1, 1, 1, 1)

    def test_clear(self):
        cache = MemoryCache()
        cache.set("a", 1, ttl=60)
        cache.set("b", 2, ttl=60)
        cache.clear()
        assert cache.keys() == []


# endregion
# region SqliteCache


class TestSqliteCache:
    def test_satisfies_protocol(self, sqlite_cache):
        assert isinstance(sqlite_cache, CacheStore)

    def test_creates_table(self, sqlite_cache):
        assert SqliteCache.TABLE in sqlite_cache.db.table_names()

    def test_round_trip(self, sqlite_cache):
        sqlite_cache.set("github_data:clients/org-1", [{"id": "c-1"}], ttl=60)
        assert sqlite_cache.get("github_data:clients/org-1") == [{"id": "c-1"}]

    def test_missing_key(self, sqlite_cache):
        assert sqlite_cache.get("nope") is None

    def test_expiry_removes_row(self, sqlite_cache, tick):
        sqlite_cache.set("k", [1], ttl=30)
        tick.now += 30
        assert sqlite_cache.get("k") is None
        assert sqlite_cache.db[SqliteCache.TABLE].count == 0

    def test_set_overwrites(self, sqlite_cache):
        sqlite_cache.set("k", [1], ttl=60)
        sqlite_cache.set("k", [2], ttl=60)
        assert sqlite_cache.get("k") == [2]
        assert sqlite_cache.db[SqliteCache.TABLE].count == 1

    def test_ttl_zero_stores_nothing(self, sqlite_cache):
        sqlite_cache.set("k", [1], ttl=0)
        assert sqlite_cache.get("k") is None

    def test_forget(self, sqlite_cache):
        sqlite_cache.set("k", [1], ttl=60)
        sqlite_cache.forget("k")
        sqlite_cache.forget("k")
        assert sqlite_cache.get("k") is None

    def test_from_path_creates_parent(self, tmp_path):
        cache = SqliteCache.from_path(tmp_path / "nested" / "cache.db")
        cache.set("k", {"a": 1}, ttl=60)
        assert (tmp_path / "nested" / "cache.db").exists()
        assert cache.get("k") == {"a": 1}


# endregion
# region build_cache


class TestBuildCache:
    def test_memory_backend(self, monkeypatch):
        monkeypatch.delenv("REPODATA_CACHE_BACKEND", raising=False)
        assert isinstance(build_cache(CacheSettings(backend="memory")), MemoryCache)

    def test_sqlite_backend(self, monkeypatch, tmp_path):
        monkeypatch.delenv("REPODATA_CACHE_BACKEND", raising=False)
        monkeypatch.delenv("REPODATA_CACHE_PATH", raising=False)
        settings = CacheSettings(backend="sqlite", sqlite_path=tmp_path / "c.db")
        assert isinstance(build_cache(settings), SqliteCache)


# endregion
