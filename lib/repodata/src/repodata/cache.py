# region Docstring
"""
repodata.cache
Keyed TTL stores holding decoded bucket listings.
Overview:
- The provider and the webhook invalidator only need three operations on a cache:
    get(key), set(key, value, ttl) and forget(key). Any store offering them satisfies
    the CacheStore protocol.
- Two stores are provided: an in-process MemoryCache and a process-external SqliteCache
    (sqlite-utils) that several worker processes can share.
Contents:
- CacheStore: runtime-checkable Protocol for cache implementations.
- CacheStatistics: Pydantic model with hit/miss/set/forget counters.
- MemoryCache: dict-backed store with monotonic-clock expiry, guarded by a Lock.
- SqliteCache: sqlite-utils table `bucket_cache` with JSON values and an epoch expiry.
- build_cache(settings): selects a store from CacheSettings.
Design Notes:
- Values are copied on the way in and out so callers mutating returned records never
    alter a cached bucket.
- A ttl of None stores without expiry; a ttl <= 0 stores nothing.
- Forgetting a key that is not present is a no-op.
"""
# endregion
# region Imports
import copy
import json
import logging
import sqlite3
import time
from threading import Lock
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

from pydantic import BaseModel, Field
from sqlite_utils import Database
from sqlite_utils.db import NotFoundError as RowNotFound

from repodata.config import CacheSettings

logger = logging.getLogger(__name__)

# endregion
# region Protocol and Models


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for bucket cache implementations."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None: ...

    def forget(self, key: str) -> None: ...


class CacheStatistics(BaseModel):
    """Cache counters."""

    hits: int = Field(0, description="Reads answered from the cache")
    misses: int = Field(0, description="Reads that found no live entry")
    sets: int = Field(0, description="Entries written")
    forgets: int = Field(0, description="Explicit evictions requested")


# endregion
# region MemoryCache


class MemoryCache:
    """Process-wide cache backed by a dict."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[Optional[float], Any]] = {}
        self._stats = CacheStatistics()
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            expires_at, value = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[key]
                self._stats.misses += 1
                return None
            self._stats.hits += 1
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        if ttl is not None and ttl <= 0:
            return
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self._entries[key] = (expires_at, copy.deepcopy(value))
            self._stats.sets += 1

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._stats.forgets += 1
        logger.debug(f"Forgot cache key {key}")

    def keys(self) -> list[str]:
        """Keys currently stored, expired or not."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStatistics:
        with self._lock:
            return self._stats.model_copy()


# endregion
# region SqliteCache


class SqliteCache:
    """
    Cache stored in a SQLite table, shareable between processes on one host.

    Attributes:
        db (Database): sqlite-utils database holding the `bucket_cache` table.
    """

    TABLE = "bucket_cache"

    def __init__(self, db: Database, clock: Callable[[], float] = time.time) -> None:
        self.db = db
        self._clock = clock
        self._lock = Lock()
        self.db[self.TABLE].create(
            {"key": str, "value": str, "expires_at": float},
            pk="key",
            if_not_exists=True,
        )

    @classmethod
    def from_path(cls, path) -> "SqliteCache":
        """Open (or create) a cache database file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(Database(sqlite3.connect(str(path), check_same_thread=False)))

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            try:
                row = self.db[self.TABLE].get(key)
            except RowNotFound:
                return None
            expires_at = row.get("expires_at")
            if expires_at is not None and self._clock() >= expires_at:
                self.db[self.TABLE].delete_where("key = ?", [key])
                return None
            return json.loads(row["value"])

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        if ttl is not None and ttl <= 0:
            return
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self.db[self.TABLE].upsert(
                {"key": key, "value": json.dumps(value), "expires_at": expires_at},
                pk="key",
            )

    def forget(self, key: str) -> None:
        with self._lock:
            self.db[self.TABLE].delete_where("key = ?", [key])
        logger.debug(f"Forgot cache key {key}")


# endregion
# region Factory


def build_cache(settings: CacheSettings) -> CacheStore:
    """Create the cache store selected by settings."""
    if settings.backend == "sqlite":
        logger.info(f"Using sqlite bucket cache at {settings.sqlite_path}")
        return SqliteCache.from_path(settings.sqlite_path)
    return MemoryCache()


# endregion
