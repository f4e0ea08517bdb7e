"""Database and cache clients: SQLite connection, Redis client and an in-memory cache."""

from __future__ import annotations

import sqlite3
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import redis

__all__ = [
    "RecordNotFoundError",
    "CacheNotFoundError",
    "PlaceholderError",
    "CacheType",
    "MemoryCache",
    "init_sqlite",
    "init_db",
    "get_db",
    "close_db",
    "init_redis",
    "get_redis_client",
    "close_redis",
    "init_cache",
    "get_cache_type",
]

DRIVER_SQLITE = "sqlite"
PLACEHOLDER_TTL = timedelta(minutes=10)


class RecordNotFoundError(LookupError):
    """No record matched the query."""


class CacheNotFoundError(LookupError):
    """The key is not present in the cache."""


class PlaceholderError(LookupError):
    """The key holds a placeholder marking a record known to be absent."""


@dataclass
class CacheType:
    """Which cache backend is in use; ``rdb`` is required when ``ctype`` is "redis"."""

    ctype: str
    rdb: Any = None


_PLACEHOLDER = object()


def _seconds(ttl):
    if ttl is None:
        return None
    if isinstance(ttl, timedelta):
        ttl = ttl.total_seconds()
    return ttl if ttl > 0 else None


class MemoryCache:
    """A thread-safe key/value cache with per-entry expiry and placeholders."""

    def __init__(self):
        self._entries: dict[Any, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()

    def _lookup(self, key):
        entry = self._entries.get(key)
        if entry is None:
            raise CacheNotFoundError(key)
        value, expires = entry
        if expires is not None and time.monotonic() >= expires:
            del self._entries[key]
            raise CacheNotFoundError(key)
        return value

    def _store(self, key, value, ttl):
        seconds = _seconds(ttl)
        expires = None if seconds is None else time.monotonic() + seconds
        self._entries[key] = (value, expires)

    def get(self, key):
        """Return the cached value; raise CacheNotFoundError or PlaceholderError."""
        with self._lock:
            value = self._lookup(key)
        if value is _PLACEHOLDER:
            raise PlaceholderError(key)
        return value

    def set(self, key, value, ttl):
        """Store ``value`` for ``ttl`` seconds (or a timedelta); zero or None never expires."""
        with self._lock:
            self._store(key, value, ttl)

    def set_placeholder(self, key):
        """Mark ``key`` as absent for ten minutes."""
        with self._lock:
            self._store(key, _PLACEHOLDER, PLACEHOLDER_TTL)

    def delete(self, key):
        """Remove ``key``; removing a missing key is not an error."""
        with self._lock:
            self._entries.pop(key, None)

    def multi_get(self, keys):
        """Return a dict of the keys that hold real values, skipping misses and placeholders."""
        found = {}
        with self._lock:
            for key in keys:
                try:
                    value = self._lookup(key)
                except CacheNotFoundError:
                    continue
                if value is not _PLACEHOLDER:
                    found[key] = value
        return found

    def multi_set(self, items, ttl):
        """Store every key/value pair of the mapping ``items``."""
        with self._lock:
            for key, value in items.items():
                self._store(key, value, ttl)


_state_lock = threading.RLock()
_db: sqlite3.Connection | None = None
_redis_client: redis.Redis | None = None
_cache_type: CacheType | None = None


def init_sqlite(db_file):
    """Open a SQLite connection to ``db_file``."""
    try:
        conn = sqlite3.connect(str(db_file), check_same_thread=False)
    except sqlite3.Error as exc:
        raise RuntimeError(f"init sqlite error: {exc}") from exc
    conn.row_factory = sqlite3.Row
    return conn


def init_db(driver, db_file):
    """Connect the shared database for ``driver``; only sqlite is supported."""
    global _db
    if str(driver).lower() != DRIVER_SQLITE:
        raise ValueError(
            "init_db error, please set a supported 'database' driver in the configuration"
        )
    with _state_lock:
        if _db is not None:
            _db.close()
        _db = init_sqlite(db_file)
        return _db


def get_db():
    """Return the shared database connection."""
    with _state_lock:
        if _db is None:
            raise RuntimeError("database is not initialised, call init_db first")
        return _db


def close_db():
    """Close the shared database connection if one is open."""
    global _db
    with _state_lock:
        if _db is not None:
            _db.close()
            _db = None


def init_redis(dsn, dial_timeout=10, read_timeout=2, write_timeout=2):
    """Connect the shared Redis client; timeouts are in seconds."""
    global _redis_client
    try:
        client = redis.Redis.from_url(
            dsn,
            socket_connect_timeout=dial_timeout,
            socket_timeout=max(read_timeout, write_timeout),
        )
        client.ping()
    except (redis.RedisError, ValueError, OSError) as exc:
        raise RuntimeError(f"redis init error: {exc}") from exc
    with _state_lock:
        if _redis_client is not None:
            _redis_client.close()
        _redis_client = client
    return client


def get_redis_client():
    """Return the shared Redis client."""
    with _state_lock:
        if _redis_client is None:
            raise RuntimeError("redis is not initialised, call init_redis first")
        return _redis_client


def close_redis():
    """Close the shared Redis client if one is open."""
    global _redis_client
    with _state_lock:
        if _redis_client is not None:
            _redis_client.close()
            _redis_client = None


def init_cache(cache_type):
    """Select the cache backend; "redis" requires an initialised Redis client."""
    global _cache_type
    selected = CacheType(ctype=cache_type)
    if cache_type == "redis":
        selected.rdb = get_redis_client()
    with _state_lock:
        _cache_type = selected
    return selected


def get_cache_type():
    """Return the selected cache backend."""
    with _state_lock:
        if _cache_type is None:
            raise RuntimeError("cache is not initialised, call init_cache first")
        return _cache_type