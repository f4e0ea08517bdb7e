import sqlite3
import time
from datetime import timedelta

import pytest

from helmsman import database
from helmsman.database import (
    CacheNotFoundError,
    MemoryCache,
    PlaceholderError,
    RecordNotFoundError,
)


@pytest.fixture(autouse=True)
def _clean_state():
    yield
    database.close_db()
    database.close_redis()


def test_cache_set_and_get():
    cache = MemoryCache()
    cache.set(1, {"name": "alpha"}, 60)
    assert cache.get(1) == {"name": "alpha"}


def test_cache_miss_raises():
    cache = MemoryCache()
    with pytest.raises(CacheNotFoundError):
        cache.get("absent")


def test_cache_placeholder():
    cache = MemoryCache()
    cache.set_placeholder(5)
    with pytest.raises(PlaceholderError):
        cache.get(5)
    assert cache.multi_get([5]) == {}


def test_cache_delete():
    cache = MemoryCache()
    cache.set("k", "v", timedelta(seconds=30))
    cache.delete("k")
    cache.delete("never-there")
    with pytest.raises(CacheNotFoundError):
        cache.get("k")


def test_cache_expiry():
    cache = MemoryCache()
    cache.set("short", "v", 0.05)
    assert cache.get("short") == "v"
    time.sleep(0.1)
    with pytest.raises(CacheNotFoundError):
        cache.get("short")


def test_cache_zero_ttl_never_expires():
    cache = MemoryCache()
    cache.set("forever", "v", 0)
    time.sleep(0.01)
    assert cache.get("forever") == "v"


def test_cache_multi_roundtrip():
    cache = MemoryCache()
    items = {1: "a", 2: "b", 3: "c"}
    cache.multi_set(items, 60)
    cache.set_placeholder(4)
    assert cache.multi_get([1, 2, 3, 4, 5]) == items


def test_cache_errors_are_lookup_errors():
    cache = MemoryCache()
    with pytest.raises(LookupError) as missing:
        cache.get("absent")
    assert isinstance(missing.value, CacheNotFoundError)
    cache.set_placeholder("hole")
    with pytest.raises(LookupError) as hole:
        cache.get("hole")
    assert isinstance(hole.value, PlaceholderError)
    assert issubclass(RecordNotFoundError, LookupError)


def test_init_db_sqlite_roundtrip(tmp_path):
    conn = database.init_db("SQLite", tmp_path / "data.db")
    assert database.get_db() is conn
    conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
    conn.execute("INSERT INTO t (name) VALUES (?)", ("alpha",))
    row = conn.execute("SELECT id, name FROM t").fetchone()
    assert (row["id"], row["name"]) == (1, "alpha")


def test_init_db_rejects_unknown_driver(tmp_path):
    with pytest.raises(ValueError):
        database.init_db("mysql", tmp_path / "x.db")


def test_close_db_then_get_raises(tmp_path):
    conn = database.init_db("sqlite", tmp_path / "data.db")
    database.close_db()
    with pytest.raises(RuntimeError):
        database.get_db()
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")


def test_init_sqlite_returns_rows_by_name(tmp_path):
    conn = database.init_sqlite(tmp_path / "s.db")
    try:
        row = conn.execute("SELECT 42 AS answer").fetchone()
        assert row["answer"] == 42
    finally:
        conn.close()


def test_redis_client_missing_raises():
    with pytest.raises(RuntimeError):
        database.get_redis_client()


def test_init_redis_bad_dsn_raises():
    with pytest.raises(RuntimeError):
        database.init_redis("not-a-url", 0.5, 0.5, 0.5)


def test_init_cache_memory():
    selected = database.init_cache("memory")
    assert database.get_cache_type() is selected
    assert selected.ctype == "memory"
    assert selected.rdb is None


def test_init_cache_redis_requires_client():
    with pytest.raises(RuntimeError):
        database.init_cache("redis")