"""Generic table access with read-through caching and query building helpers."""

from __future__ import annotations

import contextlib
import copy
import dataclasses
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, ClassVar

from helmsman.database import CacheNotFoundError, PlaceholderError, RecordNotFoundError

__all__ = [
    "Column",
    "Params",
    "Conditions",
    "Repository",
    "DEFAULT_MAX_SIZE",
    "DEFAULT_SORT",
    "IGNORE_COUNT",
    "DEFAULT_EXPIRE_TIME",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000
DEFAULT_SORT = "id DESC"
IGNORE_COUNT = "ignore count"
DEFAULT_EXPIRE_TIME = timedelta(minutes=5)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_OPERATORS = {
    "": "=",
    "=": "=",
    "eq": "=",
    "!=": "<>",
    "neq": "<>",
    ">": ">",
    "gt": ">",
    ">=": ">=",
    "gte": ">=",
    "<": "<",
    "lt": "<",
    "<=": "<=",
    "lte": "<=",
    "like": "LIKE",
    "in": "IN",
    "notin": "NOT IN",
}

_AND_WORDS = frozenset({"", "and", "&", "&&"})
_OR_WORDS = frozenset({"or", "|", "||"})

_TIMESTAMP_FIELDS = frozenset({"created_at", "updated_at", "deleted_at"})


@dataclass
class Column:
    """One filter condition: ``name exp value``, joined to the next by ``logic``."""

    name: str = ""
    exp: str = ""
    value: Any = None
    logic: str = ""

    def _clause(self, whitelist):
        if not self.name:
            raise ValueError("field 'name' cannot be empty")
        if whitelist is not None and self.name not in whitelist:
            raise ValueError(f"field '{self.name}' is not allowed")
        if not _IDENTIFIER.match(self.name):
            raise ValueError(f"invalid field name '{self.name}'")
        operator = _OPERATORS.get((self.exp or "").strip().lower())
        if operator is None:
            raise ValueError(f"unknown exp type '{self.exp}'")
        if operator in ("IN", "NOT IN"):
            if isinstance(self.value, str):
                values = [part.strip() for part in self.value.split(",") if part.strip()]
            elif isinstance(self.value, (list, tuple, set, frozenset)):
                values = list(self.value)
            else:
                values = [self.value]
            if not values:
                raise ValueError(f"field '{self.name}' needs at least one value for {operator}")
            marks = ", ".join("?" for _ in values)
            return f"{self.name} {operator} ({marks})", values
        value = f"%{self.value}%" if operator == "LIKE" else self.value
        return f"{self.name} {operator} ?", [value]

    def _joiner(self):
        logic = (self.logic or "").strip().lower()
        if logic in _AND_WORDS:
            return "AND"
        if logic in _OR_WORDS:
            return "OR"
        raise ValueError(f"unknown logic type '{self.logic}'")


def _build_where(columns, whitelist):
    allowed = None if whitelist is None else frozenset(whitelist)
    sql = ""
    args: list[Any] = []
    joiner = None
    for column in columns:
        clause, values = column._clause(allowed)
        sql = clause if joiner is None else f"{sql} {joiner} {clause}"
        args.extend(values)
        joiner = column._joiner()
    return sql, args


def _order_clause(sort):
    if sort == IGNORE_COUNT:
        return DEFAULT_SORT
    names = (sort or "").replace(" ", "")
    if not names:
        return DEFAULT_SORT
    terms = []
    for name in names.split(","):
        if name.startswith("-") and len(name) > 1:
            column, direction = name[1:], "DESC"
        else:
            column, direction = name, "ASC"
        if not _IDENTIFIER.match(column):
            raise ValueError(f"invalid sort field '{name}'")
        terms.append(f"{column} {direction}")
    return ", ".join(terms)


@dataclass
class Params:
    """Paging, sorting and filtering parameters for a list query."""

    page: int = 0
    limit: int = 0
    sort: str = ""
    columns: list[Column] = field(default_factory=list)

    def to_conditions(self, whitelist=None):
        """Return the WHERE expression and its arguments; an empty filter gives ("", [])."""
        return _build_where(self.columns, whitelist)

    def to_page(self):
        """Return ``(order, limit, offset)`` for the query."""
        page = max(self.page, 0)
        limit = self.limit if 1 <= self.limit <= DEFAULT_MAX_SIZE else DEFAULT_MAX_SIZE
        return _order_clause(self.sort), limit, page * limit


@dataclass
class Conditions:
    """A set of filter conditions for fetching a single record."""

    columns: list[Column] = field(default_factory=list)

    def to_sql(self, whitelist=None):
        """Return the WHERE expression and its arguments; at least one column is required."""
        if not self.columns:
            raise ValueError("columns cannot be empty")
        return _build_where(self.columns, whitelist)


class _Call:
    __slots__ = ("done", "result", "error")

    def __init__(self):
        self.done = threading.Event()
        self.result = None
        self.error: BaseException | None = None


class _SingleFlight:
    """Collapse concurrent calls for the same key into one execution."""

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: dict[str, _Call] = {}

    def do(self, key, fn):
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = _Call()
                self._calls[key] = call
        if leader:
            try:
                call.result = fn()
            except BaseException as exc:  # shared with every waiter
                call.error = exc
            finally:
                with self._lock:
                    del self._calls[key]
                call.done.set()
        else:
            call.done.wait()
        if call.error is not None:
            raise call.error
        return call.result


def _to_db(value):
    return value.isoformat() if isinstance(value, datetime) else value


class Repository:
    """CRUD access to one table, with an optional read-through cache.

    Subclasses set ``model`` (a dataclass), ``table``, ``schema`` (column name to
    SQL declaration) and ``update_fields`` (columns a partial update may change).
    """

    model: ClassVar[type]
    table: ClassVar[str]
    schema: ClassVar[dict[str, str]]
    update_fields: ClassVar[tuple[str, ...]] = ()
    key: ClassVar[str] = "id"
    key_label: ClassVar[str] = "id"
    expire_time: ClassVar[timedelta] = DEFAULT_EXPIRE_TIME
    default_sort: ClassVar[str] = ""

    def __init__(self, db, cache=None):
        self.db = db
        self.cache = cache
        self.column_names = frozenset(self.schema)
        self._fields = tuple(f.name for f in dataclasses.fields(self.model))
        self._select = f"SELECT {', '.join(self._fields)} FROM {self.table}"
        self._flight = _SingleFlight() if cache is not None else None
        if db is not None:
            self._ensure_table()

    def _ensure_table(self):
        columns = ", ".join(f"{name} {decl}" for name, decl in self.schema.items())
        with self.db:
            self.db.execute(f"CREATE TABLE IF NOT EXISTS {self.table} ({columns})")

    def _from_row(self, row):
        values = dict(zip(self._fields, tuple(row)))
        for name in _TIMESTAMP_FIELDS.intersection(values):
            if isinstance(values[name], str):
                values[name] = datetime.fromisoformat(values[name])
        return self.model(**values)

    def _cache_key(self, key_value):
        return f"{self.table}:{key_value}"

    def _delete_cache(self, key_value):
        if self.cache is not None:
            with contextlib.suppress(Exception):
                self.cache.delete(self._cache_key(key_value))

    def _fetch_one(self, conn, key_value):
        row = conn.execute(
            f"{self._select} WHERE {self.key} = ? ORDER BY {self.key} LIMIT 1",
            (key_value,),
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"{self.table}: record not found")
        return self._from_row(row)

    def _insert(self, conn, record):
        now = datetime.now()
        for name in ("created_at", "updated_at"):
            if name in self._fields and getattr(record, name) is None:
                setattr(record, name, now)
        values = {name: _to_db(getattr(record, name)) for name in self._fields}
        auto_key = not values.get(self.key)
        if auto_key:
            values.pop(self.key, None)
        columns = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        cursor = conn.execute(
            f"INSERT INTO {self.table} ({columns}) VALUES ({marks})",
            tuple(values.values()),
        )
        if auto_key:
            setattr(record, self.key, cursor.lastrowid)
        return getattr(record, self.key)

    def _update(self, conn, record):
        key_value = getattr(record, self.key)
        if not key_value or key_value < 1:
            raise ValueError(f"{self.key_label} cannot be 0")
        changes = {
            name: getattr(record, name) for name in self.update_fields if getattr(record, name)
        }
        if "updated_at" in self._fields:
            record.updated_at = datetime.now()
            changes["updated_at"] = record.updated_at
        if not changes:
            return
        assignments = ", ".join(f"{name} = ?" for name in changes)
        conn.execute(
            f"UPDATE {self.table} SET {assignments} WHERE {self.key} = ?",
            (*(_to_db(value) for value in changes.values()), key_value),
        )

    def _delete(self, conn, key_value):
        conn.execute(f"DELETE FROM {self.table} WHERE {self.key} = ?", (key_value,))

    def _load_into_cache(self, key_value):
        cache_key = self._cache_key(key_value)
        try:
            record = self._fetch_one(self.db, key_value)
        except RecordNotFoundError:
            try:
                self.cache.set_placeholder(cache_key)
            except Exception as exc:
                logger.warning("cache.set_placeholder error: %s (%s=%s)", exc, self.key, key_value)
            raise
        try:
            self.cache.set(cache_key, copy.copy(record), self.expire_time)
        except Exception as exc:
            logger.warning("cache.set error: %s (%s=%s)", exc, self.key, key_value)
        return record

    def create(self, record):
        """Insert ``record``; a generated key is written back to it."""
        with self.db:
            self._insert(self.db, record)

    def delete_by_id(self, id):
        """Delete the record with key ``id`` and drop it from the cache."""
        with self.db:
            self._delete(self.db, id)
        self._delete_cache(id)

    def update_by_id(self, record):
        """Update the non-empty fields of ``record`` by its key."""
        try:
            with self.db:
                self._update(self.db, record)
        finally:
            self._delete_cache(getattr(record, self.key))

    def get_by_id(self, id):
        """Return the record with key ``id``; raise RecordNotFoundError if absent."""
        if self.cache is None:
            return self._fetch_one(self.db, id)
        cache_key = self._cache_key(id)
        try:
            return copy.copy(self.cache.get(cache_key))
        except CacheNotFoundError:
            pass
        except PlaceholderError as exc:
            raise RecordNotFoundError(f"{self.table}: record not found") from exc
        record = self._flight.do(cache_key, lambda: self._load_into_cache(id))
        return copy.copy(record)

    def get_by_columns(self, params):
        """Return ``(records, total)`` for a filtered, sorted and paged query."""
        if not params.sort and self.default_sort:
            params.sort = self.default_sort
        try:
            where, args = params.to_conditions(self.column_names)
        except ValueError as exc:
            raise ValueError(f"query params error: {exc}") from exc
        clause = f" WHERE {where}" if where else ""

        total = 0
        if params.sort != IGNORE_COUNT:
            total = self.db.execute(f"SELECT COUNT(*) FROM {self.table}{clause}", args).fetchone()[0]
            if total == 0:
                return [], 0

        order, limit, offset = params.to_page()
        rows = self.db.execute(
            f"{self._select}{clause} ORDER BY {order} LIMIT ? OFFSET ?",
            (*args, limit, offset),
        ).fetchall()
        return [self._from_row(row) for row in rows], total

    def create_by_tx(self, tx, record):
        """Insert ``record`` on connection ``tx`` without committing; return its key."""
        return self._insert(tx, record)

    def delete_by_tx(self, tx, id):
        """Delete by key on connection ``tx`` without committing."""
        self._delete(tx, id)
        self._delete_cache(id)

    def update_by_tx(self, tx, record):
        """Update by key on connection ``tx`` without committing."""
        try:
            self._update(tx, record)
        finally:
            self._delete_cache(getattr(record, self.key))