"""Users table, with soft deletion."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import datetime

from helmsman.dao.base import IGNORE_COUNT, Params, Repository
from helmsman.database import PlaceholderError, RecordNotFoundError

__all__ = ["User", "UsersDao"]

logger = logging.getLogger(__name__)

_LIVE = "deleted_at IS NULL"
_TEXT_NOT_NULL = "TEXT NOT NULL DEFAULT ''"


@dataclass
class User:
    """An account holder who logs in to the service."""

    id: int = 0
    username: str = ""
    password_hash: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


class UsersDao(Repository):
    """Data access for users; deletion marks rows with ``deleted_at``."""

    model = User
    table = "users"
    schema = {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "username": _TEXT_NOT_NULL,
        "password_hash": _TEXT_NOT_NULL,
        "created_at": "TEXT",
        "updated_at": "TEXT",
        "deleted_at": "TEXT",
    }
    update_fields = ("username", "password_hash")

    def _fetch_one(self, conn, key_value):
        row = conn.execute(
            f"{self._select} WHERE id = ? AND {_LIVE} ORDER BY id LIMIT 1",
            (key_value,),
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"{self.table}: record not found")
        return self._from_row(row)

    def _fetch_many(self, conn, ids):
        ids = list(ids)
        if not ids:
            return []
        marks = ", ".join("?" for _ in ids)
        rows = conn.execute(
            f"{self._select} WHERE id IN ({marks}) AND {_LIVE}", ids
        ).fetchall()
        return [self._from_row(row) for row in rows]

    def _delete(self, conn, key_value):
        conn.execute(
            f"UPDATE {self.table} SET deleted_at = ? WHERE id = ? AND {_LIVE}",
            (datetime.now().isoformat(), key_value),
        )

    def get_by_columns(self, params):
        """Return ``(records, total)`` of users not deleted, filtered, sorted and paged."""
        try:
            where, args = params.to_conditions(self.column_names)
        except ValueError as exc:
            raise ValueError(f"query params error: {exc}") from exc
        clause = f" WHERE ({where}) AND {_LIVE}" if where else f" WHERE {_LIVE}"

        total = 0
        if params.sort != IGNORE_COUNT:
            total = self.db.execute(
                f"SELECT COUNT(*) FROM {self.table}{clause}", args
            ).fetchone()[0]
            if total == 0:
                return [], 0

        order, limit, offset = params.to_page()
        rows = self.db.execute(
            f"{self._select}{clause} ORDER BY {order} LIMIT ? OFFSET ?",
            (*args, limit, offset),
        ).fetchall()
        return [self._from_row(row) for row in rows], total

    def delete_by_ids(self, ids):
        """Soft-delete every user in ``ids`` and drop them from the cache."""
        ids = list(ids)
        if ids:
            marks = ", ".join("?" for _ in ids)
            with self.db:
                self.db.execute(
                    f"UPDATE {self.table} SET deleted_at = ? WHERE id IN ({marks}) AND {_LIVE}",
                    (datetime.now().isoformat(), *ids),
                )
        for user_id in ids:
            self._delete_cache(user_id)

    def get_by_condition(self, conditions):
        """Return the first user matching ``conditions``; raise RecordNotFoundError if none."""
        where, args = conditions.to_sql(self.column_names)
        row = self.db.execute(
            f"{self._select} WHERE ({where}) AND {_LIVE} ORDER BY id LIMIT 1", args
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"{self.table}: record not found")
        return self._from_row(row)

    def get_by_ids(self, ids):
        """Return a dict of id to user for the ids that exist, using the cache when present."""
        ids = list(ids)
        if self.cache is None:
            return {record.id: record for record in self._fetch_many(self.db, ids)}

        cached = self.cache.multi_get([self._cache_key(user_id) for user_id in ids])
        found = {}
        for user_id in ids:
            key = self._cache_key(user_id)
            if key in cached:
                found[user_id] = copy.copy(cached[key])

        missed = [user_id for user_id in ids if user_id not in found]
        real_missed = []
        for user_id in missed:
            try:
                self.cache.get(self._cache_key(user_id))
            except PlaceholderError:
                continue
            except Exception:
                pass
            real_missed.append(user_id)

        if not real_missed:
            return found

        records = self._fetch_many(self.db, real_missed)
        loaded = set()
        if records:
            for record in records:
                found[record.id] = record
                loaded.add(record.id)
            try:
                self.cache.multi_set(
                    {self._cache_key(r.id): copy.copy(r) for r in records}, self.expire_time
                )
            except Exception as exc:
                logger.warning("cache.multi_set error: %s (ids=%s)", exc, sorted(loaded))
            if len(records) == len(real_missed):
                return found
        for user_id in real_missed:
            if user_id not in loaded:
                try:
                    self.cache.set_placeholder(self._cache_key(user_id))
                except Exception as exc:
                    logger.warning("cache.set_placeholder error: %s (id=%s)", exc, user_id)
        return found

    def get_by_last_id(self, last_id, limit, sort):
        """Return up to ``limit`` users whose id is below ``last_id``, ordered by ``sort``."""
        order, size, _ = Params(page=0, limit=limit, sort=sort).to_page()
        rows = self.db.execute(
            f"{self._select} WHERE id < ? AND {_LIVE} ORDER BY {order} LIMIT ?",
            (last_id, size),
        ).fetchall()
        return [self._from_row(row) for row in rows]

    def delete_by_tx(self, tx, id):
        """Soft-delete by id on connection ``tx`` without committing."""
        self._delete(tx, id)
        self._delete_cache(id)