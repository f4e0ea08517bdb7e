"""Trading accounts table, plus the key and timestamp columns every journal table shares."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from helmsman.dao.base import Repository

__all__ = ["Account", "AccountsDao"]

_INT = "INTEGER NOT NULL DEFAULT 0"
_TEXT = "TEXT NOT NULL DEFAULT ''"


@dataclass
class _Record:
    """Surrogate key and bookkeeping timestamps common to the journal tables."""

    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _schema(**columns: str) -> dict[str, str]:
    """Return column definitions with the shared key and timestamps in front."""
    return {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "created_at": "TEXT",
        "updated_at": "TEXT",
        **columns,
    }


@dataclass
class Account(_Record):
    """A trading account owned by a user."""

    user_id: int = 0
    name: str = ""
    initial_balance: float = 0.0
    currency: str = ""


class AccountsDao(Repository):
    """Data access for accounts."""

    model = Account
    table = "accounts"
    schema = _schema(
        user_id=_INT,
        name=_TEXT,
        initial_balance="REAL NOT NULL DEFAULT 0",
        currency=_TEXT,
    )
    update_fields = ("user_id", "name", "initial_balance", "currency")