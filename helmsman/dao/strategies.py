"""Trading strategies table."""

from __future__ import annotations

from dataclasses import dataclass

from helmsman.dao.accounts import _INT, _TEXT, _Record, _schema
from helmsman.dao.base import Repository

__all__ = ["Strategy", "StrategiesDao"]


@dataclass
class Strategy(_Record):
    """A named trading strategy belonging to a user."""

    user_id: int = 0
    name: str = ""
    description: str = ""


class StrategiesDao(Repository):
    """Data access for strategies."""

    model = Strategy
    table = "strategies"
    schema = _schema(user_id=_INT, name=_TEXT, description=_TEXT)
    update_fields = ("user_id", "name", "description")