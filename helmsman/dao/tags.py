"""Trade tags table."""

from __future__ import annotations

from dataclasses import dataclass

from helmsman.dao.accounts import _INT, _TEXT, _Record, _schema
from helmsman.dao.base import Repository

__all__ = ["Tag", "TagsDao"]


@dataclass
class Tag(_Record):
    """A user-defined label that can be attached to trades."""

    user_id: int = 0
    name: str = ""
    color: str = ""


class TagsDao(Repository):
    """Data access for tags."""

    model = Tag
    table = "tags"
    schema = _schema(user_id=_INT, name=_TEXT, color=_TEXT)
    update_fields = ("user_id", "name", "color")