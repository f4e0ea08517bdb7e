"""Trade snapshot images table."""

from __future__ import annotations

from dataclasses import dataclass

from helmsman.dao.accounts import _INT, _TEXT, _Record, _schema
from helmsman.dao.base import Repository

__all__ = ["Snapshot", "SnapshotsDao"]


@dataclass
class Snapshot(_Record):
    """An image attached to a trade."""

    trade_id: int = 0
    type: str = ""
    image_url: str = ""


class SnapshotsDao(Repository):
    """Data access for snapshots."""

    model = Snapshot
    table = "snapshots"
    schema = _schema(trade_id=_INT, type=_TEXT, image_url=_TEXT)
    update_fields = ("trade_id", "type", "image_url")