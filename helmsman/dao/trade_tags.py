"""Links between trades and tags, keyed by trade id."""

from __future__ import annotations

from dataclasses import dataclass

from helmsman.dao.base import Repository

__all__ = ["TradeTag", "TradeTagsDao"]


@dataclass
class TradeTag:
    """A tag attached to a trade."""

    trade_id: int = 0
    tag_id: int = 0


class TradeTagsDao(Repository):
    """Data access for trade/tag links, addressed by ``trade_id``."""

    model = TradeTag
    table = "trade_tags"
    schema = {
        "trade_id": "INTEGER NOT NULL DEFAULT 0",
        "tag_id": "INTEGER NOT NULL DEFAULT 0",
    }
    update_fields = ("trade_id", "tag_id")
    key = "trade_id"
    key_label = "tradeID"
    default_sort = "-trade_id"

    def delete_by_trade_id(self, trade_id):
        """Delete the links of ``trade_id`` and drop them from the cache."""
        self.delete_by_id(trade_id)

    def update_by_trade_id(self, record):
        """Update the non-empty fields of ``record`` by its trade id."""
        self.update_by_id(record)

    def get_by_trade_id(self, trade_id):
        """Return the link of ``trade_id``; raise RecordNotFoundError if absent."""
        return self.get_by_id(trade_id)