"""Repositories for the journal's tables, built on a shared cached base repository."""

__all__ = [
    "accounts",
    "base",
    "snapshots",
    "strategies",
    "tags",
    "trade_tags",
    "trades",
    "users",
]