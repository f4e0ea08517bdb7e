"""Data access layer for a trading journal: SQLite repositories, caching and error codes."""

__version__ = "0.1.0"