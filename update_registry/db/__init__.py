"""Persistence layer: async SQLite database and repositories."""

from update_registry.db.database import Database

__all__ = ["Database"]
