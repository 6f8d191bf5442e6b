"""Helpers shared by the repository modules."""

import time

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite

from .transaction import StoreHandle

# Default chunk for IN (...) lists; stays under SQLite's bound-parameter limit
IN_CLAUSE_CHUNK = 500


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def upsert_insert(store: StoreHandle, table: Table):
    """Return a dialect INSERT supporting ``on_conflict_do_update``."""
    if store.dialect_name == "postgresql":
        return postgresql.insert(table)
    if store.dialect_name == "sqlite":
        return sqlite.insert(table)
    raise ValueError(f"Unsupported dialect for upsert: {store.dialect_name}")


def chunked(items: list, size: int) -> list[list]:
    """Split a list into consecutive chunks of at most ``size`` items."""
    if size < 1:
        raise ValueError("size must be >= 1")
    return [items[i : i + size] for i in range(0, len(items), size)]
