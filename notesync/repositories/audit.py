"""Sync audit log: one row per push or pull attempt."""

import threading

from sqlalchemy import func, select

from ..schema import sync_log
from ..sync.types import SyncLogRecord
from .base import now_ms
from .transaction import StoreHandle

_clock_lock = threading.Lock()
_last_issued_ms = 0


def next_log_timestamp() -> int:
    """Epoch ms for a new audit row, never lower than the previous one.

    Keeps the status probe monotone within a process even if the wall
    clock steps backwards.
    """
    global _last_issued_ms
    with _clock_lock:
        _last_issued_ms = max(now_ms(), _last_issued_ms)
        return _last_issued_ms


async def create_sync_log(store: StoreHandle, record: SyncLogRecord) -> int:
    """Write one audit row and return its timestamp."""
    created_at = next_log_timestamp()
    await store.execute(
        sync_log.insert().values(
            user_id=record.user_id,
            direction=record.direction.value,
            succeeded=record.succeeded,
            error_message=record.error_message,
            notes_count=record.notes_count,
            folders_count=record.folders_count,
            workspaces_count=record.workspaces_count,
            created_at=created_at,
        )
    )
    return created_at


async def get_last_sync_activity_at(store: StoreHandle, user_id: str) -> int | None:
    """Most recent audit timestamp (either direction) for the user."""
    result = await store.execute(
        select(func.max(sync_log.c.created_at)).where(sync_log.c.user_id == user_id)
    )
    return result.scalar()

