"""Audit writes made outside the sync transaction."""

from ..database import Database
from ..logging_config import get_logger, log_sync_operation
from ..repositories import audit as audit_repo
from ..repositories.transaction import standalone
from .types import SyncLogRecord

logger = get_logger("notesync.sync.audit")


async def record_failure(database: Database, record: SyncLogRecord) -> None:
    """Write a failure audit row after the sync transaction rolled back.

    If this write fails too it is only logged; the caller re-raises the
    original error.
    """
    try:
        async with standalone(database) as store:
            await audit_repo.create_sync_log(store, record)
    except Exception as e:
        logger.error(
            f"Failed to write {record.direction.value} failure audit for {record.user_id}: {e}"
        )
    log_sync_operation(
        record.user_id,
        record.direction.value,
        False,
        error=record.error_message,
    )
