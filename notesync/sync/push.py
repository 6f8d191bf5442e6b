"""Push processor.

Applies one device push atomically:

1. workspaces (payload list, or the single default workspace),
2. folders in batches, then notes in batches,
3. deletion reconciliation (delta or full-replace),
4. the success audit record,

all in one transaction. On any failure the transaction rolls back and a
separate audit write records the failure before the error propagates.
Exactly one audit record is written per push either way.
"""

from dataclasses import dataclass

from ..database import Database
from ..logging_config import get_logger, log_sync_operation
from ..models import SyncPushRequest
from ..repositories import audit as audit_repo
from ..repositories.transaction import StoreHandle, run_transaction
from .auditing import record_failure
from .reconciler import reconcile, select_deletion_mode
from .types import (
    DeletedIds,
    DeltaDeletion,
    SyncDirection,
    SyncLogRecord,
)
from .upsert import (
    DEFAULT_BATCH_SIZE,
    folder_input,
    normalize_workspaces,
    note_input,
    upsert_folders,
    upsert_notes,
    upsert_workspaces,
)

logger = get_logger("notesync.sync.push")


@dataclass
class PushResult:
    """Outcome of a committed push."""

    mode: str  # "delta" or "full_replace"
    notes_count: int
    folders_count: int
    workspaces_count: int
    deleted: DeletedIds


async def apply_push(
    store: StoreHandle,
    user_id: str,
    payload: SyncPushRequest,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> PushResult:
    """Run every push step on ``store``; the caller owns the transaction."""
    workspaces = normalize_workspaces(payload.workspaces)
    folders = [folder_input(item) for item in payload.folders]
    notes = [note_input(item) for item in payload.notes]

    # Workspaces before folders before notes so references resolve
    await upsert_workspaces(store, user_id, workspaces)
    await upsert_folders(store, user_id, folders, batch_size)
    await upsert_notes(store, user_id, notes, batch_size)

    mode = select_deletion_mode(payload, workspaces)
    deleted = await reconcile(store, user_id, mode)

    result = PushResult(
        mode="delta" if isinstance(mode, DeltaDeletion) else "full_replace",
        notes_count=len(notes),
        folders_count=len(folders),
        workspaces_count=len(workspaces),
        deleted=deleted,
    )
    await audit_repo.create_sync_log(
        store,
        SyncLogRecord(
            user_id=user_id,
            direction=SyncDirection.push,
            succeeded=True,
            notes_count=result.notes_count,
            folders_count=result.folders_count,
            workspaces_count=result.workspaces_count,
        ),
    )
    return result


async def push_sync(
    database: Database,
    user_id: str,
    payload: SyncPushRequest,
    batch_size: int = DEFAULT_BATCH_SIZE,
    timeout: float | None = None,
) -> PushResult:
    """Apply a push atomically and audit it.

    Store errors are not swallowed or rewrapped: the original exception
    propagates after the failure audit record is written.
    """
    notes_count = len(payload.notes)
    folders_count = len(payload.folders)
    # A synthesized default workspace counts as one
    workspaces_count = len(payload.workspaces or ()) or 1

    logger.info(
        f"PUSH | {user_id} | notes={notes_count} folders={folders_count} "
        f"workspaces={workspaces_count}"
    )
    try:
        result = await run_transaction(
            database,
            lambda store: apply_push(store, user_id, payload, batch_size),
            timeout=timeout,
        )
    except Exception as e:
        error_message = str(e) or type(e).__name__
        logger.error(f"PUSH FAILED | {user_id} | {error_message}")
        await record_failure(
            database,
            SyncLogRecord(
                user_id=user_id,
                direction=SyncDirection.push,
                succeeded=False,
                error_message=error_message,
                notes_count=notes_count,
                folders_count=folders_count,
                workspaces_count=workspaces_count,
            ),
        )
        raise

    log_sync_operation(
        user_id,
        "push",
        True,
        mode=result.mode,
        notes=result.notes_count,
        folders=result.folders_count,
        workspaces=result.workspaces_count,
        deleted=result.deleted.total(),
    )
    return result
