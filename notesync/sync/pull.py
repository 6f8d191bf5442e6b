"""Pull paginator and sync status.

The first page (no cursor) carries the full folder and workspace sets and,
when ``since`` is given, the tombstones recorded after it. Later pages
carry notes only. Notes are seek-paginated on
``(last_modified desc, client_id desc)``.
"""

from ..database import Database
from ..errors import InvalidCursorError
from ..logging_config import get_logger, log_sync_operation
from ..models import (
    EPOCH_MS_MAX,
    EPOCH_MS_MIN,
    FolderOut,
    NoteOut,
    SyncPullResponse,
    SyncStatusResponse,
    WorkspaceOut,
)
from ..repositories import audit as audit_repo
from ..repositories import folders as folders_repo
from ..repositories import notes as notes_repo
from ..repositories import tombstones as tombstones_repo
from ..repositories import workspaces as workspaces_repo
from ..repositories.transaction import StoreHandle, run_transaction
from .auditing import record_failure
from .cursor import SyncCursor, decode_cursor, encode_cursor
from .types import DeletedIds, SyncDirection, SyncLogRecord
from .upsert import gather_settled

logger = get_logger("notesync.sync.pull")

DEFAULT_PULL_LIMIT = 1000
MAX_PULL_LIMIT = 5000


def clamp_limit(
    limit: int | None,
    default: int = DEFAULT_PULL_LIMIT,
    maximum: int = MAX_PULL_LIMIT,
) -> int:
    if limit is None:
        limit = default
    return max(1, min(limit, maximum))


# =============================================================================
# Row conversion
# =============================================================================


def note_out(row) -> NoteOut:
    return NoteOut(
        id=row.client_id,
        content=row.content,
        last_modified=row.last_modified,
        created_at=row.created_at,
        workspace_id=row.workspace_id,
        display_name=row.display_name,
        folder_id=row.folder_id,
        deleted_at=row.deleted_at,
        color=row.color,
        is_bookmarked=row.is_bookmarked,
        share_code=row.share_code,
    )


def folder_out(row) -> FolderOut:
    return FolderOut(
        id=row.client_id,
        name=row.name,
        parent_id=row.parent_id,
        created_at=row.created_at,
        workspace_id=row.workspace_id,
        display_name=row.display_name,
        color=row.color,
    )


def workspace_out(row) -> WorkspaceOut:
    # Empty color/icon strings are treated as absent
    return WorkspaceOut(
        id=row.client_id,
        name=row.name,
        is_default=row.is_default,
        updated_at=row.updated_at,
        color=row.color or None,
        icon=row.icon or None,
    )


# =============================================================================
# Pull
# =============================================================================


async def _first_page(
    store: StoreHandle, user_id: str, limit: int, since: int | None
) -> SyncPullResponse:
    async def deleted_since() -> DeletedIds:
        if since is None or since <= 0:
            return DeletedIds()
        return await tombstones_repo.find_deleted_since(store, user_id, since)

    page, folder_rows, workspace_rows, deleted = await gather_settled(
        [
            notes_repo.find_notes_page(store, user_id, limit),
            folders_repo.find_folders_by_user_id(store, user_id),
            workspaces_repo.find_workspaces_by_user_id(store, user_id),
            deleted_since(),
        ]
    )
    response = SyncPullResponse(
        notes=[note_out(row) for row in page.rows],
        folders=[folder_out(row) for row in folder_rows],
        workspaces=[workspace_out(row) for row in workspace_rows],
        next_cursor=encode_cursor(page.next_cursor) if page.next_cursor else None,
        deleted_note_ids=deleted.note_ids or None,
        deleted_folder_ids=deleted.folder_ids or None,
        deleted_workspace_ids=deleted.workspace_ids or None,
    )
    await audit_repo.create_sync_log(
        store,
        SyncLogRecord(
            user_id=user_id,
            direction=SyncDirection.pull,
            succeeded=True,
            notes_count=len(response.notes),
            folders_count=len(response.folders),
            workspaces_count=len(response.workspaces),
        ),
    )
    return response


async def _next_page(
    store: StoreHandle, user_id: str, limit: int, cursor: SyncCursor
) -> SyncPullResponse:
    page = await notes_repo.find_notes_page(store, user_id, limit, cursor)
    return SyncPullResponse(
        notes=[note_out(row) for row in page.rows],
        folders=[],
        workspaces=[],
        next_cursor=encode_cursor(page.next_cursor) if page.next_cursor else None,
    )


async def pull_sync(
    database: Database,
    user_id: str,
    limit: int | None = None,
    cursor: str | None = None,
    since: int | None = None,
    default_limit: int = DEFAULT_PULL_LIMIT,
    max_limit: int = MAX_PULL_LIMIT,
    timeout: float | None = None,
) -> SyncPullResponse:
    """Return one page of the user's state.

    Raises:
        InvalidCursorError: ``cursor`` is non-empty but does not decode.
    """
    limit = clamp_limit(limit, default_limit, max_limit)
    # A since outside the storable range is treated as not given
    if since is not None and not EPOCH_MS_MIN <= since <= EPOCH_MS_MAX:
        since = None

    if cursor:
        decoded = decode_cursor(cursor)
        if decoded is None:
            logger.warning(f"PULL | {user_id} | rejected invalid cursor")
            raise InvalidCursorError(cursor)
        response = await run_transaction(
            database,
            lambda store: _next_page(store, user_id, limit, decoded),
            timeout=timeout,
        )
        logger.debug(f"PULL | {user_id} | page notes={len(response.notes)}")
        return response

    logger.info(f"PULL | {user_id} | limit={limit} since={since}")
    try:
        response = await run_transaction(
            database,
            lambda store: _first_page(store, user_id, limit, since),
            timeout=timeout,
        )
    except Exception as e:
        error_message = str(e) or type(e).__name__
        logger.error(f"PULL FAILED | {user_id} | {error_message}")
        await record_failure(
            database,
            SyncLogRecord(
                user_id=user_id,
                direction=SyncDirection.pull,
                succeeded=False,
                error_message=error_message,
            ),
        )
        raise

    log_sync_operation(
        user_id,
        "pull",
        True,
        notes=len(response.notes),
        folders=len(response.folders),
        workspaces=len(response.workspaces),
        deleted=(
            len(response.deleted_note_ids or ())
            + len(response.deleted_folder_ids or ())
            + len(response.deleted_workspace_ids or ())
        ),
        more=int(response.next_cursor is not None),
    )
    return response


async def get_sync_status(database: Database, user_id: str) -> SyncStatusResponse:
    """Latest push or pull time for the user, 0 when there is none."""
    async with database.engine.connect() as conn:
        last = await audit_repo.get_last_sync_activity_at(StoreHandle(conn), user_id)
    return SyncStatusResponse(last_updated_at=last or 0)
