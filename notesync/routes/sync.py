"""Sync routes: push local state, pull pages, probe last activity."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ..auth import SyncUser
from ..config import Settings, get_settings
from ..database import DatabaseDep
from ..errors import InvalidCursorError
from ..logging_config import get_logger
from ..models import SyncPullResponse, SyncPushRequest, SyncStatusResponse
from ..rate_limit import limiter, status_rate_limit, sync_rate_limit
from ..sync.pull import get_sync_status, pull_sync
from ..sync.push import push_sync

logger = get_logger("notesync.routes.sync")
router = APIRouter(prefix="/sync", tags=["sync"])

SettingsDep = Annotated[Settings, Depends(get_settings)]


def parse_int_param(value: str | None) -> int | None:
    """Lenient integer query parameter: anything unparseable counts as absent."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


@router.post("", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(sync_rate_limit)
async def push_changes(
    request: Request,
    payload: SyncPushRequest,
    auth: SyncUser,
    db: DatabaseDep,
    settings: SettingsDep,
):
    """
    Push the device's local state.

    Without any ``deleted*Ids`` key the push is a full replace: anything the
    server holds that the payload does not list is deleted. With one of
    those keys only the listed ids are deleted.
    """
    try:
        await push_sync(
            db,
            auth.user_id,
            payload,
            batch_size=settings.sync_batch_size,
            timeout=settings.transaction_timeout_seconds,
        )
    except Exception as e:
        # Log full error server-side; return generic message to the client
        logger.error(f"PUSH ERROR | {auth.user_id} | {type(e).__name__}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Sync failed",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=SyncPullResponse)
@limiter.limit(sync_rate_limit)
async def pull_changes(
    request: Request,
    auth: SyncUser,
    db: DatabaseDep,
    settings: SettingsDep,
    limit: str | None = None,
    cursor: str | None = None,
    since: str | None = None,
):
    """
    Pull one page of server state.

    The first page (no cursor) also carries folders, workspaces and, when
    ``since`` is given, the ids deleted after it. Follow ``nextCursor``
    until it is absent.
    """
    try:
        return await pull_sync(
            db,
            auth.user_id,
            limit=parse_int_param(limit),
            cursor=cursor,
            since=parse_int_param(since),
            default_limit=settings.pull_default_limit,
            max_limit=settings.pull_max_limit,
            timeout=settings.transaction_timeout_seconds,
        )
    except InvalidCursorError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"PULL ERROR | {auth.user_id} | {type(e).__name__}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Sync failed",
        )


@router.get("/status", response_model=SyncStatusResponse)
@limiter.limit(status_rate_limit)
async def sync_status(
    request: Request,
    auth: SyncUser,
    db: DatabaseDep,
):
    """Epoch ms of the user's latest push or pull, 0 if there was none."""
    return await get_sync_status(db, auth.user_id)
