"""Entity upsert engine.

Turns validated push items into repository inputs and fans the upserts
out: workspaces all at once, folders and notes in sequential batches whose
items run concurrently. Batches cap how many store operations are pending
at a time for users with large local state.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from ..models import SyncFolderItem, SyncNoteItem, SyncWorkspaceItem
from ..repositories import folders as folders_repo
from ..repositories import notes as notes_repo
from ..repositories import workspaces as workspaces_repo
from ..repositories.base import chunked
from ..repositories.transaction import StoreHandle
from .types import UNSET, FolderInput, NoteInput, WorkspaceInput

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 100
DEFAULT_WORKSPACE_CLIENT_ID = "workspace_1"
DEFAULT_WORKSPACE_NAME = "Workspace 1"


def _provided(item, field_name: str):
    """Field value if the client sent it (null included), else UNSET."""
    if field_name in item.model_fields_set:
        return getattr(item, field_name)
    return UNSET


def default_workspace() -> WorkspaceInput:
    return WorkspaceInput(
        client_id=DEFAULT_WORKSPACE_CLIENT_ID,
        name=DEFAULT_WORKSPACE_NAME,
        is_default=True,
    )


def workspace_input(item: SyncWorkspaceItem) -> WorkspaceInput:
    return WorkspaceInput(
        client_id=item.id,
        name=item.name,
        is_default=item.is_default,
        color=_provided(item, "color"),
        icon=_provided(item, "icon"),
    )


def folder_input(item: SyncFolderItem) -> FolderInput:
    return FolderInput(
        client_id=item.id,
        name=item.name,
        workspace_id=item.workspace_id,
        created_at=item.created_at,
        parent_id=_provided(item, "parent_id"),
        display_name=_provided(item, "display_name"),
        color=_provided(item, "color"),
    )


def note_input(item: SyncNoteItem) -> NoteInput:
    return NoteInput(
        client_id=item.id,
        content=item.content,
        last_modified=item.last_modified,
        created_at=item.created_at,
        workspace_id=item.workspace_id or DEFAULT_WORKSPACE_CLIENT_ID,
        deleted_at=item.deleted_at,
        display_name=_provided(item, "display_name"),
        folder_id=_provided(item, "folder_id"),
        color=_provided(item, "color"),
        is_bookmarked=_provided(item, "is_bookmarked"),
    )


def normalize_workspaces(items: Sequence[SyncWorkspaceItem] | None) -> list[WorkspaceInput]:
    """The payload's workspaces, or the single default one when none were sent.

    A workspace id sent more than once keeps its last entry.
    """
    if not items:
        return [default_workspace()]
    by_id = {}
    for item in items:
        by_id[item.id] = workspace_input(item)
    return list(by_id.values())


async def gather_settled(aws: Sequence[Awaitable[T]]) -> list[T]:
    """Await all of ``aws`` concurrently, then raise the first failure if any.

    Every awaitable has finished before an error is raised, so nothing is
    still using the connection when the transaction rolls back.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


async def run_in_batches(
    items: Sequence[T],
    batch_size: int,
    fn: Callable[[T], Awaitable[object]],
) -> int:
    """Run ``fn`` over ``items``: batches in order, items of a batch concurrently.

    The first failure propagates once its batch has settled; later batches
    do not start.
    """
    processed = 0
    for batch in chunked(list(items), batch_size):
        await gather_settled([fn(item) for item in batch])
        processed += len(batch)
    return processed


async def upsert_workspaces(
    store: StoreHandle, user_id: str, workspaces: Sequence[WorkspaceInput]
) -> None:
    """Workspaces are few; upsert them all concurrently."""
    await gather_settled(
        [workspaces_repo.upsert_workspace(store, user_id, w) for w in workspaces]
    )


async def upsert_folders(
    store: StoreHandle,
    user_id: str,
    folders: Sequence[FolderInput],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    return await run_in_batches(
        folders, batch_size, lambda f: folders_repo.upsert_folder(store, user_id, f)
    )


async def upsert_notes(
    store: StoreHandle,
    user_id: str,
    notes: Sequence[NoteInput],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    return await run_in_batches(
        notes, batch_size, lambda n: notes_repo.upsert_note(store, user_id, n)
    )
