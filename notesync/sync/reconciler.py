"""Deletion reconciler.

Both modes share one contract: for a user and entity type, remove exactly
the delete scope, leave its complement intact, and tombstone every removed
client id before the rows are physically deleted.

* Delta: the scope is the explicit id list from the push.
* Full-replace: the scope is every existing id not present in the push's
  own list for that type. An empty submitted list therefore removes every
  entity of that type for the user.
"""

from collections.abc import Sequence

from ..models import SyncPushRequest
from ..repositories import folders as folders_repo
from ..repositories import notes as notes_repo
from ..repositories import tombstones as tombstones_repo
from ..repositories import workspaces as workspaces_repo
from ..repositories.transaction import StoreHandle
from .types import (
    DeletedIds,
    DeletionMode,
    DeltaDeletion,
    EntityType,
    FullReplaceDeletion,
    WorkspaceInput,
)

_REPOSITORIES = {
    EntityType.note: notes_repo,
    EntityType.folder: folders_repo,
    EntityType.workspace: workspaces_repo,
}

RECONCILE_ORDER = (EntityType.note, EntityType.folder, EntityType.workspace)

DELTA_FIELDS = frozenset({"deleted_note_ids", "deleted_folder_ids", "deleted_workspace_ids"})


def select_deletion_mode(
    payload: SyncPushRequest, workspaces: Sequence[WorkspaceInput]
) -> DeletionMode:
    """Pick delta or full-replace from which keys the push carried.

    If any deletion key is present, even as an empty list or null, the
    whole push is delta and absent lists mean "delete nothing of this
    type". If none is present the push is full-replace, keeping exactly the
    submitted notes, folders and (normalized) workspaces.
    """
    if payload.model_fields_set & DELTA_FIELDS:
        return DeltaDeletion(
            note_ids=tuple(payload.deleted_note_ids or ()),
            folder_ids=tuple(payload.deleted_folder_ids or ()),
            workspace_ids=tuple(payload.deleted_workspace_ids or ()),
        )
    return FullReplaceDeletion(
        keep_note_ids=frozenset(n.id for n in payload.notes),
        keep_folder_ids=frozenset(f.id for f in payload.folders),
        keep_workspace_ids=frozenset(w.client_id for w in workspaces),
    )


async def delete_with_tombstones(
    store: StoreHandle,
    user_id: str,
    entity_type: EntityType,
    client_ids: list[str],
) -> int:
    """Tombstone then delete ``client_ids``; returns the rows deleted."""
    if not client_ids:
        return 0
    await tombstones_repo.insert_many(store, user_id, entity_type, client_ids)
    return await _REPOSITORIES[entity_type].delete_by_client_ids(store, user_id, client_ids)


async def apply_delta(store: StoreHandle, user_id: str, mode: DeltaDeletion) -> DeletedIds:
    """Delete exactly the listed ids.

    Ids naming no existing row are still tombstoned; the device asserted a
    deletion and other devices must hear of it.
    """
    scopes = {
        EntityType.note: list(mode.note_ids),
        EntityType.folder: list(mode.folder_ids),
        EntityType.workspace: list(mode.workspace_ids),
    }
    deleted = DeletedIds()
    for entity_type in RECONCILE_ORDER:
        ids = scopes[entity_type]
        await delete_with_tombstones(store, user_id, entity_type, ids)
        deleted.for_type(entity_type).extend(ids)
    return deleted


async def apply_full_replace(
    store: StoreHandle, user_id: str, mode: FullReplaceDeletion
) -> DeletedIds:
    """Delete every existing entity the push did not mention, per type.

    Find, tombstone and delete are separate statements; they are only
    all-or-nothing because the caller runs them inside its transaction.
    """
    keep = {
        EntityType.note: mode.keep_note_ids,
        EntityType.folder: mode.keep_folder_ids,
        EntityType.workspace: mode.keep_workspace_ids,
    }
    deleted = DeletedIds()
    for entity_type in RECONCILE_ORDER:
        repo = _REPOSITORIES[entity_type]
        ids = await repo.find_client_ids_except(store, user_id, keep[entity_type])
        await delete_with_tombstones(store, user_id, entity_type, ids)
        deleted.for_type(entity_type).extend(ids)
    return deleted


async def reconcile(store: StoreHandle, user_id: str, mode: DeletionMode) -> DeletedIds:
    """Apply ``mode`` and return every client id that was tombstoned."""
    if isinstance(mode, DeltaDeletion):
        return await apply_delta(store, user_id, mode)
    if isinstance(mode, FullReplaceDeletion):
        return await apply_full_replace(store, user_id, mode)
    raise TypeError(f"Unknown deletion mode: {type(mode).__name__}")
