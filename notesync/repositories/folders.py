"""Folder repository."""

from sqlalchemy import delete, select

from ..schema import folders
from ..sync.types import FolderInput, is_set
from .base import IN_CLAUSE_CHUNK, chunked, upsert_insert
from .transaction import StoreHandle

_OPTIONAL_FIELDS = ("parent_id", "display_name", "color")


async def upsert_folder(store: StoreHandle, user_id: str, data: FolderInput) -> None:
    """Create or overwrite a folder keyed by ``(user_id, client_id)``.

    Optional fields the client did not send keep their stored value on
    update; an explicit None clears them.
    """
    values = {
        "user_id": user_id,
        "client_id": data.client_id,
        "name": data.name,
        "workspace_id": data.workspace_id,
        "created_at": data.created_at,
    }
    update_values = {
        "name": data.name,
        "workspace_id": data.workspace_id,
        "created_at": data.created_at,
    }
    for name in _OPTIONAL_FIELDS:
        value = getattr(data, name)
        values[name] = value if is_set(value) else None
        if is_set(value):
            update_values[name] = value

    insert = upsert_insert(store, folders).values(**values)
    await store.execute(
        insert.on_conflict_do_update(
            index_elements=["user_id", "client_id"],
            set_=update_values,
        )
    )


async def find_folders_by_user_id(store: StoreHandle, user_id: str) -> list:
    """All folders for a user."""
    result = await store.execute(
        select(folders)
        .where(folders.c.user_id == user_id)
        .order_by(folders.c.created_at, folders.c.client_id)
    )
    return list(result.all())


async def find_client_ids_except(
    store: StoreHandle, user_id: str, keep_client_ids: frozenset[str] | set[str]
) -> list[str]:
    """Client ids a full-replace push would remove."""
    result = await store.execute(select(folders.c.client_id).where(folders.c.user_id == user_id))
    return [client_id for client_id in result.scalars().all() if client_id not in keep_client_ids]


async def delete_by_client_ids(store: StoreHandle, user_id: str, client_ids: list[str]) -> int:
    """Delete the user's folders with the given client ids."""
    deleted = 0
    for batch in chunked(list(client_ids), IN_CLAUSE_CHUNK):
        result = await store.execute(
            delete(folders).where(
                folders.c.user_id == user_id,
                folders.c.client_id.in_(batch),
            )
        )
        deleted += result.rowcount or 0
    return deleted
