"""Workspace repository."""

from sqlalchemy import delete, select

from ..schema import workspaces
from ..sync.types import WorkspaceInput, is_set
from .base import IN_CLAUSE_CHUNK, chunked, now_ms, upsert_insert
from .transaction import StoreHandle


async def upsert_workspace(store: StoreHandle, user_id: str, data: WorkspaceInput) -> bool:
    """Create or update a workspace.

    An existing workspace is only written when name, is_default, color or
    icon actually changed, so ``updated_at`` is not bumped on every push.
    Returns True when a row was written.
    """
    result = await store.execute(
        select(
            workspaces.c.name,
            workspaces.c.is_default,
            workspaces.c.color,
            workspaces.c.icon,
        ).where(
            workspaces.c.user_id == user_id,
            workspaces.c.client_id == data.client_id,
        )
    )
    existing = result.first()
    now = now_ms()

    if existing is None:
        # Duplicate ids within one push may race here; the first insert wins
        insert = (
            upsert_insert(store, workspaces)
            .values(
                user_id=user_id,
                client_id=data.client_id,
                name=data.name,
                is_default=data.is_default,
                color=data.color if is_set(data.color) else None,
                icon=data.icon if is_set(data.icon) else None,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "client_id"])
        )
        await store.execute(insert)
        return True

    changes: dict = {}
    if existing.name != data.name:
        changes["name"] = data.name
    if existing.is_default != data.is_default:
        changes["is_default"] = data.is_default
    if is_set(data.color) and existing.color != data.color:
        changes["color"] = data.color
    if is_set(data.icon) and existing.icon != data.icon:
        changes["icon"] = data.icon
    if not changes:
        return False

    changes["updated_at"] = now
    await store.execute(
        workspaces.update()
        .where(
            workspaces.c.user_id == user_id,
            workspaces.c.client_id == data.client_id,
        )
        .values(**changes)
    )
    return True


async def find_workspaces_by_user_id(store: StoreHandle, user_id: str) -> list:
    """All workspaces for a user: default first, then newest first."""
    result = await store.execute(
        select(workspaces)
        .where(workspaces.c.user_id == user_id)
        .order_by(
            workspaces.c.is_default.desc(),
            workspaces.c.created_at.desc(),
            workspaces.c.client_id,
        )
    )
    return list(result.all())


async def find_client_ids_except(
    store: StoreHandle, user_id: str, keep_client_ids: frozenset[str] | set[str]
) -> list[str]:
    """Client ids a full-replace push would remove."""
    result = await store.execute(
        select(workspaces.c.client_id).where(workspaces.c.user_id == user_id)
    )
    return [client_id for client_id in result.scalars().all() if client_id not in keep_client_ids]


async def delete_by_client_ids(store: StoreHandle, user_id: str, client_ids: list[str]) -> int:
    """Delete the user's workspaces with the given client ids."""
    deleted = 0
    for batch in chunked(list(client_ids), IN_CLAUSE_CHUNK):
        result = await store.execute(
            delete(workspaces).where(
                workspaces.c.user_id == user_id,
                workspaces.c.client_id.in_(batch),
            )
        )
        deleted += result.rowcount or 0
    return deleted
