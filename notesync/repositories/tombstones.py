"""Tombstone log: append-only record of every server-side deletion.

Other devices learn what disappeared by asking for tombstones recorded
after their last pull. Rows are never compacted or expired.
"""

from sqlalchemy import select

from ..schema import sync_deletion_log
from ..sync.types import DeletedIds, EntityType
from .base import now_ms
from .transaction import StoreHandle


async def insert_many(
    store: StoreHandle,
    user_id: str,
    entity_type: EntityType,
    client_ids: list[str],
    deleted_at: int | None = None,
) -> int:
    """Write one tombstone per client id, all with one shared timestamp."""
    if not client_ids:
        return 0
    if deleted_at is None:
        deleted_at = now_ms()
    rows = [
        {
            "user_id": user_id,
            "entity_type": entity_type.value,
            "client_id": client_id,
            "deleted_at": deleted_at,
        }
        for client_id in client_ids
    ]
    await store.execute(sync_deletion_log.insert(), rows)
    return len(rows)


async def find_deleted_since(store: StoreHandle, user_id: str, since: int) -> DeletedIds:
    """Client ids tombstoned strictly after ``since`` (epoch ms), by type."""
    result = await store.execute(
        select(sync_deletion_log.c.entity_type, sync_deletion_log.c.client_id)
        .where(
            sync_deletion_log.c.user_id == user_id,
            sync_deletion_log.c.deleted_at > since,
        )
        .order_by(sync_deletion_log.c.deleted_at, sync_deletion_log.c.id)
    )
    deleted = DeletedIds()
    for entity_type, client_id in result.all():
        deleted.for_type(EntityType(entity_type)).append(client_id)
    return deleted
