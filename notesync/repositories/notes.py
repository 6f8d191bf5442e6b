"""Note repository."""

from dataclasses import dataclass

from sqlalchemy import and_, delete, or_, select

from ..schema import notes
from ..sync.cursor import SyncCursor
from ..sync.types import NoteInput, is_set
from .base import IN_CLAUSE_CHUNK, chunked, upsert_insert
from .transaction import StoreHandle

_OPTIONAL_FIELDS = ("display_name", "folder_id", "color")


@dataclass
class NotesPage:
    rows: list
    next_cursor: SyncCursor | None


async def upsert_note(store: StoreHandle, user_id: str, data: NoteInput) -> None:
    """Create or overwrite a note keyed by ``(user_id, client_id)``.

    ``share_code`` is never written here; only the publishing service sets it.
    """
    values = {
        "user_id": user_id,
        "client_id": data.client_id,
        "content": data.content,
        "last_modified": data.last_modified,
        "created_at": data.created_at,
        "workspace_id": data.workspace_id,
        "deleted_at": data.deleted_at,
        "is_bookmarked": False,
    }
    update_values = {
        "content": data.content,
        "last_modified": data.last_modified,
        "created_at": data.created_at,
        "workspace_id": data.workspace_id,
        "deleted_at": data.deleted_at,
    }
    if is_set(data.is_bookmarked):
        values["is_bookmarked"] = bool(data.is_bookmarked)
        update_values["is_bookmarked"] = bool(data.is_bookmarked)
    for name in _OPTIONAL_FIELDS:
        value = getattr(data, name)
        values[name] = value if is_set(value) else None
        if is_set(value):
            update_values[name] = value

    insert = upsert_insert(store, notes).values(**values)
    await store.execute(
        insert.on_conflict_do_update(
            index_elements=["user_id", "client_id"],
            set_=update_values,
        )
    )


async def find_notes_page(
    store: StoreHandle,
    user_id: str,
    limit: int,
    cursor: SyncCursor | None = None,
) -> NotesPage:
    """Fetch one page of notes ordered by ``(last_modified desc, client_id desc)``.

    Seek pagination: rows strictly after ``cursor`` in that order. One extra
    row is fetched to decide whether a next page exists.
    """
    query = select(notes).where(notes.c.user_id == user_id)
    if cursor is not None:
        query = query.where(
            or_(
                notes.c.last_modified < cursor.last_modified,
                and_(
                    notes.c.last_modified == cursor.last_modified,
                    notes.c.client_id < cursor.client_id,
                ),
            )
        )
    query = query.order_by(notes.c.last_modified.desc(), notes.c.client_id.desc()).limit(limit + 1)

    rows = list((await store.execute(query)).all())
    if len(rows) <= limit:
        return NotesPage(rows=rows, next_cursor=None)

    page = rows[:limit]
    last = page[-1]
    return NotesPage(
        rows=page,
        next_cursor=SyncCursor(last_modified=last.last_modified, client_id=last.client_id),
    )


async def find_client_ids_except(
    store: StoreHandle, user_id: str, keep_client_ids: frozenset[str] | set[str]
) -> list[str]:
    """Client ids a full-replace push would remove."""
    result = await store.execute(select(notes.c.client_id).where(notes.c.user_id == user_id))
    return [client_id for client_id in result.scalars().all() if client_id not in keep_client_ids]


async def delete_by_client_ids(store: StoreHandle, user_id: str, client_ids: list[str]) -> int:
    """Delete the user's notes with the given client ids."""
    deleted = 0
    for batch in chunked(list(client_ids), IN_CLAUSE_CHUNK):
        result = await store.execute(
            delete(notes).where(
                notes.c.user_id == user_id,
                notes.c.client_id.in_(batch),
            )
        )
        deleted += result.rowcount or 0
    return deleted
