"""Domain types shared by the sync engine and the repositories."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TypeVar, Union

T = TypeVar("T")


class _Unset(enum.Enum):
    """Marker for an optional field the client did not send."""

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset.UNSET

# A field that may be left unchanged (UNSET), cleared (None) or set (value)
Maybe = Union[T, None, _Unset]


def is_set(value: object) -> bool:
    return value is not UNSET


class EntityType(str, enum.Enum):
    """Entity kinds recorded in the tombstone log."""

    note = "note"
    folder = "folder"
    workspace = "workspace"


class SyncDirection(str, enum.Enum):
    push = "push"
    pull = "pull"


# =============================================================================
# Upsert inputs
# =============================================================================


@dataclass
class WorkspaceInput:
    client_id: str
    name: str
    is_default: bool
    color: Maybe[str] = UNSET
    icon: Maybe[str] = UNSET


@dataclass
class FolderInput:
    client_id: str
    name: str
    workspace_id: str
    created_at: int
    parent_id: Maybe[str] = UNSET
    display_name: Maybe[str] = UNSET
    color: Maybe[str] = UNSET


@dataclass
class NoteInput:
    client_id: str
    content: str
    last_modified: int
    created_at: int
    workspace_id: str
    # Absent means "not deleted": clients always send their soft-delete state
    deleted_at: int | None = None
    display_name: Maybe[str] = UNSET
    folder_id: Maybe[str] = UNSET
    color: Maybe[str] = UNSET
    is_bookmarked: Maybe[bool] = UNSET


# =============================================================================
# Deletion modes
# =============================================================================


@dataclass(frozen=True)
class DeltaDeletion:
    """Delete exactly the listed client ids, nothing else."""

    note_ids: tuple[str, ...] = ()
    folder_ids: tuple[str, ...] = ()
    workspace_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class FullReplaceDeletion:
    """Delete every existing entity whose client id is not kept."""

    keep_note_ids: frozenset[str] = frozenset()
    keep_folder_ids: frozenset[str] = frozenset()
    keep_workspace_ids: frozenset[str] = frozenset()


DeletionMode = Union[DeltaDeletion, FullReplaceDeletion]


# =============================================================================
# Results
# =============================================================================


@dataclass
class DeletedIds:
    """Client ids removed from the server, grouped by entity type."""

    note_ids: list[str] = field(default_factory=list)
    folder_ids: list[str] = field(default_factory=list)
    workspace_ids: list[str] = field(default_factory=list)

    def for_type(self, entity_type: EntityType) -> list[str]:
        if entity_type is EntityType.note:
            return self.note_ids
        if entity_type is EntityType.folder:
            return self.folder_ids
        return self.workspace_ids

    def total(self) -> int:
        return len(self.note_ids) + len(self.folder_ids) + len(self.workspace_ids)


@dataclass
class SyncLogRecord:
    user_id: str
    direction: SyncDirection
    succeeded: bool
    error_message: str | None = None
    notes_count: int | None = None
    folders_count: int | None = None
    workspaces_count: int | None = None
