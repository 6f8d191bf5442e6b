"""Pydantic models for API requests and responses.

Wire format is camelCase; Python attributes are snake_case.
"""

from typing import Annotated, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel

# --- Limits (tune for product + abuse prevention) ---
ID_MAX = 128
CONTENT_MAX = 2_000_000  # ~2MB text per note
DISPLAY_NAME_MAX = 512
NAME_MAX = 256
COLOR_MAX = 32  # hex or short color name
ICON_MAX = 8  # a single emoji, possibly with modifiers
SHARE_CODE_MAX = 32
NOTES_ARRAY_MAX = 10_000
FOLDERS_ARRAY_MAX = 2_000
WORKSPACES_ARRAY_MAX = 200
EPOCH_MS_MIN = 0
EPOCH_MS_MAX = 8_640_000_000_000_000  # largest instant a calendar date can hold

ClientId = Annotated[str, Field(max_length=ID_MAX)]
EpochMs = Annotated[int, Field(ge=EPOCH_MS_MIN, le=EPOCH_MS_MAX)]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class _WireResponse(BaseModel):
    """Response model that omits absent optional keys from the JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Fields serialized even when None
    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_serializer(mode="wrap")
    def omit_absent_keys(self, handler):
        data = handler(self)
        keep = self.nullable_fields | {to_camel(name) for name in self.nullable_fields}
        return {key: value for key, value in data.items() if value is not None or key in keep}


# =============================================================================
# Push
# =============================================================================


class SyncWorkspaceItem(_WireModel):
    id: ClientId
    name: str = Field(..., max_length=NAME_MAX)
    is_default: bool
    color: str | None = Field(None, max_length=COLOR_MAX)
    icon: str | None = Field(None, max_length=ICON_MAX)


class SyncFolderItem(_WireModel):
    id: ClientId
    name: str = Field(..., max_length=NAME_MAX)
    parent_id: ClientId | None = None
    created_at: EpochMs
    display_name: str | None = Field(None, max_length=DISPLAY_NAME_MAX)
    workspace_id: ClientId
    color: str | None = Field(None, max_length=COLOR_MAX)


class SyncNoteItem(_WireModel):
    id: ClientId
    content: str = Field(..., max_length=CONTENT_MAX)
    last_modified: EpochMs
    created_at: EpochMs
    display_name: str | None = Field(None, max_length=DISPLAY_NAME_MAX)
    folder_id: ClientId | None = None
    # Defaults to the default workspace when omitted
    workspace_id: ClientId | None = None
    deleted_at: EpochMs | None = None
    color: str | None = Field(None, max_length=COLOR_MAX)
    is_bookmarked: bool | None = None
    # Echoed back by clients after a pull; ignored, only publishing sets it
    share_code: str | None = Field(None, max_length=SHARE_CODE_MAX, exclude=True)


class SyncPushRequest(_WireModel):
    """Full or partial local state pushed by a device.

    Presence of any ``deleted*Ids`` key (even empty) switches the push to
    delta deletion; see ``notesync.sync.reconciler.select_deletion_mode``.
    """

    notes: list[SyncNoteItem] = Field(..., max_length=NOTES_ARRAY_MAX)
    folders: list[SyncFolderItem] = Field(..., max_length=FOLDERS_ARRAY_MAX)
    workspaces: list[SyncWorkspaceItem] | None = Field(None, max_length=WORKSPACES_ARRAY_MAX)
    deleted_note_ids: list[ClientId] | None = Field(None, max_length=NOTES_ARRAY_MAX)
    deleted_folder_ids: list[ClientId] | None = Field(None, max_length=FOLDERS_ARRAY_MAX)
    deleted_workspace_ids: list[ClientId] | None = Field(None, max_length=WORKSPACES_ARRAY_MAX)


# =============================================================================
# Pull
# =============================================================================


class NoteOut(_WireResponse):
    id: str
    content: str
    last_modified: int
    created_at: int
    workspace_id: str
    display_name: str | None = None
    folder_id: str | None = None
    deleted_at: int | None = None
    color: str | None = None
    is_bookmarked: bool | None = None
    share_code: str | None = None


class FolderOut(_WireResponse):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"parent_id"})

    id: str
    name: str
    parent_id: str | None = None
    created_at: int
    workspace_id: str
    display_name: str | None = None
    color: str | None = None


class WorkspaceOut(_WireResponse):
    id: str
    name: str
    is_default: bool
    updated_at: int
    color: str | None = None
    icon: str | None = None


class SyncPullResponse(_WireResponse):
    """One page of pull results; folders/workspaces are only filled on page one."""

    notes: list[NoteOut]
    folders: list[FolderOut]
    workspaces: list[WorkspaceOut]
    next_cursor: str | None = None
    deleted_note_ids: list[str] | None = None
    deleted_folder_ids: list[str] | None = None
    deleted_workspace_ids: list[str] | None = None


class SyncStatusResponse(BaseModel):
    """Epoch ms of the latest push or pull for the user (0 when none)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    last_updated_at: int
