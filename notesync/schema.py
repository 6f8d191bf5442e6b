"""Table definitions for the sync store.

Every entity table is keyed by ``(user_id, client_id)``; the client id is
minted by the device that created the entity, never by the server.
Timestamps are integer epoch milliseconds.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

ID_LENGTH = 128

WORKSPACES_TABLE = "workspaces"
FOLDERS_TABLE = "folders"
NOTES_TABLE = "notes"
SYNC_DELETION_LOG_TABLE = "sync_deletion_log"
SYNC_LOG_TABLE = "sync_log"


workspaces = Table(
    WORKSPACES_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(ID_LENGTH), nullable=False),
    Column("client_id", String(ID_LENGTH), nullable=False),
    Column("name", String(256), nullable=False),
    Column("is_default", Boolean, nullable=False, default=False),
    Column("color", String(32)),
    Column("icon", String(8)),
    Column("created_at", BigInteger, nullable=False),
    Column("updated_at", BigInteger, nullable=False),
    UniqueConstraint("user_id", "client_id", name="uq_workspaces_user_client"),
)

folders = Table(
    FOLDERS_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(ID_LENGTH), nullable=False),
    Column("client_id", String(ID_LENGTH), nullable=False),
    Column("name", String(256), nullable=False),
    Column("display_name", String(512)),
    # Parent and workspace are client ids; consistency between them is not enforced.
    Column("parent_id", String(ID_LENGTH)),
    Column("workspace_id", String(ID_LENGTH), nullable=False),
    Column("color", String(32)),
    Column("created_at", BigInteger, nullable=False),
    UniqueConstraint("user_id", "client_id", name="uq_folders_user_client"),
)

notes = Table(
    NOTES_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(ID_LENGTH), nullable=False),
    Column("client_id", String(ID_LENGTH), nullable=False),
    Column("content", Text, nullable=False),
    Column("last_modified", BigInteger, nullable=False),
    Column("created_at", BigInteger, nullable=False),
    Column("display_name", String(512)),
    Column("folder_id", String(ID_LENGTH)),
    Column("workspace_id", String(ID_LENGTH), nullable=False),
    Column("color", String(32)),
    Column("is_bookmarked", Boolean, nullable=False, default=False),
    Column("deleted_at", BigInteger),
    # Set by the publishing service only
    Column("share_code", String(32), unique=True),
    UniqueConstraint("user_id", "client_id", name="uq_notes_user_client"),
    Index("ix_notes_user_seek", "user_id", "last_modified", "client_id"),
)

sync_deletion_log = Table(
    SYNC_DELETION_LOG_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(ID_LENGTH), nullable=False),
    Column("entity_type", String(16), nullable=False),
    Column("client_id", String(ID_LENGTH), nullable=False),
    Column("deleted_at", BigInteger, nullable=False),
    Index("ix_sync_deletion_log_user_deleted", "user_id", "deleted_at"),
)

sync_log = Table(
    SYNC_LOG_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(ID_LENGTH), nullable=False),
    Column("direction", String(8), nullable=False),
    Column("succeeded", Boolean, nullable=False),
    Column("error_message", Text),
    Column("notes_count", Integer),
    Column("folders_count", Integer),
    Column("workspaces_count", Integer),
    Column("created_at", BigInteger, nullable=False),
    Index("ix_sync_log_user_created", "user_id", "created_at"),
)
