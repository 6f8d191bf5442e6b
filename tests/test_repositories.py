"""Tests for the repository layer against a real SQLite store."""

import asyncio
from unittest.mock import patch

import pytest
from notesync.database import build_database_url
from notesync.errors import TransactionTimeoutError
from notesync.repositories import audit as audit_repo
from notesync.repositories import folders as folders_repo
from notesync.repositories import notes as notes_repo
from notesync.repositories import tombstones as tombstones_repo
from notesync.repositories import workspaces as workspaces_repo
from notesync.repositories.base import chunked
from notesync.repositories.transaction import run_transaction, standalone
from notesync.sync.cursor import SyncCursor
from notesync.sync.types import (
    UNSET,
    EntityType,
    FolderInput,
    NoteInput,
    SyncDirection,
    SyncLogRecord,
    WorkspaceInput,
)

USER = "usr_TEST_ONLY_000001"


def _note(client_id: str, last_modified: int = 1000, **fields) -> NoteInput:
    return NoteInput(
        client_id=client_id,
        content=f"content {client_id}",
        last_modified=last_modified,
        created_at=500,
        workspace_id="workspace_1",
        **fields,
    )


def _folder(client_id: str, **fields) -> FolderInput:
    return FolderInput(
        client_id=client_id,
        name=f"Folder {client_id}",
        workspace_id="workspace_1",
        created_at=500,
        **fields,
    )


class TestHelpers:
    def test_chunked(self):
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
        assert chunked([], 3) == []

    def test_chunked_rejects_zero(self):
        with pytest.raises(ValueError):
            chunked([1], 0)

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("postgres://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("postgresql+asyncpg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("sqlite:///./x.db", "sqlite+aiosqlite:///./x.db"),
            ("sqlite+aiosqlite:///./x.db", "sqlite+aiosqlite:///./x.db"),
        ],
    )
    def test_build_database_url(self, url, expected):
        assert build_database_url(url) == expected


class TestWorkspaceRepository:
    @pytest.mark.asyncio
    async def test_create_then_unchanged_does_not_write(self, database):
        data = WorkspaceInput(client_id="w1", name="Home", is_default=True, color="#fff")
        async with standalone(database) as store:
            assert await workspaces_repo.upsert_workspace(store, USER, data) is True
            before = (await workspaces_repo.find_workspaces_by_user_id(store, USER))[0]

        async with standalone(database) as store:
            assert await workspaces_repo.upsert_workspace(store, USER, data) is False
            after = (await workspaces_repo.find_workspaces_by_user_id(store, USER))[0]

        assert after.updated_at == before.updated_at

    @pytest.mark.asyncio
    async def test_changed_name_bumps_updated_at(self, database):
        async with standalone(database) as store:
            await workspaces_repo.upsert_workspace(
                store, USER, WorkspaceInput(client_id="w1", name="Home", is_default=True)
            )

        with patch("notesync.repositories.workspaces.now_ms", return_value=9_999_999_999_999):
            async with standalone(database) as store:
                written = await workspaces_repo.upsert_workspace(
                    store, USER, WorkspaceInput(client_id="w1", name="Work", is_default=True)
                )
                row = (await workspaces_repo.find_workspaces_by_user_id(store, USER))[0]

        assert written is True
        assert row.name == "Work"
        assert row.updated_at == 9_999_999_999_999

    @pytest.mark.asyncio
    async def test_unset_color_is_not_a_change(self, database):
        async with standalone(database) as store:
            await workspaces_repo.upsert_workspace(
                store, USER, WorkspaceInput(client_id="w1", name="Home", is_default=False, color="red")
            )
            written = await workspaces_repo.upsert_workspace(
                store, USER, WorkspaceInput(client_id="w1", name="Home", is_default=False)
            )
            row = (await workspaces_repo.find_workspaces_by_user_id(store, USER))[0]

        assert written is False
        assert row.color == "red"

    @pytest.mark.asyncio
    async def test_default_workspace_sorts_first(self, database):
        async with standalone(database) as store:
            await workspaces_repo.upsert_workspace(
                store, USER, WorkspaceInput(client_id="w2", name="Other", is_default=False)
            )
            await workspaces_repo.upsert_workspace(
                store, USER, WorkspaceInput(client_id="w1", name="Main", is_default=True)
            )
            rows = await workspaces_repo.find_workspaces_by_user_id(store, USER)

        assert [r.client_id for r in rows] == ["w1", "w2"]


class TestFolderRepository:
    @pytest.mark.asyncio
    async def test_tri_state_optional_fields(self, database):
        async with standalone(database) as store:
            await folders_repo.upsert_folder(store, USER, _folder("f1", display_name="Shown", color="blue"))

            # Not provided: stored values survive
            await folders_repo.upsert_folder(store, USER, _folder("f1"))
            row = (await folders_repo.find_folders_by_user_id(store, USER))[0]
            assert row.display_name == "Shown"
            assert row.color == "blue"

            # Explicit None: cleared
            await folders_repo.upsert_folder(store, USER, _folder("f1", display_name=None))
            row = (await folders_repo.find_folders_by_user_id(store, USER))[0]
            assert row.display_name is None
            assert row.color == "blue"

    @pytest.mark.asyncio
    async def test_find_client_ids_except(self, database):
        async with standalone(database) as store:
            for client_id in ("a", "b", "c"):
                await folders_repo.upsert_folder(store, USER, _folder(client_id))
            ids = await folders_repo.find_client_ids_except(store, USER, frozenset({"b"}))

        assert sorted(ids) == ["a", "c"]


class TestNoteRepository:
    @pytest.mark.asyncio
    async def test_bookmark_defaults_false_and_survives_unset(self, database):
        async with standalone(database) as store:
            await notes_repo.upsert_note(store, USER, _note("n1"))
            row = (await notes_repo.find_notes_page(store, USER, 10)).rows[0]
            assert row.is_bookmarked is False

            await notes_repo.upsert_note(store, USER, _note("n1", is_bookmarked=True))
            await notes_repo.upsert_note(store, USER, _note("n1", is_bookmarked=UNSET))
            row = (await notes_repo.find_notes_page(store, USER, 10)).rows[0]
            assert row.is_bookmarked is True

    @pytest.mark.asyncio
    async def test_absent_deleted_at_clears_soft_delete(self, database):
        async with standalone(database) as store:
            await notes_repo.upsert_note(store, USER, _note("n1", deleted_at=1234))
            row = (await notes_repo.find_notes_page(store, USER, 10)).rows[0]
            assert row.deleted_at == 1234

            await notes_repo.upsert_note(store, USER, _note("n1"))
            row = (await notes_repo.find_notes_page(store, USER, 10)).rows[0]
            assert row.deleted_at is None

    @pytest.mark.asyncio
    async def test_seek_page_tiebreaks_on_client_id(self, database):
        async with standalone(database) as store:
            for client_id, modified in [("a", 10), ("b", 10), ("c", 10), ("d", 5)]:
                await notes_repo.upsert_note(store, USER, _note(client_id, modified))

            first = await notes_repo.find_notes_page(store, USER, 2)
            second = await notes_repo.find_notes_page(store, USER, 2, first.next_cursor)

        assert [r.client_id for r in first.rows] == ["c", "b"]
        assert first.next_cursor == SyncCursor(last_modified=10, client_id="b")
        assert [r.client_id for r in second.rows] == ["a", "d"]
        assert second.next_cursor is None

    @pytest.mark.asyncio
    async def test_exact_page_has_no_next_cursor(self, database):
        async with standalone(database) as store:
            for i in range(3):
                await notes_repo.upsert_note(store, USER, _note(f"n{i}", 100 + i))
            page = await notes_repo.find_notes_page(store, USER, 3)

        assert len(page.rows) == 3
        assert page.next_cursor is None

    @pytest.mark.asyncio
    async def test_pages_are_scoped_to_user(self, database):
        async with standalone(database) as store:
            await notes_repo.upsert_note(store, USER, _note("n1"))
            await notes_repo.upsert_note(store, "usr_someone_else", _note("n1"))
            page = await notes_repo.find_notes_page(store, USER, 10)

        assert len(page.rows) == 1

    @pytest.mark.asyncio
    async def test_delete_by_client_ids_chunks_large_lists(self, database):
        ids = [f"n{i}" for i in range(1200)]
        async with standalone(database) as store:
            await notes_repo.upsert_note(store, USER, _note("n0"))
            await notes_repo.upsert_note(store, USER, _note("n1199"))
            await notes_repo.upsert_note(store, USER, _note("keep"))
            deleted = await notes_repo.delete_by_client_ids(store, USER, ids)
            remaining = await notes_repo.find_client_ids_except(store, USER, frozenset())

        assert deleted == 2
        assert remaining == ["keep"]


class TestTombstoneRepository:
    @pytest.mark.asyncio
    async def test_insert_many_empty_is_noop(self, database):
        async with standalone(database) as store:
            assert await tombstones_repo.insert_many(store, USER, EntityType.note, []) == 0

    @pytest.mark.asyncio
    async def test_find_deleted_since_is_strict_and_grouped(self, database):
        async with standalone(database) as store:
            await tombstones_repo.insert_many(store, USER, EntityType.note, ["n1"], deleted_at=100)
            await tombstones_repo.insert_many(store, USER, EntityType.note, ["n2"], deleted_at=200)
            await tombstones_repo.insert_many(store, USER, EntityType.folder, ["f1"], deleted_at=300)
            await tombstones_repo.insert_many(
                store, USER, EntityType.workspace, ["w1", "w2"], deleted_at=300
            )
            deleted = await tombstones_repo.find_deleted_since(store, USER, 100)

        assert deleted.note_ids == ["n2"]
        assert deleted.folder_ids == ["f1"]
        assert deleted.workspace_ids == ["w1", "w2"]
        assert deleted.total() == 4


class TestAuditRepository:
    def test_next_log_timestamp_never_goes_backwards(self, monkeypatch):
        monkeypatch.setattr(audit_repo, "_last_issued_ms", 0)
        with patch("notesync.repositories.audit.now_ms", side_effect=[2000, 1000]):
            first = audit_repo.next_log_timestamp()
            second = audit_repo.next_log_timestamp()
        assert first == 2000
        assert second == 2000

    @pytest.mark.asyncio
    async def test_last_activity_covers_both_directions(self, database):
        async with standalone(database) as store:
            assert await audit_repo.get_last_sync_activity_at(store, USER) is None
            pushed = await audit_repo.create_sync_log(
                store, SyncLogRecord(user_id=USER, direction=SyncDirection.push, succeeded=True)
            )
            pulled = await audit_repo.create_sync_log(
                store, SyncLogRecord(user_id=USER, direction=SyncDirection.pull, succeeded=False)
            )
            last = await audit_repo.get_last_sync_activity_at(store, USER)

        assert pulled >= pushed
        assert last == pulled


class TestTransactions:
    @pytest.mark.asyncio
    async def test_rollback_on_error(self, database):
        async def write_then_fail(store):
            await notes_repo.upsert_note(store, USER, _note("n1"))
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await run_transaction(database, write_then_fail)

        async with standalone(database) as store:
            page = await notes_repo.find_notes_page(store, USER, 10)
        assert page.rows == []

    @pytest.mark.asyncio
    async def test_timeout_raises_and_rolls_back(self, database):
        async def slow(store):
            await notes_repo.upsert_note(store, USER, _note("n1"))
            await asyncio.sleep(5)

        with pytest.raises(TransactionTimeoutError):
            await run_transaction(database, slow, timeout=0.05)

        async with standalone(database) as store:
            page = await notes_repo.find_notes_page(store, USER, 10)
        assert page.rows == []
