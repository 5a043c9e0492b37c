"""Tests for NoteService: user edits on the local replica."""

from __future__ import annotations

from uuid import UUID

import pytest

from notesync.constants import DEFAULT_NOTE_TITLE, SyncStatus
from notesync.services.note_service import NoteNotFoundError, NoteService
from tests.conftest import make_note


@pytest.fixture
def note_service(store, sync_engine) -> NoteService:
    return NoteService(store, sync_engine)


class TestNoteService:
    @pytest.mark.asyncio
    async def test_create_assigns_uuid_and_defaults(self, note_service, store):
        note = await note_service.create_note()

        UUID(note.id)
        assert note.title == DEFAULT_NOTE_TITLE
        assert note.content == ""
        assert note.synced is False
        assert (await store.get(note.id)) is not None

    @pytest.mark.asyncio
    async def test_update_marks_dirty(self, note_service, store, sync_engine):
        await store.create(make_note("n1", title="Old", content="old", synced=True))

        note = await note_service.update_note("n1", content="new")

        assert note.title == "Old"
        assert note.content == "new"
        stored = await store.get("n1")
        assert stored.synced is False
        assert stored.updated_at_utc > make_note("x").updated_at
        assert sync_engine.current_status("n1") == SyncStatus.UNSYNCED

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, note_service):
        with pytest.raises(NoteNotFoundError):
            await note_service.update_note("missing", title="x")

    @pytest.mark.asyncio
    async def test_delete_is_local_only(self, note_service, store, sync_engine, mem_storage):
        created = await note_service.create_note(title="Doomed")
        await sync_engine.reconcile_all()
        assert mem_storage.get_note(created.id) is not None

        await note_service.delete_note(created.id)

        assert await store.get(created.id) is None
        assert created.id not in sync_engine.statuses()
        # Remote copy stays; the next pull brings it back
        assert mem_storage.get_note(created.id) is not None

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, note_service):
        with pytest.raises(NoteNotFoundError):
            await note_service.delete_note("missing")

    @pytest.mark.asyncio
    async def test_get_and_search(self, note_service):
        note = await note_service.create_note(title="Shopping", content="eggs")
        await note_service.create_note(title="Work", content="report")

        assert (await note_service.get_note(note.id)).title == "Shopping"
        assert [n.id for n in await note_service.search("EGGS")] == [note.id]
        assert len(await note_service.list_notes()) == 2

        with pytest.raises(NoteNotFoundError):
            await note_service.get_note("missing")

    @pytest.mark.asyncio
    async def test_edit_then_reconcile_round_trip(self, note_service, sync_engine, mem_storage):
        note = await note_service.create_note(title="Draft")
        await sync_engine.reconcile_all()

        await note_service.update_note(note.id, content="second draft")
        assert sync_engine.summary().label == "1 unsynced"

        await sync_engine.reconcile_all()

        assert mem_storage.get_note(note.id).content == "second draft"
        assert sync_engine.current_status(note.id) == SyncStatus.SYNCED
        assert sync_engine.summary().label == "All synced"
