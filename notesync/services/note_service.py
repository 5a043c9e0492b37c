"""User-facing note operations on the local replica.

Edits never talk to the network: they mark the note dirty and leave
propagation to the next reconciliation (or an explicit single-note sync).
Deletes are local only.
"""

from __future__ import annotations

import logging
from uuid import uuid4

from notesync.constants import DEFAULT_NOTE_TITLE
from notesync.models import Note
from notesync.services.sync_service import SyncEngine
from notesync.store.local_store import LocalNoteStore
from notesync.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class NoteNotFoundError(Exception):
    """Raised when a note id does not exist in the local replica."""

    def __init__(self, note_id: str) -> None:
        self.note_id = note_id
        super().__init__(f"Note not found: {note_id}")


class NoteService:
    def __init__(self, store: LocalNoteStore, engine: SyncEngine) -> None:
        self._store = store
        self._engine = engine

    async def list_notes(self) -> list[Note]:
        return await self._store.list_notes()

    async def search(self, query: str) -> list[Note]:
        return await self._store.search(query)

    async def get_note(self, note_id: str) -> Note:
        note = await self._store.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def create_note(self, title: str | None = None, content: str = "") -> Note:
        """Create a dirty note with a fresh client-assigned UUID."""
        note = Note(
            id=str(uuid4()),
            title=title or DEFAULT_NOTE_TITLE,
            content=content,
            updated_at=utcnow(),
            synced=False,
        )
        await self._store.create(note)
        logger.info("Created note %s", note.id)
        return note

    async def update_note(self, note_id: str, title: str | None = None, content: str | None = None) -> Note:
        """Apply a user edit: stamps now and flags the note unsynced."""
        changes: dict = {"synced": False}
        if title is not None:
            changes["title"] = title
        if content is not None:
            changes["content"] = content

        note = await self._store.update(note_id, changes)
        if note is None:
            raise NoteNotFoundError(note_id)
        self._engine.mark_unsynced(note_id)
        return note

    async def delete_note(self, note_id: str) -> None:
        if not await self._store.delete(note_id):
            raise NoteNotFoundError(note_id)
        self._engine.forget(note_id)
        logger.info("Deleted note %s locally", note_id)
