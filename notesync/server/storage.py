"""In-memory note storage backing the remote endpoint."""

from __future__ import annotations

from collections.abc import Iterable

from notesync.schemas import RemoteNote, RemoteNoteWrite
from notesync.utils.datetime_utils import utcnow


class MemStorage:
    """Map-backed CRUD. Every accepted write is stamped with the server's time."""

    def __init__(self, notes: Iterable[RemoteNote] = ()) -> None:
        self._notes: dict[str, RemoteNote] = {note.id: note for note in notes}

    def list_notes(self) -> list[RemoteNote]:
        """All notes, most recently updated first."""
        return sorted(self._notes.values(), key=lambda n: n.updated_at, reverse=True)

    def get_note(self, note_id: str) -> RemoteNote | None:
        return self._notes.get(note_id)

    def create_note(self, data: RemoteNoteWrite) -> RemoteNote:
        note = RemoteNote(id=data.id, title=data.title, content=data.content, updated_at=utcnow())
        self._notes[note.id] = note
        return note

    def update_note(self, note_id: str, data: RemoteNoteWrite) -> RemoteNote | None:
        if note_id not in self._notes:
            return None
        note = RemoteNote(id=note_id, title=data.title, content=data.content, updated_at=utcnow())
        self._notes[note_id] = note
        return note

    def delete_note(self, note_id: str) -> bool:
        return self._notes.pop(note_id, None) is not None
