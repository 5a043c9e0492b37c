"""Wire models shared by the remote endpoint and its client.

The remote store speaks ``{id, title, content, updatedAt}`` with ISO-8601
timestamps. It has no ``synced`` field; sync state is a local concept.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notesync.constants import DEFAULT_NOTE_TITLE
from notesync.utils.datetime_utils import ensure_utc


class RemoteNote(BaseModel):
    """A note as stored by the remote endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = DEFAULT_NOTE_TITLE
    content: str = ""
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator("updated_at")
    @classmethod
    def _normalise_updated_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @classmethod
    def from_local(cls, note) -> RemoteNote:
        """Build the full write body from a local :class:`~notesync.models.Note`."""
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            updated_at=note.updated_at,
        )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class RemoteNoteWrite(BaseModel):
    """Request body accepted by ``POST /notes`` and ``PUT /notes/{id}``.

    ``updatedAt`` is accepted but ignored: the server stamps its own time
    on every write it accepts.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1, max_length=36)
    title: str = DEFAULT_NOTE_TITLE
    content: str = ""
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
