from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesync.constants import DEFAULT_NOTE_TITLE
from notesync.database import Base
from notesync.utils.datetime_utils import ensure_utc, utcnow


class Note(Base):
    """Local replica of a note, edited offline and reconciled with the remote store."""

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID, client assigned
    title: Mapped[str] = mapped_column(String(500), default=DEFAULT_NOTE_TITLE)
    content: Mapped[str] = mapped_column(Text, default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    # True iff the local copy matched the remote copy as of updated_at
    synced: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        Index("idx_notes_updated_at", "updated_at"),
        Index("idx_notes_synced", "synced"),
    )

    @property
    def updated_at_utc(self) -> datetime:
        return ensure_utc(self.updated_at)

    def __repr__(self) -> str:
        return f"<Note id={self.id!r} synced={self.synced}>"
