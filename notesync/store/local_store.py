"""Local replica store backed by the SQLAlchemy ``notes`` table.

Every operation runs in its own short session and commits before
returning, so writes are applied one at a time in call order.  Database
errors surface as :class:`StoreError`; callers decide how far to let
them propagate.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notesync.models import Note
from notesync.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

# Columns a caller may change through update()
_MUTABLE_FIELDS: frozenset[str] = frozenset({"title", "content", "updated_at", "synced"})


class StoreError(Exception):
    """Raised when the local database rejects a read or write.

    Attributes:
        action: Short description of the operation that failed.
    """

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Local store failed to {action}")


class LocalNoteStore:
    """Durable keyed table of notes on the client side.

    Args:
        session_factory: Factory producing :class:`AsyncSession` objects
            bound to the local database.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
                await session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Local store failed to %s", action, exc_info=True)
            raise StoreError(action) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_notes(self) -> list[Note]:
        """Return every note, most recently updated first."""
        async with self._session("list notes") as session:
            result = await session.execute(select(Note).order_by(Note.updated_at.desc()))
            return list(result.scalars().all())

    async def get(self, note_id: str) -> Note | None:
        async with self._session(f"get note {note_id}") as session:
            return await session.get(Note, note_id)

    async def list_unsynced(self) -> list[Note]:
        """Return notes with pending local edits, oldest edit first."""
        async with self._session("list unsynced notes") as session:
            stmt = select(Note).where(Note.synced.is_(False)).order_by(Note.updated_at.asc())
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def search(self, query: str) -> list[Note]:
        """Case-insensitive substring search over title and content.

        A blank query returns the full list.
        """
        if not query or not query.strip():
            return await self.list_notes()

        async with self._session("search notes") as session:
            stmt = (
                select(Note)
                .where(
                    or_(
                        Note.title.icontains(query, autoescape=True),
                        Note.content.icontains(query, autoescape=True),
                    )
                )
                .order_by(Note.updated_at.desc())
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, note: Note) -> Note:
        async with self._session(f"create note {note.id}") as session:
            session.add(note)
        return note

    async def update(self, note_id: str, changes: dict) -> Note | None:
        """Apply *changes* to a note and return it, or ``None`` if absent.

        ``updated_at`` is stamped with the current time unless *changes*
        carries one explicitly (server-authoritative writes do).

        Raises:
            ValueError: If *changes* names a field that cannot be updated.
        """
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update note fields: {sorted(unknown)}")

        async with self._session(f"update note {note_id}") as session:
            note = await session.get(Note, note_id)
            if note is None:
                return None
            for key, value in changes.items():
                setattr(note, key, value)
            if "updated_at" not in changes:
                note.updated_at = utcnow()
        return note

    async def delete(self, note_id: str) -> bool:
        async with self._session(f"delete note {note_id}") as session:
            note = await session.get(Note, note_id)
            if note is None:
                return False
            await session.delete(note)
        return True

    async def mark_synced(
        self,
        note_id: str,
        updated_at: datetime | None = None,
        *,
        expected_updated_at: datetime | None = None,
    ) -> bool:
        """Flag a note as matching the remote copy.

        Runs as a single conditional ``UPDATE`` so an edit that lands while
        a push is in flight is never flagged synced.

        Args:
            note_id: The note to flag.
            updated_at: The timestamp the remote accepted, adopted locally
                so both replicas agree.  ``None`` keeps the local value.
            expected_updated_at: The ``updated_at`` of the copy that was
                pushed.  When given, the row is only flagged if it still
                carries this timestamp.

        Returns:
            ``True`` if the row was flagged, ``False`` if it is absent or
            changed since *expected_updated_at*.
        """
        stmt = update(Note).where(Note.id == note_id)
        if expected_updated_at is not None:
            stmt = stmt.where(Note.updated_at == expected_updated_at)
        values: dict = {"synced": True}
        if updated_at is not None:
            values["updated_at"] = updated_at

        async with self._session(f"mark note {note_id} synced") as session:
            result = await session.execute(
                stmt.values(**values).execution_options(synchronize_session=False)
            )
        return result.rowcount > 0

    async def replace_if_unchanged(
        self,
        note_id: str,
        *,
        title: str,
        content: str,
        updated_at: datetime,
        seen_updated_at: datetime,
    ) -> bool:
        """Overwrite a clean note with the remote copy.

        The write only applies while the row is still synced and still
        carries *seen_updated_at*, so a local edit made after the caller
        read the note wins.

        Returns:
            ``True`` if the row was overwritten.
        """
        stmt = (
            update(Note)
            .where(
                Note.id == note_id,
                Note.synced.is_(True),
                Note.updated_at == seen_updated_at,
            )
            .values(title=title, content=content, updated_at=updated_at, synced=True)
            .execution_options(synchronize_session=False)
        )
        async with self._session(f"replace note {note_id}") as session:
            result = await session.execute(stmt)
        return result.rowcount > 0

    async def mark_unsynced(self, note_id: str) -> bool:
        async with self._session(f"mark note {note_id} unsynced") as session:
            note = await session.get(Note, note_id)
            if note is None:
                return False
            note.synced = False
        return True
