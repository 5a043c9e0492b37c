import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing notesync modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REMOTE_URL", "http://remote.test")
os.environ.setdefault("SYNC_ENABLED", "false")


def make_note(
    note_id: str,
    title: str = "Test",
    content: str = "",
    updated_at: datetime | None = None,
    synced: bool = False,
):
    """Create a transient Note ORM instance for testing."""
    from notesync.models import Note

    return Note(
        id=note_id,
        title=title,
        content=content,
        updated_at=updated_at or datetime(2024, 1, 1, tzinfo=UTC),
        synced=synced,
    )


def make_remote_note(note_id: str, title: str = "Test", content: str = "", updated_at: datetime | None = None):
    """Create a RemoteNote as the remote endpoint would store it."""
    from notesync.schemas import RemoteNote

    return RemoteNote(
        id=note_id,
        title=title,
        content=content,
        updated_at=updated_at or datetime(2024, 1, 1, tzinfo=UTC),
    )


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Provide a session factory bound to a fresh in-memory SQLite database.

    StaticPool keeps the single in-memory connection alive across sessions.
    """
    from notesync.database import Base
    import notesync.models  # noqa: F401 - Import to register models with Base

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def store(session_factory):
    from notesync.store.local_store import LocalNoteStore

    return LocalNoteStore(session_factory)


@pytest.fixture
def mem_storage():
    from notesync.server.storage import MemStorage

    return MemStorage()


@pytest.fixture
def remote_app(mem_storage):
    from notesync.server.main import create_app

    return create_app(mem_storage)


@pytest_asyncio.fixture(scope="function")
async def remote(remote_app):
    """Provide a RemoteNotesClient talking to the in-process remote app."""
    from notesync.gateway.client import RemoteNotesClient

    client = RemoteNotesClient("http://remote.test", transport=ASGITransport(app=remote_app))
    yield client
    await client.close()


@pytest.fixture
def connectivity():
    from notesync.services.connectivity import ConnectivitySignal

    return ConnectivitySignal(online=True)


@pytest.fixture
def sync_engine(store, remote, connectivity):
    from notesync.services.sync_service import SyncEngine

    return SyncEngine(store, remote, connectivity)


def seed_remote(storage, *notes) -> None:
    """Place notes in a MemStorage with their own timestamps (bypassing server stamping)."""
    for note in notes:
        storage._notes[note.id] = note
