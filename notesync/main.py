"""FastAPI entry point of the offline-first notes client.

The lifespan is the composition root: it builds the local store, the
remote client, the connectivity signal and the sync engine, and starts the
background triggers that drive reconciliation.

Run with ``uvicorn notesync.main:app``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notesync.config import get_settings
from notesync.database import async_session_factory, engine, init_db
from notesync.gateway.client import RemoteNotesClient
from notesync.services.connectivity import ConnectivityMonitor, ConnectivitySignal
from notesync.services.note_service import NoteService
from notesync.services.scheduler import SyncScheduler
from notesync.services.sync_service import SyncEngine
from notesync.store.local_store import LocalNoteStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire services on startup, stop background tasks on shutdown."""
    settings = get_settings()
    await init_db()

    store = LocalNoteStore(async_session_factory)
    remote = RemoteNotesClient(
        settings.REMOTE_URL,
        prefix=settings.REMOTE_API_PREFIX,
        timeout=settings.REMOTE_TIMEOUT_SECONDS,
    )
    connectivity = ConnectivitySignal(online=False)
    sync_engine = SyncEngine(store, remote, connectivity)
    scheduler = SyncScheduler(
        sync_engine,
        connectivity,
        interval=settings.SYNC_INTERVAL_SECONDS,
        reconnect_delay=settings.RECONNECT_DELAY_SECONDS,
    )
    monitor = ConnectivityMonitor(connectivity, remote, interval=settings.CONNECTIVITY_PROBE_SECONDS)

    app.state.connectivity = connectivity
    app.state.sync_engine = sync_engine
    app.state.note_service = NoteService(store, sync_engine)

    if settings.SYNC_ENABLED:
        # Scheduler subscribes first so the monitor's initial online transition triggers a run
        scheduler.start()
        monitor.start()
    else:
        logger.info("Background sync disabled; use POST /api/sync/trigger")

    yield

    await monitor.stop()
    await scheduler.stop()
    await remote.close()
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="notesync",
        description="Offline-first notes with background reconciliation",
        version="0.1.0",
        lifespan=lifespan,
    )

    # --- CORS Middleware ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Router includes ---
    from notesync.api.notes import router as notes_router
    from notesync.api.sync import router as sync_router

    app.include_router(notes_router, prefix="/api")
    app.include_router(sync_router, prefix="/api")

    @app.get("/api/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint.

        Returns a simple status response to verify the API is running.
        """
        return {"status": "ok"}

    return app


logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = create_app()
