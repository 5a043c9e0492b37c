"""Remote notes endpoint: CRUD over an in-memory store.

Endpoints (under ``/api``):
- ``GET    /notes``       -- full collection, most recent first
- ``GET    /notes/{id}``  -- single note, 404 when absent
- ``POST   /notes``       -- create (server stamps ``updatedAt``)
- ``PUT    /notes/{id}``  -- replace (server stamps ``updatedAt``), 404 when absent
- ``DELETE /notes/{id}``  -- remove, 404 when absent
- ``GET    /health``

Run with ``uvicorn notesync.server.main:app --port 5000``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status

from notesync.config import get_settings
from notesync.schemas import RemoteNote, RemoteNoteWrite
from notesync.server.storage import MemStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["notes"])


def get_storage(request: Request) -> MemStorage:
    return request.app.state.storage


@router.get("", response_model=list[RemoteNote])
async def list_notes(storage: MemStorage = Depends(get_storage)) -> list[RemoteNote]:
    return storage.list_notes()


@router.get("/{note_id}", response_model=RemoteNote)
async def get_note(note_id: str, storage: MemStorage = Depends(get_storage)) -> RemoteNote:
    note = storage.get_note(note_id)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Note not found: {note_id}")
    return note


@router.post("", response_model=RemoteNote, status_code=status.HTTP_201_CREATED)
async def create_note(body: RemoteNoteWrite, storage: MemStorage = Depends(get_storage)) -> RemoteNote:
    note = storage.create_note(body)
    logger.info("Created note %s", note.id)
    return note


@router.put("/{note_id}", response_model=RemoteNote)
async def update_note(
    note_id: str,
    body: RemoteNoteWrite,
    storage: MemStorage = Depends(get_storage),
) -> RemoteNote:
    if body.id != note_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Body id {body.id} does not match path id {note_id}",
        )
    note = storage.update_note(note_id, body)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Note not found: {note_id}")
    logger.info("Updated note %s", note_id)
    return note


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: str, storage: MemStorage = Depends(get_storage)) -> Response:
    if not storage.delete_note(note_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Note not found: {note_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def create_app(storage: MemStorage | None = None) -> FastAPI:
    """Build the remote endpoint app around *storage* (a fresh one by default)."""
    app = FastAPI(
        title="notesync remote",
        description="Authoritative note store for notesync clients",
        version="0.1.0",
    )
    app.state.storage = storage if storage is not None else MemStorage()
    app.include_router(router, prefix="/api")

    @app.get("/api/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = create_app()
