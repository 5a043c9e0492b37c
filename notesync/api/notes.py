"""Local notes API.

Reads and writes go to the local replica only; edits are propagated by
the sync engine.

Endpoints:
- ``GET    /notes``             -- List notes (``?q=`` filters by title/content)
- ``GET    /notes/{note_id}``   -- Single note
- ``POST   /notes``             -- Create a note
- ``PUT    /notes/{note_id}``   -- Edit a note (marks it unsynced)
- ``DELETE /notes/{note_id}``   -- Delete a note locally
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from notesync.api.deps import get_note_service, get_sync_engine
from notesync.models import Note
from notesync.services.note_service import NoteNotFoundError, NoteService
from notesync.services.sync_service import SyncEngine
from notesync.utils.datetime_utils import datetime_to_iso

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notes"])


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class NoteItem(BaseModel):
    """A note together with its sync state."""

    id: str
    title: str
    content: str
    updated_at: str | None = None
    synced: bool
    sync_status: str


class NoteListResponse(BaseModel):
    items: list[NoteItem]
    total: int


class NoteCreateRequest(BaseModel):
    title: str | None = None
    content: str = ""


class NoteUpdateRequest(BaseModel):
    title: str | None = None
    content: str | None = None


def _to_item(note: Note, engine: SyncEngine) -> NoteItem:
    return NoteItem(
        id=note.id,
        title=note.title,
        content=note.content,
        updated_at=datetime_to_iso(note.updated_at),
        synced=note.synced,
        sync_status=engine.current_status(note.id).value,
    )


def _not_found(exc: NoteNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Note not found: {exc.note_id}")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/notes", response_model=NoteListResponse)
async def list_notes(
    q: str | None = Query(default=None, description="Case-insensitive title/content filter"),
    service: NoteService = Depends(get_note_service),
    engine: SyncEngine = Depends(get_sync_engine),
) -> NoteListResponse:
    notes = await service.search(q) if q else await service.list_notes()
    return NoteListResponse(items=[_to_item(n, engine) for n in notes], total=len(notes))


@router.get("/notes/{note_id}", response_model=NoteItem)
async def get_note(
    note_id: str,
    service: NoteService = Depends(get_note_service),
    engine: SyncEngine = Depends(get_sync_engine),
) -> NoteItem:
    try:
        note = await service.get_note(note_id)
    except NoteNotFoundError as exc:
        raise _not_found(exc)
    return _to_item(note, engine)


@router.post("/notes", response_model=NoteItem, status_code=status.HTTP_201_CREATED)
async def create_note(
    body: NoteCreateRequest,
    service: NoteService = Depends(get_note_service),
    engine: SyncEngine = Depends(get_sync_engine),
) -> NoteItem:
    note = await service.create_note(title=body.title, content=body.content)
    return _to_item(note, engine)


@router.put("/notes/{note_id}", response_model=NoteItem)
async def update_note(
    note_id: str,
    body: NoteUpdateRequest,
    service: NoteService = Depends(get_note_service),
    engine: SyncEngine = Depends(get_sync_engine),
) -> NoteItem:
    try:
        note = await service.update_note(note_id, title=body.title, content=body.content)
    except NoteNotFoundError as exc:
        raise _not_found(exc)
    return _to_item(note, engine)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: str, service: NoteService = Depends(get_note_service)) -> Response:
    try:
        await service.delete_note(note_id)
    except NoteNotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
