"""FastAPI dependencies resolving the services wired in the app lifespan."""

from fastapi import Request

from notesync.services.connectivity import ConnectivitySignal
from notesync.services.note_service import NoteService
from notesync.services.sync_service import SyncEngine


def get_note_service(request: Request) -> NoteService:
    return request.app.state.note_service


def get_sync_engine(request: Request) -> SyncEngine:
    return request.app.state.sync_engine


def get_connectivity(request: Request) -> ConnectivitySignal:
    return request.app.state.connectivity
