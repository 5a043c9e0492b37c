"""Sync API endpoints for manual synchronisation control.

Provides:
- ``POST /sync/trigger``          -- Run a full reconciliation now
- ``POST /sync/notes/{note_id}``  -- Push a single note
- ``GET  /sync/status``           -- Connectivity, status map and last run
- ``PUT  /sync/connectivity``     -- Override the online/offline signal

The trigger endpoint awaits the reconciliation.  It reports
``already_syncing`` or ``offline`` instead when the engine would drop the
call.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from notesync.api.deps import get_connectivity, get_sync_engine
from notesync.services.connectivity import ConnectivitySignal
from notesync.services.sync_service import SyncEngine, SyncResult
from notesync.utils.datetime_utils import datetime_to_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SyncTriggerResponse(BaseModel):
    """Response for the sync trigger endpoint."""

    status: str  # "completed" | "already_syncing" | "offline"
    message: str


class NoteSyncResponse(BaseModel):
    note_id: str
    sync_status: str


class SyncRunResponse(BaseModel):
    """Counters of the most recent reconciliation."""

    started_at: str | None = None
    finished_at: str | None = None
    pulled_new: int = 0
    pulled_updated: int = 0
    skipped_dirty: int = 0
    pushed_created: int = 0
    pushed_updated: int = 0
    failed: int = 0
    pull_failed: bool = False
    push_failed: bool = False


class SyncSummaryResponse(BaseModel):
    unsynced: int
    syncing: int
    error: int
    label: str


class SyncStatusResponse(BaseModel):
    """Response for the sync status endpoint."""

    online: bool
    is_syncing: bool
    summary: SyncSummaryResponse
    statuses: dict[str, str]
    last_run: SyncRunResponse | None = None


class ConnectivityRequest(BaseModel):
    online: bool


class ConnectivityResponse(BaseModel):
    online: bool


def _run_response(result: SyncResult | None) -> SyncRunResponse | None:
    if result is None:
        return None
    return SyncRunResponse(
        started_at=datetime_to_iso(result.started_at),
        finished_at=datetime_to_iso(result.finished_at),
        pulled_new=result.pulled_new,
        pulled_updated=result.pulled_updated,
        skipped_dirty=result.skipped_dirty,
        pushed_created=result.pushed_created,
        pushed_updated=result.pushed_updated,
        failed=result.failed,
        pull_failed=result.pull_failed,
        push_failed=result.push_failed,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/trigger", response_model=SyncTriggerResponse)
async def trigger_sync(
    engine: SyncEngine = Depends(get_sync_engine),
    connectivity: ConnectivitySignal = Depends(get_connectivity),
) -> SyncTriggerResponse:
    if engine.is_running:
        return SyncTriggerResponse(status="already_syncing", message="A reconciliation is already running")
    if not connectivity.is_online:
        return SyncTriggerResponse(status="offline", message="Offline; changes stay local until reconnected")

    await engine.reconcile_all()
    return SyncTriggerResponse(status="completed", message=engine.summary().label)


@router.post("/notes/{note_id}", response_model=NoteSyncResponse)
async def sync_note(note_id: str, engine: SyncEngine = Depends(get_sync_engine)) -> NoteSyncResponse:
    await engine.sync_one(note_id)
    return NoteSyncResponse(note_id=note_id, sync_status=engine.current_status(note_id).value)


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(
    engine: SyncEngine = Depends(get_sync_engine),
    connectivity: ConnectivitySignal = Depends(get_connectivity),
) -> SyncStatusResponse:
    summary = engine.summary()
    return SyncStatusResponse(
        online=connectivity.is_online,
        is_syncing=engine.is_running,
        summary=SyncSummaryResponse(
            unsynced=summary.unsynced,
            syncing=summary.syncing,
            error=summary.error,
            label=summary.label,
        ),
        statuses={note_id: value.value for note_id, value in engine.statuses().items()},
        last_run=_run_response(engine.last_result),
    )


@router.put("/connectivity", response_model=ConnectivityResponse)
async def set_connectivity(
    body: ConnectivityRequest,
    connectivity: ConnectivitySignal = Depends(get_connectivity),
) -> ConnectivityResponse:
    connectivity.set_online(body.online)
    return ConnectivityResponse(online=connectivity.is_online)
