"""Reconciliation between the local note replica and the remote endpoint.

Sync strategy (Pull before Push):
1. **Pull** — Every remote note is compared with the local replica:
   - Absent locally → INSERT, flagged synced
   - Present and locally clean → UPDATE when the remote copy is strictly newer
     (a local edit made after the comparison wins)
   - Present with pending local edits → SKIP (the local edit wins and is pushed next)
2. **Push** — Every locally unsynced note, one at a time:
   - Existence probe (``GET /notes/{id}``) decides create vs. update
   - Full-body ``POST`` or ``PUT``
   - On success the note is flagged synced, unless it was edited while the
     write was in flight; on failure its status becomes ``error``
   - A note already being pushed by another caller is skipped

Pulling first keeps a stale push from clobbering a newer remote write.
Deletes are local only and never propagated.

Failures never escape :meth:`SyncEngine.reconcile_all` or
:meth:`SyncEngine.sync_one`; they show up in the per-note status map and
in the log.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from notesync.constants import SyncStatus
from notesync.gateway.client import RemoteNotesClient, RemoteNotFoundError
from notesync.models import Note
from notesync.schemas import RemoteNote
from notesync.services.connectivity import ConnectivitySignal
from notesync.services.events import EventChannel
from notesync.store.local_store import LocalNoteStore
from notesync.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

StatusMap = dict[str, SyncStatus]


@dataclass
class SyncResult:
    """Counters describing one reconciliation run."""

    pulled_new: int = 0
    pulled_updated: int = 0
    skipped_dirty: int = 0
    pushed_created: int = 0
    pushed_updated: int = 0
    failed: int = 0
    pull_failed: bool = False
    push_failed: bool = False
    started_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None

    @property
    def pushed(self) -> int:
        return self.pushed_created + self.pushed_updated


@dataclass(frozen=True)
class SyncSummary:
    """Aggregate of the status map shown as a single badge."""

    unsynced: int = 0
    syncing: int = 0
    error: int = 0

    @property
    def label(self) -> str:
        if self.syncing:
            return "Syncing..."
        if self.error:
            return f"{self.error} sync errors"
        if self.unsynced:
            return f"{self.unsynced} unsynced"
        return "All synced"


class SyncEngine:
    """Pull-then-push reconciliation with per-note status tracking.

    Only one :meth:`reconcile_all` body runs at a time; a call that arrives
    while another is in flight, or while offline, returns immediately
    without touching the store or the network.

    Args:
        store: The local replica.
        remote: Client for the remote endpoint.
        connectivity: Gate consulted before every reconciliation.
        channel: Channel status snapshots are published on.  A private
            one is created when omitted.
    """

    def __init__(
        self,
        store: LocalNoteStore,
        remote: RemoteNotesClient,
        connectivity: ConnectivitySignal,
        channel: EventChannel[StatusMap] | None = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self._connectivity = connectivity
        self._channel: EventChannel[StatusMap] = channel if channel is not None else EventChannel("sync.status")
        self._statuses: StatusMap = {}
        self._running = False
        self.last_result: SyncResult | None = None

    # ------------------------------------------------------------------
    # Status tracking
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def subscribe(self, callback: Callable[[StatusMap], object]) -> Callable[[], None]:
        """Call *callback* with the full status map after every status change.

        Returns:
            An idempotent callable that removes the callback.
        """
        return self._channel.subscribe(callback)

    def current_status(self, note_id: str) -> SyncStatus:
        """Tracked status of *note_id*; untracked notes read as synced."""
        return self._statuses.get(note_id, SyncStatus.SYNCED)

    def statuses(self) -> StatusMap:
        return dict(self._statuses)

    def summary(self) -> SyncSummary:
        values = list(self._statuses.values())
        return SyncSummary(
            unsynced=values.count(SyncStatus.UNSYNCED),
            syncing=values.count(SyncStatus.SYNCING),
            error=values.count(SyncStatus.ERROR),
        )

    def mark_unsynced(self, note_id: str) -> None:
        """Record that *note_id* has local edits awaiting the next push."""
        self._set_status(note_id, SyncStatus.UNSYNCED)

    def forget(self, note_id: str) -> None:
        """Drop the tracked status of a note that no longer exists locally."""
        if self._statuses.pop(note_id, None) is not None:
            self._channel.publish(dict(self._statuses))

    def _set_status(self, note_id: str, status: SyncStatus) -> None:
        self._statuses[note_id] = status
        self._channel.publish(dict(self._statuses))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def reconcile_all(self) -> None:
        """Run a full pull-then-push reconciliation.

        No-op when offline or when another reconciliation is running.
        The run's counters are kept on :attr:`last_result`.
        """
        # Check-and-set happens before the first await.
        if self._running:
            logger.debug("Reconciliation already running, trigger dropped")
            return
        if not self._connectivity.is_online:
            logger.debug("Offline, reconciliation skipped")
            return
        self._running = True

        result = SyncResult()
        try:
            await self._pull(result)
            await self._push(result)
        except Exception:
            logger.warning("Reconciliation aborted", exc_info=True)
        finally:
            result.finished_at = utcnow()
            self.last_result = result
            self._running = False

        logger.info(
            "Sync completed: new=%d, updated=%d, skipped=%d, created=%d, pushed=%d, failed=%d",
            result.pulled_new,
            result.pulled_updated,
            result.skipped_dirty,
            result.pushed_created,
            result.pushed_updated,
            result.failed,
        )

    async def sync_one(self, note_id: str) -> None:
        """Push a single note if it exists locally and has pending edits.

        Skipped while the same note is already being pushed.
        """
        try:
            note = await self._store.get(note_id)
        except Exception:
            logger.warning("Failed to load note %s for sync", note_id, exc_info=True)
            return
        if note is None or note.synced:
            return
        if self._in_flight(note_id):
            logger.debug("Note %s is already being pushed, skipped", note_id)
            return
        await self._push_note(note)

    # ------------------------------------------------------------------
    # Pull logic
    # ------------------------------------------------------------------

    async def _pull(self, result: SyncResult) -> None:
        """Bring remote changes into the local replica.

        Any failure abandons the rest of the pull for this run; the push
        phase still runs.
        """
        try:
            remote_notes = await self._remote.list_notes()
            logger.debug("Pulled %d notes from remote", len(remote_notes))
            for remote_note in remote_notes:
                await self._pull_note(remote_note, result)
        except Exception:
            result.pull_failed = True
            logger.warning("Failed to pull from remote", exc_info=True)

    async def _pull_note(self, remote_note: RemoteNote, result: SyncResult) -> None:
        local = await self._store.get(remote_note.id)

        if local is None:
            await self._store.create(
                Note(
                    id=remote_note.id,
                    title=remote_note.title,
                    content=remote_note.content,
                    updated_at=remote_note.updated_at,
                    synced=True,
                )
            )
            self._set_status(remote_note.id, SyncStatus.SYNCED)
            result.pulled_new += 1
            return

        if not local.synced:
            # Pending local edits take priority and go out in the push phase
            result.skipped_dirty += 1
            logger.debug("Note %s has local edits, remote copy skipped", remote_note.id)
            return

        if remote_note.updated_at > local.updated_at_utc:
            replaced = await self._store.replace_if_unchanged(
                remote_note.id,
                title=remote_note.title,
                content=remote_note.content,
                updated_at=remote_note.updated_at,
                seen_updated_at=local.updated_at,
            )
            if not replaced:
                result.skipped_dirty += 1
                logger.debug("Note %s changed locally during pull, remote copy skipped", remote_note.id)
                return
            self._set_status(remote_note.id, SyncStatus.SYNCED)
            result.pulled_updated += 1

    # ------------------------------------------------------------------
    # Push logic
    # ------------------------------------------------------------------

    async def _push(self, result: SyncResult) -> None:
        """Push every unsynced note, one at a time."""
        try:
            unsynced = await self._store.list_unsynced()
        except Exception:
            result.push_failed = True
            logger.warning("Failed to list unsynced notes", exc_info=True)
            return

        for note in unsynced:
            if self._in_flight(note.id):
                logger.debug("Note %s is already being pushed, skipped", note.id)
                continue
            action = await self._push_note(note)
            if action == "created":
                result.pushed_created += 1
            elif action == "updated":
                result.pushed_updated += 1
            else:
                result.failed += 1

    async def _push_note(self, note: Note) -> str | None:
        """Probe, write and mark one note.

        Returns:
            ``"created"`` or ``"updated"`` on success, ``None`` on failure.
        """
        self._set_status(note.id, SyncStatus.SYNCING)

        try:
            body = RemoteNote.from_local(note)
            if await self._exists_remotely(note.id):
                accepted = await self._remote.update_note(body)
                action = "updated"
            else:
                accepted = await self._remote.create_note(body)
                action = "created"
            flagged = await self._store.mark_synced(
                note.id,
                updated_at=accepted.updated_at,
                expected_updated_at=note.updated_at,
            )
            still_present = flagged or await self._store.get(note.id) is not None
        except Exception:
            logger.warning("Failed to sync note %s", note.id, exc_info=True)
            self._set_status(note.id, SyncStatus.ERROR)
            return None

        if not flagged:
            # Edited or deleted while the write was in flight
            if still_present:
                logger.info("Note %s changed during push, left unsynced", note.id)
                self._set_status(note.id, SyncStatus.UNSYNCED)
            else:
                self.forget(note.id)
            return action

        self._set_status(note.id, SyncStatus.SYNCED)
        logger.debug("Pushed note %s (%s)", note.id, action)
        return action

    def _in_flight(self, note_id: str) -> bool:
        return self._statuses.get(note_id) == SyncStatus.SYNCING

    async def _exists_remotely(self, note_id: str) -> bool:
        """Existence probe: not-found means create, any successful read means update."""
        try:
            await self._remote.get_note(note_id)
        except RemoteNotFoundError:
            return False
        return True
