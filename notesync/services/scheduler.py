"""Triggers that drive :meth:`SyncEngine.reconcile_all`.

Two triggers call the same entry point:

- a periodic loop, every ``interval`` seconds;
- a connectivity-restored event, after ``reconnect_delay`` seconds so the
  connection can settle.

Neither trigger coordinates with the other; the engine's single-flight
guard drops whichever arrives while a run is in progress.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from notesync.services.connectivity import ConnectivitySignal
from notesync.services.sync_service import SyncEngine

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Periodic and reconnect-driven reconciliation.

    Args:
        engine: The engine to drive.
        connectivity: Signal whose online transitions schedule a run.
        interval: Seconds between periodic runs.
        reconnect_delay: Seconds to wait after coming online before running.
    """

    def __init__(
        self,
        engine: SyncEngine,
        connectivity: ConnectivitySignal,
        interval: float = 30.0,
        reconnect_delay: float = 1.0,
    ) -> None:
        self._engine = engine
        self._connectivity = connectivity
        self._interval = interval
        self._reconnect_delay = reconnect_delay
        self._periodic_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    def start(self) -> None:
        """Start the periodic loop and listen for online transitions."""
        if self.running:
            return
        self._periodic_task = asyncio.create_task(self._run_periodic(), name="sync-periodic")
        self._unsubscribe = self._connectivity.on_online(self._handle_online)
        logger.info(
            "Sync scheduler started (interval=%.1fs, reconnect_delay=%.1fs)",
            self._interval,
            self._reconnect_delay,
        )

    async def stop(self) -> None:
        """Cancel the periodic loop and any pending reconnect runs."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        tasks = [t for t in (self._periodic_task, *self._pending) if t is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._periodic_task = None
        self._pending.clear()

    async def trigger(self) -> None:
        """Run one reconciliation now (dropped by the engine if one is running)."""
        await self._engine.reconcile_all()

    def _handle_online(self, _online: bool) -> None:
        task = asyncio.create_task(self._run_after_reconnect(), name="sync-reconnect")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_after_reconnect(self) -> None:
        await asyncio.sleep(self._reconnect_delay)
        logger.info("Connectivity restored, starting reconciliation")
        await self._engine.reconcile_all()

    async def _run_periodic(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self._engine.reconcile_all()
