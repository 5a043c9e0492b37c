"""Online/offline signal that gates when the sync engine may run.

:class:`ConnectivitySignal` holds the current boolean state and fires
events only on transitions.  :class:`ConnectivityMonitor` feeds the
signal by probing the remote health endpoint on a fixed cadence.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from notesync.gateway.client import RemoteNotesClient
from notesync.services.events import EventChannel

logger = logging.getLogger(__name__)


class ConnectivitySignal:
    """Current connectivity state with transition events.

    Args:
        online: Initial state.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._went_online: EventChannel[bool] = EventChannel("connectivity.online")
        self._went_offline: EventChannel[bool] = EventChannel("connectivity.offline")

    @property
    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        """Update the state, firing the matching event if it changed."""
        if online == self._online:
            return
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        if online:
            self._went_online.publish(True)
        else:
            self._went_offline.publish(False)

    def on_online(self, handler: Callable[[bool], object]) -> Callable[[], None]:
        return self._went_online.subscribe(handler)

    def on_offline(self, handler: Callable[[bool], object]) -> Callable[[], None]:
        return self._went_offline.subscribe(handler)


class ConnectivityMonitor:
    """Background task that probes the remote endpoint and updates a signal.

    Args:
        signal: The signal to feed.
        remote: Client whose :meth:`~RemoteNotesClient.ping` is used as the probe.
        interval: Seconds between probes.
    """

    def __init__(self, signal: ConnectivitySignal, remote: RemoteNotesClient, interval: float = 10.0) -> None:
        self._signal = signal
        self._remote = remote
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def probe(self) -> bool:
        """Probe once and push the result into the signal."""
        online = await self._remote.ping()
        self._signal.set_online(online)
        return online

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="connectivity-monitor")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await self.probe()
            await asyncio.sleep(self._interval)
