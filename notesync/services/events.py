"""In-process observable used for sync-status and connectivity events."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventChannel(Generic[T]):
    """Synchronous publish/subscribe channel.

    Handlers run in subscription order on the publisher's call stack.
    ``publish`` iterates over a snapshot of the handler list, so handlers
    may unsubscribe themselves (or others) mid-dispatch without disturbing
    the current delivery.  A handler that raises is logged and skipped.

    Args:
        name: Label used in log messages.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._handlers: list[_Subscription[T]] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Callable[[T], object]) -> Callable[[], None]:
        """Register *handler* and return an idempotent unsubscribe callable.

        The same callable may be subscribed more than once; each
        registration gets its own handle.
        """
        subscription = _Subscription(handler)
        self._handlers.append(subscription)

        def unsubscribe() -> None:
            if subscription.active:
                subscription.active = False
                self._handlers.remove(subscription)

        return unsubscribe

    def publish(self, event: T) -> None:
        for subscription in tuple(self._handlers):
            if not subscription.active:
                continue
            try:
                subscription.handler(event)
            except Exception:
                logger.warning("%s handler %r failed", self._name, subscription.handler, exc_info=True)


class _Subscription(Generic[T]):
    __slots__ = ("handler", "active")

    def __init__(self, handler: Callable[[T], object]) -> None:
        self.handler = handler
        self.active = True
