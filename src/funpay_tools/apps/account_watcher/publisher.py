"""Typed, non-buffering multicast of watcher events.

Handlers are plain callables registered per event type. Publication is
synchronous and fire-and-forget: an event with no matching handler is simply
dropped, so a watcher running without subscribers never accumulates memory.
A handler that raises is logged and skipped; it cannot starve the others or
break the polling loop.
"""

import logging
from collections.abc import Callable
from typing import Any

from funpay_tools.apps.account_watcher.models import WatcherEvent

logger = logging.getLogger(__name__)

type EventHandler = Callable[[Any], None]


class EventPublisher:
    """Dispatch events to the handlers subscribed to their type.

    A handler subscribed to a base class (``WatcherEvent``) receives every
    subclass event too. Handlers run in subscription order.
    """

    def __init__(self) -> None:
        """Initialize with no subscribers."""
        self._handlers: list[tuple[type[WatcherEvent], EventHandler]] = []

    def subscribe[E: WatcherEvent](
        self,
        event_type: type[E],
        handler: Callable[[E], None],
    ) -> Callable[[], None]:
        """Register ``handler`` for events of ``event_type``.

        Args:
            event_type: Event class to listen for.
            handler: Callable invoked with each matching event.

        Returns:
            A callable that removes this subscription. Calling it twice is
            harmless.

        """
        entry: tuple[type[WatcherEvent], EventHandler] = (event_type, handler)
        self._handlers.append(entry)

        def _unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return _unsubscribe

    def subscribe_all(self, handler: Callable[[WatcherEvent], None]) -> Callable[[], None]:
        """Register ``handler`` for every event type."""
        return self.subscribe(WatcherEvent, handler)

    @property
    def subscriber_count(self) -> int:
        """Return the number of active subscriptions."""
        return len(self._handlers)

    def publish(self, event: WatcherEvent) -> int:
        """Deliver ``event`` to every matching handler.

        Args:
            event: The event to deliver.

        Returns:
            Number of handlers that received the event without raising.
            Zero means the event was dropped.

        """
        delivered = 0
        for event_type, handler in list(self._handlers):
            if not isinstance(event, event_type):
                continue
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Event handler %r failed for %s",
                    handler,
                    type(event).__name__,
                )
        return delivered
