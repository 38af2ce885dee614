"""Named-channel publish/subscribe used beneath the state store.

Delivery is synchronous and in subscription order. A callback that raises is
logged and skipped; the publisher and the remaining subscribers never see the
exception.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]
Unsubscribe = Callable[[], None]


class EventBus:
    """Per-instance subscriber registry keyed by channel name."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callback]] = {}

    def subscribe(self, channel: str, callback: Callback) -> Unsubscribe:
        """Register a callback and return a function that removes it.

        The returned function may be called any number of times.
        """
        entry = _Subscription(callback)
        self._subscribers.setdefault(channel, []).append(entry)
        logger.debug(
            "Subscribed to %s (%d subscribers)", channel, len(self._subscribers[channel])
        )

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(channel)
            if not callbacks or entry not in callbacks:
                return
            callbacks.remove(entry)
            if not callbacks:
                del self._subscribers[channel]
            logger.debug("Unsubscribed from %s", channel)

        return unsubscribe

    def publish(self, channel: str, payload: Any = None) -> None:
        """Deliver payload to every current subscriber of channel."""
        callbacks = self._subscribers.get(channel)
        if not callbacks:
            logger.debug("No subscribers for %s", channel)
            return

        logger.debug("Publishing %s to %d subscribers", channel, len(callbacks))
        # Snapshot so callbacks may unsubscribe during delivery.
        for entry in list(callbacks):
            try:
                entry.callback(payload)
            except Exception:
                logger.exception("Error in subscriber for %s", channel)

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, ()))


class _Subscription:
    """Identity wrapper so the same callable can be subscribed twice."""

    __slots__ = ("callback",)

    def __init__(self, callback: Callback) -> None:
        self.callback = callback
