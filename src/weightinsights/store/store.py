"""Reactive state store.

All mutation goes through `Store.dispatch`, which runs the reducer, then
notifies general subscribers with a `StateChange`, then publishes the
action's channel payload (if the action has a channel) on the store's own
`EventBus`. Readers only ever see deep copies of the canonical state, and each
listener gets its own copy of the change or payload.

The store is single-threaded and run-to-completion: there is no locking,
and listeners must not assume anything about ordering if they dispatch from
inside a notification.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from weightinsights.events import EventBus
from weightinsights.store.actions import Action, Channel, channel_for, channel_payload
from weightinsights.store.reducer import reduce
from weightinsights.store.state import AppState, initial_state

logger = logging.getLogger(__name__)

Reducer = Callable[[AppState, Action], AppState]
Unsubscribe = Callable[[], None]


@dataclass
class StateChange:
    """What general subscribers receive after every dispatch."""

    new_state: AppState
    previous_state: AppState
    action: Action


Listener = Callable[[StateChange], None]


def _noop() -> None:
    return None


class Store:
    """Owner of the application state."""

    def __init__(
        self,
        initial: Optional[AppState] = None,
        reducer: Reducer = reduce,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._state = copy.deepcopy(initial) if initial is not None else initial_state()
        self._reducer = reducer
        self._bus = bus or EventBus()
        self._listeners: list[_ListenerEntry] = []

    def get_state(self) -> AppState:
        """Deep copy of the current state."""
        return copy.deepcopy(self._state)

    def dispatch(self, action: Union[Action, dict, Any]) -> None:
        """Apply an action and notify subscribers.

        Malformed actions (no string type) are logged and ignored. Listener
        exceptions are logged and never propagate.
        """
        coerced = Action.coerce(action)
        if coerced is None:
            logger.error("Invalid action dispatched: %r", action)
            return

        previous = copy.deepcopy(self._state)
        self._state = self._reducer(self._state, coerced)

        change = StateChange(
            new_state=copy.deepcopy(self._state),
            previous_state=previous,
            action=coerced,
        )
        for entry in list(self._listeners):
            try:
                entry.listener(copy.deepcopy(change))
            except Exception:
                logger.exception("Error in general subscriber for %s", coerced.type)

        channel = channel_for(coerced.type)
        if channel is not None:
            payload = copy.deepcopy(channel_payload(coerced.type, self._state))
            self._bus.publish(channel.value, payload)

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Call listener with a StateChange after every dispatch."""
        if not callable(listener):
            return _noop
        entry = _ListenerEntry(listener)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)
                logger.debug("General subscriber unsubscribed")

        return unsubscribe

    def subscribe_to_channel(
        self, channel: Union[Channel, str], listener: Callable[[Any], None]
    ) -> Unsubscribe:
        """Call listener with the channel payload whenever channel fires."""
        if not callable(listener):
            return _noop
        name = channel.value if isinstance(channel, Channel) else channel

        def deliver(payload: Any) -> None:
            listener(copy.deepcopy(payload))

        return self._bus.subscribe(name, deliver)


class _ListenerEntry:
    __slots__ = ("listener",)

    def __init__(self, listener: Listener) -> None:
        self.listener = listener
