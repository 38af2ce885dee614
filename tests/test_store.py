"""Tests for the reactive state store."""

from __future__ import annotations

import pytest

from weightinsights.store import Action, ActionType, Channel, Store
from weightinsights.store.actions import (
    ACTION_CHANNELS,
    channel_for,
    channel_payload,
    set_theme,
)
from weightinsights.store.reducer import HANDLERS
from weightinsights.store.state import initial_state


class TestActionVocabulary:
    """Tests for the closed action and channel sets."""

    def test_every_action_has_a_handler(self) -> None:
        assert set(HANDLERS) == set(ActionType)

    def test_channel_table_builds_payloads(self) -> None:
        state = initial_state()
        for action_type, channel in ACTION_CHANNELS.items():
            assert channel_for(action_type) is channel
            channel_payload(action_type, state)

    def test_general_only_actions(self) -> None:
        assert channel_for(ActionType.SET_INITIAL_DATA) is None
        assert channel_for(ActionType.INITIALIZE_START) is None
        assert channel_for("NOT_AN_ACTION") is None

    def test_coerce_mapping(self) -> None:
        action = Action.coerce({"type": "SET_THEME", "payload": "dark"})
        assert action == Action(ActionType.SET_THEME, "dark")

    def test_coerce_rejects_missing_type(self) -> None:
        assert Action.coerce({"payload": 1}) is None
        assert Action.coerce({"type": 3}) is None
        assert Action.coerce("SET_THEME") is None


class TestDispatch:
    """Tests for Store.dispatch and notifications."""

    def test_theme_channel_fires_once(self, store) -> None:
        theme_events = []
        goal_events = []
        store.subscribe_to_channel(Channel.THEME_UPDATED, theme_events.append)
        store.subscribe_to_channel("state:goalChanged", goal_events.append)

        store.dispatch(set_theme("dark"))

        assert theme_events == [{"theme": "dark"}]
        assert goal_events == []
        assert store.get_state().current_theme == "dark"

    def test_general_subscriber_sees_both_states(self, store) -> None:
        changes = []
        store.subscribe(changes.append)
        store.dispatch(set_theme("dark"))

        assert len(changes) == 1
        assert changes[0].previous_state.current_theme == "light"
        assert changes[0].new_state.current_theme == "dark"
        assert changes[0].action.type is ActionType.SET_THEME

    def test_unknown_action_leaves_state_unchanged(self, store) -> None:
        before = store.get_state()
        changes = []
        store.subscribe(changes.append)

        store.dispatch({"type": "SOMETHING_ELSE", "payload": 1})

        assert store.get_state() == before
        assert len(changes) == 1

    def test_malformed_action_is_ignored(self, store) -> None:
        before = store.get_state()
        changes = []
        store.subscribe(changes.append)

        store.dispatch({"payload": "no type"})
        store.dispatch(None)

        assert changes == []
        assert store.get_state() == before

    def test_throwing_subscriber_is_isolated(self, store) -> None:
        received = []

        def broken(change):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(received.append)
        store.subscribe_to_channel(Channel.THEME_UPDATED, broken)
        store.subscribe_to_channel(Channel.THEME_UPDATED, received.append)

        store.dispatch(set_theme("dark"))

        assert len(received) == 2

    def test_unsubscribe_is_idempotent(self, store) -> None:
        changes = []
        unsubscribe = store.subscribe(changes.append)
        unsubscribe()
        unsubscribe()
        store.dispatch(set_theme("dark"))
        assert changes == []

    def test_non_callable_listener(self, store) -> None:
        unsubscribe = store.subscribe("not callable")  # type: ignore[arg-type]
        store.dispatch(set_theme("dark"))
        unsubscribe()

    def test_channel_unsubscribe(self, store) -> None:
        events = []
        unsubscribe = store.subscribe_to_channel(Channel.THEME_UPDATED, events.append)
        unsubscribe()
        store.dispatch(set_theme("dark"))
        assert events == []


class TestSnapshots:
    """Readers never share objects with the canonical state."""

    def test_get_state_is_a_copy(self, store) -> None:
        snapshot = store.get_state()
        snapshot.series_visibility["raw"] = False
        snapshot.annotations.append("junk")  # type: ignore[arg-type]
        assert store.get_state().series_visibility["raw"] is True
        assert store.get_state().annotations == []

    def test_channel_payload_is_a_copy(self, store) -> None:
        payloads = []
        store.subscribe_to_channel(Channel.VISIBILITY_CHANGED, payloads.append)
        store.dispatch(
            Action(ActionType.TOGGLE_SERIES_VISIBILITY, {"series_id": "raw", "is_visible": False})
        )
        payloads[0]["visibility"]["ema_line"] = False
        assert store.get_state().series_visibility["ema_line"] is True

    def test_channel_listeners_get_separate_payloads(self, store) -> None:
        seen = []

        def tamper(payload):
            payload.update(theme="tampered")

        store.subscribe_to_channel(Channel.THEME_UPDATED, tamper)
        store.subscribe_to_channel(Channel.THEME_UPDATED, seen.append)
        store.dispatch(set_theme("dark"))

        assert seen == [{"theme": "dark"}]

    def test_general_listeners_get_separate_changes(self, store) -> None:
        seen = []

        def tamper(change):
            change.new_state.current_theme = "tampered"

        store.subscribe(tamper)
        store.subscribe(lambda change: seen.append(change.new_state.current_theme))
        store.dispatch(set_theme("dark"))

        assert seen == ["dark"]

    def test_initial_state_is_copied(self) -> None:
        initial = initial_state()
        store = Store(initial)
        initial.current_theme = "mutated"
        assert store.get_state().current_theme == "light"


class TestCustomReducer:
    """The reducer is injectable."""

    def test_custom_reducer_used(self) -> None:
        calls = []

        def reducer(state, action):
            calls.append(action.type)
            return state

        store = Store(reducer=reducer)
        store.dispatch(set_theme("dark"))
        assert calls == [ActionType.SET_THEME]
        assert store.get_state().current_theme == "light"


@pytest.mark.parametrize("theme", ["dark", "light"])
def test_theme_round_trip(theme) -> None:
    store = Store()
    store.dispatch({"type": "SET_THEME", "payload": theme})
    assert store.get_state().current_theme == theme
