"""Reactive state store: actions, reducer, state tree and selectors."""

from __future__ import annotations

from weightinsights.store.actions import ACTION_CHANNELS, Action, ActionType, Channel
from weightinsights.store.reducer import reduce
from weightinsights.store.state import AppState, DateRange, TrendConfig, initial_state
from weightinsights.store.store import StateChange, Store

__all__ = [
    "ACTION_CHANNELS",
    "Action",
    "ActionType",
    "AppState",
    "Channel",
    "DateRange",
    "StateChange",
    "Store",
    "TrendConfig",
    "initial_state",
    "reduce",
]
