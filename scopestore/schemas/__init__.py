"""ScopeStore Schemas Package - Event payloads and callable shapes."""

from .events import (
    ScopeEvent,
    ScopeAction,
    ScopeListener,
    ActionDispatcher,
    ActionFilter,
    Resolve,
    Reject,
)

__all__ = [
    "ScopeEvent",
    "ScopeAction",
    "ScopeListener",
    "ActionDispatcher",
    "ActionFilter",
    "Resolve",
    "Reject",
]
