"""
ScopeStore Errors

Structural errors are raised synchronously by the call that caused them.
ActionRejection is only ever delivered through a dispatch future.
"""

from __future__ import annotations
from typing import Any, Dict


class StoreError(Exception):
    """Base class for all scope store errors."""
    pass


class RegistrationError(StoreError):
    """Action cannot be registered (locked scope, duplicate or reserved name)."""
    pass


class ScopeExistsError(RegistrationError):
    """A scope with the same name is already registered."""
    pass


class DispatchNotFoundError(StoreError):
    """Dispatched action name is not registered on the scope."""
    pass


class SubscriptionError(StoreError):
    """Listener filter names an action the scope does not support."""
    pass


class SynchronizationError(StoreError):
    """No key given and the scope state is not a mapping."""
    pass


class CompositionError(StoreError):
    """Composite scope cannot be built."""
    pass


class ScopeNotFoundError(StoreError):
    """No scope registered under the requested name."""
    pass


class ActionRejection(StoreError):
    """
    Raised through the dispatch future when an action calls reject.

    The same instance is handed to the dev tool's on_action_error.
    """

    def __init__(
        self,
        reason: Any,
        old_state: Any,
        scope_name: str,
        action_name: str,
        props: Any = None,
    ):
        super().__init__(
            f"Action '{action_name}' rejected in scope '{scope_name}': {reason!r}"
        )
        self.reason = reason
        self.old_state = old_state
        self.scope_name = scope_name
        self.action_name = action_name
        self.props = props

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reason": self.reason,
            "old_state": self.old_state,
            "scope_name": self.scope_name,
            "action_name": self.action_name,
            "props": self.props,
        }
