"""
ScopeStore Event Schemas

Payloads delivered to listeners and dev tools, and the callable shapes
an action, listener and dispatcher must have.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict


# =============================================================================
# Callable Shapes
# =============================================================================

Resolve = Callable[[Any], None]
Reject = Callable[[Any], None]

# action(state, props, resolve, reject); may return an awaitable
ScopeAction = Callable[[Any, Any, Resolve, Reject], Optional[Awaitable[Any]]]

ActionDispatcher = Callable[..., Awaitable[Any]]

ActionFilter = Union[str, List[str], Tuple[str, ...], None]


# =============================================================================
# Scope Event
# =============================================================================

class ScopeEvent(BaseModel):
    """
    Emitted after an action resolved and the new state was published.

    For events republished by a composite scope, scope_name is the name
    of the child that changed.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    old_state: Any = None
    new_state: Any = None
    scope_name: str
    action_name: str
    props: Any = None


ScopeListener = Callable[[ScopeEvent], None]
