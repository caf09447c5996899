"""
ScopeStore - In-Process Reactive State Container

ScopeStore keeps application state in named scopes. Each scope:
- Changes only through registered, asynchronous actions
- Runs its actions one at a time, in dispatch order
- Publishes deep-frozen state to its listeners
- Can be composed with other scopes into a single parent scope

ScopeStore does NOT:
- Persist state
- Transport state over the network
- Bind to any UI
- Validate the shape of state
"""

__version__ = "0.1.0"

from .core.scope import Scope
from .core.composite import ComposedScope
from .core.middleware import ScopeMiddleware, LoggingMiddleware
from .core.store import (
    ScopeStore,
    get_store,
    reset_store,
    create_scope,
    compose_scope,
    get_scope,
    get_state,
    get_root_scope,
    set_store_dev_tool,
)
from .devtools import StoreDevTool, LoggingDevTool, RecordingDevTool
from .schemas.events import ScopeEvent
from .errors import (
    StoreError,
    RegistrationError,
    ScopeExistsError,
    DispatchNotFoundError,
    SubscriptionError,
    SynchronizationError,
    CompositionError,
    ScopeNotFoundError,
    ActionRejection,
)
from .utils import deep_freeze, unique_id

__all__ = [
    # Scopes
    "Scope",
    "ComposedScope",
    "ScopeEvent",
    # Middleware
    "ScopeMiddleware",
    "LoggingMiddleware",
    # Store
    "ScopeStore",
    "get_store",
    "reset_store",
    "create_scope",
    "compose_scope",
    "get_scope",
    "get_state",
    "get_root_scope",
    "set_store_dev_tool",
    # Dev tools
    "StoreDevTool",
    "LoggingDevTool",
    "RecordingDevTool",
    # Errors
    "StoreError",
    "RegistrationError",
    "ScopeExistsError",
    "DispatchNotFoundError",
    "SubscriptionError",
    "SynchronizationError",
    "CompositionError",
    "ScopeNotFoundError",
    "ActionRejection",
    # Utilities
    "deep_freeze",
    "unique_id",
]
