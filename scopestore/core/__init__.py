"""ScopeStore Core Module - Scopes, composition and the scope registry."""

from .scope import Scope, PendingDispatch, RESERVED_NAMES
from .composite import ComposedScope, MIN_COMPOSE_SCOPE_COUNT
from .middleware import ScopeMiddleware, LoggingMiddleware
from .store import (
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

__all__ = [
    "Scope",
    "PendingDispatch",
    "RESERVED_NAMES",
    "ComposedScope",
    "MIN_COMPOSE_SCOPE_COUNT",
    "ScopeMiddleware",
    "LoggingMiddleware",
    "ScopeStore",
    "get_store",
    "reset_store",
    "create_scope",
    "compose_scope",
    "get_scope",
    "get_state",
    "get_root_scope",
    "set_store_dev_tool",
]
