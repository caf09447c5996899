"""
ScopeStore Registry

Process-wide mapping of scope names to scopes. A store is created with
its root scope already registered and is never torn down; scopes live
as long as the store does.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from ..config import StoreConfig, get_config
from ..devtools.base import StoreDevTool
from ..errors import ScopeExistsError, ScopeNotFoundError
from ..utils import unique_id
from .composite import ComposedScope
from .middleware import ScopeMiddleware
from .scope import Scope


logger = logging.getLogger(__name__)


class ScopeStore:
    """
    Registry of named scopes.

    Features:
    - Unique scope names (including composites)
    - Root scope created on initialization
    - Middleware post-setup hooks
    - Optional, replaceable dev tool
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        dev_tool: Optional[StoreDevTool] = None,
    ):
        """
        Initialize the store.

        Args:
            config: Store configuration (default: global config)
            dev_tool: Observer notified of every store event
        """
        self.config = config or get_config()
        self._dev_tool = dev_tool
        self._scopes: Dict[str, Scope] = {}
        self._root_scope = self.create_scope(self.config.root_scope_name, {})

    @property
    def dev_tool(self) -> Optional[StoreDevTool]:
        return self._dev_tool

    def set_dev_tool(self, dev_tool: Optional[StoreDevTool]) -> None:
        """Replace the dev tool. Applies to all later notifications."""
        self._dev_tool = dev_tool

    @property
    def root_scope(self) -> Scope:
        return self._root_scope

    @property
    def scope_names(self) -> List[str]:
        return list(self._scopes)

    def has_scope(self, name: str) -> bool:
        return name in self._scopes

    def create_scope(
        self,
        name: Optional[str] = None,
        initial_state: Any = None,
        middleware: Optional[List[ScopeMiddleware]] = None,
    ) -> Scope:
        """
        Create and register a new scope.

        Args:
            name: Scope name (default: generated)
            initial_state: Starting state
            middleware: Action middleware, first one outermost

        Returns:
            The new scope

        Raises:
            ScopeExistsError: name is already registered
        """
        if name is None:
            name = unique_id(self.config.scope_prefix)
        self._check_name(name)

        middleware = list(middleware or [])
        scope = Scope(name, initial_state, middleware, store=self)
        return self._register(scope, middleware)

    def compose_scope(
        self,
        name: str,
        scopes: Sequence[Union[Scope, str]],
        middleware: Optional[List[ScopeMiddleware]] = None,
    ) -> ComposedScope:
        """
        Compose existing scopes into a new, locked scope.

        Every child is locked. Children may be given by name.

        Raises:
            ScopeExistsError: name is already registered
            ScopeNotFoundError: a child name is not registered
            CompositionError: fewer than two distinct children
        """
        self._check_name(name)
        children = [
            self.get_scope(scope) if isinstance(scope, str) else scope
            for scope in scopes
        ]

        middleware = list(middleware or [])
        scope = ComposedScope(name, children, middleware, store=self)
        return self._register(scope, middleware)

    def get_scope(self, name: str) -> Scope:
        """
        Get a registered scope.

        Raises:
            ScopeNotFoundError: no scope has this name
        """
        scope = self._scopes.get(name)
        if scope is None:
            raise ScopeNotFoundError(f"Scope with name '{name}' not present")
        return scope

    def get_state(self) -> Dict[str, Any]:
        """Snapshot of every scope's current state, keyed by scope name."""
        return {name: scope.state for name, scope in self._scopes.items()}

    def _check_name(self, name: str) -> None:
        if name in self._scopes:
            raise ScopeExistsError(f"Scope name '{name}' must be unique")

    def _register(self, scope: Scope, middleware: List[ScopeMiddleware]):
        self._scopes[scope.name] = scope
        for item in middleware:
            item.post_setup(scope)
        if self._dev_tool is not None:
            self._dev_tool.on_create(scope)
        logger.debug(f"Created scope '{scope.name}'")
        return scope


# =============================================================================
# Default Store
# =============================================================================

_store: Optional[ScopeStore] = None


def get_store() -> ScopeStore:
    """Get the default store (lazy-loaded singleton)."""
    global _store
    if _store is None:
        config = get_config()
        dev_tool = None
        if config.debug:
            from ..devtools.logging_tool import LoggingDevTool
            dev_tool = LoggingDevTool(config.log_level)
        _store = ScopeStore(config, dev_tool)
    return _store


def reset_store() -> None:
    """Reset the default store (useful for testing)."""
    global _store
    _store = None


def create_scope(
    name: Optional[str] = None,
    initial_state: Any = None,
    middleware: Optional[List[ScopeMiddleware]] = None,
) -> Scope:
    """Create a scope in the default store."""
    return get_store().create_scope(name, initial_state, middleware)


def compose_scope(
    name: str,
    scopes: Sequence[Union[Scope, str]],
    middleware: Optional[List[ScopeMiddleware]] = None,
) -> ComposedScope:
    """Compose scopes in the default store."""
    return get_store().compose_scope(name, scopes, middleware)


def get_scope(name: str) -> Scope:
    """Get a scope from the default store."""
    return get_store().get_scope(name)


def get_state() -> Dict[str, Any]:
    """Snapshot of every scope state in the default store."""
    return get_store().get_state()


def get_root_scope() -> Scope:
    """Root scope of the default store."""
    return get_store().root_scope


def set_store_dev_tool(dev_tool: Optional[StoreDevTool]) -> None:
    """Set the dev tool of the default store."""
    get_store().set_dev_tool(dev_tool)
