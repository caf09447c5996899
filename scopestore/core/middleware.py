"""
ScopeStore Middleware

Middleware wraps an action right before every run. Scopes store their
middleware reversed and fold it over the raw action, so the first
middleware handed to create_scope ends up outermost.
"""

from __future__ import annotations
from typing import Any, Optional, TYPE_CHECKING
import logging
import time

from ..schemas.events import ScopeAction

if TYPE_CHECKING:
    from .scope import Scope


logger = logging.getLogger(__name__)


class ScopeMiddleware:
    """
    Base class for scope middleware.

    Subclasses override one or both hooks.
    """

    def post_setup(self, scope: "Scope") -> None:
        """
        Called once after the store created the scope.

        Use it to register actions or subscribe. Locking a scope here
        works but leaves callers unable to add their own actions.
        """
        pass

    def append_action_middleware(self, action: ScopeAction) -> ScopeAction:
        """
        Wrap action and return the wrapper.

        The wrapper should return whatever the inner action returns: an
        async action only runs if its awaitable reaches the scope.
        Built-in actions, composite fan-out included, return None and do
        not depend on it.
        """
        return action


class LoggingMiddleware(ScopeMiddleware):
    """Logs start, outcome and duration of every action run."""

    def __init__(self, level: int = logging.DEBUG, log: Optional[logging.Logger] = None):
        self.level = level
        self._log = log or logger

    def append_action_middleware(self, action: ScopeAction) -> ScopeAction:
        log = self._log
        level = self.level
        action_name = getattr(action, "__name__", repr(action))

        def logged_action(state: Any, props: Any, resolve, reject):
            started = time.perf_counter()
            log.log(level, f"[Action] {action_name} started with props={props!r}")

            def elapsed_ms() -> float:
                return (time.perf_counter() - started) * 1000

            def logged_resolve(new_state=None):
                log.log(level, f"[Action] {action_name} resolved in {elapsed_ms():.2f}ms")
                resolve(new_state)

            def logged_reject(reason=None):
                log.log(level, f"[Action] {action_name} rejected in {elapsed_ms():.2f}ms: {reason!r}")
                reject(reason)

            return action(state, props, logged_resolve, logged_reject)

        logged_action.__name__ = action_name
        return logged_action
