"""
ScopeStore Composite Scope

Aggregates several child scopes into one. Children are locked when the
composite is built; every action any child supports becomes a fan-out
action on the composite.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING
from types import MappingProxyType
import asyncio
import logging

from ..errors import CompositionError, RegistrationError
from ..schemas.events import ScopeAction, ScopeEvent
from .middleware import ScopeMiddleware
from .scope import Scope

if TYPE_CHECKING:
    from .store import ScopeStore


logger = logging.getLogger(__name__)


MIN_COMPOSE_SCOPE_COUNT = 2


class ComposedScope(Scope):
    """
    Scope whose state is the states of its children, keyed by child name.

    Dispatching a composite action dispatches it on every child that
    supports it and resolves once all of them resolved. Child changes are
    republished to the composite's listeners with the child's name as
    scope_name.
    """

    def __init__(
        self,
        name: str,
        children: Sequence[Scope],
        middleware: Optional[List[ScopeMiddleware]] = None,
        store: Optional["ScopeStore"] = None,
    ):
        super().__init__(name, None, middleware, store)

        unique_children: List[Scope] = []
        for child in children:
            if not any(child is seen for seen in unique_children):
                unique_children.append(child)

        if len(unique_children) < MIN_COMPOSE_SCOPE_COUNT:
            raise CompositionError(
                f"Composite scope '{name}' needs at least {MIN_COMPOSE_SCOPE_COUNT} "
                f"distinct scopes, got {len(unique_children)}"
            )

        self._children: Tuple[Scope, ...] = tuple(unique_children)

        action_names: List[str] = []
        for child in self._children:
            for action_name in child.support_actions:
                if action_name not in action_names:
                    action_names.append(action_name)
            child.lock()
            child.subscribe(self._make_child_listener(child))

        for action_name in action_names:
            try:
                self.register_action(action_name, self._make_fan_out(action_name))
            except RegistrationError as e:
                raise CompositionError(
                    f"Can't register '{action_name}' on composite scope '{name}': {e}"
                ) from e

        self.lock()
        logger.debug(
            f"Composed scope '{name}' from {[child.name for child in self._children]}"
        )

    @property
    def state(self) -> Any:
        """Recomputed on every read."""
        return MappingProxyType({child.name: child.state for child in self._children})

    @property
    def children(self) -> Tuple[Scope, ...]:
        return self._children

    def _make_fan_out(self, action_name: str) -> ScopeAction:
        def fan_out(state: Any, props: Any, resolve, reject) -> None:
            dispatches = [
                child.dispatch(action_name, props)
                for child in self._children
                if action_name in child.support_actions
            ]

            def settle(outcome: asyncio.Future) -> None:
                if outcome.cancelled():
                    reject(asyncio.CancelledError())
                    return
                exc = outcome.exception()
                if exc is not None:
                    reject(exc)
                else:
                    resolve(self.state)

            # Child dispatches start here; the return value is unused
            asyncio.gather(*dispatches).add_done_callback(settle)

        fan_out.__name__ = action_name
        return fan_out

    def _make_child_listener(self, child: Scope):
        def republish(event: ScopeEvent) -> None:
            current_state = self.state
            old_state: Dict[str, Any] = dict(current_state)
            old_state[child.name] = event.old_state
            self._emit(ScopeEvent(
                old_state=MappingProxyType(old_state),
                new_state=current_state,
                scope_name=child.name,
                action_name=event.action_name,
                props=event.props,
            ))

        return republish
