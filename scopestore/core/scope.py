"""
ScopeStore Scope

A named, independently owned piece of state that only changes through
registered actions.

Features:
- Action registry with a permanent lock
- Serialized dispatch (one action in flight per scope, FIFO)
- Middleware folded over the action on every run
- Listeners, optionally filtered by action name
- Object synchronization built on listeners
"""

from __future__ import annotations
from typing import Any, Deque, Dict, List, Optional, TYPE_CHECKING
from collections import deque
from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass
import asyncio
import inspect
import logging

from ..config import get_config
from ..errors import (
    ActionRejection,
    DispatchNotFoundError,
    RegistrationError,
    SubscriptionError,
    SynchronizationError,
)
from ..schemas.events import (
    ActionDispatcher,
    ActionFilter,
    ScopeAction,
    ScopeEvent,
    ScopeListener,
)
from ..utils import deep_freeze, is_primitive, is_record, unique_id
from .middleware import ScopeMiddleware

if TYPE_CHECKING:
    from ..devtools.base import StoreDevTool
    from .store import ScopeStore


logger = logging.getLogger(__name__)


# Public members of Scope; action names may not shadow them
RESERVED_NAMES = frozenset({
    "name",
    "state",
    "is_locked",
    "support_actions",
    "queue_size",
    "children",
    "register_action",
    "dispatch",
    "subscribe",
    "unsubscribe",
    "synchronize",
    "lock",
})


# =============================================================================
# Dispatch Queue Entry
# =============================================================================

@dataclass
class PendingDispatch:
    """A dispatch waiting in (or at the head of) a scope's queue."""
    action_name: str
    action: ScopeAction
    props: Any
    future: asyncio.Future
    loop: asyncio.AbstractEventLoop
    task: Optional[asyncio.Future] = None


def _assign(target: Any, key: Any, value: Any) -> None:
    if isinstance(target, MutableMapping):
        target[key] = value
    else:
        setattr(target, key, value)


# =============================================================================
# Scope
# =============================================================================

class Scope:
    """
    Independently owned unit of state.

    Scopes are normally created through a ScopeStore so that their
    names are unique and the store's dev tool is notified.
    """

    def __init__(
        self,
        name: str,
        initial_state: Any = None,
        middleware: Optional[List[ScopeMiddleware]] = None,
        store: Optional["ScopeStore"] = None,
    ):
        """
        Initialize a scope.

        Args:
            name: Scope name
            initial_state: Starting state, deep-frozen on entry
            middleware: Action middleware, first one outermost
            store: Owning store (supplies the dev tool and config)
        """
        self._name = name
        self._state = deep_freeze(initial_state)
        self._is_locked = False
        self._actions: Dict[str, ScopeAction] = {}
        self._listeners: Dict[str, ScopeListener] = {}
        self._queue: Deque[PendingDispatch] = deque()
        self._store = store

        # Reversed so that folding first-to-last leaves the first supplied outermost
        self._middleware: List[ScopeMiddleware] = list(middleware or [])
        self._middleware.reverse()

        config = store.config if store is not None else get_config()
        self._listener_prefix = config.listener_prefix

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} name={self._name!r} "
            f"locked={self._is_locked} actions={self.support_actions}>"
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> Any:
        return self._state

    @property
    def is_locked(self) -> bool:
        return self._is_locked

    @property
    def support_actions(self) -> List[str]:
        """Registered action names in registration order."""
        return list(self._actions)

    @property
    def queue_size(self) -> int:
        """Number of dispatches queued, including the one executing."""
        return len(self._queue)

    @property
    def _dev_tool(self) -> Optional["StoreDevTool"]:
        if self._store is None:
            return None
        return self._store.dev_tool

    def _notify_change(self) -> None:
        dev_tool = self._dev_tool
        if dev_tool is not None:
            dev_tool.on_change(self)

    # =========================================================================
    # Actions
    # =========================================================================

    def register_action(self, name: str, action: ScopeAction) -> ActionDispatcher:
        """
        Register a new action.

        Args:
            name: Action name, unique within the scope
            action: Callable (state, props, resolve, reject)

        Returns:
            Dispatcher: calling it with props dispatches the action

        Raises:
            RegistrationError: scope is locked, or the name is invalid,
                duplicate or reserved
        """
        if self._is_locked:
            raise RegistrationError(
                f"Scope '{self._name}' is locked, action '{name}' can't be added"
            )
        if not isinstance(name, str) or not name:
            raise RegistrationError(f"Action name must be a non-empty string, got {name!r}")
        if name in self._actions or name in RESERVED_NAMES:
            raise RegistrationError(
                f"Action name '{name}' is duplicate in scope '{self._name}' or is reserved"
            )
        if not callable(action):
            raise RegistrationError(f"Action '{name}' must be callable")

        self._actions[name] = action
        logger.debug(f"Registered action '{name}' in scope '{self._name}'")
        self._notify_change()

        def dispatcher(props: Any = None) -> "asyncio.Future[Any]":
            return self.dispatch(name, props)

        dispatcher.__name__ = name
        return dispatcher

    def lock(self) -> None:
        """Prevent the addition of new actions. Permanent."""
        if not self._is_locked:
            logger.debug(f"Locked scope '{self._name}'")
        self._is_locked = True
        self._notify_change()

    # =========================================================================
    # Dispatch
    # =========================================================================

    def dispatch(self, action_name: str, props: Any = None) -> "asyncio.Future[Any]":
        """
        Dispatch an action. The only way to change a scope's state.

        Must be called from a running event loop. Dispatches on one scope
        run strictly one at a time in the order they were issued.

        Args:
            action_name: Registered action to run
            props: Extra data for the action, deep-frozen if not primitive

        Returns:
            Future resolving to the new state, or failing with
            ActionRejection if the action rejects

        Raises:
            DispatchNotFoundError: action_name is not registered
        """
        action = self._actions.get(action_name)
        if action is None:
            raise DispatchNotFoundError(
                f"Action '{action_name}' not present in scope '{self._name}'"
            )

        if not is_primitive(props):
            props = deep_freeze(props)

        loop = asyncio.get_running_loop()
        pending = PendingDispatch(
            action_name=action_name,
            action=action,
            props=props,
            future=loop.create_future(),
            loop=loop,
        )
        self._queue.append(pending)
        logger.debug(
            f"Queued '{action_name}' in scope '{self._name}' (queue size: {len(self._queue)})"
        )

        if len(self._queue) == 1:
            self._run(pending)

        return pending.future

    def _run(self, pending: PendingDispatch) -> None:
        """Start the dispatch at the head of the queue."""
        old_state = self.state
        settled = False

        def resolve(new_state: Any = None) -> None:
            nonlocal settled
            if settled:
                logger.warning(
                    f"Action '{pending.action_name}' in scope '{self._name}' "
                    f"already settled, ignoring resolve"
                )
                return
            settled = True
            pending.loop.call_soon(self._commit, pending, old_state, new_state)

        def reject(reason: Any = None) -> None:
            nonlocal settled
            if settled:
                logger.warning(
                    f"Action '{pending.action_name}' in scope '{self._name}' "
                    f"already settled, ignoring reject"
                )
                return
            settled = True
            pending.loop.call_soon(self._fail, pending, old_state, reason)

        try:
            action = pending.action
            for middleware in self._middleware:
                action = middleware.append_action_middleware(action)
            result = action(old_state, pending.props, resolve, reject)
        except Exception as e:
            logger.debug(f"Action '{pending.action_name}' in scope '{self._name}' raised: {e!r}")
            reject(e)
            return

        if inspect.isawaitable(result):
            pending.task = asyncio.ensure_future(result)
            pending.task.add_done_callback(
                lambda task: self._on_action_done(task, reject)
            )

    @staticmethod
    def _on_action_done(task: asyncio.Future, reject) -> None:
        """Turn a failed async action body into a rejection."""
        if task.cancelled():
            reject(asyncio.CancelledError())
            return
        exc = task.exception()
        if exc is not None:
            reject(exc)

    def _commit(self, pending: PendingDispatch, old_state: Any, new_state: Any) -> None:
        """Publish a resolved state, notify, then advance the queue."""
        new_state = deep_freeze(new_state)
        self._state = new_state
        event = ScopeEvent(
            old_state=old_state,
            new_state=new_state,
            scope_name=self._name,
            action_name=pending.action_name,
            props=pending.props,
        )

        try:
            dev_tool = self._dev_tool
            if dev_tool is not None:
                dev_tool.on_action(event)
                dev_tool.on_change(self)
            self._emit(event)
        except Exception as e:
            self._settle(pending.future, exception=e)
        else:
            self._settle(pending.future, result=new_state)
        finally:
            self._advance()

    def _fail(self, pending: PendingDispatch, old_state: Any, reason: Any) -> None:
        """Surface a rejection, then advance the queue."""
        error = ActionRejection(
            reason=reason,
            old_state=old_state,
            scope_name=self._name,
            action_name=pending.action_name,
            props=pending.props,
        )
        logger.debug(str(error))

        try:
            dev_tool = self._dev_tool
            if dev_tool is not None:
                dev_tool.on_action_error(error)
        except Exception as e:
            self._settle(pending.future, exception=e)
        else:
            self._settle(pending.future, exception=error)
        finally:
            self._advance()

    @staticmethod
    def _settle(
        future: asyncio.Future,
        result: Any = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        # The caller may have cancelled its future; the queue moves on regardless
        if future.done():
            return
        if exception is not None:
            future.set_exception(exception)
        else:
            future.set_result(result)

    def _advance(self) -> None:
        self._queue.popleft()
        if self._queue:
            self._run(self._queue[0])

    def _emit(self, event: ScopeEvent) -> None:
        """Call every listener registered at the time of the event."""
        for listener_id in list(self._listeners):
            listener = self._listeners.get(listener_id)
            if listener is not None:
                listener(event)

    # =========================================================================
    # Listeners
    # =========================================================================

    def subscribe(self, listener: ScopeListener, action_name: ActionFilter = None) -> str:
        """
        Add a listener called after every resolved dispatch.

        Args:
            listener: Callable receiving a ScopeEvent
            action_name: Action name or names to listen to (default: all)

        Returns:
            Listener id for unsubscribe

        Raises:
            SubscriptionError: an action name is not registered
        """
        if not action_name:
            action_names: List[str] = []
        elif isinstance(action_name, str):
            action_names = [action_name]
        elif isinstance(action_name, Iterable):
            action_names = list(action_name)
        else:
            raise SubscriptionError(f"Invalid action filter: {action_name!r}")

        for name in action_names:
            if name not in self._actions:
                raise SubscriptionError(
                    f"Action '{name}' not present in scope '{self._name}'"
                )

        listener_id = unique_id(self._listener_prefix)

        if action_names:
            names = frozenset(action_names)

            def filtered(event: ScopeEvent) -> None:
                if event.action_name in names:
                    listener(event)

            self._listeners[listener_id] = filtered
        else:
            self._listeners[listener_id] = listener

        return listener_id

    def unsubscribe(self, listener_id: str) -> bool:
        """Remove a listener. Returns True if one was removed."""
        return self._listeners.pop(listener_id, None) is not None

    def synchronize(
        self,
        target: Any,
        key: Optional[str] = None,
        action_name: ActionFilter = None,
    ) -> str:
        """
        Keep an object in sync with the scope state.

        With a key, target[key] (or the attribute, for non-mappings) is set
        to the state. Without one, every item of the state is copied onto
        target. Applied once now and after every matching dispatch.

        Returns:
            Listener id for unsubscribe

        Raises:
            SynchronizationError: no key and the state is not a mapping
            SubscriptionError: action_name is not registered
        """
        if key is not None:
            def apply(state: Any) -> None:
                _assign(target, key, state)
        elif is_record(self.state):
            def apply(state: Any) -> None:
                if not is_record(state):
                    raise SynchronizationError(
                        f"State of scope '{self._name}' is no longer a mapping"
                    )
                for item_key, value in state.items():
                    _assign(target, item_key, value)
        else:
            raise SynchronizationError("If a key is not given, the scope state must be a mapping")

        listener_id = self.subscribe(lambda event: apply(event.new_state), action_name)
        apply(self.state)
        return listener_id
