"""
ScopeStore Scope Tests

Validates:
- Action registration and locking
- Serialized, FIFO dispatch
- Rejections surface through the dispatch future
- Listeners and synchronization
- Props and state are frozen
"""

import asyncio
from types import MappingProxyType, SimpleNamespace

import pytest

from scopestore.config import StoreConfig
from scopestore.core.store import ScopeStore
from scopestore.errors import (
    ActionRejection,
    DispatchNotFoundError,
    RegistrationError,
    SubscriptionError,
    SynchronizationError,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def store():
    return ScopeStore(StoreConfig())


@pytest.fixture
def counter(store):
    """Scope with state 0 and an 'add' action."""
    scope = store.create_scope("counter", 0)
    scope.register_action("add", lambda state, n, resolve, reject: resolve(state + n))
    return scope


# =============================================================================
# Registration Tests
# =============================================================================

class TestRegistration:
    """Test action registration and locking."""

    def test_register_returns_dispatcher(self, store):
        """Test that register_action returns a callable dispatcher."""
        scope = store.create_scope("reg")
        dispatcher = scope.register_action("set", lambda s, p, resolve, reject: resolve(p))

        assert callable(dispatcher)
        assert scope.support_actions == ["set"]
        assert not hasattr(scope, "set")

    def test_register_after_lock_fails(self, store):
        """Test that a locked scope rejects new actions."""
        scope = store.create_scope("locked")
        scope.register_action("a", lambda s, p, resolve, reject: resolve(s))
        scope.lock()

        assert scope.is_locked is True
        with pytest.raises(RegistrationError):
            scope.register_action("b", lambda s, p, resolve, reject: resolve(s))
        assert scope.support_actions == ["a"]

    def test_lock_is_idempotent(self, store):
        """Test that locking twice keeps the scope locked."""
        scope = store.create_scope("twice")
        scope.lock()
        scope.lock()

        assert scope.is_locked is True

    def test_duplicate_name_fails(self, counter):
        """Test that an action name can only be registered once."""
        with pytest.raises(RegistrationError):
            counter.register_action("add", lambda s, p, resolve, reject: resolve(s))

    @pytest.mark.parametrize("name", ["dispatch", "state", "lock", "subscribe"])
    def test_reserved_name_fails(self, store, name):
        """Test that action names can't shadow scope members."""
        scope = store.create_scope()
        with pytest.raises(RegistrationError):
            scope.register_action(name, lambda s, p, resolve, reject: resolve(s))

    def test_empty_name_fails(self, store):
        """Test that empty action names are refused."""
        scope = store.create_scope()
        with pytest.raises(RegistrationError):
            scope.register_action("", lambda s, p, resolve, reject: resolve(s))


# =============================================================================
# Dispatch Tests
# =============================================================================

class TestDispatch:
    """Test serialized dispatch."""

    def test_unknown_action_fails_synchronously(self, counter):
        """Test that dispatching an unknown action raises before any future exists."""
        with pytest.raises(DispatchNotFoundError):
            counter.dispatch("missing", 1)

    @pytest.mark.asyncio
    async def test_back_to_back_dispatches(self, counter):
        """Test two dispatches issued without awaiting the first."""
        events = []
        counter.subscribe(lambda e: events.append((e.old_state, e.new_state)))

        first = counter.dispatch("add", 5)
        second = counter.dispatch("add", 3)

        assert await second == 8
        assert await first == 5
        assert counter.state == 8
        assert events == [(0, 5), (5, 8)]

    @pytest.mark.asyncio
    async def test_dispatcher_dispatches(self, store):
        """Test that the returned dispatcher behaves like dispatch."""
        scope = store.create_scope("disp", 1)
        double = scope.register_action("double", lambda s, p, resolve, reject: resolve(s * 2))

        assert await double() == 2
        assert await double() == 4

    @pytest.mark.asyncio
    async def test_fifo_order_with_slow_actions(self, store):
        """Test that earlier slow actions still finish before later fast ones start."""
        scope = store.create_scope("fifo", [])
        in_flight = 0
        max_in_flight = 0
        started = []

        async def append(state, delay, resolve, reject):
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            started.append(delay)
            await asyncio.sleep(delay)
            in_flight -= 1
            resolve((*state, delay))

        scope.register_action("append", append)

        delays = [0.03, 0.02, 0.01, 0]
        futures = [scope.dispatch("append", d) for d in delays]
        results = await asyncio.gather(*futures)

        assert started == delays
        assert max_in_flight == 1
        assert scope.state == tuple(delays)
        assert results[-1] == tuple(delays)

    @pytest.mark.asyncio
    async def test_old_state_captured_at_execution(self, counter):
        """Test that queued actions see the state left by the previous one."""
        seen = []

        def record(state, props, resolve, reject):
            seen.append(state)
            resolve(state)

        counter.register_action("record", record)
        counter.dispatch("add", 10)
        await counter.dispatch("record")

        assert seen == [10]

    @pytest.mark.asyncio
    async def test_event_chain_continuity(self, counter):
        """Test that each event starts where the previous one ended."""
        events = []
        counter.subscribe(events.append)

        await asyncio.gather(*[counter.dispatch("add", n) for n in range(1, 6)])

        for previous, current in zip(events, events[1:]):
            assert current.old_state == previous.new_state
        assert events[-1].new_state == 15

    @pytest.mark.asyncio
    async def test_queue_size(self, counter):
        """Test that the queue holds the running dispatch plus pending ones."""
        futures = [counter.dispatch("add", 1) for _ in range(3)]

        assert counter.queue_size == 3
        await asyncio.gather(*futures)
        assert counter.queue_size == 0


# =============================================================================
# Rejection Tests
# =============================================================================

class TestRejection:
    """Test that failures are surfaced and the queue advances."""

    @pytest.mark.asyncio
    async def test_reject_fails_future(self, counter):
        """Test that reject fails the future with the full error payload."""
        counter.register_action("fail", lambda s, p, resolve, reject: reject("nope"))

        with pytest.raises(ActionRejection) as exc_info:
            await counter.dispatch("fail", {"why": "test"})

        error = exc_info.value
        assert error.reason == "nope"
        assert error.old_state == 0
        assert error.scope_name == "counter"
        assert error.action_name == "fail"
        assert error.props["why"] == "test"
        assert counter.state == 0

    @pytest.mark.asyncio
    async def test_queue_advances_after_reject(self, counter):
        """Test that a rejected dispatch does not block later ones."""
        counter.register_action("fail", lambda s, p, resolve, reject: reject("nope"))

        failed = counter.dispatch("fail")
        succeeded = counter.dispatch("add", 2)

        assert await succeeded == 2
        with pytest.raises(ActionRejection):
            await failed

    @pytest.mark.asyncio
    async def test_reject_does_not_notify_listeners(self, counter):
        """Test that listeners only see resolved dispatches."""
        events = []
        counter.subscribe(events.append)
        counter.register_action("fail", lambda s, p, resolve, reject: reject("nope"))

        with pytest.raises(ActionRejection):
            await counter.dispatch("fail")

        assert events == []

    @pytest.mark.asyncio
    async def test_raised_exception_rejects(self, counter):
        """Test that an exception from the action body counts as a rejection."""
        def explode(state, props, resolve, reject):
            raise ValueError("boom")

        counter.register_action("explode", explode)

        with pytest.raises(ActionRejection) as exc_info:
            await counter.dispatch("explode")

        assert isinstance(exc_info.value.reason, ValueError)
        assert await counter.dispatch("add", 1) == 1

    @pytest.mark.asyncio
    async def test_async_exception_rejects(self, counter):
        """Test that an exception from an async action counts as a rejection."""
        async def explode(state, props, resolve, reject):
            await asyncio.sleep(0)
            raise KeyError("missing")

        counter.register_action("explode", explode)

        with pytest.raises(ActionRejection) as exc_info:
            await counter.dispatch("explode")

        assert isinstance(exc_info.value.reason, KeyError)

    @pytest.mark.asyncio
    async def test_first_settlement_wins(self, counter):
        """Test that calls after the first resolve/reject are ignored."""
        def settle_twice(state, props, resolve, reject):
            resolve(1)
            resolve(2)
            reject("late")

        counter.register_action("twice", settle_twice)

        assert await counter.dispatch("twice") == 1
        assert counter.state == 1


# =============================================================================
# Listener Tests
# =============================================================================

class TestListeners:
    """Test subscribe and unsubscribe."""

    def test_subscribe_unknown_action_fails(self, counter):
        """Test that filters must name registered actions."""
        with pytest.raises(SubscriptionError):
            counter.subscribe(lambda e: None, "missing")
        with pytest.raises(SubscriptionError):
            counter.subscribe(lambda e: None, ["add", "missing"])

    def test_listener_ids_are_unique(self, counter):
        """Test that every subscription gets its own id."""
        first = counter.subscribe(lambda e: None)
        second = counter.subscribe(lambda e: None)

        assert first != second
        assert first.startswith("listener")

    @pytest.mark.asyncio
    async def test_filtered_listener(self, counter):
        """Test that a filtered listener only sees its actions."""
        counter.register_action("reset", lambda s, p, resolve, reject: resolve(0))
        add_events = []
        all_events = []
        counter.subscribe(add_events.append, "add")
        counter.subscribe(all_events.append)

        await counter.dispatch("add", 1)
        await counter.dispatch("reset")

        assert [e.action_name for e in add_events] == ["add"]
        assert [e.action_name for e in all_events] == ["add", "reset"]

    @pytest.mark.asyncio
    async def test_event_payload(self, counter):
        """Test the fields of a dispatched event."""
        events = []
        counter.subscribe(events.append)

        await counter.dispatch("add", 4)

        event = events[0]
        assert event.old_state == 0
        assert event.new_state == 4
        assert event.scope_name == "counter"
        assert event.action_name == "add"
        assert event.props == 4

    @pytest.mark.asyncio
    async def test_unsubscribe(self, counter):
        """Test that unsubscribed listeners are no longer called."""
        events = []
        listener_id = counter.subscribe(events.append)

        assert counter.unsubscribe(listener_id) is True
        assert counter.unsubscribe(listener_id) is False

        await counter.dispatch("add", 1)
        assert events == []

    @pytest.mark.asyncio
    async def test_unsubscribe_during_notification(self, counter):
        """Test that a listener removed by an earlier listener is skipped."""
        events = []
        second_id = None

        def first(event):
            counter.unsubscribe(second_id)

        counter.subscribe(first)
        second_id = counter.subscribe(events.append)

        await counter.dispatch("add", 1)
        assert events == []

    @pytest.mark.asyncio
    async def test_listener_sees_published_state(self, counter):
        """Test that listeners run after the new state is published."""
        seen = []
        counter.subscribe(lambda e: seen.append(counter.state == e.new_state))

        await counter.dispatch("add", 3)
        assert seen == [True]

    @pytest.mark.asyncio
    async def test_listener_error_fails_dispatch(self, counter):
        """Test that a failing listener fails its dispatch but not the queue."""
        def broken(event):
            raise RuntimeError("listener failed")

        listener_id = counter.subscribe(broken)
        failing = counter.dispatch("add", 1)
        following = counter.dispatch("add", 1)

        with pytest.raises(RuntimeError):
            await failing
        counter.unsubscribe(listener_id)
        assert await following == 2


# =============================================================================
# Synchronize Tests
# =============================================================================

class TestSynchronize:
    """Test object synchronization."""

    @pytest.fixture
    def record_scope(self, store):
        scope = store.create_scope("record", {"a": 1, "b": 2})
        scope.register_action(
            "set_b",
            lambda state, b, resolve, reject: resolve({**state, "b": b}),
        )
        return scope

    @pytest.mark.asyncio
    async def test_synchronize_all_items(self, record_scope):
        """Test copying every item of a mapping state onto an object."""
        target = SimpleNamespace()
        record_scope.synchronize(target)

        assert target.a == 1
        assert target.b == 2

        await record_scope.dispatch("set_b", 9)
        assert target.a == 1
        assert target.b == 9

    @pytest.mark.asyncio
    async def test_synchronize_with_key(self, counter):
        """Test setting the whole state under one key."""
        target = {}
        counter.synchronize(target, "value")

        assert target == {"value": 0}

        await counter.dispatch("add", 7)
        assert target == {"value": 7}

    def test_synchronize_requires_mapping_state(self, counter):
        """Test that a non-mapping state needs a key."""
        with pytest.raises(SynchronizationError):
            counter.synchronize(SimpleNamespace())

    def test_synchronize_unknown_action_fails(self, counter):
        """Test that synchronize validates its action filter without touching the target."""
        target = {}
        with pytest.raises(SubscriptionError):
            counter.synchronize(target, "value", "missing")
        assert target == {}

    @pytest.mark.asyncio
    async def test_synchronize_stops_after_unsubscribe(self, counter):
        """Test that synchronization is an ordinary listener."""
        target = SimpleNamespace()
        listener_id = counter.synchronize(target, "value")
        counter.unsubscribe(listener_id)

        await counter.dispatch("add", 1)
        assert target.value == 0


# =============================================================================
# Immutability Tests
# =============================================================================

class TestImmutability:
    """Test that published state and props can't be mutated."""

    @pytest.mark.asyncio
    async def test_props_are_frozen(self, store):
        """Test that the action receives frozen props."""
        scope = store.create_scope("props", None)
        received = []

        def keep(state, props, resolve, reject):
            received.append(props)
            resolve(props)

        scope.register_action("keep", keep)
        payload = {"items": [1, 2]}
        await scope.dispatch("keep", payload)
        payload["items"].append(3)

        props = received[0]
        assert isinstance(props, MappingProxyType)
        assert props["items"] == (1, 2)
        with pytest.raises(TypeError):
            props["items"] = []

    @pytest.mark.asyncio
    async def test_published_state_is_frozen(self, store):
        """Test that resolved state is deep-frozen before publication."""
        scope = store.create_scope("frozen", {})
        scope.register_action(
            "put",
            lambda state, p, resolve, reject: resolve({"list": [1], "nested": {"x": 1}}),
        )

        state = await scope.dispatch("put")

        assert state is scope.state
        assert state["list"] == (1,)
        with pytest.raises(TypeError):
            state["nested"]["x"] = 2

    def test_initial_state_is_frozen(self, store):
        """Test that the initial state is frozen as well."""
        scope = store.create_scope("initial", {"a": [1]})

        assert isinstance(scope.state, MappingProxyType)
        assert scope.state["a"] == (1,)
