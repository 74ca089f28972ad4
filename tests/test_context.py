"""Tests for AnnoContext: instance directory, delegates and completions."""

import asyncio

import pytest

from annoctx.core.actions import UNREGISTER_ACTION_TYPE, Action
from annoctx.core.context import AnnoContext
from annoctx.core.instance import InstancedConstructor, is_disbanded
from annoctx.core.registry import ModelRegistry
from annoctx.core.types import ModelKind
from annoctx.foundation.errors import (
    DuplicateInstancePath,
    InstanceNotFound,
    InvalidInstanceKey,
    ModelNotFound,
    StoreNotBound,
)


class Counter:
    pass


class Todo:
    pass


class Unregistered:
    pass


class RecordingStore:
    """Store stub returning a fixed result and recording actions."""

    def __init__(self, result=None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.actions: list[Action] = []

    def dispatch(self, action):
        self.actions.append(action)
        if self.error is not None:
            raise self.error
        return self.result

    def get_state(self):
        return {}


@pytest.fixture
def registry(make_meta) -> ModelRegistry:
    registry = ModelRegistry()
    registry.register_model(Counter, *make_meta(Counter, "Counter"))
    registry.register_model(Todo, *make_meta(Todo, "Todo", ModelKind.PROTOTYPE))
    return registry


@pytest.fixture
def context(registry: ModelRegistry) -> AnnoContext:
    return AnnoContext(registry, "main")


def _build(context: AnnoContext, model, key=None):
    return context.get_instance_constructor(model)(key=key)


class TestModelSection:
    """Per-context delegates and bound constructors."""

    def test_delegate_is_cached(self, context: AnnoContext) -> None:
        first = context.get_model_meta("Counter")

        assert first is context.get_model_meta(Counter)
        assert first.name == "Counter"
        assert first.kind is ModelKind.SINGLETON
        assert first.singleton_instance is None

    def test_unknown_model_meta(self, context: AnnoContext) -> None:
        assert context.get_model_meta("Missing") is None
        assert context.get_model_constructors(Unregistered) is None
        assert context.get_instance_constructor("Missing") is None

    def test_bound_constructor_is_stable(self, context: AnnoContext, registry: ModelRegistry) -> None:
        """Repeated lookups return the identical bound constructor."""
        first = context.get_instance_constructor(Counter)

        assert first is context.get_instance_constructor("Counter")
        assert first is not registry.get_instance_constructor(Counter)
        assert first.context is context
        assert first.context_name == "main"

    def test_contexts_do_not_share_delegates(self, registry: ModelRegistry) -> None:
        a = AnnoContext(registry, "a")
        b = AnnoContext(registry, "b")

        assert a.get_model_meta("Counter") is not b.get_model_meta("Counter")
        assert a.get_model_meta("Counter").meta is b.get_model_meta("Counter").meta

    def test_register_model_creates_delegate(self, context: AnnoContext, make_meta) -> None:
        class Extra:
            pass

        context.register_model(Extra, *make_meta(Extra, "Extra"))

        assert "Extra" in context.registry
        assert [d.name for d in context.get_all_model_meta()] == ["Extra"]


class TestInstanceSection:
    """The instance directory."""

    def test_add_and_get_singleton(self, context: AnnoContext) -> None:
        counter = _build(context, Counter)

        context.add_one_instance(counter)

        assert counter.context_name == "main"
        assert context.get_one_instance(Counter) is counter
        assert context.get_one_instance("Counter") is counter
        assert context.get_model_meta(Counter).singleton_instance is counter
        assert context.instances() == {"Counter": counter}

    def test_add_and_get_prototype(self, context: AnnoContext) -> None:
        todo = _build(context, Todo, key="a1")

        context.add_one_instance(todo)

        assert context.get_one_instance(Todo, "a1") is todo
        assert context.get_model_meta(Todo).instances_by_key == {"a1": todo}
        assert context.has_instance("Todo", "a1")
        assert "TodoÆa1" in context.instances()

    def test_duplicate_path_rejected(self, context: AnnoContext) -> None:
        first = _build(context, Counter)
        context.add_one_instance(first)

        with pytest.raises(DuplicateInstancePath) as exc_info:
            context.add_one_instance(_build(context, Counter))

        assert exc_info.value.path == "Counter"
        assert context.get_one_instance(Counter) is first

    def test_unknown_model_rejected_without_mutation(self, context: AnnoContext) -> None:
        stray = InstancedConstructor(Unregistered, "Unregistered", ModelKind.SINGLETON)()

        with pytest.raises(ModelNotFound):
            context.add_one_instance(stray)

        assert context.instances() == {}

    def test_prototype_without_key_rejected(self, context: AnnoContext) -> None:
        keyless = InstancedConstructor(Todo, "Todo", ModelKind.SINGLETON)()

        with pytest.raises(InvalidInstanceKey):
            context.add_one_instance(keyless)

        assert context.instances() == {}
        assert context.get_model_meta(Todo).instances_by_key == {}

    def test_singleton_with_key_rejected(self, context: AnnoContext) -> None:
        """A keyed instance never lands in a singleton slot."""
        keyed = InstancedConstructor(Counter, "Counter", ModelKind.PROTOTYPE)(key="k")

        with pytest.raises(InvalidInstanceKey) as exc_info:
            context.add_one_instance(keyed)

        assert exc_info.value.path == "CounterÆk"
        assert context.instances() == {}
        assert context.get_model_meta(Counter).singleton_instance is None

    def test_singleton_slot_matches_directory(self, context: AnnoContext) -> None:
        counter = _build(context, Counter)
        context.add_one_instance(counter)

        with pytest.raises(InvalidInstanceKey):
            context.add_one_instance(
                InstancedConstructor(Counter, "Counter", ModelKind.PROTOTYPE)(key="k")
            )

        assert context.get_model_meta(Counter).singleton_instance is counter
        assert context.instances() == {"Counter": counter}
        assert context.remove_one_instance(Counter) is counter
        assert context.get_model_meta(Counter).singleton_instance is None

    def test_keyed_instances_coexist(self, context: AnnoContext) -> None:
        a = _build(context, Todo, key="a")
        b = _build(context, Todo, key="b")
        context.add_one_instance(a)
        context.add_one_instance(b)

        context.remove_one_instance(Todo, "a")

        assert context.get_one_instance(Todo, "b") is b
        assert not context.has_instance(Todo, "a")

    def test_remove_returns_instance(self, context: AnnoContext) -> None:
        todo = _build(context, Todo, key="k")
        context.add_one_instance(todo)

        assert context.remove_one_instance("Todo", "k") is todo
        assert not context.has_instance(Todo, "k")
        assert context.get_model_meta(Todo).instances_by_key == {}

    def test_remove_singleton_clears_slot(self, context: AnnoContext) -> None:
        context.add_one_instance(_build(context, Counter))

        context.remove_one_instance(Counter)

        assert context.get_model_meta(Counter).singleton_instance is None

    @pytest.mark.parametrize(
        "model,key,path",
        [
            ("Counter", None, "Counter"),
            ("Todo", "nope", "TodoÆnope"),
            ("Missing", None, "Missing"),
            (Unregistered, "k", "UnregisteredÆk"),
        ],
    )
    def test_remove_absent_raises(self, context: AnnoContext, model, key, path) -> None:
        with pytest.raises(InstanceNotFound) as exc_info:
            context.remove_one_instance(model, key)

        assert exc_info.value.path == path

    def test_get_absent_instance(self, context: AnnoContext) -> None:
        with pytest.raises(InstanceNotFound) as exc_info:
            context.get_one_instance(Todo, "zz")

        assert exc_info.value.path == "TodoÆzz"
        assert exc_info.value.__cause__ is None

    def test_get_unknown_model(self, context: AnnoContext) -> None:
        with pytest.raises(ModelNotFound) as exc_info:
            context.get_one_instance(Unregistered)

        assert exc_info.value.model_name == "Unregistered"

    def test_path_reusable_after_remove(self, context: AnnoContext) -> None:
        """absent → registered → absent → registered"""
        context.add_one_instance(_build(context, Counter))
        context.remove_one_instance(Counter)
        second = _build(context, Counter)

        context.add_one_instance(second)

        assert context.get_one_instance(Counter) is second

    def test_clear_instance_map(self, context: AnnoContext) -> None:
        counter = _build(context, Counter)
        context.add_one_instance(counter)
        context.add_one_instance(_build(context, Todo, key="1"))

        context.clear_instance_map()

        assert context.instances() == {}
        assert context.get_model_meta(Counter).singleton_instance is None
        assert context.get_model_meta(Todo).instances_by_key == {}
        assert is_disbanded(counter)

    def test_clear_instance_map_unregisters_from_store(self, context: AnnoContext) -> None:
        store = RecordingStore()
        context.bind_store(store)
        counter = _build(context, Counter)
        todo = _build(context, Todo, key="1")
        context.add_one_instance(counter)
        context.add_one_instance(todo)

        context.clear_instance_map()

        assert [a.type for a in store.actions] == [UNREGISTER_ACTION_TYPE]
        assert store.actions[0].payload == [counter, todo]

    def test_clear_empty_map_dispatches_nothing(self, context: AnnoContext) -> None:
        store = RecordingStore()
        context.bind_store(store)

        context.clear_instance_map()

        assert store.actions == []

    def test_instances_returns_snapshot(self, context: AnnoContext) -> None:
        snapshot = context.instances()
        context.add_one_instance(_build(context, Counter))

        assert snapshot == {}


class TestPrototypeGraphSection:
    """Edge recording through the context."""

    def test_edges_and_validation(self, context: AnnoContext) -> None:
        context.add_prototype_instance_edge("Todo", "Counter")

        context.validate_cyclic_prototype_instances()

        assert context.prototype_instance_edges == [("Todo", "Counter")]


class TestStoreSection:
    """Dispatching and completion tracking."""

    def test_dispatch_without_store(self, context: AnnoContext) -> None:
        with pytest.raises(StoreNotBound) as exc_info:
            context.dispatch(Action("x"))

        assert exc_info.value.context_name == "main"

    def test_dispatch_returns_store_result(self, context: AnnoContext) -> None:
        store = RecordingStore(result=3)
        context.bind_store(store)
        action = Action("x")

        assert context.dispatch(action) == 3
        assert store.actions == [action]

    @pytest.mark.asyncio
    async def test_tracked_completion_resolves(self, context: AnnoContext) -> None:
        context.bind_store(RecordingStore(result="done"))
        action = Action("x")

        future = context.track_completion(action)
        assert context.pending_actions == 1
        context.dispatch(action)

        assert await asyncio.wait_for(future, 1) == "done"
        assert context.pending_actions == 0

    @pytest.mark.asyncio
    async def test_failed_dispatch_drops_completion(self, context: AnnoContext) -> None:
        context.bind_store(RecordingStore(error=RuntimeError("boom")))
        action = Action("x")
        future = context.track_completion(action)

        with pytest.raises(RuntimeError, match="boom"):
            context.dispatch(action)

        assert context.pending_actions == 0
        assert not future.done()

    def test_untracked_dispatch(self, context: AnnoContext) -> None:
        context.bind_store(RecordingStore(result=1))

        context.dispatch(Action("x"))

        assert context.pending_actions == 0

    def test_track_completion_needs_running_loop(self, context: AnnoContext) -> None:
        with pytest.raises(RuntimeError):
            context.track_completion(Action("x"))
