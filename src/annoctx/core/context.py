"""Namespace-scoped model contexts.

An ``AnnoContext`` wraps the shared :class:`ModelRegistry` with state that
belongs to one namespace:

- per-model delegates holding the singleton slot and keyed-instance map
- cached namespace-bound instance constructors
- the instance directory (instance path → live instance)
- the prototype instantiation graph
- the weak map of in-flight actions to completion futures
- the store actions are dispatched to

Instance presence follows ``absent → registered → absent``. Adding to an
occupied path, or removing/getting an absent one, raises.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import TYPE_CHECKING, Any

from annoctx.core.actions import (
    Action,
    assemble_action_name,
    disassemble_action_name,
    unregister_action,
)
from annoctx.core.graph import PrototypeInstanceGraph
from annoctx.core.instance import (
    InstancedConstructor,
    KeyFactory,
    build_instance_path,
    mark_disbanded,
    uuid_key_factory,
)
from annoctx.core.meta import DelegateModelMeta, ModelConstructors, ModelMeta
from annoctx.core.registry import ModelOrName, ModelRegistry
from annoctx.core.types import ModelKind
from annoctx.foundation.errors import (
    DuplicateInstancePath,
    InstanceNotFound,
    InvalidInstanceKey,
    ModelNotFound,
    StoreNotBound,
)

if TYPE_CHECKING:
    from annoctx.store.protocol import StoreProtocol

logger = logging.getLogger(__name__)


def _display_name(model_or_name: ModelOrName) -> str:
    return model_or_name if isinstance(model_or_name, str) else model_or_name.__name__


class AnnoContext:
    """One isolated namespace of model instances."""

    assemble_action_name = staticmethod(assemble_action_name)
    disassemble_action_name = staticmethod(disassemble_action_name)

    def __init__(
        self,
        registry: ModelRegistry,
        name: str = "",
        *,
        key_factory: KeyFactory | None = None,
    ):
        self.name = name
        self.registry = registry
        self.key_factory: KeyFactory = key_factory or uuid_key_factory
        self.store: StoreProtocol | None = None

        self._delegates_by_model: dict[type, DelegateModelMeta] = {}
        self._bound_constructors: dict[type, InstancedConstructor] = {}
        self._instance_map: dict[str, Any] = {}
        self._prototype_graph = PrototypeInstanceGraph()
        self._pending_by_action: weakref.WeakKeyDictionary[Action, asyncio.Future[Any]] = (
            weakref.WeakKeyDictionary()
        )

    def __repr__(self) -> str:
        return f"AnnoContext(name={self.name!r}, instances={len(self._instance_map)})"

    # Model section

    def register_model(
        self,
        model_constructor: type,
        instanced_constructor: InstancedConstructor,
        meta: ModelMeta,
    ) -> None:
        self.registry.register_model(model_constructor, instanced_constructor, meta)
        self._delegates_by_model[model_constructor] = DelegateModelMeta(meta)

    def get_model_meta(self, model_or_name: ModelOrName) -> DelegateModelMeta | None:
        meta = self.registry.get_model_meta(model_or_name)
        if meta is None:
            return None
        delegate = self._delegates_by_model.get(meta.model_constructor)
        if delegate is None:
            delegate = DelegateModelMeta(meta)
            self._delegates_by_model[meta.model_constructor] = delegate
        return delegate

    def get_all_model_meta(self) -> list[DelegateModelMeta]:
        """Delegates this context has created so far."""
        return list(self._delegates_by_model.values())

    def get_model_constructors(self, model_or_name: ModelOrName) -> ModelConstructors | None:
        """The model class and this context's bound constructor for it.

        The bound constructor is cached, so repeated lookups return the
        identical object.
        """
        result = self.registry.get_model_constructors(model_or_name)
        if result is None:
            return None
        bound = self._bound_constructors.get(result.model_constructor)
        if bound is None:
            bound = result.instanced_constructor.bind(self, self.key_factory)
            self._bound_constructors[result.model_constructor] = bound
        return ModelConstructors(result.model_constructor, bound)

    def get_instance_constructor(self, model_or_name: ModelOrName) -> InstancedConstructor | None:
        constructors = self.get_model_constructors(model_or_name)
        return constructors.instanced_constructor if constructors else None

    # Instance section

    def add_one_instance(self, instance: Any) -> None:
        """Insert a freshly built instance into the directory and its delegate.

        Raises:
            DuplicateInstancePath: If the instance path is occupied.
            ModelNotFound: If the instance's model is unknown.
            InvalidInstanceKey: If a prototype instance has no key, or a
                singleton instance has one.
        """
        path = build_instance_path(instance.model_name, instance.model_key)
        if path in self._instance_map:
            raise DuplicateInstancePath(path)
        delegate = self.get_model_meta(instance.model_name)
        if delegate is None:
            raise ModelNotFound(instance.model_name)

        if delegate.kind is ModelKind.SINGLETON:
            if instance.model_key:
                raise InvalidInstanceKey(path, "singleton instances do not take a key")
            delegate.singleton_instance = instance
        else:
            if not instance.model_key:
                raise InvalidInstanceKey(path, "prototype instances require a key")
            delegate.instances_by_key[instance.model_key] = instance
        self._instance_map[path] = instance
        logger.debug("Context %r: added instance %s", self.name, path)

    def remove_one_instance(self, model_or_name: ModelOrName, key: str | None = None) -> Any:
        """Remove and return the instance at the given address.

        Raises:
            InstanceNotFound: If no instance lives at that path.
        """
        delegate = self.get_model_meta(model_or_name)
        model_name = delegate.name if delegate else _display_name(model_or_name)
        path = build_instance_path(model_name, key)
        if delegate is None or path not in self._instance_map:
            raise InstanceNotFound(path)

        instance = self._instance_map.pop(path)
        if delegate.kind is ModelKind.SINGLETON:
            if delegate.singleton_instance is instance:
                delegate.singleton_instance = None
        elif delegate.instances_by_key.get(key) is instance:
            del delegate.instances_by_key[key]
        logger.debug("Context %r: removed instance %s", self.name, path)
        return instance

    def get_one_instance(self, model_or_name: ModelOrName, key: str | None = None) -> Any:
        """Return the live instance at the given address.

        Raises:
            ModelNotFound: If the model is unknown.
            InstanceNotFound: If no instance lives at that path.
        """
        delegate = self.get_model_meta(model_or_name)
        if delegate is None:
            raise ModelNotFound(_display_name(model_or_name))
        path = build_instance_path(delegate.name, key)
        try:
            return self._instance_map[path]
        except KeyError:
            raise InstanceNotFound(path) from None

    def has_instance(self, model_or_name: ModelOrName, key: str | None = None) -> bool:
        delegate = self.get_model_meta(model_or_name)
        return delegate is not None and build_instance_path(delegate.name, key) in self._instance_map

    def instances(self) -> dict[str, Any]:
        """Snapshot of the instance directory."""
        return dict(self._instance_map)

    def clear_instance_map(self) -> None:
        """Drop every instance of this context. Irreversible.

        When a store is bound, one unregistration action carrying every
        cleared instance is dispatched first so their state slices go too.
        Cleared instances are severed exactly as by ``disband``.
        """
        cleared = list(self._instance_map.values())
        if cleared and self.store is not None:
            self.dispatch(unregister_action(cleared))
        for delegate in self.get_all_model_meta():
            delegate.clear()
        self._instance_map.clear()
        for instance in cleared:
            mark_disbanded(instance)
        logger.debug("Context %r: instance map cleared (%d instances)", self.name, len(cleared))

    # Prototype instance graph

    def add_prototype_instance_edge(self, source: str, target: str) -> None:
        self._prototype_graph.add_edge(source, target)

    def validate_cyclic_prototype_instances(self) -> None:
        """Raises CyclicPrototypeInstanceFound if the recorded edges form a cycle."""
        self._prototype_graph.validate()

    @property
    def prototype_instance_edges(self) -> list[tuple[str, str]]:
        return list(self._prototype_graph.edges)

    # Store section

    def bind_store(self, store: StoreProtocol) -> None:
        self.store = store

    def dispatch(self, action: Action) -> Any:
        """Dispatch to the bound store and resolve any tracked completion.

        Raises:
            StoreNotBound: If no store has been bound.
        """
        if self.store is None:
            raise StoreNotBound(self.name)
        try:
            result = self.store.dispatch(action)
        except Exception:
            # Callers get the exception instead of the future
            self._pending_by_action.pop(action, None)
            raise
        self.resolve_completion(action, result)
        return result

    def track_completion(self, action: Action) -> asyncio.Future[Any]:
        """Future resolved with the store's result once ``action`` is dispatched.

        Must be called from a running event loop.
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending_by_action[action] = future
        return future

    def resolve_completion(self, action: Action, result: Any) -> None:
        future = self._pending_by_action.pop(action, None)
        if future is not None and not future.done():
            future.set_result(result)

    @property
    def pending_actions(self) -> int:
        return len(self._pending_by_action)
