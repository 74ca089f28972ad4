"""Context manager: owns the registry and every context built on it.

Exposes the instance lifecycle:

- ``instantiate`` builds an instance through the context's bound
  constructor, inserts it into the instance directory, dispatches the
  registration action, then materializes declared children
- ``disband`` dispatches the unregistration action, removes the instance
  and severs its behavioral linkage
- ``get_context`` returns the default or a lazily created named context

The module-level ``instantiate``/``disband``/``get_context`` functions use a
lazily created default manager (see :func:`get_manager`).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any

from annoctx.core.actions import Registration, register_action, unregister_action
from annoctx.core.context import AnnoContext
from annoctx.core.instance import (
    InstancedConstructor,
    instance_path,
    is_disbanded,
    make_key_factory,
    mark_disbanded,
)
from annoctx.core.meta import ModelMeta
from annoctx.core.registry import ModelOrName, ModelRegistry
from annoctx.core.types import MODEL_NAME_FIELD, ModelKind
from annoctx.foundation.config import AnnoConfig, get_config
from annoctx.foundation.errors import InstanceNotFound, ModelNotFound
from annoctx.store.memory import MemoryStore
from annoctx.store.protocol import StoreProtocol

logger = logging.getLogger(__name__)

StoreFactory = Callable[[AnnoContext], StoreProtocol | None]


def _model_display_name(model: ModelOrName) -> str:
    if isinstance(model, str):
        return model
    return getattr(model, MODEL_NAME_FIELD, model.__name__)


class ContextManager:
    """Owns one ModelRegistry and the contexts that share it.

    Example:
        >>> manager = ContextManager()
        >>> manager.register_model(Counter, instanced, meta)
        >>> counter = manager.instantiate("Counter")
        >>> manager.get_context().get_one_instance("Counter") is counter
        True
    """

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        *,
        config: AnnoConfig | None = None,
        store_factory: StoreFactory | None = None,
    ):
        self.registry = registry if registry is not None else ModelRegistry()
        self.config = config if config is not None else get_config()
        self._store_factory = store_factory or self._default_store
        self._contexts_lock = threading.Lock()
        self._default_context = self._create_context("")
        self._contexts_by_name: dict[str, AnnoContext] = {}

    def _default_store(self, context: AnnoContext) -> StoreProtocol:
        return MemoryStore(context, drop_orphan_actions=self.config.drop_orphan_actions)

    def _create_context(self, name: str) -> AnnoContext:
        context = AnnoContext(
            self.registry,
            name,
            key_factory=make_key_factory(self.config.key_strategy),
        )
        store = self._store_factory(context)
        if store is not None:
            context.bind_store(store)
        logger.debug("Created context %r", name)
        return context

    # Model section

    def register_model(
        self,
        model_constructor: type,
        instanced_constructor: InstancedConstructor,
        meta: ModelMeta,
    ) -> None:
        self.registry.register_model(model_constructor, instanced_constructor, meta)

    # Context section

    def get_context(self, name: str | None = None) -> AnnoContext:
        """The default context when ``name`` is empty, else the named one (created once)."""
        if not name:
            return self._default_context
        context = self._contexts_by_name.get(name)
        if context is None:
            with self._contexts_lock:
                context = self._contexts_by_name.get(name)
                if context is None:
                    context = self._create_context(name)
                    self._contexts_by_name[name] = context
        return context

    def contexts(self) -> list[AnnoContext]:
        return [self._default_context, *self._contexts_by_name.values()]

    # Instance lifecycle

    def instantiate(
        self,
        model: ModelOrName,
        args: Sequence[Any] | None = None,
        state: dict[str, Any] | None = None,
        context_name: str | None = None,
        *,
        key: str | None = None,
    ) -> Any:
        """Create, register and announce a new instance of ``model``.

        Args:
            model: Model class or registered name
            args: Positional arguments for the model's ``__init__``
            state: Initial state merged over the model's field defaults
            context_name: Target context; the default context when omitted
            key: Instance key (prototype models draw one if omitted)

        Raises:
            ModelNotFound: If the model cannot be resolved.
            DuplicateInstancePath: If the instance path is already occupied.
            CyclicPrototypeInstanceFound: If declared children recurse.

        If any part of the tree fails, every instance this call created is
        disbanded again, newest first. Live singletons it reused are kept.
        """
        created: list[Any] = []
        try:
            return self._instantiate(model, args, state, context_name, key, created)
        except Exception:
            for instance in reversed(created):
                if not is_disbanded(instance):
                    self.disband(instance)
            raise

    def _instantiate(
        self,
        model: ModelOrName,
        args: Sequence[Any] | None,
        state: dict[str, Any] | None,
        context_name: str | None,
        key: str | None,
        created: list[Any],
    ) -> Any:
        context = self.get_context(context_name)
        constructor = context.get_instance_constructor(model)
        if constructor is None:
            raise ModelNotFound(_model_display_name(model))

        instance = constructor(*(args or ()), key=key)
        context.add_one_instance(instance)
        try:
            context.dispatch(register_action([Registration(instance, state)]))
        except Exception:
            context.remove_one_instance(instance.model_name, instance.model_key)
            raise
        created.append(instance)
        logger.debug(
            "Instantiated %s (key=%s) in context %r",
            constructor.model_name,
            instance.model_key,
            context.name,
        )

        self._instantiate_children(context, instance, created)
        return instance

    def _instantiate_children(self, context: AnnoContext, parent: Any, created: list[Any]) -> None:
        delegate = context.get_model_meta(parent.model_name)
        if delegate is None:
            return
        for attr, spec in delegate.children.items():
            child_meta = context.get_model_meta(spec.model)
            if child_meta is None:
                raise ModelNotFound(spec.model_name)

            if delegate.kind is ModelKind.PROTOTYPE:
                context.add_prototype_instance_edge(delegate.name, child_meta.name)
                context.validate_cyclic_prototype_instances()

            if child_meta.kind is ModelKind.SINGLETON and context.has_instance(child_meta.name):
                child = context.get_one_instance(child_meta.name)
            else:
                child = self._instantiate(
                    spec.model, spec.args, spec.state, context.name, spec.key, created
                )
            setattr(parent, attr, child)

    def disband(self, instance: Any) -> Any:
        """Unregister ``instance`` and make it inert.

        The unregistration action is dispatched first, then the instance is
        removed from its context, then its behaviors are severed. Sagas
        already suspended on its behalf are not cancelled.

        Raises:
            InstanceNotFound: If the instance is not live in its context.
        """
        context = self.get_context(instance.context_name)
        path = instance_path(instance)
        live = context.instances().get(path)
        if is_disbanded(instance) or live is not instance:
            raise InstanceNotFound(path)

        context.dispatch(unregister_action([instance]))
        context.remove_one_instance(instance.model_name, instance.model_key)
        mark_disbanded(instance)
        logger.debug("Disbanded %s in context %r", path, context.name)
        return instance


# Default manager (lazy-loaded, thread-safe)
_manager: ContextManager | None = None
_manager_lock = threading.Lock()


def get_manager() -> ContextManager:
    """Get the default manager, creating it on first use."""
    global _manager

    if _manager is not None:
        return _manager

    with _manager_lock:
        if _manager is None:
            _manager = ContextManager()
        return _manager


def reset_manager(manager: ContextManager | None = None) -> ContextManager | None:
    """Replace the default manager (None drops it); returns the previous one."""
    global _manager
    with _manager_lock:
        previous, _manager = _manager, manager
    return previous


def instantiate(
    model: ModelOrName,
    args: Sequence[Any] | None = None,
    state: dict[str, Any] | None = None,
    context_name: str | None = None,
    *,
    key: str | None = None,
) -> Any:
    return get_manager().instantiate(model, args, state, context_name, key=key)


def disband(instance: Any) -> Any:
    return get_manager().disband(instance)


def get_context(name: str | None = None) -> AnnoContext:
    return get_manager().get_context(name)
