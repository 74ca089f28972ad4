"""Declarative model definitions.

Example:
    >>> @model(ModelKind.PROTOTYPE)
    ... class Todo:
    ...     title = state("")
    ...     done = state(False)
    ...     tags = state((), reducer=lambda prev, tag: (*prev, tag))
    ...
    ...     @saga
    ...     async def finish(self):
    ...         await put_resolve(self, "done", True)
    >>>
    >>> @model()
    ... class TodoBoard:
    ...     pinned = child(Todo, key="pinned")

State fields are read from the instance's slice of its context's store and
are never assigned directly; updates go through dispatched field actions.
Children are instantiated right after their parent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import MappingProxyType
from typing import Any, TypeVar, overload

from annoctx.core.instance import InstancedConstructor, instance_context, instance_path
from annoctx.core.manager import ContextManager, get_manager
from annoctx.core.meta import ChildSpec, ModelMeta
from annoctx.core.types import (
    ACTION_NAME_SEPARATOR,
    MODEL_NAME_FIELD,
    FieldReducer,
    ModelKind,
    replace_reducer,
)
from annoctx.foundation.errors import InvalidModelDefinition

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type)


class StateField:
    """Descriptor for one declared state field."""

    def __init__(self, default: Any = None, *, reducer: FieldReducer | None = None):
        self.default = default
        self.reducer: FieldReducer = reducer or replace_reducer
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        context = instance_context(instance)
        if context is None or context.store is None:
            return self.default
        current = context.store.get_state().get(instance_path(instance))
        if current is None:
            return self.default
        return current.get(self.name, self.default)

    def __set__(self, instance: Any, value: Any) -> None:
        raise AttributeError(
            f"'{self.name}' is a state field; update it with put() or put_resolve()"
        )

    def __repr__(self) -> str:
        return f"StateField({self.name!r}, default={self.default!r})"


def state(default: Any = None, *, reducer: FieldReducer | None = None) -> Any:
    """Declare a state field with its initial value and optional reducer."""
    return StateField(default, reducer=reducer)


def child(
    model: type | str,
    *args: Any,
    key: str | None = None,
    state: dict[str, Any] | None = None,
) -> Any:
    """Declare a child instance created together with its parent.

    ``model`` may be a registered name, which allows a model to refer to
    itself or to models defined later.
    """
    return ChildSpec(model, args, key, state)


def _collect_members(cls: type) -> tuple[dict[str, StateField], dict[str, ChildSpec]]:
    fields: dict[str, StateField] = {}
    children: dict[str, ChildSpec] = {}
    for klass in reversed(cls.__mro__):
        for attr, value in vars(klass).items():
            if isinstance(value, StateField):
                fields[attr] = value
                children.pop(attr, None)
            elif isinstance(value, ChildSpec):
                children[attr] = value
                fields.pop(attr, None)
    return fields, children


@overload
def model(kind: C) -> C: ...


@overload
def model(
    kind: ModelKind = ..., *, name: str | None = ..., manager: ContextManager | None = ...
) -> Callable[[C], C]: ...


def model(
    kind: Any = ModelKind.SINGLETON,
    *,
    name: str | None = None,
    manager: ContextManager | None = None,
) -> Any:
    """Register a class as a model.

    Usable bare (``@model``) or with arguments (``@model(ModelKind.PROTOTYPE)``).

    Args:
        kind: SINGLETON (default) or PROTOTYPE
        name: Registered name (defaults to the class name)
        manager: Manager whose registry receives the model (default manager if None)

    Raises:
        InvalidModelDefinition: If the name or a field name contains the separator.
        DuplicateModelRegistration: If the class or name is already registered.
    """
    if isinstance(kind, type):
        return model()(kind)

    def decorate(cls: C) -> C:
        model_name = name or cls.__name__
        if ACTION_NAME_SEPARATOR in model_name:
            raise InvalidModelDefinition(
                model_name, f"model names cannot contain {ACTION_NAME_SEPARATOR!r}"
            )

        fields, children = _collect_members(cls)
        for field_name in (*fields, *children):
            if ACTION_NAME_SEPARATOR in field_name:
                raise InvalidModelDefinition(
                    model_name, f"field {field_name!r} contains {ACTION_NAME_SEPARATOR!r}"
                )

        instanced = InstancedConstructor(cls, model_name, kind)
        meta = ModelMeta(
            kind=kind,
            name=model_name,
            model_constructor=cls,
            instanced_constructor=instanced,
            reducers_by_field_name=MappingProxyType(
                {attr: f.reducer for attr, f in fields.items()}
            ),
            initial_state=MappingProxyType({attr: f.default for attr, f in fields.items()}),
            children=MappingProxyType(children),
        )
        (manager or get_manager()).register_model(cls, instanced, meta)
        setattr(cls, MODEL_NAME_FIELD, model_name)
        return cls

    return decorate
