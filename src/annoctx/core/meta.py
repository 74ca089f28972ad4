"""Model metadata records.

``ModelMeta`` is owned by the registry and never changes after registration.
``DelegateModelMeta`` is its per-context overlay holding the mutable
singleton slot and keyed-instance map for that namespace.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, NamedTuple

from annoctx.core.instance import InstancedConstructor
from annoctx.core.types import MODEL_NAME_FIELD, FieldReducer, ModelKind


class ModelConstructors(NamedTuple):
    """The raw model class and the constructor that builds addressable instances."""

    model_constructor: type
    instanced_constructor: InstancedConstructor


@dataclass(frozen=True, slots=True)
class ChildSpec:
    """A child instance declared on a model, created right after its parent."""

    model: type | str
    """Child model class or registered name (names allow self references)."""

    args: tuple[Any, ...] = ()
    key: str | None = None
    state: dict[str, Any] | None = None

    @property
    def model_name(self) -> str:
        if isinstance(self.model, str):
            return self.model
        return getattr(self.model, MODEL_NAME_FIELD, self.model.__name__)


@dataclass(frozen=True, slots=True)
class ModelMeta:
    """Registry-owned record binding a model's identity, name and constructors."""

    kind: ModelKind
    name: str
    model_constructor: type
    instanced_constructor: InstancedConstructor
    reducers_by_field_name: MappingProxyType[str, FieldReducer] = field(
        default_factory=lambda: MappingProxyType({})
    )
    initial_state: MappingProxyType[str, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )
    children: MappingProxyType[str, ChildSpec] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def constructors(self) -> ModelConstructors:
        return ModelConstructors(self.model_constructor, self.instanced_constructor)


class DelegateModelMeta:
    """Context-local view of a ModelMeta plus that context's live instances."""

    __slots__ = ("_meta", "singleton_instance", "instances_by_key")

    def __init__(self, meta: ModelMeta):
        self._meta = meta
        self.singleton_instance: Any | None = None
        self.instances_by_key: dict[str, Any] = {}

    @property
    def meta(self) -> ModelMeta:
        return self._meta

    @property
    def kind(self) -> ModelKind:
        return self._meta.kind

    @property
    def name(self) -> str:
        return self._meta.name

    @property
    def model_constructor(self) -> type:
        return self._meta.model_constructor

    @property
    def reducers_by_field_name(self) -> MappingProxyType[str, FieldReducer]:
        return self._meta.reducers_by_field_name

    @property
    def initial_state(self) -> MappingProxyType[str, Any]:
        return self._meta.initial_state

    @property
    def children(self) -> MappingProxyType[str, ChildSpec]:
        return self._meta.children

    def clear(self) -> None:
        self.singleton_instance = None
        self.instances_by_key.clear()

    def __repr__(self) -> str:
        return (
            f"DelegateModelMeta({self.name!r}, kind={self.kind.value}, "
            f"singleton={self.singleton_instance is not None}, keyed={len(self.instances_by_key)})"
        )
