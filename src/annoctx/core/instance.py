"""Instance construction, addressing and lifecycle status.

An instance is a plain object of a model class carrying three framework
attributes: ``model_name``, ``model_key`` and ``context_name``. Instances are
built through an :class:`InstancedConstructor`, never by calling the model
class directly.
"""

from __future__ import annotations

import itertools
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from annoctx.core.types import ACTION_NAME_SEPARATOR, InstanceStatus, ModelKind
from annoctx.foundation.errors import InvalidInstanceKey

if TYPE_CHECKING:
    from annoctx.core.context import AnnoContext

KeyFactory = Callable[[str], str]

_STATUS_ATTR = "_anno_status"
_CONTEXT_ATTR = "_anno_context"


def build_instance_path(model_name: str, key: str | None = None) -> str:
    """Canonical address of an instance within its context."""
    return f"{model_name}{ACTION_NAME_SEPARATOR}{key}" if key else model_name


def instance_path(instance: Any) -> str:
    return build_instance_path(instance.model_name, instance.model_key)


def instance_status(instance: Any) -> InstanceStatus:
    return getattr(instance, _STATUS_ATTR, InstanceStatus.LIVE)


def is_disbanded(instance: Any) -> bool:
    return instance_status(instance) is InstanceStatus.DISBANDED


def mark_disbanded(instance: Any) -> None:
    """Sever behavioral linkage: behaviors become inert, state reads fall back to defaults."""
    setattr(instance, _STATUS_ATTR, InstanceStatus.DISBANDED)
    setattr(instance, _CONTEXT_ATTR, None)


def instance_context(instance: Any) -> AnnoContext | None:
    """The context a live instance belongs to, or None once disbanded."""
    return getattr(instance, _CONTEXT_ATTR, None)


def uuid_key_factory(_model_name: str) -> str:
    return uuid.uuid4().hex[:12]


class SequenceKeyFactory:
    """Per-model counters: "1", "2", ... Keys are never reused."""

    def __init__(self) -> None:
        self._counters: defaultdict[str, Iterator[int]] = defaultdict(
            lambda: itertools.count(1)
        )

    def __call__(self, model_name: str) -> str:
        return str(next(self._counters[model_name]))


def make_key_factory(strategy: str) -> KeyFactory:
    if strategy == "sequence":
        return SequenceKeyFactory()
    return uuid_key_factory


class InstancedConstructor:
    """Builds addressable instances of one model class.

    The unbound constructor (held by the registry) has no context and
    requires explicit keys for prototype models. :meth:`bind` derives a
    namespace-bound variant whose instances report the context's name and
    draw missing prototype keys from the context's key factory.
    """

    def __init__(
        self,
        model_constructor: type,
        model_name: str,
        kind: ModelKind,
        *,
        context: AnnoContext | None = None,
        key_factory: KeyFactory | None = None,
    ):
        self.model_constructor = model_constructor
        self.model_name = model_name
        self.kind = kind
        self.context = context
        self.key_factory = key_factory

    @property
    def context_name(self) -> str:
        return self.context.name if self.context is not None else ""

    def bind(self, context: AnnoContext, key_factory: KeyFactory | None = None) -> InstancedConstructor:
        return InstancedConstructor(
            self.model_constructor,
            self.model_name,
            self.kind,
            context=context,
            key_factory=key_factory,
        )

    def __call__(self, *args: Any, key: str | None = None, **kwargs: Any) -> Any:
        path = build_instance_path(self.model_name, key)
        if self.kind is ModelKind.SINGLETON and key:
            raise InvalidInstanceKey(path, "singleton models do not take a key")
        if self.kind is ModelKind.PROTOTYPE and not key:
            if self.key_factory is None:
                raise InvalidInstanceKey(path, "prototype models require a key")
            key = self.key_factory(self.model_name)

        cls = self.model_constructor
        instance = cls.__new__(cls)
        instance.model_name = self.model_name
        instance.model_key = key
        instance.context_name = self.context_name
        setattr(instance, _STATUS_ATTR, InstanceStatus.LIVE)
        setattr(instance, _CONTEXT_ATTR, self.context)
        instance.__init__(*args, **kwargs)
        return instance

    def __repr__(self) -> str:
        return (
            f"InstancedConstructor({self.model_name!r}, kind={self.kind.value}, "
            f"context={self.context_name!r})"
        )
