"""Process-wide model registry.

Canonical table of model class ↔ model name ↔ constructors. Entries live
for the lifetime of the registry: models are class-level definitions, not
runtime data, so there is no unregister.

Example:
    >>> registry = ModelRegistry()
    >>> registry.register_model(Counter, instanced, meta)
    >>> registry.get_model_meta("Counter") is registry.get_model_meta(Counter)
    True
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from annoctx.core.instance import InstancedConstructor
from annoctx.core.meta import ModelConstructors, ModelMeta
from annoctx.foundation.errors import DuplicateModelRegistration

logger = logging.getLogger(__name__)

ModelOrName = type | str


@dataclass(slots=True)
class ModelRegistry:
    """Registry of model definitions, indexed by class and by name.

    Registration is expected at import time; lookups afterwards are
    read-only. The lock only guards concurrent registration.
    """

    _meta_by_model: dict[type, ModelMeta] = field(default_factory=dict)
    """ModelMeta by model class."""

    _constructors_by_name: dict[str, ModelConstructors] = field(default_factory=dict)
    """Constructor pairs by model name."""

    _lock: threading.Lock = field(default_factory=threading.Lock)
    """Lock for thread-safe registration."""

    def register_model(
        self,
        model_constructor: type,
        instanced_constructor: InstancedConstructor,
        meta: ModelMeta,
    ) -> None:
        """Register a model under both its class and its name.

        Raises:
            DuplicateModelRegistration: If the class or the name is already known.
        """
        with self._lock:
            if model_constructor in self._meta_by_model or meta.name in self._constructors_by_name:
                raise DuplicateModelRegistration(meta.name)
            self._constructors_by_name[meta.name] = ModelConstructors(
                model_constructor, instanced_constructor
            )
            self._meta_by_model[model_constructor] = meta

        logger.debug("Registered model %s (%s)", meta.name, meta.kind.value)

    def get_model_constructors(self, model_or_name: ModelOrName) -> ModelConstructors | None:
        if isinstance(model_or_name, str):
            return self._constructors_by_name.get(model_or_name)
        meta = self._meta_by_model.get(model_or_name)
        return self._constructors_by_name.get(meta.name) if meta else None

    def get_model_meta(self, model_or_name: ModelOrName) -> ModelMeta | None:
        if isinstance(model_or_name, str):
            constructors = self._constructors_by_name.get(model_or_name)
            return self._meta_by_model.get(constructors.model_constructor) if constructors else None
        return self._meta_by_model.get(model_or_name)

    def get_all_model_meta(self) -> list[ModelMeta]:
        """Snapshot of every registered ModelMeta. No ordering guarantee."""
        return list(self._meta_by_model.values())

    def get_instance_constructor(self, model_or_name: ModelOrName) -> InstancedConstructor | None:
        constructors = self.get_model_constructors(model_or_name)
        return constructors.instanced_constructor if constructors else None

    def __contains__(self, model_or_name: object) -> bool:
        if not isinstance(model_or_name, (str, type)):
            return False
        return self.get_model_meta(model_or_name) is not None

    def __len__(self) -> int:
        return len(self._meta_by_model)
