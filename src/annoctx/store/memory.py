"""In-memory reference store.

State is a mapping from instance path to that instance's field values.
Every update replaces the affected slice rather than mutating it, so a
slice read from :meth:`MemoryStore.get_state` never changes under the
caller.

Handled actions:

- registration: new slice = model initial state merged with the supplied state
- unregistration: slice dropped
- field actions (``ModelÆfield`` / ``ModelÆkeyÆfield``): the model's field
  reducer is applied to the current value and the payload

Anything else is ignored and yields None.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from annoctx.core.actions import (
    REGISTER_ACTION_TYPE,
    UNREGISTER_ACTION_TYPE,
    Action,
    Registration,
    disassemble_action_name,
)
from annoctx.core.instance import build_instance_path, instance_path
from annoctx.core.types import replace_reducer
from annoctx.foundation.errors import InstanceNotFound
from annoctx.store.protocol import Listener, Unsubscribe

if TYPE_CHECKING:
    from annoctx.core.context import AnnoContext

logger = logging.getLogger(__name__)


class MemoryStore:
    """Store bound to one context; reducers come from that context's models."""

    def __init__(self, context: AnnoContext, *, drop_orphan_actions: bool = True):
        self._context = context
        self._drop_orphan_actions = drop_orphan_actions
        self._state: dict[str, MappingProxyType[str, Any]] = {}
        self._listeners: list[Listener] = []
        self._listeners_lock = threading.Lock()

    def get_state(self) -> Mapping[str, Any]:
        """Read-only view of the state; individual slices never change in place."""
        return MappingProxyType(self._state)

    def get_instance_state(self, path: str) -> Mapping[str, Any] | None:
        return self._state.get(path)

    def dispatch(self, action: Action) -> Any:
        if action.type == REGISTER_ACTION_TYPE:
            result: Any = self._register(action.payload)
        elif action.type == UNREGISTER_ACTION_TYPE:
            result = self._unregister(action.payload)
        else:
            result = self._reduce_field(action)
        self._notify(action)
        return result

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Call ``listener(action)`` after every dispatch.

        Returns:
            Unsubscribe function to remove the listener
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _register(self, entries: list[Registration]) -> list[str]:
        paths = []
        for entry in entries:
            delegate = self._context.get_model_meta(entry.instance.model_name)
            initial = dict(delegate.initial_state) if delegate else {}
            initial.update(entry.state or {})
            path = instance_path(entry.instance)
            self._state[path] = MappingProxyType(initial)
            paths.append(path)
        return paths

    def _unregister(self, instances: list[Any]) -> list[str]:
        paths = []
        for instance in instances:
            path = instance_path(instance)
            if self._state.pop(path, None) is not None:
                paths.append(path)
        return paths

    def _reduce_field(self, action: Action) -> Any:
        address = disassemble_action_name(action.type)
        if address is None:
            return None
        delegate = self._context.get_model_meta(address.model_name)
        if delegate is None:
            return None

        path = build_instance_path(address.model_name, address.key)
        current = self._state.get(path)
        if current is None:
            if not self._drop_orphan_actions:
                raise InstanceNotFound(path)
            logger.warning("Dropping action %s: no live instance at %s", action.type, path)
            return None

        reducer = delegate.reducers_by_field_name.get(address.field_name, replace_reducer)
        value = reducer(current.get(address.field_name), action.payload)
        self._state[path] = MappingProxyType({**current, address.field_name: value})
        return value

    def _notify(self, action: Action) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(action)
