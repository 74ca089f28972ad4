"""Ordered collections of prototype instances.

A ``PrototypeList`` owns the lifecycle of its items: appending instantiates
a new keyed instance in the list's context, removing disbands it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any, overload

from annoctx.core.manager import ContextManager, get_manager
from annoctx.core.registry import ModelOrName

logger = logging.getLogger(__name__)


class PrototypeList(Sequence[Any]):
    """List of live instances, kept in insertion order.

    Example:
        >>> pages = PrototypeList("views")
        >>> pages.append(WelcomeView)
        >>> pages.append(SettingsView, "dark")
        >>> pages.remove_until(0)   # disband everything after the first page
        1
    """

    def __init__(self, context_name: str | None = None, *, manager: ContextManager | None = None):
        self.context_name = context_name
        self._manager = manager
        self._items: list[Any] = []

    @property
    def manager(self) -> ContextManager:
        return self._manager or get_manager()

    def append(
        self,
        model: ModelOrName,
        *args: Any,
        key: str | None = None,
        state: dict[str, Any] | None = None,
    ) -> Any:
        """Instantiate ``model`` in this list's context and append it."""
        instance = self.manager.instantiate(model, args, state, self.context_name, key=key)
        self._items.append(instance)
        return instance

    def pop(self, index: int = -1) -> Any:
        """Disband the instance at ``index``, remove it and return it.

        If disbanding raises, the list keeps the instance.
        """
        instance = self._items[index]
        self.manager.disband(instance)
        del self._items[index]
        return instance

    def remove_until(self, index: int) -> int:
        """Pop from the end until at most ``index + 1`` items remain.

        A negative ``index`` clears the list.

        Returns:
            The number of instances removed.
        """
        target = max(index, -1)
        removed = 0
        while len(self._items) - 1 > target:
            self.pop()
            removed += 1
        logger.debug("Removed %d instance(s) from prototype list", removed)
        return removed

    def clear(self) -> None:
        self.remove_until(-1)

    def index_of(self, instance: Any) -> int:
        """Position of ``instance`` by identity, or -1."""
        for i, item in enumerate(self._items):
            if item is instance:
                return i
        return -1

    def snapshot(self) -> list[Any]:
        return list(self._items)

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self, index: slice) -> list[Any]: ...

    def __getitem__(self, index: int | slice) -> Any:
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __repr__(self) -> str:
        return f"PrototypeList(context={self.context_name!r}, items={len(self._items)})"
