"""Effects: asynchronous model behaviors and store round-trips.

Sagas are ``async`` methods; their suspension points are the store
round-trips made through :func:`put_resolve`. A disbanded instance is inert:
its sagas return None without running and its puts are dropped.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from annoctx.core.actions import field_action
from annoctx.core.instance import instance_context, instance_path, is_disbanded
from annoctx.foundation.errors import InstanceNotFound

logger = logging.getLogger(__name__)

SAGA_MARKER = "__anno_saga__"

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def saga(fn: F) -> F:
    """Mark an ``async def`` method as a model behavior.

    Raises:
        TypeError: If ``fn`` is not a coroutine function.
    """
    if not inspect.iscoroutinefunction(fn):
        raise TypeError(f"@saga requires an async function, got {fn!r}")

    @functools.wraps(fn)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        if is_disbanded(self):
            logger.debug("Skipping saga %s on disbanded %s", fn.__name__, instance_path(self))
            return None
        return await fn(self, *args, **kwargs)

    setattr(wrapper, SAGA_MARKER, True)
    return wrapper  # type: ignore[return-value]


def sagas_of(cls: type) -> list[str]:
    """Names of the sagas declared on ``cls`` (including inherited ones)."""
    return sorted(
        attr for attr in dir(cls) if getattr(getattr(cls, attr, None), SAGA_MARKER, False)
    )


def _live_context(instance: Any, field_name: str) -> Any:
    if is_disbanded(instance):
        logger.debug("Dropping put %s on disbanded %s", field_name, instance_path(instance))
        return None
    context = instance_context(instance)
    if context is None:
        raise InstanceNotFound(instance_path(instance))
    return context


def put(instance: Any, field_name: str, value: Any) -> Any:
    """Dispatch a field update without waiting; returns the store's result."""
    context = _live_context(instance, field_name)
    if context is None:
        return None
    return context.dispatch(field_action(instance, field_name, value))


async def put_resolve(instance: Any, field_name: str, value: Any) -> Any:
    """Dispatch a field update and wait for the store to apply it.

    Returns:
        The reduced field value, or None for a disbanded instance.
    """
    context = _live_context(instance, field_name)
    if context is None:
        return None
    action = field_action(instance, field_name, value)
    completion = context.track_completion(action)
    context.dispatch(action)
    return await completion
