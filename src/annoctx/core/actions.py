"""Action-address codec and action helpers.

Instances are addressed inside the store's flat action-type namespace by
encoding ``(model_name, key?, field_name)`` into a single string::

    >>> assemble_action_name("Counter", "count")
    'CounterÆcount'
    >>> assemble_action_name("Todo", "done", "a1")
    'TodoÆa1Ædone'
    >>> disassemble_action_name("TodoÆa1Ædone")
    ActionAddress(model_name='Todo', field_name='done', key='a1')
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from annoctx.core.types import ACTION_NAME_SEPARATOR

REGISTER_ACTION_TYPE = "@@anno/REGISTER"
UNREGISTER_ACTION_TYPE = "@@anno/UNREGISTER"


@dataclass(frozen=True, slots=True)
class ActionAddress:
    """Decoded action name."""

    model_name: str
    field_name: str
    key: str | None = None


def assemble_action_name(model_name: str, field_name: str, key: str | None = None) -> str:
    """Encode a model field (optionally of a keyed instance) as an action type."""
    if key:
        return ACTION_NAME_SEPARATOR.join([model_name, key, field_name])
    return ACTION_NAME_SEPARATOR.join([model_name, field_name])


def disassemble_action_name(action_name: str) -> ActionAddress | None:
    """Decode an action type.

    Returns None for strings that are not instance addresses; this is not
    an error, callers treat them as foreign actions.
    """
    parts = action_name.split(ACTION_NAME_SEPARATOR)
    if len(parts) == 3:
        return ActionAddress(model_name=parts[0], key=parts[1], field_name=parts[2])
    if len(parts) == 2:
        return ActionAddress(model_name=parts[0], field_name=parts[1])
    return None


@dataclass(eq=False)
class Action:
    """A dispatched message.

    Compared and hashed by identity so in-flight actions can key a
    ``WeakKeyDictionary`` of completion futures.
    """

    type: str
    payload: Any = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Registration:
    """One entry of a registration action."""

    instance: Any
    state: dict[str, Any] | None = None


def register_action(entries: Iterable[Registration]) -> Action:
    return Action(REGISTER_ACTION_TYPE, list(entries))


def unregister_action(instances: Iterable[Any]) -> Action:
    return Action(UNREGISTER_ACTION_TYPE, list(instances))


def field_action(instance: Any, field_name: str, value: Any) -> Action:
    """Build the action that updates ``field_name`` of ``instance``."""
    return Action(
        assemble_action_name(instance.model_name, field_name, instance.model_key),
        value,
    )
