"""Core type definitions shared across the registry and context layers."""

from collections.abc import Callable
from enum import Enum
from typing import Any

ACTION_NAME_SEPARATOR = "Æ"
"""Separator for action names and instance paths; outside identifier charsets."""

MODEL_NAME_FIELD = "__anno_model_name__"
"""Class attribute carrying the registered model name."""

FieldReducer = Callable[[Any, Any], Any]
"""Reducer for one state field: (previous_value, payload) -> next_value."""


class ModelKind(Enum):
    """How many instances of a model may live in one context."""

    SINGLETON = "singleton"
    """Exactly one unkeyed instance per context."""

    PROTOTYPE = "prototype"
    """Zero or more instances per context, each with a unique key."""


class InstanceStatus(Enum):
    """Lifecycle status of an instance."""

    LIVE = "live"
    DISBANDED = "disbanded"


def replace_reducer(_previous: Any, payload: Any) -> Any:
    """Default field reducer: the payload becomes the new value."""
    return payload
