"""Declarative layer: model classes, state fields, children and sagas."""

from annoctx.model.decorators import StateField, child, model, state
from annoctx.model.effects import put, put_resolve, saga, sagas_of

__all__ = [
    "StateField",
    "child",
    "model",
    "put",
    "put_resolve",
    "saga",
    "sagas_of",
    "state",
]
