"""annoctx Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Structured context (offending path, model name, edges) for rendering
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Model registry errors
        2xxx - Instance directory errors
        3xxx - Prototype graph errors
        4xxx - Store errors
        5xxx - Configuration errors
    """

    # 1xxx - Model Errors
    MODEL_DUPLICATE = 1001
    MODEL_NOT_FOUND = 1002
    MODEL_INVALID = 1003

    # 2xxx - Instance Errors
    INSTANCE_NOT_FOUND = 2001
    INSTANCE_PATH_OCCUPIED = 2002
    INSTANCE_KEY_INVALID = 2003

    # 3xxx - Prototype Graph Errors
    PROTOTYPE_CYCLE = 3001

    # 4xxx - Store Errors
    STORE_NOT_BOUND = 4001

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5001

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "model",
            2: "instance",
            3: "graph",
            4: "store",
            5: "config",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether this error type is typically recoverable by the caller."""
        non_recoverable = {
            ErrorCode.MODEL_DUPLICATE,
            ErrorCode.MODEL_INVALID,
            ErrorCode.PROTOTYPE_CYCLE,
            ErrorCode.CONFIG_INVALID,
        }
        return self not in non_recoverable


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.MODEL_DUPLICATE: "Try to register duplicated model: {model}",
    ErrorCode.MODEL_NOT_FOUND: "Model {model} is not found or invalid",
    ErrorCode.MODEL_INVALID: "Invalid model definition for {model}: {detail}",
    ErrorCode.INSTANCE_NOT_FOUND: "Cannot find the instance of the path {path}",
    ErrorCode.INSTANCE_PATH_OCCUPIED: (
        "Cannot add the new instance to the path {path}; consider to remove it first"
    ),
    ErrorCode.INSTANCE_KEY_INVALID: "Invalid key for the instance at {path}: {detail}",
    ErrorCode.PROTOTYPE_CYCLE: "Cyclic prototype instances found: {chain}",
    ErrorCode.STORE_NOT_BOUND: "No store is bound to context '{context}'",
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
}


class AnnoError(Exception):
    """Base error type for all annoctx errors.

    Example:
        >>> err = AnnoError(ErrorCode.INSTANCE_NOT_FOUND, {"path": "Counter"})
        >>> print(err)
        [ANNO-2001] Cannot find the instance of the path Counter
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def is_recoverable(self) -> bool:
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'ANNO-2001')."""
        return f"ANNO-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging/tooling output."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "context": self.context,
        }


class DuplicateModelRegistration(AnnoError):
    """Raised when a model class or model name is registered twice."""

    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(ErrorCode.MODEL_DUPLICATE, {"model": model_name})


class ModelNotFound(AnnoError):
    """Raised when a model class or name cannot be resolved."""

    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(ErrorCode.MODEL_NOT_FOUND, {"model": model_name})


class InvalidModelDefinition(AnnoError):
    """Raised when a class cannot be turned into a model."""

    def __init__(self, model_name: str, detail: str):
        self.model_name = model_name
        super().__init__(ErrorCode.MODEL_INVALID, {"model": model_name, "detail": detail})


class InstanceNotFound(AnnoError):
    """Raised when an operation targets an absent instance path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(ErrorCode.INSTANCE_NOT_FOUND, {"path": path})


class DuplicateInstancePath(AnnoError):
    """Raised when an instance path is already occupied in a context."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(ErrorCode.INSTANCE_PATH_OCCUPIED, {"path": path})


class InvalidInstanceKey(AnnoError):
    """Raised when a keyed model lacks a key, or a singleton is given one."""

    def __init__(self, path: str, detail: str):
        self.path = path
        super().__init__(ErrorCode.INSTANCE_KEY_INVALID, {"path": path, "detail": detail})


class CyclicPrototypeInstanceFound(AnnoError):
    """Raised when prototype instantiation edges form a cycle.

    Carries the full edge list that failed validation and the cycle itself.
    """

    def __init__(self, edges: Sequence[tuple[str, str]], cycle: Sequence[str]):
        self.edges = tuple(edges)
        self.cycle = tuple(cycle)
        chain = " → ".join([*self.cycle, self.cycle[0]]) if self.cycle else "?"
        super().__init__(
            ErrorCode.PROTOTYPE_CYCLE,
            {"chain": chain, "edges": [list(edge) for edge in self.edges]},
        )


class StoreNotBound(AnnoError):
    """Raised when a context dispatches without a store."""

    def __init__(self, context_name: str):
        self.context_name = context_name
        super().__init__(ErrorCode.STORE_NOT_BOUND, {"context": context_name})


class ConfigError(AnnoError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, detail: str):
        super().__init__(ErrorCode.CONFIG_INVALID, {"key": key, "detail": detail})
