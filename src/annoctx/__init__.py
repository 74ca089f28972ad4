"""annoctx - addressable model instances over a unidirectional store.

Plain classes annotated with ``@model`` become lifecycle-managed instances
living in named contexts. Their state changes travel as dispatched actions
whose types encode the target instance and field.

    from annoctx import ModelKind, model, state, instantiate, get_context

    @model()
    class Counter:
        count = state(0)

    counter = instantiate(Counter)
    assert get_context().get_one_instance("Counter") is counter
"""

from annoctx.collections import PrototypeList
from annoctx.core import (
    ACTION_NAME_SEPARATOR,
    Action,
    ActionAddress,
    AnnoContext,
    ContextManager,
    InstanceStatus,
    ModelKind,
    ModelMeta,
    ModelRegistry,
    assemble_action_name,
    disassemble_action_name,
    disband,
    get_context,
    get_manager,
    instantiate,
    is_disbanded,
    reset_manager,
)
from annoctx.foundation.config import AnnoConfig, get_config, load_config, reset_config
from annoctx.foundation.errors import (
    AnnoError,
    CyclicPrototypeInstanceFound,
    DuplicateInstancePath,
    DuplicateModelRegistration,
    ErrorCode,
    InstanceNotFound,
    InvalidInstanceKey,
    InvalidModelDefinition,
    ModelNotFound,
    StoreNotBound,
)
from annoctx.foundation.logging import configure_logging
from annoctx.model import child, model, put, put_resolve, saga, state
from annoctx.store import MemoryStore, StoreProtocol

__version__ = "0.1.0"

__all__ = [
    # Core
    "ACTION_NAME_SEPARATOR",
    "Action",
    "ActionAddress",
    "AnnoContext",
    "ContextManager",
    "InstanceStatus",
    "ModelKind",
    "ModelMeta",
    "ModelRegistry",
    "assemble_action_name",
    "disassemble_action_name",
    "disband",
    "get_context",
    "get_manager",
    "instantiate",
    "is_disbanded",
    "reset_manager",
    # Models
    "child",
    "model",
    "put",
    "put_resolve",
    "saga",
    "state",
    "PrototypeList",
    # Store
    "MemoryStore",
    "StoreProtocol",
    # Config & logging
    "AnnoConfig",
    "configure_logging",
    "get_config",
    "load_config",
    "reset_config",
    # Errors
    "AnnoError",
    "CyclicPrototypeInstanceFound",
    "DuplicateInstancePath",
    "DuplicateModelRegistration",
    "ErrorCode",
    "InstanceNotFound",
    "InvalidInstanceKey",
    "InvalidModelDefinition",
    "ModelNotFound",
    "StoreNotBound",
]
