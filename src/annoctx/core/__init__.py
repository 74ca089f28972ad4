"""Core runtime - model registry, contexts, instance directory, action addressing."""

from annoctx.core.actions import (
    REGISTER_ACTION_TYPE,
    UNREGISTER_ACTION_TYPE,
    Action,
    ActionAddress,
    Registration,
    assemble_action_name,
    disassemble_action_name,
    field_action,
    register_action,
    unregister_action,
)
from annoctx.core.instance import (
    InstancedConstructor,
    build_instance_path,
    is_disbanded,
)
from annoctx.core.meta import ChildSpec, DelegateModelMeta, ModelConstructors, ModelMeta
from annoctx.core.registry import ModelRegistry
from annoctx.core.graph import PrototypeInstanceGraph, toposort
from annoctx.core.types import ACTION_NAME_SEPARATOR, InstanceStatus, ModelKind
from annoctx.core.context import AnnoContext
from annoctx.core.manager import (
    ContextManager,
    disband,
    get_context,
    get_manager,
    instantiate,
    reset_manager,
)

__all__ = [
    # Actions
    "ACTION_NAME_SEPARATOR",
    "REGISTER_ACTION_TYPE",
    "UNREGISTER_ACTION_TYPE",
    "Action",
    "ActionAddress",
    "Registration",
    "assemble_action_name",
    "disassemble_action_name",
    "field_action",
    "register_action",
    "unregister_action",
    # Instances
    "InstanceStatus",
    "InstancedConstructor",
    "build_instance_path",
    "is_disbanded",
    # Models
    "ChildSpec",
    "DelegateModelMeta",
    "ModelConstructors",
    "ModelKind",
    "ModelMeta",
    "ModelRegistry",
    # Graph
    "PrototypeInstanceGraph",
    "toposort",
    # Contexts
    "AnnoContext",
    "ContextManager",
    "disband",
    "get_context",
    "get_manager",
    "instantiate",
    "reset_manager",
]
