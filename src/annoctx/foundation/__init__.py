"""Foundation - errors, configuration and logging shared by every layer.

Nothing here imports from annoctx.core; everything else imports from here.
"""

from annoctx.foundation.config import (
    AnnoConfig,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from annoctx.foundation.errors import (
    AnnoError,
    ConfigError,
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

__all__ = [
    # Config
    "AnnoConfig",
    "get_config",
    "load_config",
    "reset_config",
    "save_default_config",
    # Errors
    "AnnoError",
    "ConfigError",
    "CyclicPrototypeInstanceFound",
    "DuplicateInstancePath",
    "DuplicateModelRegistration",
    "ErrorCode",
    "InstanceNotFound",
    "InvalidInstanceKey",
    "InvalidModelDefinition",
    "ModelNotFound",
    "StoreNotBound",
    # Logging
    "configure_logging",
]
