"""annoctx configuration management.

Loads configuration from .anno/config.yaml with sensible defaults.
All settings can be overridden via environment variables (ANNO_*).

Config locations (in priority order):
1. Environment variables (ANNO_KEY_STRATEGY, ANNO_DROP_ORPHAN_ACTIONS, ANNO_DEBUG)
2. Explicit path passed to load_config()
3. .anno/config.yaml (project-local)
4. ~/.anno/config.yaml (user-global)
5. Built-in defaults

Thread Safety:
    Uses threading.Lock for thread-safe lazy initialization.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Literal

import yaml

from annoctx.foundation.errors import ConfigError

logger = logging.getLogger(__name__)

KEY_STRATEGIES = ("uuid", "sequence")

_ENV_PREFIX = "ANNO_"


@dataclass(frozen=True, slots=True)
class AnnoConfig:
    """Root configuration for annoctx."""

    key_strategy: Literal["uuid", "sequence"] = "uuid"
    """How keys are generated for prototype instances created without one."""

    drop_orphan_actions: bool = True
    """Drop field actions addressed to absent instances instead of raising."""

    debug: bool = False
    """Enable DEBUG logging when configure_logging() is called without a level."""

    def __post_init__(self) -> None:
        if self.key_strategy not in KEY_STRATEGIES:
            raise ConfigError(
                "key_strategy",
                f"expected one of {', '.join(KEY_STRATEGIES)}, got {self.key_strategy!r}",
            )
        for name in ("drop_orphan_actions", "debug"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(name, f"expected a boolean, got {getattr(self, name)!r}")


# Global config instance (lazy-loaded, thread-safe)
_config: AnnoConfig | None = None
_config_lock = threading.Lock()


def _coerce(value: str) -> bool | str:
    if value.lower() in ("true", "1", "yes"):
        return True
    if value.lower() in ("false", "0", "no"):
        return False
    return value


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply ANNO_<FIELD> environment variable overrides."""
    for f in fields(AnnoConfig):
        raw = os.environ.get(_ENV_PREFIX + f.name.upper())
        if raw is None:
            continue
        config_dict[f.name] = raw if f.name == "key_strategy" else _coerce(raw)
    return config_dict


def load_config(path: str | Path | None = None) -> AnnoConfig:
    """Load configuration from file with defaults and env overrides.

    Args:
        path: Optional explicit config file path.

    Returns:
        Merged AnnoConfig instance.

    Raises:
        ConfigError: If a config file contains unknown keys or invalid values.
    """
    global _config

    config_dict: dict[str, Any] = asdict(AnnoConfig())

    config_paths = []
    if path:
        config_paths.append(Path(path))
    config_paths.extend([
        Path(".anno/config.yaml"),
        Path.home() / ".anno" / "config.yaml",
    ])

    for config_path in config_paths:
        if config_path.exists():
            with open(config_path) as f:
                file_config = yaml.safe_load(f) or {}
            if not isinstance(file_config, dict):
                raise ConfigError(str(config_path), "top level must be a mapping")
            unknown = set(file_config) - set(config_dict)
            if unknown:
                raise ConfigError(str(config_path), f"unknown keys {sorted(unknown)}")
            config_dict.update(file_config)
            logger.debug("Loaded config from %s", config_path)
            break  # Use first found config

    config_dict = _apply_env_overrides(config_dict)

    _config = AnnoConfig(**config_dict)
    return _config


def get_config() -> AnnoConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None


def save_default_config(path: str | Path = ".anno/config.yaml") -> Path:
    """Save the default configuration to a file.

    Args:
        path: Where to save the config.

    Returns:
        Path to the saved config file.
    """
    config_content = """# annoctx configuration
#
# Actual defaults are defined in annoctx/foundation/config.py.
# Every key can be overridden with an ANNO_<KEY> environment variable.

# Key generation for prototype instances created without an explicit key:
# "uuid" (12 hex chars) or "sequence" (per-model counter)
key_strategy: uuid

# Drop field actions addressed to instances that no longer exist
# (logged as a warning). Set to false to raise InstanceNotFound instead.
drop_orphan_actions: true

# Enable DEBUG logging
debug: false
"""
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(config_content)
    return config_path
