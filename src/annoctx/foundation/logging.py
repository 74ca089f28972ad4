"""Logging configuration for annoctx.

Provides centralized logging setup with sensible defaults:
- Default: WARNING level (quiet operation)
- --debug flag: DEBUG level with full context
- ANNO_DEBUG=true or ANNO_LOG_LEVEL=DEBUG env vars: Override for CI/scripting
- Config file: debug: true in .anno/config.yaml (persistent)

Usage:
    from annoctx.foundation.logging import configure_logging
    configure_logging(debug=args.debug)

Priority for level resolution (highest to lowest):
    1. Explicit `level` parameter (programmatic override)
    2. ANNO_LOG_LEVEL env var (any level: DEBUG, INFO, WARNING, etc.)
    3. ANNO_DEBUG=true env var (simple boolean)
    4. `debug=True` parameter (--debug flag)
    5. Config file: debug: true
    6. WARNING (default)
"""

import logging
import os
import sys
from pathlib import Path
from typing import TextIO

# Format includes module path for tracing issues
_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"

# Noisy libraries we want to quiet even in debug mode
_NOISY_LOGGERS = ("asyncio",)


def _config_debug() -> bool:
    # Lazy import: config may not be loaded yet
    from annoctx.foundation.config import get_config

    return get_config().debug


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: TextIO | None = None,
    log_file: str | Path | None = None,
) -> int:
    """Configure logging for annoctx.

    Args:
        debug: Enable DEBUG level with detailed format
        level: Override log level (int or string like "DEBUG", "INFO")
        stream: Output stream (default: stderr)
        log_file: Optional file that receives every record at DEBUG level

    Returns:
        The resolved console log level.
    """
    resolved_level: int
    if level is not None:
        resolved_level = _parse_level(level)
    elif env_level := os.environ.get("ANNO_LOG_LEVEL"):
        resolved_level = _parse_level(env_level)
    elif os.environ.get("ANNO_DEBUG", "").lower() in ("true", "1", "yes"):
        resolved_level = logging.DEBUG
    elif debug or _config_debug():
        resolved_level = logging.DEBUG
    else:
        resolved_level = logging.WARNING

    console_format = _DEBUG_FORMAT if resolved_level <= logging.DEBUG else _DEFAULT_FORMAT

    root_logger = logging.getLogger()
    # With a file handler the root must let DEBUG through; console still filters
    root_logger.setLevel(logging.DEBUG if log_file else resolved_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_DEBUG_FORMAT))
        root_logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(
        "Logging configured: level=%s, debug=%s, log_file=%s",
        logging.getLevelName(resolved_level),
        debug,
        log_file,
    )
    return resolved_level


def _parse_level(level: int | str) -> int:
    """Parse log level from int or string."""
    if isinstance(level, int):
        return level
    numeric = getattr(logging, level.upper(), None)
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return logging.WARNING
