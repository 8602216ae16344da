"""
================================================================================
Logging Setup
================================================================================

Centralized Loguru configuration for the harness.

Reads the ``logging`` section of the run's configuration:
    logging.level   DEBUG / INFO / WARNING / ERROR (default INFO)
    logging.format  Loguru format string
    logging.file    Optional log file, rotated and compressed

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config_loader import ConfigLoader


DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
)

_logger_initialized: bool = False


def init_logger(
    config: Optional[ConfigLoader] = None,
    level: Optional[str] = None,
) -> bool:
    """
    Initialize the global Loguru logger once per process.

    Args:
        config: Configuration to read ``logging.*`` from
        level: Explicit level overriding the configuration

    Returns:
        True if this call configured the logger, False if it already was.
    """
    global _logger_initialized

    if _logger_initialized:
        return False

    log_level = (level or _setting(config, "logging.level", "INFO")).upper()
    log_format = _setting(config, "logging.format", DEFAULT_LOG_FORMAT)

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = _setting(config, "logging.file", None)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level,
            format=log_format.replace("{level: <8}", "{level}"),
            rotation=_setting(config, "logging.rotation", "10 MB"),
            retention=_setting(config, "logging.retention", "7 days"),
            compression="zip",
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")
    return True


def reset_logger_state() -> None:
    """Allow init_logger to run again (used by unit tests)."""
    global _logger_initialized
    _logger_initialized = False


def _setting(config: Optional[ConfigLoader], key: str, default):
    if config is None:
        return default
    return config.get(key, default)


__all__ = [
    "init_logger",
    "reset_logger_state",
]
