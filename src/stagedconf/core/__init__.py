"""Core infrastructure for stagedconf: settings, errors and file primitives.

This module provides:
- Settings model and singleton access via get_config()
- Custom exception hierarchy with StagedConfError as base
"""

from stagedconf.core.exceptions import (
    ConfigError,
    FileIOError,
    LogicError,
    NotFoundError,
    StagedConfError,
)

__all__ = [
    "ConfigError",
    "FileIOError",
    "LogicError",
    "NotFoundError",
    "StagedConfError",
]
