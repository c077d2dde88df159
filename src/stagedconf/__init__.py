"""stagedconf - crash-resilient configuration files.

Reads and writes go through a private working copy; the original file and
its backup sibling are only written on an explicit save.
"""

from stagedconf.config_file import NO_VERSION, ConfigFile
from stagedconf.core.config import StagingConfig, get_config, load_config, load_config_from_env
from stagedconf.core.exceptions import (
    ConfigError,
    FileIOError,
    LogicError,
    NotFoundError,
    StagedConfError,
)
from stagedconf.store import KeyValueStore, StoreStatus, YamlStore

__version__ = "0.1.0"

__all__ = [
    "NO_VERSION",
    "ConfigError",
    "ConfigFile",
    "FileIOError",
    "KeyValueStore",
    "LogicError",
    "NotFoundError",
    "StagedConfError",
    "StagingConfig",
    "StoreStatus",
    "YamlStore",
    "get_config",
    "load_config",
    "load_config_from_env",
]
