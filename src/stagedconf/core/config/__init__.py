"""Pydantic settings and singleton access for stagedconf.

Usage:
    from stagedconf.core.config import get_config, load_config

    # Defaults (system temp directory, "~" backup suffix)
    config = get_config()

    # Or from a dictionary / the environment
    load_config({"temp_root": "/var/tmp"})
    load_config_from_env()  # reads .env and STAGEDCONF_* variables
"""

from stagedconf.core.config.constants import (
    DEFAULT_APP_DIR,
    DEFAULT_BACKUP_SUFFIX,
    DEFAULT_VERSION_KEY,
    ENV_PREFIX,
    MAX_DOCUMENT_SIZE,
)
from stagedconf.core.config.env import ENV_FILE_NAME, ENV_KEYS, load_env_file, read_env_overrides
from stagedconf.core.config.loaders import (
    _reset_config,
    get_config,
    load_config,
    load_config_from_env,
)
from stagedconf.core.config.models import StagingConfig

__all__ = [
    "DEFAULT_APP_DIR",
    "DEFAULT_BACKUP_SUFFIX",
    "DEFAULT_VERSION_KEY",
    "ENV_FILE_NAME",
    "ENV_KEYS",
    "ENV_PREFIX",
    "MAX_DOCUMENT_SIZE",
    "StagingConfig",
    "_reset_config",
    "get_config",
    "load_config",
    "load_config_from_env",
    "load_env_file",
    "read_env_overrides",
]
