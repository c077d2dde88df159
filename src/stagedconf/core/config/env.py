"""Environment variable handling for stagedconf settings."""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from stagedconf.core.config.constants import ENV_PREFIX

logger = logging.getLogger(__name__)

# .env file name constant
ENV_FILE_NAME: str = ".env"

# Setting field -> environment variable
ENV_KEYS: dict[str, str] = {
    "temp_root": f"{ENV_PREFIX}TEMP_ROOT",
    "app_dir": f"{ENV_PREFIX}APP_DIR",
    "backup_suffix": f"{ENV_PREFIX}BACKUP_SUFFIX",
    "version_key": f"{ENV_PREFIX}VERSION_KEY",
}


def load_env_file(project_path: str | Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Loads {project_path}/.env or {cwd}/.env. Existing environment variables
    are never overridden.

    Args:
        project_path: Directory containing the .env file. Defaults to cwd.

    Returns:
        True if a .env file was found and loaded, False otherwise.

    """
    resolved_path = Path.cwd() if project_path is None else Path(project_path).expanduser()
    env_file = resolved_path / ENV_FILE_NAME

    if not env_file.is_file():
        logger.debug(".env file not found at %s, skipping", env_file)
        return False

    load_dotenv(env_file, encoding="utf-8", override=False)
    logger.debug("Loaded environment variables from %s", env_file)
    return True


def read_env_overrides() -> dict[str, Any]:
    """Collect settings overrides from STAGEDCONF_* environment variables.

    Empty values are ignored.

    """
    overrides: dict[str, Any] = {}
    for field_name, env_name in ENV_KEYS.items():
        value = os.environ.get(env_name)
        if value:
            overrides[field_name] = value
    return overrides
