"""Settings loading functions and singleton management."""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from stagedconf.core.config.env import load_env_file, read_env_overrides
from stagedconf.core.config.models import StagingConfig
from stagedconf.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Module-level singleton for settings
_config: StagingConfig | None = None


def load_config(config_data: dict[str, Any]) -> StagingConfig:
    """Validate settings from a dictionary and store them as the singleton.

    Args:
        config_data: Settings dictionary; missing keys take defaults.

    Returns:
        Validated StagingConfig instance.

    Raises:
        ConfigError: If config_data is not a dict or validation fails.

    """
    global _config
    if not isinstance(config_data, dict):
        raise ConfigError(f"config_data must be a dict, got {type(config_data).__name__}")
    try:
        _config = StagingConfig.model_validate(config_data)
    except ValidationError as e:
        _config = None
        raise ConfigError(f"Settings validation failed: {e}") from e
    logger.debug("Loaded settings: staging dir %s", _config.staging_dir)
    return _config


def load_config_from_env(project_path: str | Path | None = None) -> StagingConfig:
    """Load settings from a .env file and STAGEDCONF_* environment variables.

    Args:
        project_path: Directory containing the optional .env file.

    Returns:
        Validated StagingConfig instance.

    Raises:
        ConfigError: If an environment override is invalid.

    """
    load_env_file(project_path)
    return load_config(read_env_overrides())


def get_config() -> StagingConfig:
    """Get the settings singleton, creating defaults on first use."""
    global _config
    if _config is None:
        _config = StagingConfig()
    return _config


def _reset_config() -> None:
    """Reset settings singleton (for tests)."""
    global _config
    _config = None
