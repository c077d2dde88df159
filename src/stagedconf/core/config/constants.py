"""Shared constants for configuration modules.

Kept in a leaf module so both the settings model and the loaders can
import them without circular imports.
"""

# Prefix for environment variable overrides (STAGEDCONF_TEMP_ROOT etc.)
ENV_PREFIX: str = "STAGEDCONF_"

DEFAULT_APP_DIR: str = "stagedconf"
DEFAULT_BACKUP_SUFFIX: str = "~"
DEFAULT_VERSION_KEY: str = "meta.file_version"

MAX_DOCUMENT_SIZE: int = 1_048_576  # 1MB - protection against YAML bombs
