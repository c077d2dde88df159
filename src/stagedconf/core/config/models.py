"""Pydantic settings model for stagedconf."""

import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stagedconf.core.config.constants import (
    DEFAULT_APP_DIR,
    DEFAULT_BACKUP_SUFFIX,
    DEFAULT_VERSION_KEY,
)


def _default_temp_root() -> Path:
    return Path(tempfile.gettempdir())


class StagingConfig(BaseModel):
    """Where working copies live and how sibling files are named.

    Attributes:
        temp_root: Base directory for private working copies.
        app_dir: Sub-directory of temp_root owned by this package.
        backup_suffix: Literal suffix appended to the original path to get
            the backup path.
        version_key: Dot-notation key holding the file version metadata.

    """

    model_config = ConfigDict(frozen=True)

    temp_root: Path = Field(
        default_factory=_default_temp_root,
        description="Base directory for private working copies",
    )
    app_dir: str = Field(
        default=DEFAULT_APP_DIR,
        description="Sub-directory of temp_root owned by this package",
    )
    backup_suffix: str = Field(
        default=DEFAULT_BACKUP_SUFFIX,
        description="Suffix appended to the original path for the backup file",
    )
    version_key: str = Field(
        default=DEFAULT_VERSION_KEY,
        description="Dot-notation key of the file version metadata",
    )

    @field_validator("app_dir", "backup_suffix")
    @classmethod
    def _no_separators(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        if "/" in value or "\\" in value:
            raise ValueError(f"must not contain path separators, got {value!r}")
        return value

    @field_validator("version_key")
    @classmethod
    def _valid_key(cls, value: str) -> str:
        if not value or any(not part for part in value.split(".")):
            raise ValueError(f"invalid dot-notation key {value!r}: contains empty segment")
        return value

    @property
    def staging_dir(self) -> Path:
        """Directory holding all working copies."""
        return self.temp_root / self.app_dir
