"""Pytest configuration and fixtures for stagedconf tests."""

from pathlib import Path

import pytest

from stagedconf.core.config import StagingConfig


@pytest.fixture(autouse=True)
def staging_config(tmp_path: Path):
    """Point working copies into the test's tmp dir and reset singletons.

    Each test gets its own staging directory so working copies never leak
    into the real system temp directory or between tests.
    """
    from stagedconf.core.config import _reset_config, load_config
    from stagedconf.staging import _reset_claims

    _reset_config()
    _reset_claims()
    config = load_config({"temp_root": str(tmp_path / "staging")})

    yield config

    _reset_config()
    _reset_claims()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Location of a configuration file that does not exist yet."""
    return tmp_path / "project" / "settings.yaml"


@pytest.fixture
def existing_config(config_path: Path) -> Path:
    """Configuration file with a version and one section."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        """\
# project settings
meta:
  file_version: '2'
section:
  key: original  # inline comment
""",
        encoding="utf-8",
    )
    return config_path


@pytest.fixture
def backup_of(staging_config: StagingConfig):
    """Return the backup path for a configuration file."""

    def _backup(path: Path) -> Path:
        return Path(f"{path}{staging_config.backup_suffix}")

    return _backup
