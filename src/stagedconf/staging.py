"""Private working copies of configuration files.

Every ConfigFile works on a copy of its file placed under the staging
directory (<temp_root>/<app_dir>/). The copy's name is the unpadded
URL-safe base64 SHA-256 of the original's absolute path, so reopening the
same file always reuses the same working copy location.

Within one process a working copy belongs to exactly one live ConfigFile;
claim() refuses a second owner.
"""

import base64
import hashlib
import logging
from pathlib import Path

from stagedconf.core.config.models import StagingConfig
from stagedconf.core.exceptions import FileIOError, LogicError
from stagedconf.core.io import copy_file, is_existing_file, make_path, remove_file

logger = logging.getLogger(__name__)

# Working copies owned by live ConfigFile instances in this process
_claimed: set[Path] = set()


def temp_path_for(original: Path, config: StagingConfig) -> Path:
    """Compute the working copy location for a configuration file.

    Args:
        original: Path of the configuration file (need not exist).
        config: Settings providing the staging directory.

    Returns:
        <staging_dir>/<base64url(sha256(absolute original path))>

    """
    key = str(Path(original).absolute()).encode("utf-8")
    digest = hashlib.sha256(key).digest()
    name = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return config.staging_dir / name


def ensure_unclaimed(temp_path: Path) -> None:
    """Raise LogicError if a live ConfigFile owns temp_path."""
    if temp_path in _claimed:
        raise LogicError(
            f'Working copy "{temp_path}" is already in use by another open file',
            temp_path,
        )


def claim(temp_path: Path) -> None:
    """Register temp_path as owned by a live ConfigFile.

    Raises:
        LogicError: If another live ConfigFile already owns it.

    """
    ensure_unclaimed(temp_path)
    _claimed.add(temp_path)


def release_claim(temp_path: Path) -> None:
    _claimed.discard(temp_path)


def _reset_claims() -> None:
    """Forget all claims (for tests)."""
    _claimed.clear()


def stage(source: Path, temp_path: Path) -> None:
    """Copy source into the working copy location.

    A stale working copy left behind by an earlier run is removed first.

    Raises:
        FileIOError: If the staging directory cannot be created, the stale
            copy cannot be removed, or the copy fails.

    """
    if not make_path(temp_path.parent):
        raise FileIOError(f'Cannot create directory "{temp_path.parent}"', temp_path.parent)

    if is_existing_file(temp_path):
        logger.debug("Removing stale working copy %s", temp_path)
        remove_file(temp_path)

    copy_file(source, temp_path)
    if not is_existing_file(temp_path):
        raise FileIOError(f'Could not copy file "{source}" to "{temp_path}"', temp_path)
    logger.debug("Staged %s -> %s", source, temp_path)


def discard(temp_path: Path) -> bool:
    """Best-effort removal of a working copy.

    Returns:
        True if the file is gone afterwards.

    """
    try:
        temp_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove working copy %s: %s", temp_path, e)
        return False
    return True
