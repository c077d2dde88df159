"""Path helpers and file primitives used by the file lifecycle.

This module provides:
- Path queries (existing regular file, parent directory, mkdir -p)
- Copy/remove primitives that convert OSError into FileIOError
- Atomic writes and copies (sibling temp file + os.replace pattern)
"""

import contextlib
import logging
import os
import shutil
from pathlib import Path

from stagedconf.core.exceptions import FileIOError

__all__ = [
    "atomic_copy",
    "atomic_write",
    "copy_file",
    "is_existing_file",
    "make_path",
    "parent_dir",
    "remove_file",
]

logger = logging.getLogger(__name__)


def is_existing_file(path: Path) -> bool:
    """Check that path exists and is a regular file (not a directory)."""
    return path.is_file()


def parent_dir(path: Path) -> Path:
    return path.parent


def make_path(path: Path) -> bool:
    """Create a directory and all missing parents.

    Returns:
        True if the directory exists afterwards, False on failure.

    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("Cannot create directory %s: %s", path, e)
        return False
    return path.is_dir()


def _sibling_temp(path: Path) -> Path:
    # PID in the name keeps concurrent writers from clobbering each other's temp
    return path.parent / f".{path.name}.{os.getpid()}.tmp"


def remove_file(path: Path) -> None:
    """Remove a file if it exists.

    Raises:
        FileIOError: If the file exists but cannot be removed.

    """
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise FileIOError(f'Could not remove file "{path}": {e}', path) from e
    if path.exists():
        raise FileIOError(f'Could not remove file "{path}"', path)


def copy_file(src: Path, dst: Path) -> None:
    """Copy file content from src to dst, overwriting dst.

    Raises:
        FileIOError: If the copy fails.

    """
    try:
        shutil.copyfile(src, dst)
    except OSError as e:
        raise FileIOError(f'Could not copy file "{src}" to "{dst}": {e}', dst) from e


def atomic_copy(src: Path, dst: Path) -> None:
    """Replace dst with a copy of src without ever exposing a partial file.

    The content is first copied into a sibling temp file in dst's directory,
    then renamed over dst. On failure dst is left as it was.

    Raises:
        FileIOError: If the copy or the rename fails.

    """
    temp_path = _sibling_temp(dst)
    try:
        shutil.copyfile(src, temp_path)
        os.replace(temp_path, dst)
    except OSError as e:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise FileIOError(f'Could not copy file "{src}" to "{dst}": {e}', dst) from e


def atomic_write(path: Path, content: str) -> None:
    """Write content to path atomically using temp file + os.replace.

    Raises:
        OSError: If the write fails.

    """
    temp_path = _sibling_temp(path)
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(temp_path, path)
    except OSError:
        with contextlib.suppress(OSError):
            if temp_path.exists():
                temp_path.unlink()
        raise
