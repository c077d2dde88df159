"""Custom exception hierarchy for stagedconf.

All errors raised by this package derive from StagedConfError so callers
can catch the whole family with a single except clause. The three
lifecycle kinds map onto file-level failures:

- NotFoundError: the file an operation needs is absent.
- FileIOError: a copy/remove/create/flush failed, or a post-condition
  check after such an operation did not hold.
- LogicError: the operation is forbidden (read-only file) or the caller
  misused the API (e.g. releasing a handle that was never issued).
"""

from pathlib import Path


class StagedConfError(Exception):
    """Base exception for all stagedconf errors.

    Attributes:
        path: File the failure is about, if any.

    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class NotFoundError(StagedConfError):
    """An expected configuration file does not exist."""


class FileIOError(StagedConfError):
    """A filesystem operation failed or its post-condition did not hold.

    Aggregate operations collect every partial failure before raising once.

    Attributes:
        failures: List of (path, reason) pairs, empty for single failures.

    """

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        failures: list[tuple[Path, str]] | None = None,
    ) -> None:
        super().__init__(message, path)
        self.failures: list[tuple[Path, str]] = list(failures or [])


class LogicError(StagedConfError):
    """Operation forbidden by object state, or a programming defect."""


class ConfigError(StagedConfError):
    """Package settings are invalid."""
