"""Crash-resilient configuration file with backup and private working copy.

A ConfigFile never edits its file in place. Opening copies either the
file or its backup sibling (``<path>~``) into a private working copy;
handles read and write that copy; save() promotes the working copy to the
original or backup location. An interrupted session therefore leaves the
original untouched and, if a backup was saved, a restorable snapshot.

Usage:
    from stagedconf import ConfigFile

    with ConfigFile.create(path, version=3) as cfg:
        with cfg.handle() as store:
            store.set("section.key", "value")
        cfg.save(to_original=True)

    with ConfigFile.open(path, restore=True, read_only=True) as cfg:
        cfg.version           # 3
        cfg.get_value("section.key")

Thread Safety:
    ConfigFile is NOT thread-safe and performs no cross-process locking.
    Callers sharing one instance must serialize writes themselves.
"""

from __future__ import annotations

import contextlib
import logging
import re
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from stagedconf import staging
from stagedconf.core.config import StagingConfig, get_config
from stagedconf.core.exceptions import FileIOError, LogicError, NotFoundError
from stagedconf.core.io import atomic_copy, is_existing_file, make_path, remove_file
from stagedconf.store import KeyValueStore, StoreFactory, StoreStatus, open_store

logger = logging.getLogger(__name__)

# Version value meaning "absent or unknown"
NO_VERSION = -1

_DECIMAL_RE = re.compile(r"-?[0-9]+")


def _parse_version(raw: Any) -> int:
    """Interpret a stored version value, -1 if it is not a decimal integer."""
    if raw is None or isinstance(raw, bool):
        return NO_VERSION
    text = str(raw).strip()
    if not _DECIMAL_RE.fullmatch(text):
        return NO_VERSION
    return int(text)


class ConfigFile:
    """One configuration file session: original, backup and working copy.

    Attributes:
        original_path: Canonical location of the configuration file.
        backup_path: Sibling last-known-good snapshot (original + suffix).
        temp_path: Private working copy all handles are bound to.
        read_only: True if save/remove/version changes are forbidden.
        version: File version metadata, -1 if absent.

    """

    def __init__(
        self,
        path: Path | str,
        restore: bool = False,
        read_only: bool = False,
        *,
        config: StagingConfig | None = None,
        store_factory: StoreFactory = open_store,
    ) -> None:
        """Open a configuration file into a fresh working copy.

        Prefer the ``open()`` and ``create()`` class methods.

        Args:
            path: Configuration file path.
            restore: Start from the backup file if it exists.
            read_only: Forbid save/remove/version changes.
            config: Staging settings; defaults to get_config().
            store_factory: Creates the key/value handles.

        Raises:
            NotFoundError: If neither the chosen source file exists.
            FileIOError: If staging the working copy fails or it is malformed.
            LogicError: If another open ConfigFile already uses this file.

        """
        # Teardown must be safe on a half-built object
        self._closed = True
        self._handles: list[KeyValueStore] = []

        self._config = config if config is not None else get_config()
        self._store_factory = store_factory
        self._read_only = read_only
        self._original_path = Path(path)
        self._backup_path = Path(f"{self._original_path}{self._config.backup_suffix}")
        self._version = NO_VERSION

        source = self._backup_path
        if not restore or not is_existing_file(source):
            source = self._original_path
        if not is_existing_file(source):
            raise NotFoundError(f'The file "{source}" does not exist!', source)

        self._temp_path = staging.temp_path_for(self._original_path, self._config)
        staging.claim(self._temp_path)
        self._closed = False

        try:
            staging.stage(source, self._temp_path)
            store = self.acquire_handle()
            self._version = _parse_version(store.get(self._config.version_key))
            self._release(store)
        except BaseException:
            self._abandon()
            raise

        logger.debug(
            "Opened %s from %s (version %d, read_only=%s)",
            self._original_path,
            source,
            self._version,
            read_only,
        )

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        path: Path | str,
        restore: bool = False,
        read_only: bool = False,
        *,
        config: StagingConfig | None = None,
        store_factory: StoreFactory = open_store,
    ) -> ConfigFile:
        """Open an existing configuration file.

        Args:
            path: Configuration file path.
            restore: Start from the backup (``path`` + suffix) if it exists.
            read_only: Forbid save/remove/version changes.
            config: Staging settings; defaults to get_config().
            store_factory: Creates the key/value handles.

        Returns:
            Open ConfigFile with no handles outstanding.

        Raises:
            NotFoundError: If the source file does not exist.
            FileIOError: If the working copy cannot be staged or is malformed.
            LogicError: If another open ConfigFile already uses this file.

        """
        return cls(
            path,
            restore=restore,
            read_only=read_only,
            config=config,
            store_factory=store_factory,
        )

    @classmethod
    def create(
        cls,
        path: Path | str,
        version: int = NO_VERSION,
        *,
        config: StagingConfig | None = None,
        store_factory: StoreFactory = open_store,
    ) -> ConfigFile:
        """Create a new, empty configuration file.

        Any existing file at ``path`` is removed. An empty backup file is
        created as the session's starting point. If ``version`` is given it
        is written and saved to the backup immediately; the original is only
        written by an explicit save(to_original=True).

        Args:
            path: Destination path.
            version: Initial file version, -1 to omit.
            config: Staging settings; defaults to get_config().
            store_factory: Creates the key/value handles.

        Returns:
            Writable ConfigFile.

        Raises:
            FileIOError: If removing, creating directories or files fails.
            LogicError: If another open ConfigFile already uses this file;
                nothing on disk is touched in that case.

        """
        path = Path(path)
        cfg = config if config is not None else get_config()

        # Refuse before touching files a live session depends on
        staging.ensure_unclaimed(staging.temp_path_for(path, cfg))

        if is_existing_file(path):
            remove_file(path)

        if not make_path(path.parent):
            raise FileIOError(f'Cannot create directory "{path.parent}"!', path.parent)

        backup = Path(f"{path}{cfg.backup_suffix}")
        try:
            backup.write_bytes(b"")
        except OSError as e:
            raise FileIOError(f'Cannot create file "{backup}": {e}', backup) from e

        obj = cls(path, restore=True, read_only=False, config=cfg, store_factory=store_factory)
        if version > NO_VERSION:
            try:
                obj.set_version(version)
                obj.save(to_original=False)
            except BaseException:
                obj.close()
                raise
        logger.debug("Created %s (version %d)", path, version)
        return obj

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def original_path(self) -> Path:
        return self._original_path

    @property
    def backup_path(self) -> Path:
        return self._backup_path

    @property
    def temp_path(self) -> Path:
        return self._temp_path

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def version(self) -> int:
        return self._version

    @property
    def open_handle_count(self) -> int:
        return len(self._handles)

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._handles)} handle(s)"
        return f"ConfigFile({str(self._original_path)!r}, read_only={self._read_only}, {state})"

    def _ensure_open(self) -> None:
        if self._closed:
            raise LogicError(f'File "{self._original_path}" is closed', self._original_path)

    def _ensure_writable(self, action: str) -> None:
        self._ensure_open()
        if self._read_only:
            raise LogicError(f"Cannot {action} read-only file!", self._original_path)

    def _is_registered(self, store: KeyValueStore) -> bool:
        return any(h is store for h in self._handles)

    # -------------------------------------------------------------------------
    # Handles
    # -------------------------------------------------------------------------

    def acquire_handle(self) -> KeyValueStore:
        """Open a new key/value handle on the working copy.

        Several handles may be open at once; each one's changes are merged
        into the working copy when it is flushed.

        Returns:
            Registered handle; give it back with release_handle().

        Raises:
            FileIOError: If the working copy cannot be opened or is malformed.
            LogicError: If the file is closed.

        """
        self._ensure_open()
        try:
            store = self._store_factory(self._temp_path)
        except OSError as e:
            raise FileIOError(
                f'Error while opening file "{self._temp_path}": {e}', self._temp_path
            ) from e

        status = store.status()
        if status is not StoreStatus.OK:
            raise FileIOError(
                f'Error while opening file "{self._temp_path}" ({status.value})!',
                self._temp_path,
            )

        self._handles.append(store)
        return store

    def _release(self, store: KeyValueStore) -> bool:
        """Flush and unregister a handle; keep it registered if flush fails."""
        if not self._is_registered(store):
            raise LogicError("Handle was not issued by this file or already released")

        status = store.flush()
        if status is not StoreStatus.OK:
            logger.warning(
                "Flushing handle on %s failed (%s); keeping it open",
                self._temp_path,
                status.value,
            )
            return False

        self._handles = [h for h in self._handles if h is not store]
        return True

    def release_handle(self, store: KeyValueStore) -> None:
        """Flush a handle and give it back.

        If the flush fails the handle stays registered and alive, so no
        change is silently dropped; retry later or let save() report it.

        Raises:
            LogicError: If the handle is not registered with this file.
            FileIOError: If flushing the handle fails.

        """
        self._ensure_open()
        if not self._release(store):
            raise FileIOError(
                f'Error while writing to file "{self._temp_path}"!', self._temp_path
            )

    @contextmanager
    def handle(self) -> Generator[KeyValueStore, None, None]:
        """Acquire a handle for the duration of a with-block."""
        store = self.acquire_handle()
        try:
            yield store
        finally:
            self.release_handle(store)

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def set_version(self, version: int) -> None:
        """Write the file version metadata into the working copy.

        The cached version only changes once the write succeeded.

        Raises:
            LogicError: If the file is read-only or closed.
            FileIOError: If the working copy cannot be opened or written.

        """
        self._ensure_writable("change version of")
        with self.handle() as store:
            try:
                # str(int) is locale-independent
                store.set(self._config.version_key, str(int(version)))
            except ValueError as e:
                raise FileIOError(
                    f'Cannot write version to file "{self._temp_path}": {e}', self._temp_path
                ) from e
        self._version = int(version)

    def get_value(self, key: str, default: Any = None) -> Any:
        """Read one value from the working copy through a transient handle."""
        with self.handle() as store:
            return store.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        """Write one value to the working copy through a transient handle.

        Raises:
            LogicError: If the file is read-only or closed, or the key is
                malformed or runs through a non-mapping value.
            FileIOError: If the working copy cannot be opened or written.

        """
        self._ensure_writable("modify")
        with self.handle() as store:
            try:
                store.set(key, value)
            except ValueError as e:
                raise LogicError(f"Cannot set {key!r}: {e}", self._original_path) from e

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, to_original: bool = True) -> None:
        """Flush all handles and promote the working copy.

        The target (original or backup) is replaced atomically: the content
        is copied next to it and renamed into place, so a failure leaves the
        previous target intact.

        Args:
            to_original: Write the original file; otherwise the backup.

        Raises:
            LogicError: If the file is read-only or closed.
            FileIOError: If a handle cannot be flushed or the copy fails.

        """
        self._ensure_writable("save")
        target = self._original_path if to_original else self._backup_path

        for store in self._handles:
            if store.flush() is not StoreStatus.OK:
                raise FileIOError(f'Error while writing to file "{target}"!', target)

        atomic_copy(self._temp_path, target)

        if not is_existing_file(target):
            raise FileIOError(f'Error while writing to file "{target}"!', target)

        logger.info("Saved %s to %s", self._original_path, target)

    def remove(self) -> None:
        """Delete the original, the backup and, if no handle is open, the working copy.

        Every deletion is attempted even if an earlier one failed.

        Raises:
            LogicError: If the file is read-only or closed.
            FileIOError: If any deletion failed; lists every failure.

        """
        self._ensure_writable("remove")
        failures: list[tuple[Path, str]] = []

        targets = [self._original_path, self._backup_path]
        if self._handles:
            logger.error(
                "Removing %s with %d open handle(s); keeping working copy %s",
                self._original_path,
                len(self._handles),
                self._temp_path,
            )
        else:
            targets.append(self._temp_path)

        for path in targets:
            try:
                remove_file(path)
            except FileIOError as e:
                failures.append((path, str(e)))

        if failures:
            raise FileIOError(
                f'Could not remove file "{self._original_path}"',
                self._original_path,
                failures=failures,
            )
        logger.info("Removed %s", self._original_path)

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def _abandon(self) -> None:
        """Undo a failed construction without touching original or backup."""
        self._handles.clear()
        staging.discard(self._temp_path)
        staging.release_claim(self._temp_path)
        self._closed = True

    def close(self) -> None:
        """End the session. Never raises; safe to call more than once.

        Remaining handles are dropped without flushing. The working copy is
        deleted, and the backup too unless the file is read-only.
        """
        if self._closed:
            return
        self._closed = True

        if self._handles:
            logger.error(
                "Closing %s with %d open handle(s); unflushed changes are lost",
                self._original_path,
                len(self._handles),
            )
            self._handles.clear()

        staging.discard(self._temp_path)
        if not self._read_only:
            with contextlib.suppress(OSError):
                self._backup_path.unlink(missing_ok=True)
        staging.release_claim(self._temp_path)
        logger.debug("Closed %s", self._original_path)

    def __enter__(self) -> ConfigFile:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __del__(self) -> None:
        # Interpreter shutdown may have torn down logging/staging already
        with contextlib.suppress(Exception):
            self.close()
