"""YAML-backed key/value store with comment preservation.

Documents are loaded with ruamel.yaml in round-trip mode so comments and
key order survive a flush. If round-trip loading fails, PyYAML is tried
before the document is declared malformed.

Each store records its own changes as an ordered list of operations. On
flush() the bound file is re-read and only those operations are replayed
onto the fresh document, so several stores bound to the same file do not
overwrite each other's keys.
"""

import copy
import logging
from collections.abc import MutableMapping
from io import StringIO
from pathlib import Path
from typing import Any

import yaml
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from stagedconf.core.config.constants import MAX_DOCUMENT_SIZE
from stagedconf.core.io import atomic_write
from stagedconf.store.base import StoreStatus
from stagedconf.store.keys import (
    delete_nested_value,
    flatten_keys,
    get_nested_value,
    set_nested_value,
)

logger = logging.getLogger(__name__)

# Marks a pending removal in the operation log
_REMOVED = object()


def _round_trip_yaml() -> YAML:
    yaml_rt = YAML(typ="rt")
    yaml_rt.preserve_quotes = True
    yaml_rt.default_flow_style = False
    return yaml_rt


class YamlStore:
    """Key/value view of a YAML mapping document bound to a file.

    A missing or empty file is an empty document. Content that does not
    parse, exceeds MAX_DOCUMENT_SIZE, or whose root is not a mapping puts
    the store in FORMAT_ERROR; such a file is never overwritten by flush().

    Attributes:
        path: File the store reads from and flushes to.

    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._ops: list[tuple[str, Any]] = []
        self._data, self._status = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def __repr__(self) -> str:
        return f"YamlStore({str(self._path)!r}, status={self._status.value})"

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def _read(self) -> tuple[MutableMapping[str, Any], StoreStatus]:
        """Load the bound file into a fresh document."""
        if not self._path.exists():
            return CommentedMap(), StoreStatus.OK

        try:
            # Read with size limit instead of stat-then-read
            with self._path.open("rb") as f:
                raw = f.read(MAX_DOCUMENT_SIZE + 1)
        except OSError as e:
            logger.warning("Cannot read %s: %s", self._path, e)
            return CommentedMap(), StoreStatus.ACCESS_ERROR

        if len(raw) > MAX_DOCUMENT_SIZE:
            logger.warning(
                "Document %s exceeds size limit (read %s bytes before stopping)",
                self._path,
                f"{len(raw):,}",
            )
            return CommentedMap(), StoreStatus.FORMAT_ERROR

        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Document %s is not valid UTF-8: %s", self._path, e)
            return CommentedMap(), StoreStatus.FORMAT_ERROR

        if not content.strip():
            return CommentedMap(), StoreStatus.OK

        try:
            data = _round_trip_yaml().load(content)
        except Exception as e:
            logger.warning(
                "ruamel.yaml failed to parse %s, falling back to PyYAML: %s", self._path, e
            )
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as yaml_error:
                logger.warning("Invalid YAML in %s: %s", self._path, yaml_error)
                return CommentedMap(), StoreStatus.FORMAT_ERROR

        # Comment-only document
        if data is None:
            return CommentedMap(), StoreStatus.OK

        if not isinstance(data, MutableMapping):
            logger.warning(
                "Document %s must contain a YAML mapping, got %s",
                self._path,
                type(data).__name__,
            )
            return CommentedMap(), StoreStatus.FORMAT_ERROR

        return data, StoreStatus.OK

    def get(self, key: str, default: Any = None) -> Any:
        value, found = get_nested_value(self._data, key)
        return value if found else default

    def contains(self, key: str) -> bool:
        return get_nested_value(self._data, key)[1]

    def keys(self) -> list[str]:
        """All leaf keys in dot-notation, in document order."""
        return flatten_keys(self._data)

    def status(self) -> StoreStatus:
        return self._status

    @property
    def dirty(self) -> bool:
        """True if there are changes not yet flushed."""
        return bool(self._ops)

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        """Set a value in memory; written on the next flush().

        Raises:
            ValueError: If the key is malformed or an intermediate value
                is not a mapping.

        """
        value = copy.deepcopy(value)
        set_nested_value(self._data, key, value, CommentedMap)
        self._ops.append((key, value))

    def remove(self, key: str) -> None:
        if delete_nested_value(self._data, key):
            self._ops.append((key, _REMOVED))

    def _replay(self, document: MutableMapping[str, Any]) -> None:
        for key, value in self._ops:
            if value is _REMOVED:
                delete_nested_value(document, key)
            else:
                set_nested_value(document, key, copy.deepcopy(value), CommentedMap)

    def flush(self) -> StoreStatus:
        """Merge pending changes into the bound file.

        The file is re-read first; pending operations are replayed onto it
        and the result is written atomically. Without pending operations
        this only refreshes the in-memory document. On failure the pending
        operations are kept so a later flush() can retry.

        Returns:
            Resulting status, also available via status().

        """
        fresh, status = self._read()
        if status is not StoreStatus.OK:
            self._status = status
            return status

        if self._ops:
            try:
                self._replay(fresh)
            except ValueError as e:
                logger.warning("Cannot merge changes into %s: %s", self._path, e)
                self._status = StoreStatus.FORMAT_ERROR
                return self._status

            buf = StringIO()
            _round_trip_yaml().dump(fresh, buf)
            try:
                atomic_write(self._path, buf.getvalue())
            except OSError as e:
                logger.warning("Cannot write %s: %s", self._path, e)
                self._status = StoreStatus.ACCESS_ERROR
                return self._status
            logger.debug("Flushed %d change(s) to %s", len(self._ops), self._path)
            self._ops.clear()

        self._data = fresh
        self._status = StoreStatus.OK
        return self._status


def open_store(path: Path) -> YamlStore:
    """Default store factory used by ConfigFile."""
    return YamlStore(path)
