"""Key/value store interface consumed by ConfigFile."""

from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


class StoreStatus(Enum):
    """Outcome of the last open or flush of a store."""

    OK = "ok"
    ACCESS_ERROR = "access_error"
    FORMAT_ERROR = "format_error"


@runtime_checkable
class KeyValueStore(Protocol):
    """In-memory key/value document bound to one file on disk.

    Keys are dot-notation paths into a hierarchical document. Changes stay
    in memory until flush() writes them to the bound file. Several stores
    may be bound to the same file; flush() merges this store's pending
    changes into what is currently on disk.
    """

    @property
    def path(self) -> Path: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def contains(self, key: str) -> bool: ...

    def keys(self) -> list[str]: ...

    def flush(self) -> StoreStatus: ...

    def status(self) -> StoreStatus: ...


StoreFactory = Callable[[Path], KeyValueStore]
