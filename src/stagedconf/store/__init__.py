"""Key/value document stores that ConfigFile hands out as handles."""

from stagedconf.store.base import KeyValueStore, StoreFactory, StoreStatus
from stagedconf.store.yaml_store import YamlStore, open_store

__all__ = [
    "KeyValueStore",
    "StoreFactory",
    "StoreStatus",
    "YamlStore",
    "open_store",
]
