"""Dot-notation key helpers for nested mapping documents."""

from collections.abc import Callable, MutableMapping
from typing import Any


def _split_key(path: str) -> list[str]:
    """Split a dot-notation key, rejecting empty keys and empty segments.

    Raises:
        ValueError: If path is empty or has empty segments.

    """
    if not path:
        raise ValueError("Key cannot be empty")
    keys = path.split(".")
    for key in keys:
        if not key:
            raise ValueError(f"Invalid key '{path}': contains empty segment")
    return keys


def flatten_keys(d: MutableMapping[str, Any], parent_key: str = "") -> list[str]:
    """List all leaf keys of a nested mapping in dot-notation.

    Example:
        >>> flatten_keys({"a": {"b": 1, "c": 2}, "d": 3})
        ['a.b', 'a.c', 'd']

    """
    keys: list[str] = []
    for k, v in d.items():
        new_key = f"{parent_key}.{k}" if parent_key else str(k)
        if isinstance(v, MutableMapping) and v:
            keys.extend(flatten_keys(v, new_key))
        else:
            keys.append(new_key)
    return keys


def get_nested_value(d: MutableMapping[str, Any], path: str) -> tuple[Any, bool]:
    """Get value at dot-notation path from nested mapping.

    Returns:
        Tuple of (value, found). If path not found, returns (None, False).

    """
    current: Any = d
    for key in _split_key(path):
        if not isinstance(current, MutableMapping) or key not in current:
            return None, False
        current = current[key]
    return current, True


def set_nested_value(
    d: MutableMapping[str, Any],
    path: str,
    value: Any,
    mapping_factory: Callable[[], MutableMapping[str, Any]] = dict,
) -> None:
    """Set value at dot-notation path, creating intermediate mappings.

    Args:
        d: Mapping to modify.
        path: Dot-notation path (e.g., "section.key").
        value: Value to set.
        mapping_factory: Creates missing intermediate mappings.

    Raises:
        ValueError: If path is invalid or an intermediate value exists but
            is not a mapping.

    """
    keys = _split_key(path)
    current = d
    for key in keys[:-1]:
        if key not in current:
            current[key] = mapping_factory()
        elif not isinstance(current[key], MutableMapping):
            raise ValueError(
                f"Cannot set '{path}': intermediate value at '{key}' "
                f"is {type(current[key]).__name__}, not a mapping"
            )
        current = current[key]
    current[keys[-1]] = value


def delete_nested_value(d: MutableMapping[str, Any], path: str) -> bool:
    """Delete value at dot-notation path.

    Returns:
        True if value was deleted, False if path didn't exist.

    """
    keys = _split_key(path)
    current: Any = d
    for key in keys[:-1]:
        if not isinstance(current, MutableMapping) or key not in current:
            return False
        current = current[key]
    if not isinstance(current, MutableMapping) or keys[-1] not in current:
        return False
    del current[keys[-1]]
    return True
