"""
Deep Freeze

Turns state and props into values that cannot be mutated by whoever
observes them. Python containers cannot be frozen in place, so an
equivalent immutable value is returned instead:

- Mapping   -> MappingProxyType over a fresh dict
- list/tuple -> tuple
- set       -> frozenset
- bytearray -> bytes

Primitives and unknown objects are returned unchanged.
"""

from __future__ import annotations
from typing import Any
from collections.abc import Mapping, Set
from types import MappingProxyType


_PRIMITIVES = (type(None), bool, int, float, complex, str, bytes)


def is_primitive(value: Any) -> bool:
    """Check if a value needs no freezing at all."""
    return isinstance(value, _PRIMITIVES)


def is_record(value: Any) -> bool:
    """Check if a value is record-like (a mapping of keys to values)."""
    return isinstance(value, Mapping)


def deep_freeze(value: Any) -> Any:
    """
    Return an immutable equivalent of value.

    Nested members are frozen recursively. Calling this on an already
    frozen value returns an equal value.
    """
    if is_primitive(value):
        return value

    if isinstance(value, Mapping):
        return MappingProxyType({
            key: deep_freeze(item) for key, item in value.items()
        })

    if isinstance(value, (list, tuple)):
        frozen = [deep_freeze(item) for item in value]
        if isinstance(value, tuple) and hasattr(value, "_fields"):
            # namedtuple
            return type(value)(*frozen)
        return tuple(frozen)

    if isinstance(value, Set):
        return frozenset(deep_freeze(item) for item in value)

    if isinstance(value, bytearray):
        return bytes(value)

    return value
