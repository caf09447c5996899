"""ScopeStore Utilities - Identity and immutability helpers."""

from .identity import unique_id
from .freeze import deep_freeze, is_primitive, is_record

__all__ = [
    "unique_id",
    "deep_freeze",
    "is_primitive",
    "is_record",
]
