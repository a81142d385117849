"""Core models: only truly shared base types."""

from tablereplay.core.models.base import NO_VALUE, NoValueType, TableRef, ValueType

__all__ = [
    "NO_VALUE",
    "NoValueType",
    "TableRef",
    "ValueType",
]
