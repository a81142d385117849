"""Core module - configuration, logging, errors and shared models."""

from tablereplay.core.config import Settings, get_settings
from tablereplay.core.errors import (
    AmbiguousTableNameError,
    CyclicDependencyError,
    DataSetError,
    MetadataAccessError,
    NoSuchColumnError,
    NoSuchTableError,
    StructuralError,
    TableReplayError,
    TypeCastError,
)
from tablereplay.core.models.base import NO_VALUE, NoValueType, TableRef, ValueType

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "AmbiguousTableNameError",
    "CyclicDependencyError",
    "DataSetError",
    "MetadataAccessError",
    "NoSuchColumnError",
    "NoSuchTableError",
    "StructuralError",
    "TableReplayError",
    "TypeCastError",
    # Models
    "NO_VALUE",
    "NoValueType",
    "TableRef",
    "ValueType",
]
