"""Base models and types shared across modules.

This module contains the fundamental types that don't belong to any specific
module (datatypes, dataset, sequencing, ...).
"""

from __future__ import annotations

from enum import Enum
from typing import Final

from pydantic import BaseModel, ConfigDict


class ValueType(str, Enum):
    """Canonical value types all source values are cast into."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    DECIMAL = "decimal"
    STRING = "string"
    BYTES = "bytes"
    TEMPORAL = "temporal"
    UNKNOWN = "unknown"


class NoValueType:
    """Marker for a column that was not supplied in a row.

    Distinct from ``None``, which is a supplied null.
    """

    _instance: NoValueType | None = None

    def __new__(cls) -> NoValueType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<no value>"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Final = NoValueType()


class TableRef(BaseModel):
    """Reference to a table by name, optionally schema-qualified."""

    table_name: str
    schema_name: str | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.schema_name:
            return f"{self.schema_name}.{self.table_name}"
        return self.table_name
