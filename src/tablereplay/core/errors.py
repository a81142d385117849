"""Exception hierarchy.

Every error surfaces to the immediate caller. The extra-column condition of
non-sensing producers is the only reported-but-not-raised condition and is
not part of this hierarchy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tablereplay.datatypes.base import DataType


class TableReplayError(Exception):
    """Base class for all tablereplay errors."""


class DataSetError(TableReplayError):
    """Error reading, producing or consuming a dataset."""


class TypeCastError(DataSetError):
    """A raw value cannot be cast to a canonical type."""

    def __init__(self, value: Any, data_type: DataType, reason: str | None = None):
        self.value = value
        self.data_type = data_type
        self.reason = reason
        message = f"Unable to typecast value <{value!r}> of type <{type(value).__name__}> to {data_type}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CyclicDependencyError(DataSetError):
    """The foreign-key graph among the requested tables contains a cycle."""

    def __init__(self, table_name: str, cycle: list[str] | None = None):
        self.table_name = table_name
        self.cycle = cycle or [table_name]
        super().__init__(
            f"Table '{table_name}' is part of a cyclic dependency: {' -> '.join(self.cycle)}"
        )


class StructuralError(DataSetError):
    """The producer/consumer event protocol was driven out of its valid nesting."""


class NoSuchTableError(DataSetError):
    """A table was looked up by a name the dataset does not contain."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"No such table: {table_name}")


class AmbiguousTableNameError(DataSetError):
    """A table name occurs more than once in a dataset."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Ambiguous table name: {table_name}")


class NoSuchColumnError(DataSetError):
    """A column was looked up by a name the table metadata does not contain."""

    def __init__(self, table_name: str, column_name: str):
        self.table_name = table_name
        self.column_name = column_name
        super().__init__(f"No such column: {table_name}.{column_name}")


class MetadataAccessError(TableReplayError):
    """The metadata source failed to answer a lookup.

    The underlying driver exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, table_name: str | None = None):
        self.table_name = table_name
        super().__init__(message)
