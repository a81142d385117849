"""In-memory tables.

Rows are stored as tuples aligned with the table's columns. A column that was
not supplied for a row holds NO_VALUE; a supplied null holds None.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, Protocol

from tablereplay.core.errors import StructuralError
from tablereplay.core.models.base import NO_VALUE
from tablereplay.dataset.metadata import TableMetadata

Row = dict[str, Any]


class Table(Protocol):
    """Read access to one table's rows."""

    @property
    def metadata(self) -> TableMetadata: ...

    @property
    def row_count(self) -> int: ...

    def get_value(self, row: int, column: str) -> Any: ...

    def get_row(self, row: int) -> Row: ...

    def __iter__(self) -> Iterator[tuple[Any, ...]]: ...


class DefaultTable:
    """Table holding all rows in memory."""

    def __init__(self, metadata: TableMetadata, rows: Iterable[Sequence[Any]] = ()):
        self._metadata = metadata
        self._rows: list[tuple[Any, ...]] = []
        for values in rows:
            self.add_row(values)

    @property
    def metadata(self) -> TableMetadata:
        return self._metadata

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def add_row(self, values: Sequence[Any]) -> None:
        """Append a row aligned with the table's columns.

        Raises:
            StructuralError: If the row width differs from the column count
        """
        width = len(self._metadata.columns)
        if len(values) != width:
            raise StructuralError(
                f"Row for table '{self._metadata.table_name}' has {len(values)} values, "
                f"expected {width}"
            )
        self._rows.append(tuple(values))

    def add_row_dict(self, row: Row) -> None:
        """Append a row given as a column-name mapping; missing columns get NO_VALUE."""
        values = [NO_VALUE] * len(self._metadata.columns)
        for name, value in row.items():
            values[self._metadata.column_index(name)] = value
        self._rows.append(tuple(values))

    def get_value(self, row: int, column: str) -> Any:
        return self._rows[row][self._metadata.column_index(column)]

    def get_row(self, row: int) -> Row:
        return dict(zip(self._metadata.column_names, self._rows[row], strict=True))

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"DefaultTable({self._metadata.table_name!r}, rows={len(self._rows)})"
