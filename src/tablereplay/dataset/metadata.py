"""Table metadata model.

A table is described by its name, an ordered list of columns and the subset of
columns forming its primary key. Columns are identified by name; lookups are
case-insensitive unless the metadata is created case-sensitive.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from tablereplay.core.errors import NoSuchColumnError
from tablereplay.datatypes import UNKNOWN, DataType


@dataclass(frozen=True)
class Column:
    """A table column."""

    name: str
    data_type: DataType = field(default=UNKNOWN, compare=False)
    nullable: bool = field(default=True, compare=False)

    def __str__(self) -> str:
        return f"{self.name} {self.data_type}{'' if self.nullable else ' NOT NULL'}"


def _key(name: str, case_sensitive: bool) -> str:
    return name if case_sensitive else name.upper()


class TableMetadata:
    """Immutable description of one table.

    Args:
        table_name: Table name, optionally schema-qualified
        columns: Ordered columns
        primary_keys: Primary key columns, by name or as Column objects
        case_sensitive: Whether column lookups match case exactly

    Raises:
        NoSuchColumnError: If a primary key is not one of the columns
    """

    def __init__(
        self,
        table_name: str,
        columns: Iterable[Column],
        primary_keys: Iterable[str | Column] = (),
        case_sensitive: bool = False,
    ):
        self._table_name = table_name
        self._columns: tuple[Column, ...] = tuple(columns)
        self._case_sensitive = case_sensitive
        self._index: dict[str, int] = {}
        for position, column in enumerate(self._columns):
            self._index.setdefault(_key(column.name, case_sensitive), position)

        keys = []
        for key in primary_keys:
            name = key.name if isinstance(key, Column) else key
            keys.append(self.get_column(name))
        self._primary_keys: tuple[Column, ...] = tuple(keys)

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def columns(self) -> tuple[Column, ...]:
        return self._columns

    @property
    def primary_keys(self) -> tuple[Column, ...]:
        return self._primary_keys

    @property
    def case_sensitive(self) -> bool:
        return self._case_sensitive

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self._columns]

    def has_column(self, name: str) -> bool:
        return _key(name, self._case_sensitive) in self._index

    def column_index(self, name: str) -> int:
        """Get the position of a column.

        Raises:
            NoSuchColumnError: If the column is unknown
        """
        try:
            return self._index[_key(name, self._case_sensitive)]
        except KeyError:
            raise NoSuchColumnError(self._table_name, name) from None

    def get_column(self, name: str) -> Column:
        return self._columns[self.column_index(name)]

    def widen(self, columns: Iterable[Column]) -> TableMetadata:
        """Return metadata extended with columns not yet present.

        Existing columns keep their position and definition; new ones are
        appended in the order given.
        """
        merged = merge_columns_by_name(self._columns, columns, self._case_sensitive)
        return TableMetadata(self._table_name, merged, self._primary_keys, self._case_sensitive)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TableMetadata):
            return NotImplemented
        return (
            self._table_name == other._table_name
            and self._columns == other._columns
            and self._primary_keys == other._primary_keys
        )

    def __hash__(self) -> int:
        return hash((self._table_name, self._columns))

    def __repr__(self) -> str:
        return (
            f"TableMetadata(table_name={self._table_name!r}, "
            f"columns={self.column_names!r}, "
            f"primary_keys={[c.name for c in self._primary_keys]!r})"
        )


def merge_columns_by_name(
    existing: Sequence[Column],
    incoming: Iterable[Column],
    case_sensitive: bool = False,
) -> list[Column]:
    """Union of two column lists by name, preserving first-seen order."""
    merged = list(existing)
    seen = {_key(column.name, case_sensitive) for column in merged}
    for column in incoming:
        key = _key(column.name, case_sensitive)
        if key not in seen:
            seen.add(key)
            merged.append(column)
    return merged


def get_qualified_name(schema: str | None, table_name: str) -> str:
    """Build ``schema.table``; the name is returned unchanged without schema
    or when it is already qualified."""
    if not schema or "." in table_name:
        return table_name
    return f"{schema}.{table_name}"


def split_qualified_name(name: str, default_schema: str | None = None) -> tuple[str | None, str]:
    """Split a table name on its first "." into ``(schema, table)``.

    Args:
        name: Bare or schema-qualified table name
        default_schema: Schema returned for bare names

    Returns:
        Tuple of schema (or default_schema) and bare table name
    """
    schema, dot, table = name.partition(".")
    if not dot:
        return default_schema, name
    return schema, table
