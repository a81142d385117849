"""Column-sensing buffer.

Sources that discover columns from the rows themselves cannot announce a
table's final column set before its first row. BufferedConsumer holds back one
table at a time: every ``start_table`` for the active table widens its
metadata, and on ``end_table`` the table is re-emitted once with the union of
all columns seen. Columns a buffered row never supplied are replayed as
NO_VALUE.

Memory use is bounded by the rows of the largest single table.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from tablereplay.core.errors import StructuralError
from tablereplay.core.logging import get_logger, record_table_widened
from tablereplay.core.models.base import NO_VALUE

if TYPE_CHECKING:
    from tablereplay.dataset.metadata import TableMetadata
    from tablereplay.stream.consumer import DataSetConsumer

logger = get_logger(__name__)


class BufferedConsumer:
    """Consumer wrapper that buffers one table and replays it with widened metadata."""

    def __init__(self, consumer: DataSetConsumer):
        self._consumer = consumer
        self._metadata: TableMetadata | None = None
        # Metadata of the last start_table; incoming rows are aligned with it
        self._announced: TableMetadata | None = None
        self._rows: list[dict[str, Any]] = []

    @property
    def wrapped(self) -> DataSetConsumer:
        return self._consumer

    def start_dataset(self) -> None:
        # Drop whatever an aborted earlier run left buffered
        self._metadata = self._announced = None
        self._rows = []
        self._consumer.start_dataset()

    def start_table(self, metadata: TableMetadata) -> None:
        if self._metadata is None:
            self._metadata = self._announced = metadata
            self._rows = []
            return

        if self._metadata.table_name != metadata.table_name:
            raise StructuralError(
                f"Table '{metadata.table_name}' started while '{self._metadata.table_name}' "
                "is still buffered"
            )

        widened = self._metadata.widen(metadata.columns)
        if len(widened.columns) != len(self._metadata.columns):
            added = widened.column_names[len(self._metadata.columns) :]
            logger.debug("table_widened", table=metadata.table_name, added_columns=added)
            record_table_widened()
        self._metadata = widened
        self._announced = metadata

    def row(self, values: Sequence[Any]) -> None:
        if self._announced is None:
            raise StructuralError("row() before start_table()")
        self._rows.append(dict(zip(self._announced.column_names, values, strict=True)))

    def end_table(self) -> None:
        if self._metadata is None:
            raise StructuralError("end_table() before start_table()")

        metadata = self._metadata
        width = len(metadata.columns)
        self._consumer.start_table(metadata)
        for buffered in self._rows:
            values: list[Any] = [NO_VALUE] * width
            for name, value in buffered.items():
                values[metadata.column_index(name)] = value
            self._consumer.row(values)
        self._consumer.end_table()

        logger.debug("buffered_table_replayed", table=metadata.table_name, rows=len(self._rows))
        self._metadata = self._announced = None
        self._rows = []

    def end_dataset(self) -> None:
        if self._metadata is not None:
            raise StructuralError(
                f"end_dataset() while table '{self._metadata.table_name}' is still open"
            )
        self._consumer.end_dataset()
