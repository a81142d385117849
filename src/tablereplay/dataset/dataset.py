"""Datasets: ordered collections of tables.

Two kinds exist, and code that iterates a dataset more than once must check
``kind``:

- MATERIALIZED (CachedDataSet): every row in memory, random access by table
  name, any number of replays.
- STREAMING (StreamingDataSet): wraps a producer, a single forward replay,
  rows are discarded as soon as the consumer has seen them.

Both replay through the same consumer protocol, so a consumer cannot tell
which kind it is fed from.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from enum import Enum
from typing import Any

from tablereplay.core.config import get_settings
from tablereplay.core.errors import AmbiguousTableNameError, NoSuchTableError, StructuralError
from tablereplay.core.logging import get_logger
from tablereplay.core.models.base import NO_VALUE
from tablereplay.dataset.metadata import TableMetadata
from tablereplay.dataset.table import DefaultTable, Table
from tablereplay.stream.consumer import DataSetConsumer, DefaultConsumer
from tablereplay.stream.producer import DataSetProducer

logger = get_logger(__name__)


class DataSetKind(str, Enum):
    """Whether a dataset can be iterated more than once."""

    MATERIALIZED = "materialized"
    STREAMING = "streaming"


class DataSet(ABC):
    """Ordered collection of tables with unique names."""

    kind: DataSetKind

    @property
    def is_materialized(self) -> bool:
        return self.kind is DataSetKind.MATERIALIZED

    @abstractmethod
    def replay(self, consumer: DataSetConsumer) -> None:
        """Push every table and row of the dataset to ``consumer``."""

    @abstractmethod
    def materialize(self) -> CachedDataSet:
        """Return a materialized dataset holding the same tables."""


class CachedDataSet(DataSet, DefaultConsumer):
    """Materialized dataset.

    Can be filled from a producer (it is a consumer itself), from tables, or
    table by table with ``add_table``.

    Args:
        source: Producer to materialize, or tables to hold
        case_sensitive_table_names: Table-name lookup policy. Defaults to the
            ``case_sensitive_table_names`` setting.

    Raises:
        AmbiguousTableNameError: If two tables share a name
    """

    kind = DataSetKind.MATERIALIZED

    def __init__(
        self,
        source: DataSetProducer | Iterable[Table] | None = None,
        case_sensitive_table_names: bool | None = None,
    ):
        if case_sensitive_table_names is None:
            case_sensitive_table_names = get_settings().case_sensitive_table_names
        self._case_sensitive = case_sensitive_table_names
        self._tables: dict[str, Table] = {}
        self._active: DefaultTable | None = None
        self._announced: TableMetadata | None = None

        if isinstance(source, DataSetProducer):
            source.set_consumer(self)
            source.produce()
        elif source is not None:
            for table in source:
                self.add_table(table)

    def _key(self, table_name: str) -> str:
        return table_name if self._case_sensitive else table_name.upper()

    # Dataset access

    @property
    def table_names(self) -> list[str]:
        return [table.metadata.table_name for table in self._tables.values()]

    @property
    def tables(self) -> list[Table]:
        return list(self._tables.values())

    def has_table(self, table_name: str) -> bool:
        return self._key(table_name) in self._tables

    def get_table(self, table_name: str) -> Table:
        """Get a table by name.

        Raises:
            NoSuchTableError: If the dataset has no such table
        """
        try:
            return self._tables[self._key(table_name)]
        except KeyError:
            raise NoSuchTableError(table_name) from None

    def get_table_metadata(self, table_name: str) -> TableMetadata:
        return self.get_table(table_name).metadata

    def add_table(self, table: Table) -> None:
        key = self._key(table.metadata.table_name)
        if key in self._tables:
            raise AmbiguousTableNameError(table.metadata.table_name)
        self._tables[key] = table

    def select(self, table_names: Sequence[str]) -> CachedDataSet:
        """Return a dataset holding only ``table_names``, in that order.

        Raises:
            NoSuchTableError: If a name is not in this dataset
        """
        return CachedDataSet(
            [self.get_table(name) for name in table_names],
            case_sensitive_table_names=self._case_sensitive,
        )

    def __iter__(self) -> Iterator[Table]:
        return iter(list(self._tables.values()))

    def __len__(self) -> int:
        return len(self._tables)

    def replay(self, consumer: DataSetConsumer) -> None:
        producer = DataSetProducerAdapter(self)
        producer.set_consumer(consumer)
        producer.produce()

    def materialize(self) -> CachedDataSet:
        return self

    # Consumer interface

    def start_dataset(self) -> None:
        self._tables = {}
        self._active = None

    def start_table(self, metadata: TableMetadata) -> None:
        active = self._active
        if active is not None and active.metadata.table_name == metadata.table_name:
            # Restart of the active table with widened columns
            widened = active.metadata.widen(metadata.columns)
            padding = (NO_VALUE,) * (len(widened.columns) - len(active.metadata.columns))
            self._active = DefaultTable(widened, (row + padding for row in active))
            self._announced = metadata
            return

        if self.has_table(metadata.table_name):
            raise AmbiguousTableNameError(metadata.table_name)
        self._active = DefaultTable(metadata)
        self._announced = metadata

    def row(self, values: Sequence[Any]) -> None:
        if self._active is None:
            raise StructuralError("row() before start_table()")
        if self._announced is self._active.metadata:
            self._active.add_row(values)
        else:
            assert self._announced is not None
            self._active.add_row_dict(dict(zip(self._announced.column_names, values, strict=True)))

    def end_table(self) -> None:
        if self._active is None:
            raise StructuralError("end_table() before start_table()")
        self.add_table(self._active)
        logger.debug(
            "table_cached",
            table=self._active.metadata.table_name,
            rows=self._active.row_count,
        )
        self._active = None

    def __repr__(self) -> str:
        return f"CachedDataSet(tables={self.table_names!r})"


class StreamingDataSet(DataSet):
    """Single-pass dataset backed by a producer.

    Raises:
        StructuralError: On a second replay or on random access
    """

    kind = DataSetKind.STREAMING

    def __init__(self, producer: DataSetProducer):
        self._producer = producer
        self._consumed = False

    @property
    def producer(self) -> DataSetProducer:
        return self._producer

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _take(self) -> DataSetProducer:
        if self._consumed:
            raise StructuralError(
                f"Streaming dataset from {self._producer.source_name} was already consumed; "
                "materialize it to iterate more than once"
            )
        self._consumed = True
        return self._producer

    def replay(self, consumer: DataSetConsumer) -> None:
        producer = self._take()
        producer.set_consumer(consumer)
        producer.produce()

    def materialize(self) -> CachedDataSet:
        return CachedDataSet(self._take())

    def get_table(self, table_name: str) -> Table:
        raise StructuralError(
            f"Streaming dataset does not support random access (table '{table_name}')"
        )

    def __repr__(self) -> str:
        return f"StreamingDataSet(source={self._producer.source_name!r}, consumed={self._consumed})"


class DataSetProducerAdapter(DataSetProducer):
    """Producer replaying a materialized dataset."""

    def __init__(self, dataset: CachedDataSet):
        super().__init__(column_sensing=False)
        self._dataset = dataset

    def _produce(self, consumer: DataSetConsumer) -> None:
        consumer.start_dataset()
        for table in self._dataset:
            consumer.start_table(table.metadata)
            for values in table:
                consumer.row(values)
            consumer.end_table()
        consumer.end_dataset()
