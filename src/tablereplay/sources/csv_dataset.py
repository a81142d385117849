"""CSV directory datasets.

A dataset is a directory holding one ``<table>.csv`` file per table, each with
a header row. Table order comes from ``table-ordering.txt`` (one table name
per line) when present, otherwise from the sorted file names.

Files are read through DuckDB with every column as VARCHAR, so raw values
reach the consumer untouched; literals listed in ``csv_null_strings`` become
null.
"""

from __future__ import annotations

import csv
import os
from collections.abc import Sequence
from pathlib import Path
from typing import IO, Any

import duckdb

from tablereplay.core.config import get_settings
from tablereplay.core.errors import DataSetError, StructuralError
from tablereplay.core.logging import get_logger, record_extra_columns_dropped
from tablereplay.core.models.base import NO_VALUE
from tablereplay.dataset.dataset import CachedDataSet, DataSet
from tablereplay.dataset.metadata import Column, TableMetadata
from tablereplay.datatypes import format_value, is_null
from tablereplay.stream.consumer import DataSetConsumer
from tablereplay.stream.producer import DataSetProducer

logger = get_logger(__name__)

TABLE_ORDERING_FILE = "table-ordering.txt"
NULL_LITERAL = "null"


def _sql_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def read_table_ordering(directory: Path) -> list[str]:
    """Table names from the ordering file, or from the sorted CSV file names."""
    ordering = directory / TABLE_ORDERING_FILE
    if ordering.exists():
        lines = ordering.read_text(encoding="utf-8").splitlines()
        return [line.strip() for line in lines if line.strip()]
    return sorted(path.stem for path in directory.glob("*.csv"))


class CsvProducer(DataSetProducer):
    """Producer streaming a directory of CSV files.

    Args:
        directory: Dataset directory
        metadata_dataset: Dataset whose table metadata takes precedence over
            the CSV headers
        null_strings: Literals read as null. Defaults to ``csv_null_strings``.
        fetch_size: Rows fetched per batch. Defaults to ``csv_fetch_size``.
        connection: DuckDB connection to read with; a private in-memory
            connection is used when omitted
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        metadata_dataset: CachedDataSet | None = None,
        null_strings: list[str] | None = None,
        fetch_size: int | None = None,
        connection: duckdb.DuckDBPyConnection | None = None,
    ):
        # Every column is known from the header
        super().__init__(column_sensing=False)
        settings = get_settings()
        self._directory = Path(directory)
        self._metadata_dataset = metadata_dataset
        self._null_strings = null_strings if null_strings is not None else settings.csv_null_strings
        self._fetch_size = fetch_size or settings.csv_fetch_size
        self._connection = connection

    @property
    def source_name(self) -> str:
        return str(self._directory)

    def _produce(self, consumer: DataSetConsumer) -> None:
        if not self._directory.is_dir():
            raise DataSetError(f"CSV dataset directory not found: {self._directory}")

        conn = self._connection or duckdb.connect(":memory:")
        try:
            consumer.start_dataset()
            for table_name in read_table_ordering(self._directory):
                self._produce_table(consumer, conn, table_name)
            consumer.end_dataset()
        finally:
            if self._connection is None:
                conn.close()

    def _produce_table(
        self,
        consumer: DataSetConsumer,
        conn: duckdb.DuckDBPyConnection,
        table_name: str,
    ) -> None:
        path = self._directory / f"{table_name}.csv"
        if not path.exists():
            raise DataSetError(f"CSV file for table '{table_name}' not found: {path}")

        header = self._read_header(path)
        metadata = self._create_metadata(table_name, header)

        # Position of each CSV column in the row, None when dropped
        positions: list[int | None] = []
        extra: list[str] = []
        for name in header:
            if metadata.has_column(name):
                positions.append(metadata.column_index(name))
            else:
                positions.append(None)
                extra.append(name)
        if extra:
            message = f"Columns {extra} of '{path.name}' are not in table '{table_name}' and are ignored"
            self.warn(message, table=table_name, columns=extra)
            record_extra_columns_dropped(len(extra), message)

        column_spec = ", ".join(f"{_sql_string(name)}: 'VARCHAR'" for name in header)
        null_param = ", ".join(_sql_string(s) for s in self._null_strings)
        sql = f"""
            SELECT * FROM read_csv(
                {_sql_string(str(path))},
                columns = {{{column_spec}}},
                header = true,
                nullstr = [{null_param}],
                auto_detect = false
            )
        """

        consumer.start_table(metadata)
        width = len(metadata.columns)
        rows = 0
        try:
            cursor = conn.execute(sql)
            while batch := cursor.fetchmany(self._fetch_size):
                for record in batch:
                    values: list[Any] = [NO_VALUE] * width
                    for position, value in zip(positions, record, strict=True):
                        if position is not None:
                            values[position] = value
                    consumer.row(values)
                rows += len(batch)
        except duckdb.Error as e:
            raise DataSetError(f"Failed to read CSV file {path}: {e}") from e
        consumer.end_table()
        logger.debug("csv_table_read", table=table_name, rows=rows)

    def _read_header(self, path: Path) -> list[str]:
        with path.open(newline="", encoding="utf-8") as f:
            header = next(csv.reader(f), None)
        if not header:
            raise DataSetError(f"CSV file has no header row: {path}")
        return [name.strip() for name in header]

    def _create_metadata(self, table_name: str, header: list[str]) -> TableMetadata:
        if self._metadata_dataset is not None and self._metadata_dataset.has_table(table_name):
            return self._metadata_dataset.get_table_metadata(table_name)
        return TableMetadata(table_name, [Column(name) for name in header])


class CsvWriter:
    """Consumer writing a CSV directory dataset.

    Null and NO_VALUE are written as the ``null`` literal. The table order is
    recorded in ``table-ordering.txt``.
    """

    def __init__(self, directory: str | os.PathLike[str]):
        self._directory = Path(directory)
        self._table_names: list[str] = []
        self._file: IO[str] | None = None
        self._writer: Any = None

    def start_dataset(self) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        self._table_names = []

    def start_table(self, metadata: TableMetadata) -> None:
        if self._file is not None:
            raise StructuralError(f"CSV writer cannot restart table '{metadata.table_name}'")
        self._table_names.append(metadata.table_name)
        self._file = (self._directory / f"{metadata.table_name}.csv").open(
            "w", newline="", encoding="utf-8"
        )
        self._writer = csv.writer(self._file)
        self._writer.writerow(metadata.column_names)

    def row(self, values: Sequence[Any]) -> None:
        if self._writer is None:
            raise StructuralError("row() before start_table()")
        self._writer.writerow(NULL_LITERAL if is_null(v) else format_value(v) for v in values)

    def end_table(self) -> None:
        if self._file is None:
            raise StructuralError("end_table() before start_table()")
        self._file.close()
        self._file = None
        self._writer = None

    def end_dataset(self) -> None:
        ordering = "".join(f"{name}\n" for name in self._table_names)
        (self._directory / TABLE_ORDERING_FILE).write_text(ordering, encoding="utf-8")


def read_csv_dataset(directory: str | os.PathLike[str]) -> CachedDataSet:
    """Materialize a CSV directory dataset."""
    return CachedDataSet(CsvProducer(directory))


def write_csv_dataset(dataset: DataSet, directory: str | os.PathLike[str]) -> None:
    """Write a dataset as a CSV directory."""
    dataset.replay(CsvWriter(directory))
