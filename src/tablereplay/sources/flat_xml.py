"""Flat XML datasets.

One element per row, the element name is the table name and the attributes are
the column values:

    <dataset>
      <parent id="1"/>
      <child id="10" parent_id="1"/>
      <empty_table/>
    </dataset>

An element without attributes declares a table without emitting a row. A
column missing from an element is replayed as NO_VALUE, so "absent" stays
distinguishable from an explicit null.

Without a metadata dataset a table's columns come from its first row. Later
rows may carry attributes the first row did not have; these extra columns are
dropped with a warning, unless column sensing is enabled, in which case the
table is widened and its buffered rows replayed against the wider metadata.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path
from typing import IO, Any
from xml.etree import ElementTree
from xml.sax.saxutils import quoteattr

from tablereplay.core.errors import DataSetError, StructuralError
from tablereplay.core.logging import get_logger, record_extra_columns_dropped
from tablereplay.core.models.base import NO_VALUE
from tablereplay.dataset.dataset import CachedDataSet, DataSet
from tablereplay.dataset.metadata import Column, TableMetadata
from tablereplay.datatypes import format_value, is_null
from tablereplay.stream.consumer import DataSetConsumer
from tablereplay.stream.producer import DataSetProducer

logger = get_logger(__name__)

DATASET_TAG = "dataset"


class FlatXmlProducer(DataSetProducer):
    """Producer streaming a flat XML document.

    Args:
        source: Path or binary file object
        metadata_dataset: Dataset whose table metadata takes precedence over
            metadata derived from the first row
        column_sensing: Widen tables from every row's attributes
    """

    def __init__(
        self,
        source: str | os.PathLike[str] | IO[bytes],
        metadata_dataset: CachedDataSet | None = None,
        column_sensing: bool | None = None,
    ):
        super().__init__(column_sensing=column_sensing)
        self._source = source
        self._metadata_dataset = metadata_dataset

    @property
    def source_name(self) -> str:
        if isinstance(self._source, (str, os.PathLike)):
            return str(self._source)
        return getattr(self._source, "name", "<stream>")

    def _produce(self, consumer: DataSetConsumer) -> None:
        try:
            self._parse(consumer)
        except ElementTree.ParseError as e:
            line, column = e.position
            raise DataSetError(
                f"Malformed flat XML in {self.source_name} at line {line}, column {column}: {e}"
            ) from e

    def _parse(self, consumer: DataSetConsumer) -> None:
        depth = 0
        root: ElementTree.Element | None = None
        metadata: TableMetadata | None = None

        for event, element in ElementTree.iterparse(self._source, events=("start", "end")):
            if event == "start":
                depth += 1
                if depth == 1:
                    if element.tag != DATASET_TAG:
                        raise DataSetError(
                            f"Expected <{DATASET_TAG}> root element in {self.source_name}, "
                            f"found <{element.tag}>"
                        )
                    root = element
                    consumer.start_dataset()
                elif depth == 2:
                    metadata = self._handle_row(consumer, metadata, element.tag, element.attrib)
                continue

            depth -= 1
            if depth == 1 and root is not None:
                # Row fully handled on its start event
                root.clear()
            elif depth == 0:
                if metadata is not None:
                    consumer.end_table()
                consumer.end_dataset()

    def _handle_row(
        self,
        consumer: DataSetConsumer,
        metadata: TableMetadata | None,
        table_name: str,
        attributes: dict[str, str],
    ) -> TableMetadata:
        if metadata is None or metadata.table_name != table_name:
            if metadata is not None:
                consumer.end_table()
            metadata = self._create_metadata(table_name, attributes)
            consumer.start_table(metadata)

        if not attributes:
            return metadata

        extra = [name for name in attributes if not metadata.has_column(name)]
        if extra:
            if self.column_sensing:
                metadata = metadata.widen(Column(name) for name in extra)
                consumer.start_table(metadata)
            else:
                message = (
                    f"Extra columns {extra} in a row of table '{table_name}' are ignored; "
                    "declare them on the first row or enable column sensing"
                )
                self.warn(message, table=table_name, columns=extra)
                record_extra_columns_dropped(len(extra), message)

        values: list[Any] = [NO_VALUE] * len(metadata.columns)
        for name, value in attributes.items():
            if metadata.has_column(name):
                values[metadata.column_index(name)] = value
        consumer.row(values)
        return metadata

    def _create_metadata(self, table_name: str, attributes: dict[str, str]) -> TableMetadata:
        if self._metadata_dataset is not None and self._metadata_dataset.has_table(table_name):
            return self._metadata_dataset.get_table_metadata(table_name)
        return TableMetadata(table_name, [Column(name) for name in attributes])


class FlatXmlWriter:
    """Consumer writing flat XML.

    Null and NO_VALUE columns are omitted from the row element; a table
    without rows is written as a single empty element.
    """

    def __init__(self, target: IO[str], encoding: str = "UTF-8", indent: str = "  "):
        self._target = target
        self._encoding = encoding
        self._indent = indent
        self._metadata: TableMetadata | None = None
        self._rows_written = 0

    def start_dataset(self) -> None:
        self._target.write(f"<?xml version='1.0' encoding='{self._encoding}'?>\n")
        self._target.write(f"<{DATASET_TAG}>\n")

    def start_table(self, metadata: TableMetadata) -> None:
        if self._metadata is not None and self._metadata.table_name == metadata.table_name:
            # Widened restart: rows already written keep their columns
            self._metadata = metadata
            return
        self._metadata = metadata
        self._rows_written = 0

    def row(self, values: Sequence[Any]) -> None:
        if self._metadata is None:
            raise StructuralError("row() before start_table()")
        attributes = []
        for column, value in zip(self._metadata.columns, values, strict=True):
            if is_null(value):
                continue
            attributes.append(f" {column.name}={quoteattr(format_value(value) or '')}")
        self._target.write(f"{self._indent}<{self._metadata.table_name}{''.join(attributes)}/>\n")
        self._rows_written += 1

    def end_table(self) -> None:
        if self._metadata is None:
            raise StructuralError("end_table() before start_table()")
        if self._rows_written == 0:
            self._target.write(f"{self._indent}<{self._metadata.table_name}/>\n")
        self._metadata = None

    def end_dataset(self) -> None:
        self._target.write(f"</{DATASET_TAG}>\n")


def read_flat_xml(
    source: str | os.PathLike[str] | IO[bytes],
    column_sensing: bool | None = None,
) -> CachedDataSet:
    """Materialize a flat XML document."""
    return CachedDataSet(FlatXmlProducer(source, column_sensing=column_sensing))


def write_flat_xml(dataset: DataSet, path: str | os.PathLike[str]) -> None:
    """Write a dataset to a flat XML file."""
    with Path(path).open("w", encoding="utf-8") as f:
        dataset.replay(FlatXmlWriter(f))
    logger.debug("flat_xml_written", path=str(path))
