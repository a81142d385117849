"""Table metadata, tables and datasets."""

from tablereplay.core.models.base import NO_VALUE
from tablereplay.dataset.dataset import (
    CachedDataSet,
    DataSet,
    DataSetKind,
    DataSetProducerAdapter,
    StreamingDataSet,
)
from tablereplay.dataset.metadata import (
    Column,
    TableMetadata,
    get_qualified_name,
    merge_columns_by_name,
    split_qualified_name,
)
from tablereplay.dataset.table import DefaultTable, Row, Table

__all__ = [
    "NO_VALUE",
    "CachedDataSet",
    "Column",
    "DataSet",
    "DataSetKind",
    "DataSetProducerAdapter",
    "DefaultTable",
    "Row",
    "StreamingDataSet",
    "Table",
    "TableMetadata",
    "get_qualified_name",
    "merge_columns_by_name",
    "split_qualified_name",
]
