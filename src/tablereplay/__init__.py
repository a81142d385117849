"""tablereplay - replay tabular datasets in foreign-key dependency order.

Example:
    from tablereplay import CachedDataSet, FlatXmlProducer, TableSequencer
    from tablereplay.sequencing import SqlAlchemyMetadataSource

    dataset = CachedDataSet(FlatXmlProducer("fixtures.xml"))
    sequencer = TableSequencer(SqlAlchemyMetadataSource(engine))
    sequencer.order(dataset.table_names)
"""

__version__ = "0.1.0"

from tablereplay.core.errors import (
    CyclicDependencyError,
    DataSetError,
    MetadataAccessError,
    StructuralError,
    TableReplayError,
    TypeCastError,
)
from tablereplay.core.models.base import NO_VALUE
from tablereplay.dataset import CachedDataSet, Column, StreamingDataSet, TableMetadata
from tablereplay.sequencing import TableSequencer, order_dataset
from tablereplay.sources import CsvProducer, FlatXmlProducer, QueryProducer

__all__ = [
    "NO_VALUE",
    "CachedDataSet",
    "Column",
    "CsvProducer",
    "CyclicDependencyError",
    "DataSetError",
    "FlatXmlProducer",
    "MetadataAccessError",
    "QueryProducer",
    "StreamingDataSet",
    "StructuralError",
    "TableMetadata",
    "TableReplayError",
    "TableSequencer",
    "TypeCastError",
    "__version__",
    "order_dataset",
]
