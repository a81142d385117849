"""Foreign-key dependency sequencing."""

from tablereplay.core.models.base import TableRef
from tablereplay.sequencing.sequencer import TableSequencer, order_dataset
from tablereplay.sequencing.sources import (
    DependencyConfig,
    ForeignKeySnapshot,
    MetadataSource,
    SqlAlchemyMetadataSource,
    StaticMetadataSource,
    TableDependency,
    load_dependency_config,
)

__all__ = [
    "DependencyConfig",
    "ForeignKeySnapshot",
    "MetadataSource",
    "SqlAlchemyMetadataSource",
    "StaticMetadataSource",
    "TableDependency",
    "TableRef",
    "TableSequencer",
    "load_dependency_config",
    "order_dataset",
]
