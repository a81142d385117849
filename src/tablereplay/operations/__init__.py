"""Boundary to target-store write operations.

Write operations themselves live outside this package. What lives here is the
choice of dataset kind per operation and the replay entry point:

- Forward operations (UPDATE, INSERT, REFRESH, NONE and the MSSQL insert and
  refresh variants) read the stream once and get a StreamingDataSet.
- The others (DELETE, DELETE_ALL, CLEAN_INSERT, MSSQL_CLEAN_INSERT) walk the
  tables more than once, e.g. delete in reverse order then insert, and get a
  CachedDataSet.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol

from tablereplay.core.logging import (
    ReplayMetrics,
    end_replay_metrics,
    get_logger,
    log_context,
    start_replay_metrics,
)
from tablereplay.dataset.dataset import CachedDataSet, DataSet, StreamingDataSet
from tablereplay.sequencing.sequencer import TableSequencer, order_dataset
from tablereplay.stream.producer import DataSetProducer

logger = get_logger(__name__)


class OperationType(str, Enum):
    """Kinds of write operations."""

    UPDATE = "update"
    INSERT = "insert"
    REFRESH = "refresh"
    DELETE = "delete"
    DELETE_ALL = "delete_all"
    CLEAN_INSERT = "clean_insert"
    NONE = "none"
    # Identity-insert variants for SQL Server targets
    MSSQL_CLEAN_INSERT = "mssql_clean_insert"
    MSSQL_INSERT = "mssql_insert"
    MSSQL_REFRESH = "mssql_refresh"

    @property
    def forward(self) -> bool:
        """Whether the operation reads the dataset in a single forward pass."""
        return self in _FORWARD_OPERATIONS


_FORWARD_OPERATIONS = frozenset(
    {
        OperationType.UPDATE,
        OperationType.INSERT,
        OperationType.REFRESH,
        OperationType.NONE,
        OperationType.MSSQL_INSERT,
        OperationType.MSSQL_REFRESH,
    }
)


class DatabaseOperation(Protocol):
    """A write operation applying a dataset to a target."""

    def execute(self, connection: Any, dataset: DataSet) -> None: ...


def dataset_for_operation(producer: DataSetProducer, operation_type: OperationType) -> DataSet:
    """Wrap a producer in the dataset kind the operation needs."""
    if operation_type.forward:
        return StreamingDataSet(producer)
    return CachedDataSet(producer)


def run_operation(
    operation: DatabaseOperation,
    operation_type: OperationType,
    connection: Any,
    producer: DataSetProducer,
    sequencer: TableSequencer | None = None,
) -> ReplayMetrics | None:
    """Replay a producer's dataset through a write operation.

    Args:
        operation: Write operation to execute
        operation_type: Kind of the operation; NONE skips execution
        connection: Target connection handed to the operation untouched
        producer: Source of the dataset
        sequencer: When given, tables are reordered by foreign-key dependency
            first, which materializes the dataset

    Returns:
        Replay metrics of the run, or None when skipped

    Raises:
        TableReplayError: Any pipeline, sequencing or metadata failure
    """
    if operation_type is OperationType.NONE:
        logger.debug("operation_skipped", source=producer.source_name)
        return None

    with log_context(operation=operation_type.value, source=producer.source_name):
        start_replay_metrics(producer.source_name)
        try:
            dataset = dataset_for_operation(producer, operation_type)
            if sequencer is not None:
                dataset = order_dataset(dataset, sequencer)
            operation.execute(connection, dataset)
        finally:
            metrics = end_replay_metrics()

        if metrics is not None:
            logger.info("operation_completed", **metrics.to_dict())
        return metrics


__all__ = [
    "DatabaseOperation",
    "OperationType",
    "dataset_for_operation",
    "run_operation",
]
