"""Dataset producer base class.

Producers push dataset events to one registered consumer. ``produce`` is not
reentrant: a producer that is already producing rejects a second call.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from tablereplay.core.config import get_settings
from tablereplay.core.errors import StructuralError
from tablereplay.core.logging import (
    get_logger,
    record_operation_timing,
    record_rows_produced,
    record_table_produced,
)
from tablereplay.stream.buffered import BufferedConsumer
from tablereplay.stream.consumer import DataSetConsumer

if TYPE_CHECKING:
    from tablereplay.dataset.metadata import TableMetadata

logger = get_logger(__name__)


class _State(str, Enum):
    IDLE = "idle"
    IN_DATASET = "in_dataset"
    IN_TABLE = "in_table"
    DONE = "done"


class EventSequenceValidator:
    """Consumer wrapper enforcing event nesting and row width.

    Restarting the active table (``start_table`` with the same table name
    before ``end_table``) is allowed; it announces widened metadata.

    Raises:
        StructuralError: On any out-of-order event or misaligned row
    """

    def __init__(self, consumer: DataSetConsumer, source: str | None = None):
        self._consumer = consumer
        self._source = source
        self._state = _State.IDLE
        self._metadata: TableMetadata | None = None

    def _expect(self, event: str, *states: _State) -> None:
        if self._state not in states:
            raise StructuralError(
                f"Event '{event}' is not allowed in state '{self._state.value}'"
                + (f" (source: {self._source})" if self._source else "")
            )

    def start_dataset(self) -> None:
        self._expect("start_dataset", _State.IDLE)
        self._state = _State.IN_DATASET
        self._consumer.start_dataset()

    def start_table(self, metadata: TableMetadata) -> None:
        if self._state is _State.IN_TABLE:
            assert self._metadata is not None
            if self._metadata.table_name != metadata.table_name:
                raise StructuralError(
                    f"start_table('{metadata.table_name}') before end_table() "
                    f"of '{self._metadata.table_name}'"
                )
        else:
            self._expect("start_table", _State.IN_DATASET)
            record_table_produced()
            logger.debug("table_started", table=metadata.table_name, source=self._source)
        self._metadata = metadata
        self._state = _State.IN_TABLE
        self._consumer.start_table(metadata)

    def row(self, values: Sequence[Any]) -> None:
        self._expect("row", _State.IN_TABLE)
        assert self._metadata is not None
        width = len(self._metadata.columns)
        if len(values) != width:
            raise StructuralError(
                f"Row for table '{self._metadata.table_name}' has {len(values)} values, "
                f"expected {width}"
            )
        record_rows_produced()
        self._consumer.row(values)

    def end_table(self) -> None:
        self._expect("end_table", _State.IN_TABLE)
        self._state = _State.IN_DATASET
        self._metadata = None
        self._consumer.end_table()

    def end_dataset(self) -> None:
        self._expect("end_dataset", _State.IN_DATASET)
        self._state = _State.DONE
        self._consumer.end_dataset()

    def finish(self) -> None:
        """Check that the dataset was closed.

        Raises:
            StructuralError: If the events stopped before ``end_dataset``
        """
        if self._state is not _State.DONE:
            open_table = f" with table '{self._metadata.table_name}' open" if self._metadata else ""
            raise StructuralError(
                f"Dataset ended in state '{self._state.value}'{open_table}"
                + (f" (source: {self._source})" if self._source else "")
            )


class DataSetProducer(ABC):
    """Base class for all producers.

    Subclasses implement ``_produce`` and push events to the consumer they
    are given; nesting and row width are validated on the way through.

    Args:
        column_sensing: Buffer each table and widen its columns from the rows
            seen. Defaults to the ``column_sensing`` setting.
    """

    def __init__(self, column_sensing: bool | None = None):
        if column_sensing is None:
            column_sensing = get_settings().column_sensing
        self.column_sensing = column_sensing
        self.warnings: list[str] = []
        self._consumer: DataSetConsumer | None = None
        self._producing = False

    @property
    def source_name(self) -> str:
        """Human-readable name of the source, used in logs and errors."""
        return type(self).__name__

    def set_consumer(self, consumer: DataSetConsumer) -> None:
        """Register the consumer receiving the events.

        With column sensing enabled the consumer is wrapped in a
        BufferedConsumer.

        Raises:
            StructuralError: If called while producing
        """
        if self._producing:
            raise StructuralError(f"Cannot change the consumer of {self.source_name} while producing")
        self._consumer = BufferedConsumer(consumer) if self.column_sensing else consumer

    def produce(self) -> None:
        """Push the whole dataset to the registered consumer.

        Raises:
            StructuralError: If no consumer is registered, the producer is
                already producing, or the event sequence is malformed or
                stops before ``end_dataset``
        """
        if self._consumer is None:
            raise StructuralError(f"No consumer registered on {self.source_name}")
        if self._producing:
            raise StructuralError(f"{self.source_name} is already producing")

        self._producing = True
        self.warnings = []
        start = time.perf_counter()
        logger.debug("produce_started", source=self.source_name, column_sensing=self.column_sensing)
        try:
            validator = EventSequenceValidator(self._consumer, self.source_name)
            self._produce(validator)
            validator.finish()
        finally:
            self._producing = False
            record_operation_timing("produce", time.perf_counter() - start)

    @abstractmethod
    def _produce(self, consumer: DataSetConsumer) -> None:
        """Push dataset events to ``consumer``."""

    def warn(self, message: str, **context: Any) -> None:
        """Report a non-fatal condition: logged and kept in ``warnings``."""
        self.warnings.append(message)
        logger.warning(message, source=self.source_name, **context)
