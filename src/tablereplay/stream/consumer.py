"""Dataset consumer protocol.

A consumer receives the push sequence

    start_dataset -> { start_table(metadata) -> row(values)* -> end_table }* -> end_dataset

where each ``values`` sequence is aligned with ``metadata.columns``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tablereplay.dataset.metadata import TableMetadata


@runtime_checkable
class DataSetConsumer(Protocol):
    """Receiver of dataset events."""

    def start_dataset(self) -> None: ...

    def start_table(self, metadata: TableMetadata) -> None: ...

    def row(self, values: Sequence[Any]) -> None: ...

    def end_table(self) -> None: ...

    def end_dataset(self) -> None: ...


class DefaultConsumer:
    """Consumer that ignores every event. Subclass and override what you need."""

    def start_dataset(self) -> None:
        pass

    def start_table(self, metadata: TableMetadata) -> None:
        pass

    def row(self, values: Sequence[Any]) -> None:
        pass

    def end_table(self) -> None:
        pass

    def end_dataset(self) -> None:
        pass
