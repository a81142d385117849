"""Tests for the column-sensing buffer."""

import pytest

from tablereplay.core.errors import StructuralError
from tablereplay.core.logging import end_replay_metrics, start_replay_metrics
from tablereplay.core.models.base import NO_VALUE
from tablereplay.dataset import Column, TableMetadata
from tablereplay.stream import BufferedConsumer


def _narrow_then_wide():
    narrow = TableMetadata("t", [Column("a")])
    wide = TableMetadata("t", [Column("a"), Column("extra")])
    return [
        ("start_dataset",),
        ("start_table", narrow),
        ("row", ("1",)),
        ("start_table", wide),
        ("row", ("2", "x")),
        ("end_table",),
        ("end_dataset",),
    ]


class TestBufferedConsumer:
    """Tests for BufferedConsumer."""

    def test_replays_table_with_widened_metadata(self, scripted_producer, recording_consumer):
        producer = scripted_producer(_narrow_then_wide(), column_sensing=True)
        producer.set_consumer(recording_consumer)
        producer.produce()

        assert recording_consumer.names == [
            "start_dataset",
            "start_table",
            "row",
            "row",
            "end_table",
            "end_dataset",
        ]
        assert recording_consumer.tables[0].column_names == ["a", "extra"]
        assert recording_consumer.rows == [("1", NO_VALUE), ("2", "x")]

    def test_idempotent_replay(self, scripted_producer, recording_consumer):
        second = type(recording_consumer)()
        for consumer in (recording_consumer, second):
            producer = scripted_producer(_narrow_then_wide(), column_sensing=True)
            producer.set_consumer(consumer)
            producer.produce()

        assert recording_consumer.tables == second.tables
        assert recording_consumer.tables[0].column_names == second.tables[0].column_names
        assert recording_consumer.rows == second.rows

    def test_rerun_after_failure_drops_buffered_rows(self, scripted_producer, recording_consumer):
        metadata = TableMetadata("t", [Column("a")])
        producer = scripted_producer(
            [("start_dataset",), ("start_table", metadata), ("row", ("stale",))],
            column_sensing=True,
        )
        producer.set_consumer(recording_consumer)
        with pytest.raises(StructuralError):
            producer.produce()

        producer.script = [
            ("start_dataset",),
            ("start_table", metadata),
            ("row", ("fresh",)),
            ("end_table",),
            ("end_dataset",),
        ]
        producer.produce()

        assert recording_consumer.rows == [("fresh",)]

    def test_start_dataset_resets_buffer(self, recording_consumer):
        buffered = BufferedConsumer(recording_consumer)
        buffered.start_dataset()
        buffered.start_table(TableMetadata("t", [Column("a")]))
        buffered.row(["stale"])

        buffered.start_dataset()
        buffered.start_table(TableMetadata("u", [Column("b")]))
        buffered.row(["fresh"])
        buffered.end_table()
        buffered.end_dataset()

        assert [t.table_name for t in recording_consumer.tables] == ["u"]
        assert recording_consumer.rows == [("fresh",)]

    def test_first_seen_column_order(self, recording_consumer):
        buffered = BufferedConsumer(recording_consumer)
        buffered.start_dataset()
        buffered.start_table(TableMetadata("t", [Column("b")]))
        buffered.row(["b1"])
        buffered.start_table(TableMetadata("t", [Column("c"), Column("a"), Column("B")]))
        buffered.row(["c2", "a2", "b2"])
        buffered.end_table()
        buffered.end_dataset()

        assert recording_consumer.tables[0].column_names == ["b", "c", "a"]
        assert recording_consumer.rows == [("b1", NO_VALUE, NO_VALUE), ("b2", "c2", "a2")]

    def test_multiple_tables(self, scripted_producer, parent_child_tables, recording_consumer):
        producer = scripted_producer.from_tables(parent_child_tables, column_sensing=True)
        producer.set_consumer(recording_consumer)
        producer.produce()
        assert [t.table_name for t in recording_consumer.tables] == ["child", "parent"]
        assert recording_consumer.rows == [(10, 1), (11, 2), (1, "first"), (2, "second")]

    def test_nothing_forwarded_before_end_table(self, recording_consumer):
        buffered = BufferedConsumer(recording_consumer)
        buffered.start_dataset()
        buffered.start_table(TableMetadata("t", [Column("a")]))
        buffered.row([1])
        assert recording_consumer.names == ["start_dataset"]

    def test_other_table_while_buffering(self, recording_consumer):
        buffered = BufferedConsumer(recording_consumer)
        buffered.start_table(TableMetadata("t", [Column("a")]))
        with pytest.raises(StructuralError):
            buffered.start_table(TableMetadata("u", [Column("a")]))

    def test_end_dataset_with_open_table(self, recording_consumer):
        buffered = BufferedConsumer(recording_consumer)
        buffered.start_dataset()
        buffered.start_table(TableMetadata("t", [Column("a")]))
        with pytest.raises(StructuralError):
            buffered.end_dataset()

    def test_widening_is_recorded(self, scripted_producer, recording_consumer):
        producer = scripted_producer(_narrow_then_wide(), column_sensing=True)
        producer.set_consumer(recording_consumer)

        metrics = start_replay_metrics("test")
        try:
            producer.produce()
        finally:
            end_replay_metrics()
        assert metrics.tables_widened == 1
