"""Tests for materialized and streaming datasets."""

import pytest

from tablereplay.core.errors import AmbiguousTableNameError, NoSuchTableError, StructuralError
from tablereplay.dataset import (
    NO_VALUE,
    CachedDataSet,
    Column,
    DataSetKind,
    DefaultTable,
    StreamingDataSet,
    TableMetadata,
)


class TestCachedDataSet:
    """Tests for CachedDataSet."""

    def test_materializes_producer(self, scripted_producer, parent_child_tables):
        dataset = CachedDataSet(scripted_producer.from_tables(parent_child_tables))

        assert dataset.kind is DataSetKind.MATERIALIZED
        assert dataset.is_materialized
        assert dataset.table_names == ["child", "parent"]
        assert dataset.get_table("parent").get_row(1) == {"id": 2, "name": "second"}
        assert len(dataset) == 2

    def test_lookup_is_case_insensitive_by_default(self, scripted_producer, parent_child_tables):
        dataset = CachedDataSet(scripted_producer.from_tables(parent_child_tables))
        assert dataset.get_table_metadata("PARENT").table_name == "parent"

    def test_case_sensitive_lookup(self, parent_child_tables):
        tables = [DefaultTable(metadata, rows) for metadata, rows in parent_child_tables]
        dataset = CachedDataSet(tables, case_sensitive_table_names=True)
        with pytest.raises(NoSuchTableError):
            dataset.get_table("PARENT")

    def test_unknown_table(self):
        with pytest.raises(NoSuchTableError) as exc_info:
            CachedDataSet().get_table("missing")
        assert exc_info.value.table_name == "missing"

    def test_duplicate_table_names(self):
        metadata = TableMetadata("t", [Column("a")])
        with pytest.raises(AmbiguousTableNameError):
            CachedDataSet([DefaultTable(metadata), DefaultTable(TableMetadata("T", [Column("a")]))])

    def test_replay_is_repeatable(self, scripted_producer, parent_child_tables, recording_consumer):
        dataset = CachedDataSet(scripted_producer.from_tables(parent_child_tables))

        dataset.replay(recording_consumer)
        first = list(recording_consumer.events)
        dataset.replay(recording_consumer)

        assert recording_consumer.events == first + first
        assert first[0] == ("start_dataset",)
        assert first[1] == ("start_table", parent_child_tables[0][0])
        assert first[2] == ("row", (10, 1))
        assert first[-1] == ("end_dataset",)

    def test_empty_table_survives(self, scripted_producer):
        metadata = TableMetadata("empty", [Column("a")])
        dataset = CachedDataSet(scripted_producer.from_tables([(metadata, [])]))
        assert dataset.get_table("empty").row_count == 0

    def test_select_reorders(self, scripted_producer, parent_child_tables):
        dataset = CachedDataSet(scripted_producer.from_tables(parent_child_tables))
        assert dataset.select(["parent", "child"]).table_names == ["parent", "child"]
        with pytest.raises(NoSuchTableError):
            dataset.select(["other"])

    def test_restarted_table_is_widened(self, scripted_producer):
        narrow = TableMetadata("t", [Column("a")])
        wide = TableMetadata("t", [Column("a"), Column("b")])
        producer = scripted_producer(
            [
                ("start_dataset",),
                ("start_table", narrow),
                ("row", (1,)),
                ("start_table", wide),
                ("row", (2, "x")),
                ("end_table",),
                ("end_dataset",),
            ]
        )
        table = CachedDataSet(producer).get_table("t")
        assert table.metadata.column_names == ["a", "b"]
        assert table.get_row(1) == {"a": 2, "b": "x"}
        assert table.get_value(0, "b") is NO_VALUE


class TestStreamingDataSet:
    """Tests for StreamingDataSet."""

    def test_single_forward_pass(self, scripted_producer, parent_child_tables, recording_consumer):
        dataset = StreamingDataSet(scripted_producer.from_tables(parent_child_tables))
        assert dataset.kind is DataSetKind.STREAMING
        assert not dataset.is_materialized

        dataset.replay(recording_consumer)
        assert dataset.consumed
        assert recording_consumer.rows == [(10, 1), (11, 2), (1, "first"), (2, "second")]

        with pytest.raises(StructuralError):
            dataset.replay(recording_consumer)

    def test_no_random_access(self, scripted_producer, parent_child_tables):
        dataset = StreamingDataSet(scripted_producer.from_tables(parent_child_tables))
        with pytest.raises(StructuralError):
            dataset.get_table("parent")

    def test_materialize(self, scripted_producer, parent_child_tables):
        dataset = StreamingDataSet(scripted_producer.from_tables(parent_child_tables))
        cached = dataset.materialize()
        assert cached.table_names == ["child", "parent"]
        with pytest.raises(StructuralError):
            dataset.materialize()

    def test_consumer_sees_same_events_for_both_kinds(
        self, scripted_producer, parent_child_tables, recording_consumer
    ):
        streamed = type(recording_consumer)()
        StreamingDataSet(scripted_producer.from_tables(parent_child_tables)).replay(streamed)
        CachedDataSet(scripted_producer.from_tables(parent_child_tables)).replay(recording_consumer)
        assert streamed.events == recording_consumer.events
