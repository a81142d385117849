"""Tests for the table metadata model."""

import pytest

from tablereplay.core.errors import NoSuchColumnError, StructuralError
from tablereplay.core.models.base import NO_VALUE
from tablereplay.dataset import (
    Column,
    DefaultTable,
    TableMetadata,
    get_qualified_name,
    merge_columns_by_name,
    split_qualified_name,
)
from tablereplay.datatypes import INTEGER, UNKNOWN, VARCHAR


@pytest.fixture
def metadata() -> TableMetadata:
    return TableMetadata(
        "customer",
        [Column("id", INTEGER, nullable=False), Column("name", VARCHAR)],
        primary_keys=["id"],
    )


class TestTableMetadata:
    """Tests for TableMetadata."""

    def test_columns_and_primary_keys(self, metadata):
        assert metadata.table_name == "customer"
        assert metadata.column_names == ["id", "name"]
        assert [c.name for c in metadata.primary_keys] == ["id"]
        assert metadata.get_column("id").data_type is INTEGER

    def test_lookup_is_case_insensitive_by_default(self, metadata):
        assert metadata.column_index("NAME") == 1
        assert metadata.has_column("Id")

    def test_case_sensitive_lookup(self):
        metadata = TableMetadata("t", [Column("Id")], case_sensitive=True)
        assert metadata.has_column("Id")
        assert not metadata.has_column("ID")

    def test_unknown_column(self, metadata):
        with pytest.raises(NoSuchColumnError) as exc_info:
            metadata.column_index("missing")
        assert exc_info.value.table_name == "customer"
        assert exc_info.value.column_name == "missing"

    def test_primary_key_must_be_a_column(self):
        with pytest.raises(NoSuchColumnError):
            TableMetadata("t", [Column("a")], primary_keys=["b"])

    def test_widen_appends_new_columns(self, metadata):
        widened = metadata.widen([Column("NAME"), Column("email")])
        assert widened.column_names == ["id", "name", "email"]
        assert widened.get_column("email").data_type is UNKNOWN
        assert [c.name for c in widened.primary_keys] == ["id"]
        # Original is untouched
        assert metadata.column_names == ["id", "name"]

    def test_equality(self, metadata):
        same = TableMetadata("customer", [Column("id"), Column("name")], primary_keys=["id"])
        assert metadata == same
        assert metadata != metadata.widen([Column("email")])


class TestNameHelpers:
    """Tests for column merging and qualified names."""

    def test_merge_columns_preserves_first_seen_order(self):
        merged = merge_columns_by_name(
            [Column("a"), Column("b")], [Column("c"), Column("A"), Column("d")]
        )
        assert [c.name for c in merged] == ["a", "b", "c", "d"]

    def test_get_qualified_name(self):
        assert get_qualified_name("sales", "orders") == "sales.orders"
        assert get_qualified_name(None, "orders") == "orders"
        assert get_qualified_name("sales", "other.orders") == "other.orders"

    def test_split_on_first_dot(self):
        assert split_qualified_name("sales.orders") == ("sales", "orders")
        assert split_qualified_name("db.sales.orders") == ("db", "sales.orders")
        assert split_qualified_name("orders") == (None, "orders")
        assert split_qualified_name("orders", "public") == ("public", "orders")


class TestDefaultTable:
    """Tests for in-memory tables."""

    def test_rows(self, metadata):
        table = DefaultTable(metadata, [(1, "ann"), (2, None)])
        assert table.row_count == 2
        assert table.get_value(0, "NAME") == "ann"
        assert table.get_row(1) == {"id": 2, "name": None}
        assert list(table) == [(1, "ann"), (2, None)]

    def test_row_width_is_checked(self, metadata):
        table = DefaultTable(metadata)
        with pytest.raises(StructuralError):
            table.add_row((1,))

    def test_missing_columns_are_no_value(self, metadata):
        table = DefaultTable(metadata)
        table.add_row_dict({"id": 3})
        assert table.get_value(0, "name") is NO_VALUE
