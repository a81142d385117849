"""Tests for configuration, logging, errors and shared models."""

import pickle

import pytest
from structlog.testing import capture_logs

from tablereplay.core.config import Settings, get_settings
from tablereplay.core.errors import (
    CyclicDependencyError,
    DataSetError,
    MetadataAccessError,
    StructuralError,
    TableReplayError,
    TypeCastError,
)
from tablereplay.core.logging import (
    _add_run_context,
    end_replay_metrics,
    get_logger,
    get_replay_metrics,
    log_context,
    record_rows_produced,
    start_replay_metrics,
)
from tablereplay.core.models.base import NO_VALUE, NoValueType, TableRef
from tablereplay.datatypes import INTEGER


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.case_sensitive_table_names is False
        assert settings.qualified_table_names is False
        assert settings.default_schema is None
        assert settings.column_sensing is False
        assert settings.csv_null_strings == ["null"]
        assert settings.query_fetch_size == 1000

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TABLEREPLAY_QUALIFIED_TABLE_NAMES", "true")
        monkeypatch.setenv("TABLEREPLAY_DEFAULT_SCHEMA", "public")
        monkeypatch.setenv("TABLEREPLAY_CSV_NULL_STRINGS", '["null", "NA"]')
        get_settings.cache_clear()

        settings = get_settings()
        assert settings.qualified_table_names is True
        assert settings.default_schema == "public"
        assert settings.csv_null_strings == ["null", "NA"]

    def test_cached(self):
        assert get_settings() is get_settings()


class TestLogging:
    """Tests for logging helpers and replay metrics."""

    def test_log_context(self):
        with log_context(table="orders"):
            with log_context(source="fixtures.xml"):
                inside = _add_run_context(None, "info", {"event": "inside"})
        outside = _add_run_context(None, "info", {"event": "outside"})

        assert inside == {"event": "inside", "table": "orders", "source": "fixtures.xml"}
        assert outside == {"event": "outside"}

    def test_logger_emits_events(self):
        logger = get_logger("test")
        with capture_logs() as logs:
            logger.info("table_started", table="orders")

        assert logs == [{"event": "table_started", "table": "orders", "log_level": "info"}]

    def test_metrics_lifecycle(self):
        metrics = start_replay_metrics("source.xml")
        assert get_replay_metrics() is metrics

        record_rows_produced(3)
        assert end_replay_metrics() is metrics
        assert get_replay_metrics() is None
        assert metrics.to_dict()["rows_produced"] == 3
        assert metrics.end_time is not None

    def test_recording_without_metrics_is_noop(self):
        assert get_replay_metrics() is None
        record_rows_produced(5)
        assert get_replay_metrics() is None


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(TypeCastError, DataSetError)
        assert issubclass(StructuralError, DataSetError)
        assert issubclass(CyclicDependencyError, DataSetError)
        assert issubclass(MetadataAccessError, TableReplayError)
        assert not issubclass(MetadataAccessError, DataSetError)

    def test_type_cast_error_context(self):
        error = TypeCastError("abc", INTEGER, "not a number")
        assert error.value == "abc"
        assert error.data_type is INTEGER
        assert "'abc'" in str(error)
        assert "INTEGER" in str(error)

    def test_cycle_message(self):
        error = CyclicDependencyError("a", ["a", "b", "a"])
        assert str(error) == "Table 'a' is part of a cyclic dependency: a -> b -> a"

    def test_metadata_access_error_carries_table(self):
        error = MetadataAccessError("lost", table_name="orders")
        assert error.table_name == "orders"
        with pytest.raises(TableReplayError):
            raise error


class TestModels:
    """Tests for shared models."""

    def test_no_value_is_a_singleton(self):
        assert NoValueType() is NO_VALUE
        assert pickle.loads(pickle.dumps(NO_VALUE)) is NO_VALUE

    def test_no_value_is_not_null(self):
        assert NO_VALUE is not None
        assert not NO_VALUE
        assert repr(NO_VALUE) == "<no value>"

    def test_table_ref(self):
        assert str(TableRef(table_name="orders", schema_name="sales")) == "sales.orders"
        assert str(TableRef(table_name="orders")) == "orders"
        assert TableRef(table_name="t") == TableRef(table_name="t")
        assert len({TableRef(table_name="t"), TableRef(table_name="t")}) == 1
