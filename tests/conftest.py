"""Shared pytest fixtures for all tests."""

import os

import duckdb
import pytest
from sqlalchemy import Engine, create_engine, event, text

from tablereplay.core.config import get_settings
from tablereplay.dataset.metadata import Column, TableMetadata
from tablereplay.datatypes import INTEGER
from tablereplay.stream import DataSetProducer, DefaultConsumer


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Isolate tests from TABLEREPLAY_* variables of the environment."""
    for name in list(os.environ):
        if name.startswith("TABLEREPLAY_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine() -> Engine:
    """Create an in-memory SQLite engine for testing.

    Creates a fresh database for each test function.
    """
    test_engine = create_engine("sqlite:///:memory:", echo=False)

    # Enable foreign keys for SQLite
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield test_engine
    test_engine.dispose()


@pytest.fixture
def fk_engine(engine: Engine) -> Engine:
    """SQLite engine with a parent <- child <- grandchild foreign-key chain
    and an unrelated table."""
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE parent (id INTEGER PRIMARY KEY, name VARCHAR(50))"))
        conn.execute(
            text(
                "CREATE TABLE child ("
                "id INTEGER PRIMARY KEY, "
                "parent_id INTEGER NOT NULL REFERENCES parent(id), "
                "amount NUMERIC(10, 2))"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE grandchild ("
                "id INTEGER PRIMARY KEY, "
                "child_id INTEGER REFERENCES child(id), "
                "payload BLOB)"
            )
        )
        conn.execute(text("CREATE TABLE audit (id INTEGER PRIMARY KEY, message TEXT)"))
        conn.execute(text("INSERT INTO parent VALUES (1, 'first'), (2, 'second')"))
        conn.execute(text("INSERT INTO child VALUES (10, 1, 12.50), (11, 2, NULL)"))
        conn.execute(text("INSERT INTO grandchild VALUES (100, 10, x'61626364')"))
    return engine


@pytest.fixture
def duckdb_conn():
    """Create an in-memory DuckDB connection for testing."""
    conn = duckdb.connect(":memory:")
    yield conn
    conn.close()


class RecordingConsumer(DefaultConsumer):
    """Consumer keeping every event it receives."""

    def __init__(self):
        self.events: list[tuple] = []

    def start_dataset(self):
        self.events.append(("start_dataset",))

    def start_table(self, metadata):
        self.events.append(("start_table", metadata))

    def row(self, values):
        self.events.append(("row", tuple(values)))

    def end_table(self):
        self.events.append(("end_table",))

    def end_dataset(self):
        self.events.append(("end_dataset",))

    @property
    def names(self) -> list[str]:
        return [event[0] for event in self.events]

    @property
    def rows(self) -> list[tuple]:
        return [event[1] for event in self.events if event[0] == "row"]

    @property
    def tables(self) -> list[TableMetadata]:
        return [event[1] for event in self.events if event[0] == "start_table"]


class ScriptedProducer(DataSetProducer):
    """Producer replaying a fixed list of ``(event, *args)`` tuples."""

    def __init__(self, events, column_sensing=False):
        super().__init__(column_sensing=column_sensing)
        self.script = list(events)

    @classmethod
    def from_tables(cls, tables, column_sensing=False):
        """Build the script for ``[(metadata, rows), ...]``."""
        events = [("start_dataset",)]
        for metadata, rows in tables:
            events.append(("start_table", metadata))
            events.extend(("row", row) for row in rows)
            events.append(("end_table",))
        events.append(("end_dataset",))
        return cls(events, column_sensing=column_sensing)

    def _produce(self, consumer):
        for name, *args in self.script:
            getattr(consumer, name)(*args)


@pytest.fixture
def recording_consumer() -> RecordingConsumer:
    return RecordingConsumer()


@pytest.fixture
def scripted_producer() -> type[ScriptedProducer]:
    return ScriptedProducer


@pytest.fixture
def parent_child_tables() -> list[tuple[TableMetadata, list[tuple]]]:
    """Two small tables: child rows reference parent ids."""
    parent = TableMetadata("parent", [Column("id", INTEGER), Column("name")], primary_keys=["id"])
    child = TableMetadata(
        "child", [Column("id", INTEGER), Column("parent_id", INTEGER)], primary_keys=["id"]
    )
    return [
        (child, [(10, 1), (11, 2)]),
        (parent, [(1, "first"), (2, "second")]),
    ]
