"""Live query datasets.

Streams tables (or arbitrary per-table SQL) out of a database through
SQLAlchemy. Rows are fetched in partitions of ``fetch_size`` so a table is
never held in memory at once.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager

from sqlalchemy import Connection, Engine, MetaData, Select, TextClause, inspect, select, text
from sqlalchemy import Table as SATable
from sqlalchemy import exc as sa_exc

from tablereplay.core.config import get_settings
from tablereplay.core.errors import DataSetError, MetadataAccessError, NoSuchTableError
from tablereplay.core.logging import get_logger
from tablereplay.dataset.metadata import Column, TableMetadata, get_qualified_name
from tablereplay.datatypes import get_data_type_factory
from tablereplay.stream.consumer import DataSetConsumer
from tablereplay.stream.producer import DataSetProducer

logger = get_logger(__name__)


class QueryProducer(DataSetProducer):
    """Producer streaming query results.

    Args:
        bind: Engine or open connection; connection lifecycle is the caller's
        tables: Table names to read whole, or a mapping of table name to the
            SQL producing its rows. All tables of ``schema`` when omitted.
        schema: Schema the tables live in
        fetch_size: Rows per partition. Defaults to ``query_fetch_size``.
        qualified_names: Name tables ``schema.table``. Defaults to the
            ``qualified_table_names`` setting.
    """

    def __init__(
        self,
        bind: Engine | Connection,
        tables: Sequence[str] | Mapping[str, str] | None = None,
        schema: str | None = None,
        fetch_size: int | None = None,
        qualified_names: bool | None = None,
    ):
        super().__init__(column_sensing=False)
        settings = get_settings()
        self._bind = bind
        self._tables = tables
        self._schema = schema
        self._fetch_size = fetch_size or settings.query_fetch_size
        self._qualified_names = (
            settings.qualified_table_names if qualified_names is None else qualified_names
        )
        self._factory = get_data_type_factory(bind.dialect.name)

    @property
    def source_name(self) -> str:
        url = self._bind.engine.url
        return url.render_as_string(hide_password=True)

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if isinstance(self._bind, Connection):
            yield self._bind
        else:
            with self._bind.connect() as conn:
                yield conn

    def _dataset_name(self, table_name: str) -> str:
        if self._qualified_names:
            return get_qualified_name(self._schema, table_name)
        return table_name

    def _produce(self, consumer: DataSetConsumer) -> None:
        with self._connect() as conn:
            if self._tables is None:
                try:
                    queries: dict[str, str | None] = {
                        name: None for name in inspect(conn).get_table_names(schema=self._schema)
                    }
                except sa_exc.SQLAlchemyError as e:
                    raise MetadataAccessError(f"Failed to list tables: {e}") from e
            elif isinstance(self._tables, Mapping):
                queries = dict(self._tables)
            else:
                queries = {name: None for name in self._tables}

            consumer.start_dataset()
            for table_name, sql in queries.items():
                if sql is None:
                    metadata, statement = self._reflect(conn, table_name)
                    self._stream(conn, consumer, metadata, statement)
                else:
                    self._stream(conn, consumer, None, text(sql), table_name)
            consumer.end_dataset()

    def _reflect(self, conn: Connection, table_name: str) -> tuple[TableMetadata, Select]:
        try:
            table = SATable(table_name, MetaData(), schema=self._schema, autoload_with=conn)
        except sa_exc.NoSuchTableError:
            raise NoSuchTableError(get_qualified_name(self._schema, table_name)) from None
        except sa_exc.SQLAlchemyError as e:
            raise MetadataAccessError(f"Failed to reflect table: {e}", table_name=table_name) from e

        columns = [
            Column(c.name, self._factory.from_sqlalchemy(c.type), bool(c.nullable))
            for c in table.columns
        ]
        primary_keys = [c.name for c in table.primary_key.columns]
        metadata = TableMetadata(self._dataset_name(table_name), columns, primary_keys)

        statement = select(table)
        if primary_keys:
            statement = statement.order_by(*table.primary_key.columns)
        return metadata, statement

    def _stream(
        self,
        conn: Connection,
        consumer: DataSetConsumer,
        metadata: TableMetadata | None,
        statement: Select | TextClause,
        table_name: str | None = None,
    ) -> None:
        try:
            result = conn.execute(statement, execution_options={"yield_per": self._fetch_size})
            if metadata is None:
                assert table_name is not None
                metadata = TableMetadata(
                    self._dataset_name(table_name), [Column(name) for name in result.keys()]
                )

            consumer.start_table(metadata)
            rows = 0
            for partition in result.partitions(self._fetch_size):
                for record in partition:
                    consumer.row(tuple(record))
                rows += len(partition)
            consumer.end_table()
        except sa_exc.SQLAlchemyError as e:
            name = metadata.table_name if metadata else table_name
            raise DataSetError(f"Failed to read table '{name}': {e}") from e
        logger.debug("query_table_read", table=metadata.table_name, rows=rows)
