"""Data type factories.

Map the type names reported by a target database, or the SQLAlchemy types
produced by reflection, to registry data types. Dialect factories extend the
default name table with vendor-specific names.
"""

from __future__ import annotations

from typing import ClassVar

from sqlalchemy import types as sqltypes
from sqlalchemy.exc import CompileError

from tablereplay.core.logging import get_logger
from tablereplay.datatypes import registry
from tablereplay.datatypes.base import DataType

logger = get_logger(__name__)


class DefaultDataTypeFactory:
    """Data type factory for ANSI SQL type names."""

    # Names beyond the registry's own type names
    ALIASES: ClassVar[dict[str, DataType]] = {
        "CHARACTER": registry.CHAR,
        "CHARACTER VARYING": registry.VARCHAR,
        "NCHAR": registry.CHAR,
        "NVARCHAR": registry.VARCHAR,
        "VARCHAR2": registry.VARCHAR,
        "NVARCHAR2": registry.VARCHAR,
        "TEXT": registry.LONGVARCHAR,
        "STRING": registry.VARCHAR,
        "NCLOB": registry.CLOB,
        "BOOL": registry.BOOLEAN,
        "INT": registry.INTEGER,
        "INT2": registry.SMALLINT,
        "INT4": registry.INTEGER,
        "INT8": registry.BIGINT,
        "MEDIUMINT": registry.INTEGER,
        "HUGEINT": registry.BIGINT,
        "NUMBER": registry.NUMERIC,
        "DEC": registry.DECIMAL,
        "FLOAT4": registry.REAL,
        "FLOAT8": registry.DOUBLE,
        "DOUBLE PRECISION": registry.DOUBLE,
        "BYTEA": registry.VARBINARY,
        "RAW": registry.VARBINARY,
        "DATETIME": registry.TIMESTAMP,
        "TIMESTAMP WITHOUT TIME ZONE": registry.TIMESTAMP,
        "TIME WITHOUT TIME ZONE": registry.TIME,
    }

    def create_data_type(self, sql_type_name: str) -> DataType:
        """Get the data type for a database type name.

        Parameterized names such as ``VARCHAR(20)`` or ``NUMERIC(10, 2)``
        are looked up without their parameters. Unknown names map to UNKNOWN.

        Args:
            sql_type_name: Type name as reported by the database

        Returns:
            Matching DataType
        """
        name = sql_type_name.split("(", 1)[0].strip().upper()
        data_type = self.ALIASES.get(name) or registry.for_sql_type_name(name)
        if data_type is registry.UNKNOWN:
            logger.debug("unknown_sql_type", sql_type_name=sql_type_name, factory=type(self).__name__)
        return data_type

    def from_sqlalchemy(self, type_engine: sqltypes.TypeEngine) -> DataType:
        """Get the data type for a reflected SQLAlchemy column type.

        Generic SQLAlchemy types are matched first; anything else falls back
        to the type's compiled name.
        """
        # Order matters: Boolean before Integer, DateTime before Date,
        # Float before Numeric, Text before String.
        if isinstance(type_engine, sqltypes.Boolean):
            return registry.BOOLEAN
        if isinstance(type_engine, sqltypes.BigInteger):
            return registry.BIGINT
        if isinstance(type_engine, sqltypes.SmallInteger):
            return registry.SMALLINT
        if isinstance(type_engine, sqltypes.Integer):
            return registry.INTEGER
        if isinstance(type_engine, sqltypes.Float):
            return registry.DOUBLE
        if isinstance(type_engine, sqltypes.Numeric):
            return registry.NUMERIC
        if isinstance(type_engine, sqltypes.DateTime):
            return registry.TIMESTAMP
        if isinstance(type_engine, sqltypes.Date):
            return registry.DATE
        if isinstance(type_engine, sqltypes.Time):
            return registry.TIME
        if isinstance(type_engine, sqltypes.LargeBinary):
            return registry.BLOB
        if isinstance(type_engine, (sqltypes.BINARY, sqltypes.VARBINARY)):
            return registry.VARBINARY
        if isinstance(type_engine, sqltypes.Text):
            return registry.LONGVARCHAR
        if isinstance(type_engine, sqltypes.String):
            return registry.VARCHAR
        if isinstance(type_engine, sqltypes.NullType):
            return registry.UNKNOWN

        try:
            type_name = type_engine.compile()
        except CompileError as e:
            logger.debug("type_compile_failed", type=repr(type_engine), error=str(e))
            type_name = type(type_engine).__name__
        return self.create_data_type(type_name)


class MsSqlDataTypeFactory(DefaultDataTypeFactory):
    """Data type factory for Microsoft SQL Server."""

    ALIASES: ClassVar[dict[str, DataType]] = {
        **DefaultDataTypeFactory.ALIASES,
        "NTEXT": registry.CLOB,
        "UNIQUEIDENTIFIER": registry.CHAR,
        "IMAGE": registry.BLOB,
        "MONEY": registry.DECIMAL,
        "SMALLMONEY": registry.DECIMAL,
        "DATETIME2": registry.TIMESTAMP,
        "SMALLDATETIME": registry.TIMESTAMP,
        "DATETIMEOFFSET": registry.TIMESTAMP,
    }


class PostgresqlDataTypeFactory(DefaultDataTypeFactory):
    """Data type factory for PostgreSQL."""

    ALIASES: ClassVar[dict[str, DataType]] = {
        **DefaultDataTypeFactory.ALIASES,
        "UUID": registry.CHAR,
        "SERIAL": registry.INTEGER,
        "BIGSERIAL": registry.BIGINT,
        "TIMESTAMPTZ": registry.TIMESTAMP,
        "TIMESTAMP WITH TIME ZONE": registry.TIMESTAMP,
        "CITEXT": registry.LONGVARCHAR,
    }


_FACTORIES: dict[str, type[DefaultDataTypeFactory]] = {
    "mssql": MsSqlDataTypeFactory,
    "postgresql": PostgresqlDataTypeFactory,
}


def get_data_type_factory(dialect_name: str | None = None) -> DefaultDataTypeFactory:
    """Get the data type factory for a SQLAlchemy dialect name.

    Args:
        dialect_name: e.g. ``engine.dialect.name``; None for the default factory

    Returns:
        Factory instance
    """
    factory_class = _FACTORIES.get((dialect_name or "").lower(), DefaultDataTypeFactory)
    return factory_class()
