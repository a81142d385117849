"""Tests for data type factories."""

from sqlalchemy import types as sqltypes
from sqlalchemy.dialects import postgresql

from tablereplay.datatypes import (
    BIGINT,
    BLOB,
    BOOLEAN,
    CHAR,
    DECIMAL,
    DOUBLE,
    INTEGER,
    LONGVARCHAR,
    NUMERIC,
    TIMESTAMP,
    UNKNOWN,
    VARBINARY,
    VARCHAR,
    DefaultDataTypeFactory,
    MsSqlDataTypeFactory,
    PostgresqlDataTypeFactory,
    get_data_type_factory,
)


class TestDefaultFactory:
    """Tests for SQL type name lookup."""

    def test_registry_names(self):
        factory = DefaultDataTypeFactory()
        assert factory.create_data_type("INTEGER") is INTEGER
        assert factory.create_data_type("timestamp") is TIMESTAMP

    def test_parameters_are_ignored(self):
        factory = DefaultDataTypeFactory()
        assert factory.create_data_type("VARCHAR(20)") is VARCHAR
        assert factory.create_data_type("NUMERIC(10, 2)") is NUMERIC

    def test_aliases(self):
        factory = DefaultDataTypeFactory()
        assert factory.create_data_type("character varying") is VARCHAR
        assert factory.create_data_type("TEXT") is LONGVARCHAR
        assert factory.create_data_type("double precision") is DOUBLE

    def test_unknown_name(self):
        assert DefaultDataTypeFactory().create_data_type("GEOMETRY") is UNKNOWN
        assert DefaultDataTypeFactory().create_data_type("MONEY") is UNKNOWN


class TestSqlAlchemyTypes:
    """Tests for reflected SQLAlchemy type mapping."""

    def test_generic_types(self):
        factory = DefaultDataTypeFactory()
        assert factory.from_sqlalchemy(sqltypes.Boolean()) is BOOLEAN
        assert factory.from_sqlalchemy(sqltypes.BigInteger()) is BIGINT
        assert factory.from_sqlalchemy(sqltypes.Integer()) is INTEGER
        assert factory.from_sqlalchemy(sqltypes.Numeric(10, 2)) is NUMERIC
        assert factory.from_sqlalchemy(sqltypes.Float()) is DOUBLE
        assert factory.from_sqlalchemy(sqltypes.DateTime()) is TIMESTAMP
        assert factory.from_sqlalchemy(sqltypes.Text()) is LONGVARCHAR
        assert factory.from_sqlalchemy(sqltypes.String(20)) is VARCHAR
        assert factory.from_sqlalchemy(sqltypes.LargeBinary()) is BLOB
        assert factory.from_sqlalchemy(sqltypes.VARBINARY(8)) is VARBINARY
        assert factory.from_sqlalchemy(sqltypes.NullType()) is UNKNOWN

    def test_vendor_type_falls_back_to_name(self):
        factory = PostgresqlDataTypeFactory()
        assert factory.from_sqlalchemy(postgresql.UUID()) is CHAR


class TestDialectFactories:
    """Tests for dialect factory selection."""

    def test_mssql_names(self):
        factory = MsSqlDataTypeFactory()
        assert factory.create_data_type("MONEY") is DECIMAL
        assert factory.create_data_type("IMAGE") is BLOB
        assert factory.create_data_type("datetime2") is TIMESTAMP

    def test_get_data_type_factory(self):
        assert isinstance(get_data_type_factory("mssql"), MsSqlDataTypeFactory)
        assert isinstance(get_data_type_factory("postgresql"), PostgresqlDataTypeFactory)
        assert type(get_data_type_factory("sqlite")) is DefaultDataTypeFactory
        assert type(get_data_type_factory(None)) is DefaultDataTypeFactory
