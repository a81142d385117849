"""Value type registry.

Canonical value types and their cast, compare and format rules.

Usage:
    from tablereplay.datatypes import BOOLEAN, VARBINARY, cast, compare, format_value

    cast("TRUE", BOOLEAN)          # True
    cast("YWJjZA==", VARBINARY)    # b"abcd"
    format_value(b"abcd")          # "YWJjZA=="
    compare(None, 1, INTEGER)      # -1
"""

from tablereplay.datatypes.base import DataType, is_null
from tablereplay.datatypes.factory import (
    DefaultDataTypeFactory,
    MsSqlDataTypeFactory,
    PostgresqlDataTypeFactory,
    get_data_type_factory,
)
from tablereplay.datatypes.registry import (
    ALL_TYPES,
    BIGINT,
    BINARY,
    BIT,
    BLOB,
    BOOLEAN,
    CHAR,
    CLOB,
    DATE,
    DECIMAL,
    DOUBLE,
    FLOAT,
    INTEGER,
    LONGVARBINARY,
    LONGVARCHAR,
    NUMERIC,
    REAL,
    SMALLINT,
    TIME,
    TIMESTAMP,
    TINYINT,
    UNKNOWN,
    VARBINARY,
    VARCHAR,
    cast,
    compare,
    for_object,
    for_sql_type_name,
    format_value,
)

__all__ = [
    # Base
    "DataType",
    "is_null",
    # Factories
    "DefaultDataTypeFactory",
    "MsSqlDataTypeFactory",
    "PostgresqlDataTypeFactory",
    "get_data_type_factory",
    # Types
    "ALL_TYPES",
    "BIGINT",
    "BINARY",
    "BIT",
    "BLOB",
    "BOOLEAN",
    "CHAR",
    "CLOB",
    "DATE",
    "DECIMAL",
    "DOUBLE",
    "FLOAT",
    "INTEGER",
    "LONGVARBINARY",
    "LONGVARCHAR",
    "NUMERIC",
    "REAL",
    "SMALLINT",
    "TIME",
    "TIMESTAMP",
    "TINYINT",
    "UNKNOWN",
    "VARBINARY",
    "VARCHAR",
    # Operations
    "cast",
    "compare",
    "for_object",
    "for_sql_type_name",
    "format_value",
]
