"""Value type registry.

Named data type instances, lookups by SQL type name and by Python value, and
the module-level cast/compare/format operations.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from tablereplay.datatypes.base import DataType, is_null
from tablereplay.datatypes.types import (
    BooleanDataType,
    BytesDataType,
    DateDataType,
    DoubleDataType,
    IntegerDataType,
    NumberDataType,
    StringDataType,
    TimeDataType,
    TimestampDataType,
    UnknownDataType,
)

UNKNOWN = UnknownDataType()

CHAR = StringDataType("CHAR")
VARCHAR = StringDataType("VARCHAR")
LONGVARCHAR = StringDataType("LONGVARCHAR")
CLOB = StringDataType("CLOB")

BOOLEAN = BooleanDataType("BOOLEAN")
BIT = BooleanDataType("BIT")

TINYINT = IntegerDataType("TINYINT")
SMALLINT = IntegerDataType("SMALLINT")
INTEGER = IntegerDataType("INTEGER")
BIGINT = IntegerDataType("BIGINT")

NUMERIC = NumberDataType("NUMERIC")
DECIMAL = NumberDataType("DECIMAL")

REAL = DoubleDataType("REAL")
FLOAT = DoubleDataType("FLOAT")
DOUBLE = DoubleDataType("DOUBLE")

BINARY = BytesDataType("BINARY")
VARBINARY = BytesDataType("VARBINARY")
LONGVARBINARY = BytesDataType("LONGVARBINARY")
BLOB = BytesDataType("BLOB")

DATE = DateDataType()
TIME = TimeDataType()
TIMESTAMP = TimestampDataType()

ALL_TYPES: tuple[DataType, ...] = (
    UNKNOWN,
    CHAR,
    VARCHAR,
    LONGVARCHAR,
    CLOB,
    BOOLEAN,
    BIT,
    TINYINT,
    SMALLINT,
    INTEGER,
    BIGINT,
    NUMERIC,
    DECIMAL,
    REAL,
    FLOAT,
    DOUBLE,
    BINARY,
    VARBINARY,
    LONGVARBINARY,
    BLOB,
    DATE,
    TIME,
    TIMESTAMP,
)

_BY_NAME: dict[str, DataType] = {data_type.name: data_type for data_type in ALL_TYPES}


def for_sql_type_name(name: str) -> DataType:
    """Get the data type registered under a SQL type name.

    Unregistered names map to UNKNOWN.
    """
    return _BY_NAME.get(name.strip().upper(), UNKNOWN)


def for_object(value: Any) -> DataType:
    """Get the data type matching a Python value.

    Null and unrecognized values map to UNKNOWN.
    """
    if is_null(value):
        return UNKNOWN
    # bool before int, datetime before date
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return BIGINT
    if isinstance(value, Decimal):
        return NUMERIC
    if isinstance(value, float):
        return DOUBLE
    if isinstance(value, str):
        return VARCHAR
    if isinstance(value, (bytes, bytearray, memoryview)):
        return VARBINARY
    if isinstance(value, datetime):
        return TIMESTAMP
    if isinstance(value, date):
        return DATE
    if isinstance(value, time):
        return TIME
    return UNKNOWN


def cast(value: Any, data_type: DataType) -> Any:
    """Cast a raw value to a data type's canonical representation.

    Raises:
        TypeCastError: If the value cannot be cast
    """
    return data_type.cast(value)


def compare(value1: Any, value2: Any, data_type: DataType | None = None) -> int:
    """Compare two raw values.

    Args:
        value1: First value
        value2: Second value
        data_type: Type both values are cast to. Inferred from the values
            when omitted.

    Returns:
        -1, 0 or 1; null sorts first

    Raises:
        TypeCastError: If a value cannot be cast or ordered
    """
    return (data_type or UNKNOWN).compare(value1, value2)


def format_value(value: Any) -> str | None:
    """Render a canonical value as text for text-based formats.

    Byte sequences become base64, booleans "true"/"false", temporals ISO-8601.
    Null renders as None.
    """
    if is_null(value):
        return None
    return for_object(value).format(value)
