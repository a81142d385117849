"""Concrete data types.

Canonical Python representations:
- STRING: str
- BOOLEAN: bool
- INTEGER: int
- DECIMAL: decimal.Decimal (NUMERIC, DECIMAL) or float (REAL, FLOAT, DOUBLE)
- BYTES: bytes (text form is base64)
- TEMPORAL: datetime.date, datetime.time or naive datetime.datetime
- UNKNOWN: the raw value, untouched
"""

from __future__ import annotations

import base64
import binascii
import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from tablereplay.core.errors import TypeCastError
from tablereplay.core.models.base import ValueType
from tablereplay.datatypes.base import DataType, is_null, values_identical

_BYTES_LIKE = (bytes, bytearray, memoryview)
_EPOCH = datetime(1970, 1, 1)


class UnknownDataType(DataType):
    """Permissive type for columns discovered without metadata.

    Values pass through unchanged. Formatting picks the type matching the
    value itself. Comparison uses the native order when both values map to
    the same type, numeric order when both are numbers, and their text forms
    otherwise, so the result never depends on argument order.
    """

    def __init__(self) -> None:
        super().__init__("UNKNOWN", ValueType.UNKNOWN, None)

    def cast(self, value: Any) -> Any:
        if is_null(value):
            return None
        return value

    def compare(self, value1: Any, value2: Any) -> int:
        from tablereplay.datatypes.registry import NUMERIC, for_object

        if values_identical(value1, value2):
            return 0
        if is_null(value1):
            return -1
        if is_null(value2):
            return 1

        type1 = for_object(value1)
        type2 = for_object(value2)
        if type1 is type2 and type1 is not self:
            return type1.compare(value1, value2)
        if type1.is_number and type2.is_number:
            return NUMERIC.compare(value1, value2)

        text1 = self._format_non_null(value1)
        text2 = self._format_non_null(value2)
        if text1 == text2:
            return 0
        return -1 if text1 < text2 else 1

    def _format_non_null(self, value: Any) -> str:
        from tablereplay.datatypes.registry import for_object

        data_type = for_object(value)
        if data_type is self:
            return str(value)
        formatted = data_type.format(value)
        return formatted if formatted is not None else ""


class StringDataType(DataType):
    """Character data: CHAR, VARCHAR, LONGVARCHAR, CLOB."""

    def __init__(self, name: str) -> None:
        super().__init__(name, ValueType.STRING, str)

    def cast(self, value: Any) -> str | None:
        if is_null(value):
            return None
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, Decimal):
            return format(value, "f")
        if isinstance(value, float):
            return repr(value)
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, (date, time)):
            return value.isoformat()
        if isinstance(value, _BYTES_LIKE):
            return base64.b64encode(bytes(value)).decode("ascii")
        raise self.fail(value)


class BooleanDataType(DataType):
    """Boolean data: BOOLEAN, BIT.

    Accepts booleans, numbers (0 is false, anything else true) and the
    strings "true"/"false" in any case. Other strings are read as integers.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name, ValueType.BOOLEAN, bool)

    def cast(self, value: Any) -> bool | None:
        if is_null(value):
            return None
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float, Decimal)):
            return value != 0
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
            from tablereplay.datatypes.registry import INTEGER

            try:
                return self.cast(INTEGER.cast(value))
            except TypeCastError as e:
                raise self.fail(value, "not a boolean literal or integer") from e
        raise self.fail(value)

    def _format_non_null(self, value: bool) -> str:
        return "true" if value else "false"


def _decimal_from_text(data_type: DataType, value: str) -> Decimal:
    text = value.strip()
    if not text:
        raise data_type.fail(value, "empty string")
    try:
        number = Decimal(text)
    except InvalidOperation as e:
        raise data_type.fail(value, "not a number") from e
    if number.is_nan():
        raise data_type.fail(value, "NaN is not ordered")
    return number


class IntegerDataType(DataType):
    """Integral data: TINYINT, SMALLINT, INTEGER, BIGINT.

    Fractional input is truncated towards zero.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name, ValueType.INTEGER, int, is_number=True)

    def cast(self, value: Any) -> int | None:
        if is_null(value):
            return None
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if not math.isfinite(value):
                raise self.fail(value, "not a finite number")
            return int(value)
        if isinstance(value, Decimal):
            if not value.is_finite():
                raise self.fail(value, "not a finite number")
            return int(value)
        if isinstance(value, str):
            number = _decimal_from_text(self, value)
            if not number.is_finite():
                raise self.fail(value, "not a finite number")
            return int(number)
        raise self.fail(value)


class NumberDataType(DataType):
    """Exact numeric data: NUMERIC, DECIMAL."""

    def __init__(self, name: str) -> None:
        super().__init__(name, ValueType.DECIMAL, Decimal, is_number=True)

    def cast(self, value: Any) -> Decimal | None:
        if is_null(value):
            return None
        if isinstance(value, bool):
            return Decimal(int(value))
        if isinstance(value, Decimal):
            if value.is_nan():
                raise self.fail(value, "NaN is not ordered")
            return value
        if isinstance(value, int):
            return Decimal(value)
        if isinstance(value, float):
            if math.isnan(value):
                raise self.fail(value, "NaN is not ordered")
            return Decimal(repr(value))
        if isinstance(value, str):
            return _decimal_from_text(self, value)
        raise self.fail(value)

    def _format_non_null(self, value: Decimal) -> str:
        return format(value, "f")


class DoubleDataType(DataType):
    """Approximate numeric data: REAL, FLOAT, DOUBLE."""

    def __init__(self, name: str) -> None:
        super().__init__(name, ValueType.DECIMAL, float, is_number=True)

    def cast(self, value: Any) -> float | None:
        if is_null(value):
            return None
        if isinstance(value, (bool, int, Decimal, float)):
            number = float(value)
        elif isinstance(value, str):
            text = value.strip()
            try:
                number = float(text)
            except ValueError as e:
                raise self.fail(value, "not a number") from e
        else:
            raise self.fail(value)
        if math.isnan(number):
            raise self.fail(value, "NaN is not ordered")
        return number

    def _format_non_null(self, value: float) -> str:
        return repr(value)


class BytesDataType(DataType):
    """Binary data: BINARY, VARBINARY, LONGVARBINARY, BLOB.

    Text input is base64; the empty string is a zero-length byte sequence.
    Byte sequences are ordered lexicographically.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name, ValueType.BYTES, bytes)

    def cast(self, value: Any) -> bytes | None:
        if is_null(value):
            return None
        if isinstance(value, _BYTES_LIKE):
            return bytes(value)
        if isinstance(value, str):
            if not value:
                return b""
            try:
                return base64.b64decode(value.strip(), validate=True)
            except (binascii.Error, ValueError) as e:
                raise self.fail(value, "not valid base64") from e
        raise self.fail(value)

    def _format_non_null(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")


def _from_epoch_millis(millis: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=millis)


class DateDataType(DataType):
    """Calendar dates. Integers are epoch milliseconds (UTC)."""

    def __init__(self) -> None:
        super().__init__("DATE", ValueType.TEMPORAL, date, is_datetime=True)

    def cast(self, value: Any) -> date | None:
        if is_null(value):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return _from_epoch_millis(value).date()
        if isinstance(value, str):
            text = value.strip()
            try:
                return date.fromisoformat(text)
            except ValueError:
                pass
            try:
                return datetime.fromisoformat(text).date()
            except ValueError as e:
                raise self.fail(value, "not an ISO-8601 date") from e
        raise self.fail(value)


class TimeDataType(DataType):
    """Times of day."""

    def __init__(self) -> None:
        super().__init__("TIME", ValueType.TEMPORAL, time, is_datetime=True)

    def cast(self, value: Any) -> time | None:
        if is_null(value):
            return None
        if isinstance(value, datetime):
            return value.time()
        if isinstance(value, time):
            return value
        if isinstance(value, str):
            try:
                return time.fromisoformat(value.strip())
            except ValueError as e:
                raise self.fail(value, "not an ISO-8601 time") from e
        raise self.fail(value)


class TimestampDataType(DataType):
    """Date and time. Integers are epoch milliseconds (UTC)."""

    def __init__(self) -> None:
        super().__init__("TIMESTAMP", ValueType.TEMPORAL, datetime, is_datetime=True)

    def cast(self, value: Any) -> datetime | None:
        if is_null(value):
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, int) and not isinstance(value, bool):
            return _from_epoch_millis(value)
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip())
            except ValueError as e:
                raise self.fail(value, "not an ISO-8601 timestamp") from e
        raise self.fail(value)

    def _format_non_null(self, value: datetime) -> str:
        return value.isoformat(sep=" ")
