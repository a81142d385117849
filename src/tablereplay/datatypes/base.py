"""Data type base class.

A DataType casts raw source values into one canonical Python representation,
compares values after casting and formats canonical values as text.

Comparison rules shared by every type:
- Values of the same Python type that are equal compare 0 without casting.
- Null (``None`` or NO_VALUE after casting) sorts before every non-null value.
- Values that cast but cannot be ordered against each other raise TypeCastError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from tablereplay.core.errors import TypeCastError
from tablereplay.core.logging import get_logger
from tablereplay.core.models.base import NO_VALUE, ValueType

logger = get_logger(__name__)


def is_null(value: Any) -> bool:
    """Whether a raw value is null or absent."""
    return value is None or value is NO_VALUE


def values_identical(value1: Any, value2: Any) -> bool:
    """Cheap equality check that avoids casting.

    Only values of the same Python type are compared, so ``1`` and ``True``
    are never considered identical here.
    """
    if value1 is value2:
        return True
    if is_null(value1) and is_null(value2):
        return True
    if type(value1) is not type(value2):
        return False
    try:
        return bool(value1 == value2)
    except (TypeError, ValueError):
        return False


class DataType(ABC):
    """Canonical value type with cast, compare and format rules."""

    def __init__(
        self,
        name: str,
        value_type: ValueType,
        python_type: type | tuple[type, ...] | None,
        is_number: bool = False,
        is_datetime: bool = False,
    ):
        self.name = name
        self.value_type = value_type
        self.python_type = python_type
        self.is_number = is_number
        self.is_datetime = is_datetime

    @abstractmethod
    def cast(self, value: Any) -> Any:
        """Cast a raw value to this type's canonical representation.

        Returns None for null and NO_VALUE.

        Raises:
            TypeCastError: If the value cannot be represented in this type
        """

    def compare(self, value1: Any, value2: Any) -> int:
        """Compare two raw values after casting them to this type.

        Returns:
            -1, 0 or 1

        Raises:
            TypeCastError: If either value cannot be cast, or the cast values
                cannot be ordered
        """
        if values_identical(value1, value2):
            return 0

        cast1 = self.cast(value1)
        cast2 = self.cast(value2)

        if cast1 is None and cast2 is None:
            return 0
        if cast1 is None:
            return -1
        if cast2 is None:
            return 1

        try:
            return self._compare_non_null(cast1, cast2)
        except TypeError as e:
            raise TypeCastError(value2, self, str(e)) from e

    def _compare_non_null(self, value1: Any, value2: Any) -> int:
        """Compare two cast, non-null values."""
        if value1 == value2:
            return 0
        return -1 if value1 < value2 else 1

    def format(self, value: Any) -> str | None:
        """Render a value as text, after casting it to this type."""
        cast = self.cast(value)
        if cast is None:
            return None
        return self._format_non_null(cast)

    def _format_non_null(self, value: Any) -> str:
        return str(value)

    def fail(self, value: Any, reason: str | None = None) -> TypeCastError:
        """Build a TypeCastError for this type."""
        logger.debug("typecast_failed", data_type=self.name, value=repr(value), reason=reason)
        return TypeCastError(value, self, reason)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
