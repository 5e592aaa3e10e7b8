"""
Values -- Decimal and date coercion for stock card inputs.

Responsibility:
    Convert the loosely typed numbers and dates delivered by the backend
    (ints, floats, numeric strings, ISO date or datetime strings, nulls)
    into ``Decimal`` and ``date`` values used by every engine.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic: floats are converted via ``str()`` so that
      0.1 stays 0.1 rather than its binary approximation.
    - ``None`` and empty strings coerce to zero for numeric fields.

Failure modes:
    - ValueError when a value is not a number or a parseable date.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a numeric value to Decimal.

    Postconditions:
        - Returns ZERO for None or blank strings.
        - Never returns NaN or infinity.

    Raises:
        ValueError: if the value is not a finite number.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, str):
        if not value.strip():
            return ZERO
        try:
            result = Decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid numeric value: {value!r}") from e
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        raise ValueError(f"Invalid numeric value: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Numeric value must be finite, got {value!r}")
    return result


def to_date(value: Any) -> date:
    """
    Coerce a date-like value to a calendar date.

    Accepts ``date``, ``datetime`` (time discarded), ISO dates
    (``2025-07-17``) and ISO datetimes (``2025-07-17T00:00:00.000Z``).

    Raises:
        ValueError: if the value cannot be read as a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text).date()
    raise ValueError(f"Cannot parse date from {value!r}")


def quantize_display(value: Decimal, places: int) -> Decimal:
    """Round a value for display, half-up, to the given decimal places."""
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)
