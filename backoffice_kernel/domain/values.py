"""
Values -- exact decimal and calendar-date parsing at the domain boundary.

Responsibility:
    Converts caller-supplied primitives (decimal strings, ints, ISO date
    strings) into ``Decimal`` and ``date`` values. Every amount and
    percentage in the kernel passes through here.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts and percentages are ``Decimal``, never binary float. Floats are
      rejected outright: ``Decimal(0.1)`` would carry the binary error into
      every occurrence and into the exact-100 check.
    - Dates are ``datetime.date`` (a ``datetime`` is truncated to its date).

Failure modes:
    - ValueError for floats, booleans, or strings that are not decimals.
    - ValueError / TypeError for unparseable dates (wrapped by callers into
      ``InvalidAnchorDateError`` where the date is a recurrence anchor).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """
    Convert an exact representation to Decimal.

    Preconditions:
        - ``value`` is a Decimal, int, or decimal string (whitespace allowed).

    Postconditions:
        - Returns a finite Decimal preserving the input's scale
          (``"1000.00"`` stays ``Decimal("1000.00")``).

    Raises:
        ValueError: for floats, booleans, non-finite or malformed values.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(
            f"{field_name} must be a decimal string or integer, got {type(value).__name__}"
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid {field_name}: {value!r}") from e
    else:
        raise ValueError(f"Invalid {field_name}: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Invalid {field_name}: {value!r}")
    return result


def to_date(value: Any) -> date:
    """
    Parse a calendar date from a ``date``/``datetime`` or ISO string.

    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # Full ISO timestamps from the form layer keep their written date;
        # anything after the date must be a valid time part
        return datetime.fromisoformat(value.strip()).date()
    raise ValueError(f"Cannot parse date from {value!r}")
