"""Utility functions for the finance engine.

This module provides helpers for parsing user input into Python data types and
for handling calendar arithmetic: adding months to a date, stepping (year,
month) periods backwards and forwards, and normalizing year-month strings to
``datetime.date`` instances.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, getcontext
from typing import Optional, Tuple, Union

from .errors import InvalidInput

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[Decimal, int, float, str]


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the form ``"YYYY-MM"``. The day component, if present,
        will be ignored.

    Returns
    -------
    date
        A date object representing the first day of the specified month.

    Raises
    ------
    InvalidInput
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        return date(year, month, 1)
    except (AttributeError, ValueError) as exc:
        raise InvalidInput(f"Invalid year-month string: {ym}") from exc


def parse_date(value: Union[str, date, datetime]) -> date:
    """Return the calendar date of ``value``.

    ``datetime`` values are reduced to their date; strings must be ISO
    formatted (``YYYY-MM-DD``, optionally followed by a time part).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError as exc:
            raise InvalidInput(f"Invalid date: {value!r}") from exc
    raise InvalidInput(f"Invalid date: {value!r}")


def add_months(dt: date, months: int, day: Optional[int] = None) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29). Passing ``day`` keeps a
    fixed anchor day instead of ``dt.day``, so a schedule that starts on the
    31st returns to the 31st after a short month.
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(day or dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def validate_period(year: int, month: int) -> Tuple[int, int]:
    """Check that ``(year, month)`` names a real calendar month."""
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidInput(f"Year must be an integer; got {year!r}")
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidInput(f"Month must be an integer between 1 and 12; got {month!r}")
    if not 1 <= year <= 9999:
        raise InvalidInput(f"Year out of range: {year}")
    return year, month


def shift_period(year: int, month: int, months: int) -> Tuple[int, int]:
    """Move a (year, month) period by ``months``, rolling over year boundaries."""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """Convert a number or numeric string into a ``Decimal``.

    Strings may contain thousands separators. Floats go through ``str`` so
    that ``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.
    NaN and infinities are rejected.
    """
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid numeric {field}: {value!r}")
    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            result = Decimal(str(value))
        elif isinstance(value, str):
            result = Decimal(value.strip().replace(",", ""))
        else:
            raise InvalidInput(f"Invalid numeric {field}: {value!r}")
    except InvalidOperation as exc:
        raise InvalidInput(f"Invalid numeric {field}: {value!r}") from exc
    if not result.is_finite():
        raise InvalidInput(f"Invalid numeric {field}: {value!r}")
    return result
