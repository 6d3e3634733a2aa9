"""
Money -- Decimal coercion and currency-safe arithmetic.

Responsibility:
    Provides the single coercion boundary between loosely typed payload values
    (numbers, numeric strings, None, blanks) and the Decimal arithmetic used
    by every engine, plus the round-per-step helpers that keep monetary
    results at 2 decimal places.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Monetary arithmetic is Decimal-only; floats are converted through
      ``str()`` so binary float noise never enters a calculation.
    - Every helper returns a value quantized to ``CURRENCY_PLACES`` using
      ROUND_HALF_UP.
    - ``to_decimal`` never raises: non-numeric, NaN and infinite values
      coerce to zero.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CURRENCY_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Absolute tolerance for comparing two rounded monetary amounts.
ROUNDING_TOLERANCE = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce a payload value to Decimal.

    ``None``, empty or blank strings, booleans, unparseable strings, NaN and
    infinities all become ``Decimal("0")``.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return Decimal("0")
        try:
            result = Decimal(text)
        except InvalidOperation:
            return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def is_numeric(value: Any) -> bool:
    """True if ``value`` is a finite number or a string that parses as one."""
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, (int, Decimal, float)):
        return Decimal(str(value)).is_finite()
    try:
        return Decimal(str(value).strip().replace(",", "")).is_finite()
    except InvalidOperation:
        return False


def round_currency(value: Any) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return to_decimal(value).quantize(CURRENCY_PLACES, rounding=ROUND_HALF_UP)


def add_currency(*values: Any) -> Decimal:
    """Sum values and round the total."""
    total = Decimal("0")
    for value in values:
        total += to_decimal(value)
    return round_currency(total)


def subtract_currency(a: Any, b: Any) -> Decimal:
    return round_currency(to_decimal(a) - to_decimal(b))


def multiply_currency(a: Any, b: Any) -> Decimal:
    return round_currency(to_decimal(a) * to_decimal(b))


def divide_currency(a: Any, b: Any) -> Decimal:
    """Divide and round; dividing by zero yields zero."""
    divisor = to_decimal(b)
    if divisor == 0:
        return ZERO
    return round_currency(to_decimal(a) / divisor)


def percent_of_currency(amount: Any, percentage: Any) -> Decimal:
    """``amount * percentage / 100`` rounded (e.g. 20 for 20%)."""
    return round_currency(to_decimal(amount) * to_decimal(percentage) / HUNDRED)


def within_tolerance(a: Any, b: Any, tolerance: Decimal = ROUNDING_TOLERANCE) -> bool:
    """True if ``|a - b| <= tolerance``."""
    return abs(to_decimal(a) - to_decimal(b)) <= tolerance
