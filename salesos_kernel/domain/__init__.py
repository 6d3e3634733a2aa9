"""
Pure domain layer.

This module contains immutable value objects and arithmetic helpers
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (other than the Clock abstraction itself)
- I/O
"""

from salesos_kernel.domain.branding import (
    ALLOWED_VAT_PERCENTS,
    BrandingThemeMapping,
    BrandingThemeTable,
)
from salesos_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from salesos_kernel.domain.errors import (
    ErrorEntry,
    ErrorSeverity,
    ErrorTrigger,
    ErrorType,
)
from salesos_kernel.domain.money import (
    CURRENCY_PLACES,
    ROUNDING_TOLERANCE,
    ZERO,
    add_currency,
    divide_currency,
    is_numeric,
    multiply_currency,
    percent_of_currency,
    round_currency,
    subtract_currency,
    to_decimal,
    within_tolerance,
)

__all__ = [
    "ALLOWED_VAT_PERCENTS",
    "BrandingThemeMapping",
    "BrandingThemeTable",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ErrorEntry",
    "ErrorSeverity",
    "ErrorTrigger",
    "ErrorType",
    "CURRENCY_PLACES",
    "ROUNDING_TOLERANCE",
    "ZERO",
    "add_currency",
    "divide_currency",
    "is_numeric",
    "multiply_currency",
    "percent_of_currency",
    "round_currency",
    "subtract_currency",
    "to_decimal",
    "within_tolerance",
]
