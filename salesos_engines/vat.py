"""
salesos_engines.vat -- VAT rate resolution from branding themes.

Responsibility:
    Resolve the VAT rate a sale is issued under from its branding theme,
    compute VAT forward from an ex-VAT amount, and validate that stored
    ex/inc-VAT amounts agree with the theme's expected rate.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import salesos_kernel/domain types and logging.

Invariants enforced:
    - The VAT rate comes only from the branding-theme table.  An unknown or
      empty theme resolves to ``Unresolved``; this module never assumes 20%.
    - Zero-rated themes always produce zero VAT.
    - Mismatches are reported in a ``VATValidation`` result, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from salesos_kernel.domain.branding import BrandingThemeMapping, BrandingThemeTable
from salesos_kernel.domain.money import (
    HUNDRED,
    ROUNDING_TOLERANCE,
    ZERO,
    add_currency,
    percent_of_currency,
    round_currency,
    subtract_currency,
)
from salesos_kernel.logging_config import get_logger
from salesos_engines.tracer import traced_engine

logger = get_logger("engines.vat")


@dataclass(frozen=True)
class VATResolution:
    """A theme that resolved to exactly one mapping."""

    rate: Decimal  # percent, 0 or 20
    mapping: BrandingThemeMapping

    @property
    def is_zero_rated(self) -> bool:
        return self.rate == 0

    @property
    def rate_decimal(self) -> Decimal:
        return self.rate / HUNDRED


@dataclass(frozen=True)
class Unresolved:
    """A theme identifier that could not be mapped to a VAT rate."""

    identifier: str | None
    reason: str


@dataclass(frozen=True)
class VATCalculation:
    """Forward VAT calculation from an ex-VAT amount."""

    mapping: BrandingThemeMapping
    vat_rate: Decimal
    sale_amount_ex_vat: Decimal
    vat_amount: Decimal
    sale_amount_inc_vat: Decimal

    @property
    def is_zero_rated(self) -> bool:
        return self.vat_rate == 0


@dataclass(frozen=True)
class VATValidation:
    """Outcome of checking stored amounts against a theme's expected rate.

    ``expected_rate`` and ``expected_amount`` are None when the theme could
    not be resolved.
    """

    is_valid: bool
    expected_rate: Decimal | None
    actual_amount: Decimal
    expected_amount: Decimal | None
    discrepancy: Decimal
    message: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.expected_rate is not None


def resolve_vat_rate(
    theme_identifier: str | None,
    themes: BrandingThemeTable,
) -> VATResolution | Unresolved:
    """Map a theme key, platform GUID or display name to its VAT rate."""
    if theme_identifier is None or not theme_identifier.strip():
        return Unresolved(identifier=theme_identifier, reason="No branding theme set")

    mapping = themes.find(theme_identifier)
    if mapping is None:
        return Unresolved(
            identifier=theme_identifier,
            reason=f"Unknown branding theme: {theme_identifier}",
        )
    return VATResolution(rate=mapping.expected_vat_percent, mapping=mapping)


@traced_engine("vat", "1.0", fingerprint_fields=("theme_identifier", "sale_amount_ex_vat"))
def calculate_vat(
    theme_identifier: str | None,
    sale_amount_ex_vat: object,
    themes: BrandingThemeTable,
) -> VATCalculation | Unresolved:
    """Compute VAT and the inc-VAT total for an ex-VAT amount."""
    resolution = resolve_vat_rate(theme_identifier, themes)
    if isinstance(resolution, Unresolved):
        return resolution

    ex_vat = round_currency(sale_amount_ex_vat)
    if resolution.is_zero_rated:
        vat_amount = ZERO
        inc_vat = ex_vat
    else:
        vat_amount = percent_of_currency(ex_vat, resolution.rate)
        inc_vat = add_currency(ex_vat, vat_amount)

    return VATCalculation(
        mapping=resolution.mapping,
        vat_rate=resolution.rate,
        sale_amount_ex_vat=ex_vat,
        vat_amount=vat_amount,
        sale_amount_inc_vat=inc_vat,
    )


@traced_engine(
    "vat_validation",
    "1.0",
    fingerprint_fields=("theme_identifier", "sale_amount_ex_vat", "sale_amount_inc_vat"),
)
def validate_vat(
    theme_identifier: str | None,
    sale_amount_ex_vat: object,
    sale_amount_inc_vat: object,
    themes: BrandingThemeTable,
) -> VATValidation:
    """Check that ``inc - ex`` matches the VAT the theme implies.

    A discrepancy of up to 0.01 is accepted as rounding.
    """
    ex_vat = round_currency(sale_amount_ex_vat)
    inc_vat = round_currency(sale_amount_inc_vat)
    actual = subtract_currency(inc_vat, ex_vat)

    resolution = resolve_vat_rate(theme_identifier, themes)
    if isinstance(resolution, Unresolved):
        return VATValidation(
            is_valid=False,
            expected_rate=None,
            actual_amount=actual,
            expected_amount=None,
            discrepancy=ZERO,
            message=resolution.reason,
        )

    expected = ZERO if resolution.is_zero_rated else percent_of_currency(ex_vat, resolution.rate)
    discrepancy = round_currency(abs(actual - expected))
    is_valid = discrepancy <= ROUNDING_TOLERANCE

    message = None
    if not is_valid:
        message = (
            f"VAT mismatch: Expected £{expected} ({resolution.rate}%) "
            f"but found £{actual}"
        )
        logger.warning(
            "vat_mismatch",
            extra={
                "branding_theme": resolution.mapping.name,
                "expected_vat": expected,
                "actual_vat": actual,
                "discrepancy": discrepancy,
            },
        )

    return VATValidation(
        is_valid=is_valid,
        expected_rate=resolution.rate,
        actual_amount=actual,
        expected_amount=expected,
        discrepancy=discrepancy,
        message=message,
    )
