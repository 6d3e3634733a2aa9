"""
salesos_engines.commission -- Commission amount and introducer/shopper split.

Responsibility:
    Turn a commissionable margin into a commission amount using a
    priority-ordered rate source, then split it between an introducer and
    the shopper.  Also selects the commission band that applies to a margin.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import salesos_kernel/domain types and logging.

Invariants enforced:
    - Rate source priority: admin override, then commission band.  With
      neither, the result is zeroed and carries an error.
    - commission_amount = round2(margin * rate / 100).
    - introducer_split = round2(commission_amount * introducer% / 100) and
      shopper_split = commission_amount - introducer_split, so the two
      always sum to commission_amount.
    - An override outside 0-100 is honoured and reported in ``warnings``.

Failure modes:
    - None raised.  Invalid margins and missing rates are returned in
      ``errors`` with zeroed amounts.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from salesos_kernel.domain.money import (
    ZERO,
    is_numeric,
    percent_of_currency,
    round_currency,
    subtract_currency,
    to_decimal,
)
from salesos_kernel.logging_config import get_logger
from salesos_engines.tracer import traced_engine

logger = get_logger("engines.commission")

ERROR_INVALID_MARGIN = "Commissionable margin must be a valid number"
ERROR_NEGATIVE_MARGIN = "Commissionable margin cannot be negative"
ERROR_NO_RATE = (
    "No commission percentage available "
    "(no commission band assigned and no admin override)"
)


class RateSource(str, Enum):
    """Where the commission percentage came from."""

    OVERRIDE = "override"
    BAND = "band"


@dataclass(frozen=True)
class CommissionBand:
    """A margin range and the default commission percent for it.

    ``max_threshold`` of None means the band is open-ended.
    """

    band_type: str
    min_threshold: Decimal
    max_threshold: Decimal | None
    commission_percent: Decimal

    def contains(self, margin: Decimal) -> bool:
        if margin < self.min_threshold:
            return False
        return self.max_threshold is None or margin < self.max_threshold


@dataclass(frozen=True)
class CommissionInput:
    commissionable_margin: Any
    commission_band_percent: Decimal | None = None
    introducer_percent: Decimal | None = None
    admin_override_percent: Decimal | None = None
    admin_override_notes: str | None = None


@dataclass(frozen=True)
class CommissionResult:
    commission_amount: Decimal = ZERO
    introducer_split: Decimal = ZERO
    shopper_split: Decimal = ZERO
    introducer_share_percent: Decimal = ZERO
    rate_source: RateSource | None = None
    commission_percent: Decimal | None = None
    admin_override_percent: Decimal | None = None
    admin_override_notes: str | None = None
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_ok(self) -> bool:
        return not self.errors

    def to_record(self) -> dict[str, Any]:
        """Flat column mapping for the ``sales`` table."""
        return {
            "commission_amount": self.commission_amount,
            "introducer_split": self.introducer_split,
            "shopper_split": self.shopper_split,
            "introducer_share_percent": self.introducer_share_percent,
            "commission_rate_source": self.rate_source.value if self.rate_source else None,
            "admin_override_commission_percent": self.admin_override_percent,
            "admin_override_notes": self.admin_override_notes,
        }


def select_commission_band(
    margin: Any,
    bands: Iterable[CommissionBand],
) -> CommissionBand | None:
    """First band, by ascending ``min_threshold``, whose range holds ``margin``."""
    value = round_currency(margin)
    for band in sorted(bands, key=lambda b: b.min_threshold):
        if band.contains(value):
            return band
    return None


def _out_of_range(percent: Decimal) -> bool:
    return percent < 0 or percent > 100


@traced_engine(
    "commission",
    "1.0",
    fingerprint_fields=("commission_input",),
)
def calculate_commission(commission_input: CommissionInput) -> CommissionResult:
    """Compute commission and its introducer/shopper split.

    Returns:
        CommissionResult.  ``errors`` is non-empty (and all amounts zero)
        when the margin is invalid or no rate is available.
    """
    override_notes = commission_input.admin_override_notes or None
    raw_margin = commission_input.commissionable_margin

    if not is_numeric(raw_margin):
        logger.warning("commission_invalid_margin", extra={"margin": str(raw_margin)})
        return CommissionResult(errors=(ERROR_INVALID_MARGIN,))

    margin = round_currency(raw_margin)
    if margin < 0:
        logger.warning("commission_negative_margin", extra={"margin": margin})
        return CommissionResult(errors=(ERROR_NEGATIVE_MARGIN,))

    warnings: list[str] = []
    override = commission_input.admin_override_percent
    band_percent = commission_input.commission_band_percent

    if override is not None:
        percent = to_decimal(override)
        source = RateSource.OVERRIDE
        if _out_of_range(percent):
            warnings.append(f"Admin override of {percent}% is outside 0-100%")
    elif band_percent is not None:
        percent = to_decimal(band_percent)
        source = RateSource.BAND
    else:
        logger.warning("commission_rate_missing", extra={"margin": margin})
        return CommissionResult(
            admin_override_notes=override_notes,
            errors=(ERROR_NO_RATE,),
        )

    amount = percent_of_currency(margin, percent)

    introducer_percent = ZERO
    introducer_split = ZERO
    if commission_input.introducer_percent is not None:
        introducer_percent = to_decimal(commission_input.introducer_percent)
        if _out_of_range(introducer_percent):
            warnings.append(f"Introducer share of {introducer_percent}% is outside 0-100%")
        introducer_split = percent_of_currency(amount, introducer_percent)
    shopper_split = subtract_currency(amount, introducer_split)

    logger.info(
        "commission_calculated",
        extra={
            "rate_source": source.value,
            "commission_percent": percent,
            "commissionable_margin": margin,
            "commission_amount": amount,
            "introducer_split": introducer_split,
            "shopper_split": shopper_split,
        },
    )

    return CommissionResult(
        commission_amount=amount,
        introducer_split=introducer_split,
        shopper_split=shopper_split,
        introducer_share_percent=introducer_percent,
        rate_source=source,
        commission_percent=percent,
        admin_override_percent=to_decimal(override) if override is not None else None,
        admin_override_notes=override_notes if override is not None else None,
        errors=(),
        warnings=tuple(warnings),
    )
