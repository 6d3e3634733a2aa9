"""
salesos_engines.economics -- Sale economics: VAT split, margins, percentages.

Responsibility:
    Derive ex-VAT amount, VAT amount, gross margin, commissionable margin and
    margin percentages from the raw inputs of a sale.  ``normalize_economics_input``
    is the single coercion boundary between loosely typed payloads and the
    typed ``SaleEconomicsInput`` the arithmetic works on.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import salesos_kernel/domain types, logging, and sibling engines.

Invariants enforced:
    - Step order is fixed and every step is rounded to 2 dp before feeding
      the next: resolve rate, ex-VAT, VAT, gross margin, commissionable
      margin, percentages.
    - gross_margin = sale_amount_ex_vat - buy_price, nothing else.
    - commissionable_margin = gross_margin - (shipping + card fees +
      direct costs + introducer commission).
    - A zero rate yields ex-VAT == inc-VAT and zero VAT; a violation beyond
      0.01 is flagged in ``warnings``.
    - An unresolved branding theme falls back to the configured legacy rate
      only with ``vat_assumed=True``, a warning, and a ``vat_rate_assumed``
      log record.

Failure modes:
    - None raised.  Non-numeric inputs become zero; negative inputs become
      zero with a warning.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from salesos_kernel.domain.branding import BrandingThemeTable
from salesos_kernel.domain.money import (
    HUNDRED,
    ROUNDING_TOLERANCE,
    ZERO,
    add_currency,
    divide_currency,
    is_numeric,
    round_currency,
    subtract_currency,
    to_decimal,
)
from salesos_kernel.logging_config import get_logger
from salesos_engines.tracer import traced_engine
from salesos_engines.vat import Unresolved, VATResolution, resolve_vat_rate

logger = get_logger("engines.economics")

LEGACY_FALLBACK_VAT_PERCENT = Decimal("20")

_AMOUNT_FIELDS = (
    "sale_amount_inc_vat",
    "buy_price",
    "card_fees",
    "shipping_cost",
    "direct_costs",
    "introducer_commission",
)


@dataclass(frozen=True)
class SaleEconomicsInput:
    """Typed, normalised inputs to the economics calculation."""

    sale_amount_inc_vat: Decimal
    buy_price: Decimal
    card_fees: Decimal = ZERO
    shipping_cost: Decimal = ZERO
    direct_costs: Decimal = ZERO
    introducer_commission: Decimal = ZERO
    branding_theme: str | None = None
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class SaleEconomics:
    """Derived economics for one sale."""

    sale_amount_inc_vat: Decimal
    sale_amount_ex_vat: Decimal
    vat_amount: Decimal
    buy_price: Decimal
    card_fees: Decimal
    shipping_cost: Decimal
    direct_costs: Decimal
    introducer_commission: Decimal
    gross_margin: Decimal
    commissionable_margin: Decimal
    gross_margin_percent: Decimal
    commissionable_margin_percent: Decimal
    vat_rate: Decimal
    vat_assumed: bool = False
    vat_resolution: VATResolution | Unresolved | None = None
    warnings: tuple[str, ...] = ()

    def to_record(self) -> dict[str, Any]:
        """Flat column mapping for the ``sales`` table."""
        return {
            "sale_amount_inc_vat": self.sale_amount_inc_vat,
            "sale_amount_ex_vat": self.sale_amount_ex_vat,
            "vat_amount": self.vat_amount,
            "buy_price": self.buy_price,
            "card_fees": self.card_fees,
            "shipping_cost": self.shipping_cost,
            "direct_costs": self.direct_costs,
            "introducer_commission": self.introducer_commission,
            "gross_margin": self.gross_margin,
            "commissionable_margin": self.commissionable_margin,
            "gross_margin_percent": self.gross_margin_percent,
            "commissionable_margin_percent": self.commissionable_margin_percent,
            "vat_assumed": self.vat_assumed,
        }


@dataclass(frozen=True)
class MarginBreakdown:
    sale_amount_ex_vat: Decimal
    buy_price: Decimal
    shipping_cost: Decimal
    card_fees: Decimal
    direct_costs: Decimal
    introducer_commission: Decimal
    total_deductions: Decimal


@dataclass(frozen=True)
class MarginResult:
    gross_margin: Decimal
    commissionable_margin: Decimal
    breakdown: MarginBreakdown


def normalize_economics_input(payload: Mapping[str, Any]) -> SaleEconomicsInput:
    """Coerce a raw payload into ``SaleEconomicsInput``.

    Non-numeric values become zero.  Negative amounts are not meaningful for
    any field and become zero as well; both cases are reported in
    ``warnings``.
    """
    warnings: list[str] = []
    amounts: dict[str, Decimal] = {}

    for name in _AMOUNT_FIELDS:
        raw = payload.get(name)
        if raw is not None and raw != "" and not is_numeric(raw):
            warnings.append(f"{name} is not a number; treated as 0")
        value = round_currency(raw)
        if value < 0:
            warnings.append(f"{name} cannot be negative; treated as 0")
            value = ZERO
        amounts[name] = value

    theme = payload.get("branding_theme")
    if theme is not None:
        theme = str(theme).strip() or None

    return SaleEconomicsInput(branding_theme=theme, warnings=tuple(warnings), **amounts)


def calculate_ex_vat_with_rate(amount_inc_vat: Any, vat_percent: Any) -> Decimal:
    """Ex-VAT amount for an inc-VAT amount at ``vat_percent`` (0 or 20)."""
    amount = round_currency(amount_inc_vat)
    rate = to_decimal(vat_percent)
    if rate == 0:
        return amount
    return divide_currency(amount, 1 + rate / HUNDRED)


def calculate_gross_margin(sale_amount_ex_vat: Any, buy_price: Any) -> Decimal:
    """Sale ex VAT minus buy price.  No other deduction belongs here."""
    return subtract_currency(round_currency(sale_amount_ex_vat), round_currency(buy_price))


def calculate_commissionable_margin(
    gross_margin: Any,
    shipping_cost: Any = 0,
    card_fees: Any = 0,
    direct_costs: Any = 0,
    introducer_commission: Any = 0,
) -> Decimal:
    deductions = add_currency(
        round_currency(shipping_cost),
        round_currency(card_fees),
        round_currency(direct_costs),
        round_currency(introducer_commission),
    )
    return subtract_currency(round_currency(gross_margin), deductions)


def calculate_margin_percent(margin: Any, sale_amount_ex_vat: Any) -> Decimal:
    """``margin / sale * 100`` rounded, or 0 when the sale amount is 0."""
    sale = round_currency(sale_amount_ex_vat)
    if sale == 0:
        return ZERO
    return round_currency(round_currency(margin) / sale * HUNDRED)


def calculate_margins(inputs: Mapping[str, Any]) -> MarginResult:
    """Gross and commissionable margin with a deduction breakdown.

    ``inputs`` uses the same keys as the economics payload but takes
    ``sale_amount_ex_vat`` directly instead of an inc-VAT amount.
    """
    sale = round_currency(inputs.get("sale_amount_ex_vat"))
    buy = round_currency(inputs.get("buy_price"))
    shipping = round_currency(inputs.get("shipping_cost"))
    card = round_currency(inputs.get("card_fees"))
    direct = round_currency(inputs.get("direct_costs"))
    introducer = round_currency(inputs.get("introducer_commission"))

    gross = subtract_currency(sale, buy)
    total_deductions = add_currency(shipping, card, direct, introducer)

    return MarginResult(
        gross_margin=gross,
        commissionable_margin=subtract_currency(gross, total_deductions),
        breakdown=MarginBreakdown(
            sale_amount_ex_vat=sale,
            buy_price=buy,
            shipping_cost=shipping,
            card_fees=card,
            direct_costs=direct,
            introducer_commission=introducer,
            total_deductions=total_deductions,
        ),
    )


@traced_engine("economics", "1.0", fingerprint_fields=("inputs", "fallback_vat_percent"))
def compute_economics(
    inputs: SaleEconomicsInput,
    themes: BrandingThemeTable,
    fallback_vat_percent: Decimal = LEGACY_FALLBACK_VAT_PERCENT,
) -> SaleEconomics:
    """Compute the full economics of a sale.

    Args:
        inputs: Normalised inputs (see ``normalize_economics_input``).
        themes: Branding-theme table used to resolve the VAT rate.
        fallback_vat_percent: Legacy rate applied when the theme does not
            resolve.  The result is marked ``vat_assumed``.

    Returns:
        SaleEconomics.  Never raises.
    """
    warnings = list(inputs.warnings)

    resolution = resolve_vat_rate(inputs.branding_theme, themes)
    if isinstance(resolution, VATResolution):
        vat_rate = resolution.rate
        vat_assumed = False
    else:
        vat_rate = to_decimal(fallback_vat_percent)
        vat_assumed = True
        warnings.append(
            f"{resolution.reason}; VAT assumed at {vat_rate}% (legacy fallback)"
        )
        logger.warning(
            "vat_rate_assumed",
            extra={
                "branding_theme": inputs.branding_theme,
                "assumed_vat_percent": vat_rate,
                "reason": resolution.reason,
            },
        )

    inc_vat = round_currency(inputs.sale_amount_inc_vat)
    ex_vat = calculate_ex_vat_with_rate(inc_vat, vat_rate)
    vat_amount = subtract_currency(inc_vat, ex_vat)
    gross = calculate_gross_margin(ex_vat, inputs.buy_price)
    commissionable = calculate_commissionable_margin(
        gross,
        inputs.shipping_cost,
        inputs.card_fees,
        inputs.direct_costs,
        inputs.introducer_commission,
    )

    if vat_rate == 0 and abs(vat_amount) > ROUNDING_TOLERANCE:
        warnings.append(f"Zero-rated sale has non-zero VAT of {vat_amount}")
        logger.error(
            "zero_rated_vat_nonzero",
            extra={"branding_theme": inputs.branding_theme, "vat_amount": vat_amount},
        )

    return SaleEconomics(
        sale_amount_inc_vat=inc_vat,
        sale_amount_ex_vat=ex_vat,
        vat_amount=vat_amount,
        buy_price=round_currency(inputs.buy_price),
        card_fees=round_currency(inputs.card_fees),
        shipping_cost=round_currency(inputs.shipping_cost),
        direct_costs=round_currency(inputs.direct_costs),
        introducer_commission=round_currency(inputs.introducer_commission),
        gross_margin=gross,
        commissionable_margin=commissionable,
        gross_margin_percent=calculate_margin_percent(gross, ex_vat),
        commissionable_margin_percent=calculate_margin_percent(commissionable, ex_vat),
        vat_rate=vat_rate,
        vat_assumed=vat_assumed,
        vat_resolution=resolution,
        warnings=tuple(warnings),
    )
