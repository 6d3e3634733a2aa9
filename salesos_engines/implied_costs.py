"""
salesos_engines.implied_costs -- Estimated shipping and card fees for a trade.

Responsibility:
    Estimate the costs a trade will carry before real invoices exist:
    shipping from the worst supplier-to-delivery route among its items and
    card processing fees when the buyer pays by card.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Route costs and fee rates
    are passed in as ``ImpliedCostSettings`` (built from configuration).

Invariants enforced:
    - shipping = max route cost over items (0 for no items); an unknown
      route uses the default cost.
    - card_fees = total_sell * card_fee_percent / 100 + flat fee, only for
      card payments with a positive total; otherwise 0.
    - total = shipping + card_fees.  All values 2 dp.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from salesos_kernel.domain.money import (
    ZERO,
    add_currency,
    multiply_currency,
    percent_of_currency,
    round_currency,
)
from salesos_engines.tracer import traced_engine

OTHER_REGION = "Other"


class PaymentMethod(str, Enum):
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"


@dataclass(frozen=True)
class TradeItem:
    supplier_country: str
    sell_price: Decimal
    quantity: int = 1


@dataclass(frozen=True)
class ImpliedCostSettings:
    """Route costs and card-fee terms.

    ``regions`` maps a lower-case country name to a region code;
    ``shipping_costs`` is keyed ``"<supplier region>_<delivery region>"``.
    """

    regions: Mapping[str, str] = field(default_factory=dict)
    shipping_costs: Mapping[str, Decimal] = field(default_factory=dict)
    default_shipping: Decimal = Decimal("130")
    card_fee_percent: Decimal = Decimal("2.5")
    card_fee_flat: Decimal = Decimal("0.30")

    def region_for(self, country: str | None) -> str:
        if not country:
            return OTHER_REGION
        return self.regions.get(country.strip().lower(), OTHER_REGION)

    def route_cost(self, supplier_country: str | None, delivery_country: str | None) -> Decimal:
        key = f"{self.region_for(supplier_country)}_{self.region_for(delivery_country)}"
        cost = self.shipping_costs.get(key)
        return round_currency(cost if cost else self.default_shipping)


@dataclass(frozen=True)
class ImpliedCosts:
    shipping: Decimal
    card_fees: Decimal
    total: Decimal


@traced_engine(
    "implied_costs",
    "1.0",
    fingerprint_fields=("items", "payment_method", "delivery_country"),
)
def calculate_implied_costs(
    items: Sequence[TradeItem],
    payment_method: PaymentMethod | str,
    delivery_country: str,
    settings: ImpliedCostSettings,
) -> ImpliedCosts:
    shipping = ZERO
    for item in items:
        shipping = max(shipping, settings.route_cost(item.supplier_country, delivery_country))

    card_fees = ZERO
    if PaymentMethod(payment_method) is PaymentMethod.CARD:
        total_sell = add_currency(
            *(multiply_currency(item.sell_price, item.quantity) for item in items)
        )
        if total_sell > 0:
            card_fees = add_currency(
                percent_of_currency(total_sell, settings.card_fee_percent),
                settings.card_fee_flat,
            )

    return ImpliedCosts(
        shipping=shipping,
        card_fees=card_fees,
        total=add_currency(shipping, card_fees),
    )
