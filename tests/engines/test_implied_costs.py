"""Tests for implied shipping and card-fee estimation."""

from decimal import Decimal

from salesos_engines.implied_costs import (
    ImpliedCostSettings,
    PaymentMethod,
    TradeItem,
    calculate_implied_costs,
)


class TestShipping:
    def test_domestic_route(self, implied_cost_settings):
        result = calculate_implied_costs(
            [TradeItem("UK", Decimal("1000"))], PaymentMethod.BANK_TRANSFER, "United Kingdom",
            implied_cost_settings,
        )

        assert result.shipping == Decimal("40.00")
        assert result.card_fees == Decimal("0.00")
        assert result.total == Decimal("40.00")

    def test_most_expensive_route_wins(self, implied_cost_settings):
        items = [TradeItem("France", Decimal("500")), TradeItem("Japan", Decimal("700"))]

        result = calculate_implied_costs(items, "BANK_TRANSFER", "uk", implied_cost_settings)

        assert result.shipping == Decimal("180.00")

    def test_unknown_route_uses_default(self, implied_cost_settings):
        result = calculate_implied_costs(
            [TradeItem("Brazil", Decimal("500"))], PaymentMethod.BANK_TRANSFER, "UK",
            implied_cost_settings,
        )

        assert result.shipping == Decimal("130.00")

    def test_no_items(self, implied_cost_settings):
        result = calculate_implied_costs([], PaymentMethod.CARD, "UK", implied_cost_settings)

        assert result.shipping == Decimal("0.00")
        assert result.card_fees == Decimal("0.00")
        assert result.total == Decimal("0.00")


class TestCardFees:
    def test_card_payment(self, implied_cost_settings):
        items = [TradeItem("UK", Decimal("400"), quantity=2), TradeItem("UK", Decimal("200"))]

        result = calculate_implied_costs(items, PaymentMethod.CARD, "UK", implied_cost_settings)

        # 1000 * 2.5% + 0.30
        assert result.card_fees == Decimal("25.30")
        assert result.total == Decimal("65.30")

    def test_fee_is_rounded(self):
        settings = ImpliedCostSettings()

        result = calculate_implied_costs(
            [TradeItem("UK", Decimal("10.10"))], PaymentMethod.CARD, "UK", settings
        )

        # 10.10 * 2.5% = 0.2525 -> 0.25, + 0.30
        assert result.card_fees == Decimal("0.55")
        assert result.shipping == Decimal("130.00")

    def test_zero_total_has_no_fee(self, implied_cost_settings):
        result = calculate_implied_costs(
            [TradeItem("UK", Decimal("0"))], PaymentMethod.CARD, "UK", implied_cost_settings
        )

        assert result.card_fees == Decimal("0.00")
