"""
Tests for the economics calculator.

Covers:
- normalize_economics_input(): coercion of blanks, strings, junk and
  negative values
- compute_economics(): VAT split by theme, gross vs commissionable margin,
  percentages, the legacy VAT fallback for unresolved themes
- Margin helpers and the flat column record
"""

from decimal import Decimal

import pytest

from salesos_engines.economics import (
    SaleEconomicsInput,
    calculate_commissionable_margin,
    calculate_ex_vat_with_rate,
    calculate_gross_margin,
    calculate_margin_percent,
    calculate_margins,
    compute_economics,
    normalize_economics_input,
)
from salesos_engines.vat import Unresolved, VATResolution
from tests.conftest import EXPORT_ID, MARGIN_SCHEME_ID, UK_DOMESTIC_ID


def economics_for(themes, **payload):
    return compute_economics(normalize_economics_input(payload), themes)


class TestNormalizeEconomicsInput:
    def test_blank_and_missing_values_become_zero(self):
        inputs = normalize_economics_input(
            {"sale_amount_inc_vat": "1200", "buy_price": "", "card_fees": None}
        )

        assert inputs.sale_amount_inc_vat == Decimal("1200.00")
        assert inputs.buy_price == Decimal("0.00")
        assert inputs.card_fees == Decimal("0.00")
        assert inputs.shipping_cost == Decimal("0.00")
        assert inputs.warnings == ()

    def test_thousands_separators_are_accepted(self):
        inputs = normalize_economics_input({"sale_amount_inc_vat": "1,200.50"})

        assert inputs.sale_amount_inc_vat == Decimal("1200.50")
        assert inputs.warnings == ()

    def test_non_numeric_value_is_zeroed_with_warning(self):
        inputs = normalize_economics_input({"sale_amount_inc_vat": 100, "buy_price": "abc"})

        assert inputs.buy_price == Decimal("0.00")
        assert inputs.warnings == ("buy_price is not a number; treated as 0",)

    def test_negative_value_is_zeroed_with_warning(self):
        inputs = normalize_economics_input({"sale_amount_inc_vat": 100, "shipping_cost": "-5"})

        assert inputs.shipping_cost == Decimal("0.00")
        assert inputs.warnings == ("shipping_cost cannot be negative; treated as 0",)

    def test_floats_do_not_leak_binary_noise(self):
        inputs = normalize_economics_input({"sale_amount_inc_vat": 0.1 + 0.2})

        assert inputs.sale_amount_inc_vat == Decimal("0.30")

    def test_branding_theme_is_trimmed(self):
        assert normalize_economics_input({"branding_theme": "  export "}).branding_theme == "export"
        assert normalize_economics_input({"branding_theme": "   "}).branding_theme is None


class TestComputeEconomics:
    def test_standard_rated_sale(self, themes):
        result = economics_for(
            themes, sale_amount_inc_vat=1200, buy_price=500, branding_theme=UK_DOMESTIC_ID
        )

        assert result.sale_amount_ex_vat == Decimal("1000.00")
        assert result.vat_amount == Decimal("200.00")
        assert result.gross_margin == Decimal("500.00")
        assert result.vat_rate == Decimal("20")
        assert not result.vat_assumed
        assert isinstance(result.vat_resolution, VATResolution)

    @pytest.mark.parametrize("theme", [EXPORT_ID, MARGIN_SCHEME_ID])
    def test_zero_rated_sale(self, themes, theme):
        result = economics_for(themes, sale_amount_inc_vat=1200, buy_price=500, branding_theme=theme)

        assert result.sale_amount_ex_vat == Decimal("1200.00")
        assert result.vat_amount == Decimal("0.00")
        assert result.gross_margin == Decimal("700.00")
        assert result.warnings == ()

    def test_each_step_is_rounded(self, themes):
        result = economics_for(themes, sale_amount_inc_vat=100, branding_theme="uk_domestic")

        assert result.sale_amount_ex_vat == Decimal("83.33")
        assert result.vat_amount == Decimal("16.67")

    def test_gross_margin_excludes_deductions(self, themes):
        result = economics_for(
            themes,
            sale_amount_inc_vat=1200,
            buy_price=500,
            shipping_cost=50,
            card_fees=20,
            direct_costs=10,
            introducer_commission=20,
            branding_theme=UK_DOMESTIC_ID,
        )

        assert result.gross_margin == Decimal("500.00")
        assert result.commissionable_margin == Decimal("400.00")
        assert result.gross_margin_percent == Decimal("50.00")
        assert result.commissionable_margin_percent == Decimal("40.00")

    def test_zero_sale_amount_gives_zero_percentages(self, themes):
        result = economics_for(themes, sale_amount_inc_vat=0, buy_price=100, branding_theme=EXPORT_ID)

        assert result.gross_margin == Decimal("-100.00")
        assert result.gross_margin_percent == Decimal("0.00")
        assert result.commissionable_margin_percent == Decimal("0.00")

    def test_unknown_theme_uses_flagged_fallback(self, themes, captured_logs):
        result = economics_for(
            themes, sale_amount_inc_vat=1200, buy_price=500, branding_theme="Mystery Theme"
        )

        assert result.vat_assumed
        assert result.sale_amount_ex_vat == Decimal("1000.00")
        assert isinstance(result.vat_resolution, Unresolved)
        assert result.warnings == (
            "Unknown branding theme: Mystery Theme; VAT assumed at 20% (legacy fallback)",
        )
        assumed = [r for r in captured_logs() if r["message"] == "vat_rate_assumed"]
        assert len(assumed) == 1
        assert assumed[0]["branding_theme"] == "Mystery Theme"
        assert assumed[0]["assumed_vat_percent"] == "20"

    def test_missing_theme_uses_flagged_fallback(self, themes):
        result = economics_for(themes, sale_amount_inc_vat=1200, buy_price=500)

        assert result.vat_assumed
        assert result.warnings[0].startswith("No branding theme set; VAT assumed at 20%")

    def test_fallback_rate_is_configurable(self, themes):
        inputs = SaleEconomicsInput(sale_amount_inc_vat=Decimal("1200"), buy_price=Decimal("0"))

        result = compute_economics(inputs, themes, fallback_vat_percent=Decimal("0"))

        assert result.vat_assumed
        assert result.sale_amount_ex_vat == Decimal("1200.00")

    def test_input_warnings_are_carried(self, themes):
        result = economics_for(
            themes, sale_amount_inc_vat=1200, buy_price=-1, branding_theme=UK_DOMESTIC_ID
        )

        assert result.buy_price == Decimal("0.00")
        assert result.warnings == ("buy_price cannot be negative; treated as 0",)

    def test_emits_engine_trace(self, themes, captured_logs):
        economics_for(themes, sale_amount_inc_vat=1200, branding_theme=UK_DOMESTIC_ID)

        traces = [r for r in captured_logs() if r["message"] == "SALESOS_ENGINE_TRACE"]
        assert any(t["engine_name"] == "economics" for t in traces)

    def test_to_record_has_snapshot_columns(self, themes):
        result = economics_for(
            themes, sale_amount_inc_vat=1200, buy_price=500, branding_theme=UK_DOMESTIC_ID
        )

        record = result.to_record()

        assert record["sale_amount_ex_vat"] == Decimal("1000.00")
        assert record["vat_amount"] == Decimal("200.00")
        assert record["commissionable_margin"] == Decimal("500.00")
        assert record["vat_assumed"] is False
        assert "vat_rate" not in record


class TestMarginHelpers:
    def test_ex_vat_with_rate(self):
        assert calculate_ex_vat_with_rate("1200", 20) == Decimal("1000.00")
        assert calculate_ex_vat_with_rate("1200", 0) == Decimal("1200.00")

    def test_gross_margin(self):
        assert calculate_gross_margin("1000", "750.50") == Decimal("249.50")

    def test_commissionable_margin(self):
        assert calculate_commissionable_margin("500", 10, "5.25", 0, "4.75") == Decimal("480.00")

    def test_margin_percent(self):
        assert calculate_margin_percent("1", "3") == Decimal("33.33")
        assert calculate_margin_percent("100", 0) == Decimal("0.00")

    def test_calculate_margins_breakdown(self):
        result = calculate_margins(
            {
                "sale_amount_ex_vat": "2000",
                "buy_price": "1200",
                "shipping_cost": "40",
                "card_fees": "50.30",
                "direct_costs": "9.70",
            }
        )

        assert result.gross_margin == Decimal("800.00")
        assert result.commissionable_margin == Decimal("700.00")
        assert result.breakdown.total_deductions == Decimal("100.00")
        assert result.breakdown.introducer_commission == Decimal("0.00")
