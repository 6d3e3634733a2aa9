"""Tests for the branding-theme lookup table."""

from decimal import Decimal

import pytest

from salesos_kernel.domain.branding import BrandingThemeMapping, BrandingThemeTable
from salesos_kernel.exceptions import BrandingThemeTableError, ConfigurationError


def mapping(key="uk", theme_id="guid-1", name="Domestic", vat="20"):
    return BrandingThemeMapping(
        key=key,
        theme_id=theme_id,
        name=name,
        account_code="425",
        treatment="UK Domestic Sale",
        explanation="",
        expected_vat_percent=Decimal(vat),
    )


class TestBrandingThemeTable:
    def test_find_by_any_identifier(self):
        table = BrandingThemeTable([mapping()])

        assert table.find("uk") is table.find("GUID-1") is table.find(" domestic ")
        assert len(table) == 1

    def test_find_missing(self):
        table = BrandingThemeTable([mapping()])

        assert table.find(None) is None
        assert table.find("  ") is None
        assert table.find("export") is None

    def test_name_for(self):
        table = BrandingThemeTable([mapping()])

        assert table.name_for("guid-1") == "Domestic"
        assert table.name_for("nope") is None

    def test_rejects_unsupported_vat_percent(self):
        with pytest.raises(BrandingThemeTableError) as exc_info:
            BrandingThemeTable([mapping(vat="5")])

        assert exc_info.value.code == "INVALID_BRANDING_THEME_TABLE"
        assert exc_info.value.theme_id == "guid-1"

    def test_rejects_identifier_reused_across_themes(self):
        with pytest.raises(BrandingThemeTableError, match="already used"):
            BrandingThemeTable(
                [mapping(), mapping(key="export", theme_id="guid-2", name="DOMESTIC", vat="0")]
            )

    def test_rejects_empty_identifier(self):
        with pytest.raises(ConfigurationError):
            BrandingThemeTable([mapping(name=" ")])

    def test_same_identifier_twice_within_one_theme_is_allowed(self):
        table = BrandingThemeTable([mapping(key="domestic", name="Domestic")])

        assert table.find("domestic").theme_id == "guid-1"

    def test_iterates_in_definition_order(self, themes):
        assert [m.key for m in themes] == ["uk_domestic", "margin_scheme", "export"]
