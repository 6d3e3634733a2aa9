"""
Config -> Kernel/Engine Bridges.

Functions that convert ``SalesOSConfig`` sections into the objects the
kernel and engines consume.  They live in salesos_config (the producer)
because the kernel and engines must never import salesos_config.

Usage:
    from salesos_config import get_active_config
    from salesos_config.bridges import build_branding_theme_table

    config = get_active_config()
    themes = build_branding_theme_table(config)
"""

from __future__ import annotations

from salesos_config.schema import SalesOSConfig
from salesos_engines.commission import CommissionBand
from salesos_engines.implied_costs import ImpliedCostSettings
from salesos_kernel.domain.branding import BrandingThemeMapping, BrandingThemeTable


def build_branding_theme_table(config: SalesOSConfig) -> BrandingThemeTable:
    """Build the VAT lookup table.

    Raises:
        BrandingThemeTableError: duplicate identifiers or a VAT percent
            other than 0 or 20.
    """
    return BrandingThemeTable(
        BrandingThemeMapping(
            key=theme.key,
            theme_id=theme.theme_id,
            name=theme.name,
            account_code=theme.account_code,
            treatment=theme.treatment,
            explanation=theme.explanation,
            expected_vat_percent=theme.expected_vat_percent,
        )
        for theme in config.branding_themes
    )


def build_commission_bands(config: SalesOSConfig) -> tuple[CommissionBand, ...]:
    """Commission bands ordered by ascending ``min_threshold``."""
    bands = (
        CommissionBand(
            band_type=band.band_type,
            min_threshold=band.min_threshold,
            max_threshold=band.max_threshold,
            commission_percent=band.commission_percent,
        )
        for band in config.commission_bands
    )
    return tuple(sorted(bands, key=lambda b: b.min_threshold))


def build_implied_cost_settings(config: SalesOSConfig) -> ImpliedCostSettings:
    costs = config.implied_costs
    regions = {
        country: region
        for region, countries in costs.regions.items()
        for country in countries
    }
    return ImpliedCostSettings(
        regions=regions,
        shipping_costs=dict(costs.shipping_costs),
        default_shipping=costs.default_shipping,
        card_fee_percent=costs.card_fee_percent,
        card_fee_flat=costs.card_fee_flat,
    )
