"""
Configuration Validator (``salesos_config.validator``).

Responsibility
--------------
Validates a parsed ``SalesOSConfig`` before it is handed to callers, so a
malformed static table fails at startup instead of mid-request.

Invariants enforced
-------------------
* Branding themes -- expected VAT percent is 0 or 20; keys, GUIDs and
  names resolve to at most one theme.
* Commission bands -- non-negative thresholds, max above min, percent in
  0..100, no two ranges overlapping.
* Numbers -- fallback VAT percent in 0..100; cache, search and implied-cost
  values non-negative.

Failure modes
-------------
* ``BrandingThemeTableError`` / ``CommissionBandTableError`` for table
  problems, ``ConfigurationError`` for everything else.
"""

from __future__ import annotations

from salesos_config.schema import CommissionBandDef, SalesOSConfig
from salesos_kernel.exceptions import CommissionBandTableError, ConfigurationError


def validate_commission_bands(bands: tuple[CommissionBandDef, ...]) -> None:
    """Raise ``CommissionBandTableError`` on the first malformed band."""
    seen: set[str] = set()
    for band in bands:
        if band.band_type in seen:
            raise CommissionBandTableError(band.band_type, "duplicate band type")
        seen.add(band.band_type)
        if band.min_threshold < 0:
            raise CommissionBandTableError(band.band_type, "min_threshold cannot be negative")
        if band.max_threshold is not None and band.max_threshold <= band.min_threshold:
            raise CommissionBandTableError(
                band.band_type, "max_threshold must be greater than min_threshold"
            )
        if not 0 <= band.commission_percent <= 100:
            raise CommissionBandTableError(
                band.band_type, "commission_percent must be between 0 and 100"
            )

    ordered = sorted(bands, key=lambda b: b.min_threshold)
    for lower, upper in zip(ordered, ordered[1:]):
        if lower.max_threshold is None or lower.max_threshold > upper.min_threshold:
            raise CommissionBandTableError(
                upper.band_type, f"range overlaps band '{lower.band_type}'"
            )


def validate_configuration(config: SalesOSConfig) -> None:
    """Validate a whole configuration set.

    The branding-theme table is checked by building it, which applies the
    same rules the runtime lookup relies on.
    """
    from salesos_config.bridges import build_branding_theme_table

    if not config.branding_themes:
        raise ConfigurationError("At least one branding theme is required", config.config_id)
    build_branding_theme_table(config)

    validate_commission_bands(config.commission_bands)

    if not 0 <= config.fallback_vat_percent <= 100:
        raise ConfigurationError(
            "vat.fallback_vat_percent must be between 0 and 100", config.config_id
        )
    if config.cache.ttl_seconds <= 0:
        raise ConfigurationError("cache.ttl_seconds must be positive", config.config_id)
    if config.cache.sweep_interval_seconds <= 0:
        raise ConfigurationError(
            "cache.sweep_interval_seconds must be positive", config.config_id
        )
    if config.cache.contact_page_limit <= 0:
        raise ConfigurationError("cache.contact_page_limit must be positive", config.config_id)
    if config.default_search_limit <= 0:
        raise ConfigurationError("search.default_limit must be positive", config.config_id)

    costs = config.implied_costs
    for route, cost in costs.shipping_costs.items():
        if cost < 0:
            raise ConfigurationError(
                f"implied_costs.shipping_costs.{route} cannot be negative", config.config_id
            )
    for name in ("default_shipping", "card_fee_percent", "card_fee_flat"):
        if getattr(costs, name) < 0:
            raise ConfigurationError(f"implied_costs.{name} cannot be negative", config.config_id)
