"""
Configuration Loader (``salesos_config.loader``).

Responsibility
--------------
Loads a YAML configuration document and parses it into typed
``salesos_config.schema`` dataclass instances.  Runtime callers go through
``salesos_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Monetary and percentage values are parsed to ``Decimal`` through their
  string form, never through binary floats.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys or unparseable numbers -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from salesos_config.schema import (
    BrandingThemeDef,
    CacheSettings,
    CommissionBandDef,
    ImpliedCostDef,
    SalesOSConfig,
)
from salesos_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, field_name: str) -> Decimal:
    """Parse a YAML scalar into a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise ConfigurationError(f"{field_name} must be a number, got {value!r}")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigurationError(f"{field_name} must be a number, got {value!r}") from None
    if not result.is_finite():
        raise ConfigurationError(f"{field_name} must be finite, got {value!r}")
    return result


def _require(data: dict[str, Any], key: str, context: str) -> Any:
    if key not in data or data[key] is None:
        raise ConfigurationError(f"{context}: missing required key '{key}'")
    return data[key]


def parse_branding_theme(data: dict[str, Any]) -> BrandingThemeDef:
    context = f"branding theme {data.get('key') or data.get('name') or '?'}"
    return BrandingThemeDef(
        key=str(_require(data, "key", context)),
        theme_id=str(_require(data, "theme_id", context)),
        name=str(_require(data, "name", context)),
        account_code=str(_require(data, "account_code", context)),
        treatment=str(_require(data, "treatment", context)),
        expected_vat_percent=parse_decimal(
            _require(data, "expected_vat_percent", context),
            f"{context}.expected_vat_percent",
        ),
        explanation=str(data.get("explanation") or ""),
    )


def parse_commission_band(data: dict[str, Any]) -> CommissionBandDef:
    context = f"commission band {data.get('band_type') or '?'}"
    max_threshold = data.get("max_threshold")
    return CommissionBandDef(
        band_type=str(_require(data, "band_type", context)),
        min_threshold=parse_decimal(
            _require(data, "min_threshold", context), f"{context}.min_threshold"
        ),
        commission_percent=parse_decimal(
            _require(data, "commission_percent", context), f"{context}.commission_percent"
        ),
        max_threshold=(
            parse_decimal(max_threshold, f"{context}.max_threshold")
            if max_threshold is not None
            else None
        ),
    )


def parse_cache_settings(data: dict[str, Any]) -> CacheSettings:
    defaults = CacheSettings()
    return CacheSettings(
        ttl_seconds=int(data.get("ttl_seconds", defaults.ttl_seconds)),
        sweep_interval_seconds=int(
            data.get("sweep_interval_seconds", defaults.sweep_interval_seconds)
        ),
        contact_page_limit=int(data.get("contact_page_limit", defaults.contact_page_limit)),
    )


def parse_implied_costs(data: dict[str, Any]) -> ImpliedCostDef:
    defaults = ImpliedCostDef()
    regions = {
        str(region): tuple(str(country).strip().lower() for country in countries or ())
        for region, countries in (data.get("regions") or {}).items()
    }
    shipping_costs = {
        str(route): parse_decimal(cost, f"implied_costs.shipping_costs.{route}")
        for route, cost in (data.get("shipping_costs") or {}).items()
    }
    return ImpliedCostDef(
        regions=regions,
        shipping_costs=shipping_costs,
        default_shipping=parse_decimal(
            data.get("default_shipping", defaults.default_shipping),
            "implied_costs.default_shipping",
        ),
        card_fee_percent=parse_decimal(
            data.get("card_fee_percent", defaults.card_fee_percent),
            "implied_costs.card_fee_percent",
        ),
        card_fee_flat=parse_decimal(
            data.get("card_fee_flat", defaults.card_fee_flat),
            "implied_costs.card_fee_flat",
        ),
    )


def parse_config(data: dict[str, Any]) -> SalesOSConfig:
    """Parse a whole configuration document.  Does not validate it."""
    vat = data.get("vat") or {}
    search = data.get("search") or {}
    return SalesOSConfig(
        config_id=str(_require(data, "config_id", "configuration")),
        version=int(data.get("version", 1)),
        currency=str(data.get("currency", "GBP")),
        fallback_vat_percent=parse_decimal(
            vat.get("fallback_vat_percent", 20), "vat.fallback_vat_percent"
        ),
        branding_themes=tuple(
            parse_branding_theme(t) for t in data.get("branding_themes") or ()
        ),
        commission_bands=tuple(
            parse_commission_band(b) for b in data.get("commission_bands") or ()
        ),
        cache=parse_cache_settings(data.get("cache") or {}),
        implied_costs=parse_implied_costs(data.get("implied_costs") or {}),
        default_search_limit=int(search.get("default_limit", 15)),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> SalesOSConfig:
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
