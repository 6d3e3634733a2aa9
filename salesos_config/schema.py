"""
SalesOSConfig schema.

Typed, frozen representation of a configuration set.  YAML documents are
parsed into these types by the loader, checked by the validator, and turned
into kernel/engine objects by the bridges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Tax treatment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BrandingThemeDef:
    """One accounting-platform branding theme and its VAT treatment."""

    key: str
    theme_id: str
    name: str
    account_code: str
    treatment: str
    expected_vat_percent: Decimal
    explanation: str = ""


# ---------------------------------------------------------------------------
# Commission
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommissionBandDef:
    band_type: str
    min_threshold: Decimal
    commission_percent: Decimal
    max_threshold: Decimal | None = None  # None = open-ended


# ---------------------------------------------------------------------------
# Caching and search
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CacheSettings:
    ttl_seconds: int = 600
    sweep_interval_seconds: int = 600
    contact_page_limit: int = 100


# ---------------------------------------------------------------------------
# Implied costs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImpliedCostDef:
    regions: dict[str, tuple[str, ...]] = field(default_factory=dict)
    shipping_costs: dict[str, Decimal] = field(default_factory=dict)
    default_shipping: Decimal = Decimal("130")
    card_fee_percent: Decimal = Decimal("2.5")
    card_fee_flat: Decimal = Decimal("0.30")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SalesOSConfig:
    """A complete, validated configuration set.

    ``checksum`` is the SHA-256 of the canonical JSON form of the source
    document and identifies the exact configuration a result was computed
    under.
    """

    config_id: str
    version: int
    currency: str
    fallback_vat_percent: Decimal
    branding_themes: tuple[BrandingThemeDef, ...]
    commission_bands: tuple[CommissionBandDef, ...] = ()
    cache: CacheSettings = field(default_factory=CacheSettings)
    implied_costs: ImpliedCostDef = field(default_factory=ImpliedCostDef)
    default_search_limit: int = 15
    checksum: str = ""
