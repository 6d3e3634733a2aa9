"""
Branding themes -- tax-treatment reference data.

Responsibility:
    An accounting-platform branding theme identifies the invoice template a
    sale is issued under and, implicitly, its VAT treatment. This module holds
    the immutable mapping rows and the lookup table the VAT resolver reads.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O. Rows are built by
    ``salesos_config`` from the YAML configuration set.

Invariants enforced:
    - expected_vat_percent is 0 or 20.
    - Every identifier (stable key, platform GUID, display name) resolves to
      at most one mapping across the whole table.

Failure modes:
    - BrandingThemeTableError at construction if either invariant is broken.
      This is a startup failure, never a per-request one.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal

from salesos_kernel.exceptions import BrandingThemeTableError

ALLOWED_VAT_PERCENTS = frozenset({Decimal("0"), Decimal("20")})


@dataclass(frozen=True)
class BrandingThemeMapping:
    """One branding theme and the tax treatment it implies."""

    key: str  # stable internal identifier, e.g. "uk_domestic"
    theme_id: str  # accounting-platform GUID
    name: str  # display name, e.g. "CN 20% VAT"
    account_code: str
    treatment: str
    explanation: str
    expected_vat_percent: Decimal

    @property
    def is_zero_rated(self) -> bool:
        return self.expected_vat_percent == 0

    @property
    def identifiers(self) -> tuple[str, ...]:
        return (self.key, self.theme_id, self.name)


class BrandingThemeTable:
    """
    Immutable lookup of branding themes by key, GUID or display name.

    Contract:
        ``find()`` returns the single matching mapping or None. Identifiers
        match case-insensitively after trimming.
    """

    def __init__(self, mappings: Iterable[BrandingThemeMapping]):
        self._mappings: tuple[BrandingThemeMapping, ...] = tuple(mappings)
        self._index: dict[str, BrandingThemeMapping] = {}

        for mapping in self._mappings:
            if mapping.expected_vat_percent not in ALLOWED_VAT_PERCENTS:
                raise BrandingThemeTableError(
                    mapping.theme_id,
                    f"expected VAT percent must be 0 or 20, got {mapping.expected_vat_percent}",
                )
            for identifier in mapping.identifiers:
                normalized = self._normalize(identifier)
                if not normalized:
                    raise BrandingThemeTableError(
                        mapping.theme_id, "identifiers cannot be empty"
                    )
                existing = self._index.get(normalized)
                if existing is not None and existing is not mapping:
                    raise BrandingThemeTableError(
                        mapping.theme_id,
                        f"identifier '{identifier}' already used by '{existing.name}'",
                    )
                self._index[normalized] = mapping

    @staticmethod
    def _normalize(identifier: str) -> str:
        return identifier.strip().lower()

    def find(self, identifier: str | None) -> BrandingThemeMapping | None:
        if identifier is None:
            return None
        normalized = self._normalize(identifier)
        if not normalized:
            return None
        return self._index.get(normalized)

    def name_for(self, identifier: str | None) -> str | None:
        """Friendly name for a theme GUID or key."""
        mapping = self.find(identifier)
        return mapping.name if mapping else None

    def __iter__(self) -> Iterator[BrandingThemeMapping]:
        return iter(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)
