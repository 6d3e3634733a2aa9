"""
salesos_services.branding_theme_directory -- Cached platform branding themes.

Responsibility:
    Keep a short-lived per-tenant copy of the accounting platform's branding
    themes so invoice creation can turn a display name into the platform
    GUID without an API call per request.

Architecture position:
    Services -- imperative shell.  ``fetch_themes`` is supplied by the host
    application.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from salesos_kernel.exceptions import BrandingThemeSourceError
from salesos_kernel.logging_config import get_logger
from salesos_services.cache import TTLCache

logger = get_logger("services.branding_theme_directory")

# fetch_themes(tenant_key) -> raw platform records with BrandingThemeID / Name
BrandingThemeFetcher = Callable[[str], Sequence[Mapping[str, Any]]]


@dataclass(frozen=True)
class PlatformBrandingTheme:
    theme_id: str
    name: str
    sort_order: int | None = None


class BrandingThemeDirectory:
    def __init__(
        self,
        fetch_themes: BrandingThemeFetcher,
        cache: TTLCache[str, tuple[PlatformBrandingTheme, ...]],
    ):
        self._fetch_themes = fetch_themes
        self._cache = cache

    def get_themes(self, tenant_key: str) -> tuple[PlatformBrandingTheme, ...]:
        cached = self._cache.get(tenant_key)
        if cached is not None:
            return cached

        try:
            records = self._fetch_themes(tenant_key)
        except Exception as exc:
            logger.error(
                "branding_theme_fetch_failed",
                extra={"tenant_key": tenant_key},
                exc_info=True,
            )
            raise BrandingThemeSourceError(tenant_key, str(exc)) from exc

        themes = tuple(
            PlatformBrandingTheme(
                theme_id=str(record["BrandingThemeID"]),
                name=str(record.get("Name") or ""),
                sort_order=record.get("SortOrder"),
            )
            for record in records
            if record.get("BrandingThemeID")
        )
        self._cache.put(tenant_key, themes)
        logger.info(
            "branding_themes_fetched",
            extra={"tenant_key": tenant_key, "themes": len(themes)},
        )
        return themes

    def get_theme_id(self, tenant_key: str, name: str) -> str | None:
        """Platform GUID of the theme called ``name`` (exact match)."""
        for theme in self.get_themes(tenant_key):
            if theme.name == name:
                return theme.theme_id
        logger.warning(
            "branding_theme_not_found",
            extra={"tenant_key": tenant_key, "theme_name": name},
        )
        return None

    def invalidate(self, tenant_key: str | None = None) -> None:
        if tenant_key is None:
            self._cache.clear()
        else:
            self._cache.invalidate(tenant_key)
