"""
salesos_services.contact_directory -- Cached accounting-platform contacts.

Responsibility:
    Fill a per-tenant cache with every contact on the accounting platform by
    paging through an injected fetcher, normalise each record once into an
    ``ExtendedContact`` (which fixes its buyer/supplier classification), and
    answer buyer/supplier searches from the cached list.

Architecture position:
    Services -- imperative shell.  The HTTP client is NOT part of this
    package: ``fetch_page`` is supplied by the host application.

Invariants enforced:
    - Paging stops at the first empty page or after ``page_limit`` pages.
    - A fetch failure leaves the cache untouched and raises
      ``ContactSourceError``.
    - Searches never trigger re-classification of cached contacts.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from salesos_engines.contact_matching import (
    DEFAULT_SEARCH_LIMIT,
    ExtendedContact,
    ScoredResult,
    normalize_contact,
    search_buyers,
    search_contacts,
    search_suppliers,
)
from salesos_kernel.exceptions import ContactSourceError
from salesos_kernel.logging_config import get_logger
from salesos_services.cache import TTLCache

logger = get_logger("services.contact_directory")

# fetch_page(tenant_key, page_number) -> raw platform contact records
ContactPageFetcher = Callable[[str, int], Sequence[Mapping[str, Any]]]


class ContactDirectory:
    """Read-through contact cache with fuzzy search."""

    def __init__(
        self,
        fetch_page: ContactPageFetcher,
        cache: TTLCache[str, tuple[ExtendedContact, ...]],
        page_limit: int = 100,
        default_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        self._fetch_page = fetch_page
        self._cache = cache
        self._page_limit = page_limit
        self._default_limit = default_limit

    def get_contacts(self, tenant_key: str) -> tuple[ExtendedContact, ...]:
        """All contacts for ``tenant_key``, from cache when fresh."""
        cached = self._cache.get(tenant_key)
        if cached is not None:
            logger.debug(
                "contact_cache_hit",
                extra={
                    "tenant_key": tenant_key,
                    "contacts": len(cached),
                    "age_seconds": self._cache.age_seconds(tenant_key),
                },
            )
            return cached

        contacts = self._fetch_all(tenant_key)
        self._cache.put(tenant_key, contacts)
        return contacts

    def _fetch_all(self, tenant_key: str) -> tuple[ExtendedContact, ...]:
        t0 = time.monotonic()
        contacts: list[ExtendedContact] = []
        page = 1
        while page <= self._page_limit:
            try:
                records = self._fetch_page(tenant_key, page)
            except Exception as exc:
                logger.error(
                    "contact_fetch_failed",
                    extra={"tenant_key": tenant_key, "page": page},
                    exc_info=True,
                )
                raise ContactSourceError(tenant_key, page, str(exc)) from exc

            if not records:
                break
            contacts.extend(normalize_contact(record) for record in records)
            page += 1
        else:
            logger.warning(
                "contact_page_limit_reached",
                extra={"tenant_key": tenant_key, "page_limit": self._page_limit},
            )

        logger.info(
            "contacts_fetched",
            extra={
                "tenant_key": tenant_key,
                "contacts": len(contacts),
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return tuple(contacts)

    def search(self, tenant_key: str, query: str | None) -> list[ScoredResult]:
        return search_contacts(query, self.get_contacts(tenant_key))

    def search_buyers(
        self, tenant_key: str, query: str | None, limit: int | None = None
    ) -> list[ScoredResult]:
        return search_buyers(
            query,
            self.get_contacts(tenant_key),
            self._default_limit if limit is None else limit,
        )

    def search_suppliers(
        self, tenant_key: str, query: str | None, limit: int | None = None
    ) -> list[ScoredResult]:
        return search_suppliers(
            query,
            self.get_contacts(tenant_key),
            self._default_limit if limit is None else limit,
        )

    def invalidate(self, tenant_key: str | None = None) -> None:
        """Drop one tenant's contacts, or every tenant's when None."""
        if tenant_key is None:
            self._cache.clear()
        else:
            self._cache.invalidate(tenant_key)
        logger.info("contact_cache_invalidated", extra={"tenant_key": tenant_key})
