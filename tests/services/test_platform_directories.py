"""
Tests for ContactDirectory and BrandingThemeDirectory.

Covers:
- Paging through the contact feed, page limit, fetch failures
- Cache reuse, expiry and invalidation
- Buyer / supplier searches over cached contacts
- Branding theme lookup by display name
"""

import pytest

from salesos_kernel.exceptions import BrandingThemeSourceError, ContactSourceError
from salesos_services.branding_theme_directory import BrandingThemeDirectory
from salesos_services.cache import TTLCache
from salesos_services.contact_directory import ContactDirectory

PAGES = {
    1: [
        {"ContactID": "c-1", "Name": "Gallery Rossi", "IsCustomer": True},
        {"ContactID": "c-2", "Name": "Gallery Supplies", "Purchases": {"DefaultAccountCode": "310"}},
    ],
    2: [
        {"ContactID": "c-3", "Name": "Gallery Both", "IsCustomer": True, "IsSupplier": True},
    ],
}


class FakeContactFeed:
    def __init__(self, pages=None, fail_on_page=None):
        self.pages = PAGES if pages is None else pages
        self.fail_on_page = fail_on_page
        self.calls = []

    def __call__(self, tenant_key, page):
        self.calls.append((tenant_key, page))
        if page == self.fail_on_page:
            raise TimeoutError("platform timed out")
        return self.pages.get(page, [])


@pytest.fixture
def contact_cache(deterministic_clock):
    return TTLCache(ttl_seconds=600, clock=deterministic_clock, name="contacts")


class TestContactDirectory:
    def test_pages_until_empty(self, contact_cache):
        feed = FakeContactFeed()
        directory = ContactDirectory(feed, contact_cache)

        contacts = directory.get_contacts("tenant-a")

        assert [c.contact_id for c in contacts] == ["c-1", "c-2", "c-3"]
        assert feed.calls == [("tenant-a", 1), ("tenant-a", 2), ("tenant-a", 3)]

    def test_classification_is_computed_when_cached(self, contact_cache):
        contacts = ContactDirectory(FakeContactFeed(), contact_cache).get_contacts("tenant-a")

        assert [(c.buyer, c.supplier) for c in contacts] == [
            (True, False),
            (False, True),
            (True, True),
        ]

    def test_cache_is_reused_until_expiry(self, contact_cache, deterministic_clock):
        feed = FakeContactFeed()
        directory = ContactDirectory(feed, contact_cache)

        directory.get_contacts("tenant-a")
        directory.get_contacts("tenant-a")
        assert len(feed.calls) == 3

        deterministic_clock.advance(600)
        directory.get_contacts("tenant-a")
        assert len(feed.calls) == 6

    def test_tenants_are_cached_separately(self, contact_cache):
        feed = FakeContactFeed()
        directory = ContactDirectory(feed, contact_cache)

        directory.get_contacts("tenant-a")
        directory.get_contacts("tenant-b")

        assert {tenant for tenant, _ in feed.calls} == {"tenant-a", "tenant-b"}

    def test_page_limit(self, contact_cache, captured_logs):
        endless = {page: [{"ContactID": f"c-{page}", "Name": "X"}] for page in range(1, 10)}
        feed = FakeContactFeed(pages=endless)

        contacts = ContactDirectory(feed, contact_cache, page_limit=3).get_contacts("tenant-a")

        assert len(contacts) == 3
        assert len(feed.calls) == 3
        assert any(r["message"] == "contact_page_limit_reached" for r in captured_logs())

    def test_fetch_failure_raises_and_leaves_cache_empty(self, contact_cache):
        directory = ContactDirectory(FakeContactFeed(fail_on_page=2), contact_cache)

        with pytest.raises(ContactSourceError) as exc_info:
            directory.get_contacts("tenant-a")

        assert exc_info.value.page == 2
        assert "platform timed out" in exc_info.value.reason
        assert contact_cache.get("tenant-a") is None

    def test_searches(self, contact_cache):
        directory = ContactDirectory(FakeContactFeed(), contact_cache)

        assert [r.contact.contact_id for r in directory.search("tenant-a", "gallery")] == [
            "c-1",
            "c-2",
            "c-3",
        ]
        assert [r.contact.contact_id for r in directory.search_buyers("tenant-a", "gallery")] == [
            "c-1",
            "c-3",
        ]
        assert [
            r.contact.contact_id for r in directory.search_suppliers("tenant-a", "gallery", limit=1)
        ] == ["c-2"]

    def test_default_limit(self, contact_cache):
        many = {1: [{"ContactID": f"c-{i}", "Name": f"Gallery {i}", "IsCustomer": True} for i in range(30)]}
        directory = ContactDirectory(FakeContactFeed(pages=many), contact_cache, default_limit=5)

        assert len(directory.search_buyers("tenant-a", "gallery")) == 5

    def test_explicit_zero_limit(self, contact_cache):
        many = {1: [{"ContactID": f"c-{i}", "Name": f"Gallery {i}", "IsCustomer": True} for i in range(20)]}
        directory = ContactDirectory(FakeContactFeed(pages=many), contact_cache)

        assert directory.search_buyers("tenant-a", "gallery", limit=0) == []
        assert directory.search_suppliers("tenant-a", "gallery", limit=0) == []
        assert len(directory.search_buyers("tenant-a", "gallery", limit=20)) == 20

    def test_invalidate(self, contact_cache):
        feed = FakeContactFeed()
        directory = ContactDirectory(feed, contact_cache)
        directory.get_contacts("tenant-a")
        directory.get_contacts("tenant-b")

        directory.invalidate("tenant-a")
        assert contact_cache.get("tenant-a") is None
        assert contact_cache.get("tenant-b") is not None

        directory.invalidate()
        assert len(contact_cache) == 0


THEMES = [
    {"BrandingThemeID": "guid-uk", "Name": "CN 20% VAT", "SortOrder": 0},
    {"BrandingThemeID": "guid-ex", "Name": "CN Export Sales", "SortOrder": 1},
    {"Name": "No id"},
]


class TestBrandingThemeDirectory:
    @pytest.fixture
    def directory(self, deterministic_clock):
        self.calls = []

        def fetch(tenant_key):
            self.calls.append(tenant_key)
            return THEMES

        return BrandingThemeDirectory(fetch, TTLCache(600, clock=deterministic_clock, name="themes"))

    def test_get_themes_skips_records_without_id(self, directory):
        themes = directory.get_themes("tenant-a")

        assert [t.theme_id for t in themes] == ["guid-uk", "guid-ex"]
        assert themes[1].sort_order == 1

    def test_get_theme_id(self, directory):
        assert directory.get_theme_id("tenant-a", "CN Export Sales") == "guid-ex"
        assert directory.get_theme_id("tenant-a", "CN 20% VAT") == "guid-uk"
        assert self.calls == ["tenant-a"]

    def test_unknown_name(self, directory, captured_logs):
        assert directory.get_theme_id("tenant-a", "cn export sales") is None
        assert any(r["message"] == "branding_theme_not_found" for r in captured_logs())

    def test_invalidate_refetches(self, directory):
        directory.get_themes("tenant-a")
        directory.invalidate("tenant-a")
        directory.get_themes("tenant-a")
        directory.invalidate()
        directory.get_themes("tenant-a")

        assert self.calls == ["tenant-a", "tenant-a", "tenant-a"]

    def test_fetch_failure(self, deterministic_clock):
        def fetch(tenant_key):
            raise ConnectionError("refused")

        directory = BrandingThemeDirectory(fetch, TTLCache(600, clock=deterministic_clock))

        with pytest.raises(BrandingThemeSourceError, match="refused"):
            directory.get_themes("tenant-a")
