"""
Typed Exception Hierarchy for the Sales OS core.

===============================================================================
WHEN TO RAISE
===============================================================================

The financial core never raises for data-quality problems. A sale with an
unknown branding theme, a negative margin, a missing commission band or an
invalid lifecycle transition is a normal business outcome: it is returned in
a result object (``errors`` / ``warnings`` / ``Unresolved`` / ``success=False``)
so the request that triggered it can still complete.

Exceptions are reserved for:
  - Programmer / configuration errors detected at startup (a malformed
    branding-theme table, overlapping commission bands).
  - Lookups by identity that cannot be satisfied (sale id does not exist).
  - Failures of external collaborators (the accounting platform contact feed).

Every class carries a machine-readable ``code`` class attribute and stores its
context as attributes so it survives logging and serialisation.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SalesOSError (base)
    |
    +-- ConfigurationError
    |   +-- BrandingThemeTableError
    |   +-- CommissionBandTableError
    |
    +-- SaleError
    |   +-- SaleNotFoundError
    |
    +-- ErrorRecordError
    |   +-- ErrorRecordNotFoundError
    |
    +-- ContactSourceError
    +-- BrandingThemeSourceError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Configuration   | INVALID_CONFIGURATION         | Config document fails validation
                | INVALID_BRANDING_THEME_TABLE  | Duplicate id/name, VAT not 0 or 20
                | INVALID_COMMISSION_BANDS      | Overlapping or negative band ranges
----------------|-------------------------------|---------------------------------------
Sale            | SALE_NOT_FOUND                | Sale id does not exist
----------------|-------------------------------|---------------------------------------
Error records   | ERROR_RECORD_NOT_FOUND        | Error record id does not exist
----------------|-------------------------------|---------------------------------------
Platform feeds  | CONTACT_SOURCE_ERROR          | Contact fetcher failed while filling cache
                | BRANDING_THEME_SOURCE_ERROR   | Theme fetcher failed while filling cache
"""


class SalesOSError(Exception):
    """
    Base exception for all Sales OS errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SALESOS_ERROR"


# Configuration exceptions


class ConfigurationError(SalesOSError):
    """Configuration document failed validation."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message)


class BrandingThemeTableError(ConfigurationError):
    """Static branding-theme table is malformed."""

    code: str = "INVALID_BRANDING_THEME_TABLE"

    def __init__(self, theme_id: str, reason: str):
        self.theme_id = theme_id
        self.reason = reason
        super().__init__(f"Invalid branding theme '{theme_id}': {reason}")


class CommissionBandTableError(ConfigurationError):
    """Commission band table is malformed."""

    code: str = "INVALID_COMMISSION_BANDS"

    def __init__(self, band_type: str, reason: str):
        self.band_type = band_type
        self.reason = reason
        super().__init__(f"Invalid commission band '{band_type}': {reason}")


# Sale exceptions


class SaleError(SalesOSError):
    """Base exception for sale-related errors."""

    code: str = "SALE_ERROR"


class SaleNotFoundError(SaleError):
    """Sale with given ID was not found."""

    code: str = "SALE_NOT_FOUND"

    def __init__(self, sale_id: str):
        self.sale_id = sale_id
        super().__init__(f"Sale not found: {sale_id}")


# Error-record exceptions


class ErrorRecordError(SalesOSError):
    """Base exception for error-record management."""

    code: str = "ERROR_RECORD_ERROR"


class ErrorRecordNotFoundError(ErrorRecordError):
    """Error record with given ID was not found."""

    code: str = "ERROR_RECORD_NOT_FOUND"

    def __init__(self, error_id: str):
        self.error_id = error_id
        super().__init__(f"Error record not found: {error_id}")


# External collaborator exceptions


class ContactSourceError(SalesOSError):
    """The accounting platform contact feed failed."""

    code: str = "CONTACT_SOURCE_ERROR"

    def __init__(self, tenant_key: str, page: int, reason: str):
        self.tenant_key = tenant_key
        self.page = page
        self.reason = reason
        super().__init__(
            f"Contact fetch failed for '{tenant_key}' on page {page}: {reason}"
        )


class BrandingThemeSourceError(SalesOSError):
    """The accounting platform branding-theme feed failed."""

    code: str = "BRANDING_THEME_SOURCE_ERROR"

    def __init__(self, tenant_key: str, reason: str):
        self.tenant_key = tenant_key
        self.reason = reason
        super().__init__(f"Branding theme fetch failed for '{tenant_key}': {reason}")
