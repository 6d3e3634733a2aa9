"""
Services -- the imperative shell around the pure engines.

Services receive a SQLAlchemy Session (or injected fetchers and caches),
call engines, and persist results.  They flush but never commit; the caller
owns the transaction.
"""

from salesos_services.branding_theme_directory import (
    BrandingThemeDirectory,
    PlatformBrandingTheme,
)
from salesos_services.cache import CacheSweeper, TTLCache
from salesos_services.contact_directory import ContactDirectory
from salesos_services.deal_lifecycle import (
    BatchTransitionResult,
    DealLifecycleService,
    TransitionResult,
)
from salesos_services.error_recorder import ErrorRecorder, ErrorRecordInfo
from salesos_services.sale_financials import RecalculationResult, SaleFinancialsService

__all__ = [
    "BatchTransitionResult",
    "BrandingThemeDirectory",
    "CacheSweeper",
    "ContactDirectory",
    "DealLifecycleService",
    "ErrorRecordInfo",
    "ErrorRecorder",
    "PlatformBrandingTheme",
    "RecalculationResult",
    "SaleFinancialsService",
    "TTLCache",
    "TransitionResult",
]
