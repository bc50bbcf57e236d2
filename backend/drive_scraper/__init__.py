"""
Playwright-based scraper for Yango Drive rental listings.

This package provides:
- Rental period construction (daily, weekly, N-month windows)
- Index-based listing pagination with detail-panel enrichment
- Orchestration across vehicles and periods with partial-failure reporting
"""

from .base import (
    BaseScraper,
    CancellationToken,
    CardRecord,
    NOT_AVAILABLE,
    OrchestrationReport,
    PeriodKind,
    RECORD_COLUMNS,
    RentalPeriod,
    RunContext,
    SiteConfig,
)
from .config import SITES, SCHEDULED_VEHICLES, get_site_config
from .manager import ScraperManager
from .periods import build_period, build_listing_url

__all__ = [
    'BaseScraper',
    'CancellationToken',
    'CardRecord',
    'NOT_AVAILABLE',
    'OrchestrationReport',
    'PeriodKind',
    'RECORD_COLUMNS',
    'RentalPeriod',
    'RunContext',
    'SiteConfig',
    'SITES',
    'SCHEDULED_VEHICLES',
    'get_site_config',
    'ScraperManager',
    'build_period',
    'build_listing_url',
]
