"""
Base classes for the Yango Drive scraper system.

This module defines the data structures shared by the period builder,
the site scrapers and the orchestrator, plus the abstract scraper that
owns the index-based pagination loop.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field, fields
from enum import Enum
from datetime import datetime, timezone
import asyncio
import logging
import time

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)

# Placeholder for any field that could not be resolved
NOT_AVAILABLE = "N/A"


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for colorized logging."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GRAY = '\033[90m'

    @staticmethod
    def green(text):
        return f"{Colors.GREEN}{text}{Colors.RESET}"

    @staticmethod
    def yellow(text):
        return f"{Colors.YELLOW}{text}{Colors.RESET}"

    @staticmethod
    def red(text):
        return f"{Colors.RED}{text}{Colors.RESET}"

    @staticmethod
    def blue(text):
        return f"{Colors.BLUE}{text}{Colors.RESET}"

    @staticmethod
    def cyan(text):
        return f"{Colors.CYAN}{text}{Colors.RESET}"

    @staticmethod
    def gray(text):
        return f"{Colors.GRAY}{text}{Colors.RESET}"

    @staticmethod
    def bold(text):
        return f"{Colors.BOLD}{text}{Colors.RESET}"


# ============================================================
# ERRORS
# ============================================================

class ScraperError(Exception):
    """Base class for all scraper errors."""


class VehicleValidationError(ScraperError):
    """Vehicle identifier is empty or malformed."""


class NoInventory(ScraperError):
    """Listing page loaded but the result cards never appeared."""


class ExtractionTransient(ScraperError):
    """Reading a card failed on every attempt."""


class EnrichmentFailure(ScraperError):
    """Detail panel navigation or parsing failed."""


class ScrapeCancelledException(ScraperError):
    """Raised at a checkpoint once the run's cancellation token is set."""

    def __init__(self, message: str = "Scraping cancelled by user"):
        super().__init__(message)


class NavigationTimeout(ScraperError):
    """Listing page did not load within the navigation timeout."""


# ============================================================
# DATA MODEL
# ============================================================

class PeriodKind(Enum):
    """Rental window kinds, each with its own construction rule."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def title(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class SelectorProfile:
    """CSS selectors locating each field in the rendered marketplace pages."""
    title: str
    features: str
    feature_spans: str
    price: str
    price_cross_out: str
    model: str
    button: str
    detail_island: str
    detail_heading: str
    slot_title: str
    slot_subtitle: str
    insurance_section: str

    @property
    def primary(self) -> List[str]:
        """Selectors that must be visible before the listing counts as loaded."""
        return [self.title, self.features, self.price]


@dataclass
class SiteConfig:
    """Configuration for a scraping source."""
    name: str                           # Full display name
    short_name: str                     # Logger suffix (e.g., 'YANGO')
    base_url: str                       # Base URL for building listing URLs
    selectors: SelectorProfile          # Where each field lives
    rate_limit_seconds: float = 0.0     # Minimum delay between listing loads
    max_cards: int = 5                  # Only the first cards of a sorted listing are read
    extract_attempts: int = 2           # One retry on a failed card read
    retry_pause_seconds: float = 2.0    # Pause between card read attempts
    settle_seconds: float = 2.0         # Pause after clicking a card's action
    navigation_timeout_ms: int = 15000
    selector_timeout_ms: int = 5000
    button_visible_timeout_ms: int = 2000
    click_timeout_ms: int = 3000
    detail_timeout_ms: int = 3000


@dataclass(frozen=True)
class RentalPeriod:
    """One rental window, expressed the way the listing URL expects it."""
    kind: PeriodKind
    label: str
    since_ms: int
    until_ms: int
    duration_hours: float
    is_monthly: bool
    month_count: int


@dataclass
class CardRecord:
    """
    One listing card. Every field is always present; anything that could
    not be resolved holds NOT_AVAILABLE.
    """
    car_name: str = NOT_AVAILABLE
    model: str = NOT_AVAILABLE
    year: str = NOT_AVAILABLE
    description: str = NOT_AVAILABLE
    cross_price: str = NOT_AVAILABLE
    actual_price: str = NOT_AVAILABLE
    total: str = NOT_AVAILABLE
    original_vehicle: str = NOT_AVAILABLE
    period: str = NOT_AVAILABLE
    mileage: str = NOT_AVAILABLE
    insurance_and_options: str = NOT_AVAILABLE

    def to_row(self) -> Dict[str, str]:
        """Export row keyed by column header, in column order."""
        return {
            column: getattr(self, f.name)
            for column, f in zip(RECORD_COLUMNS, fields(self))
        }


# Export column headers, in the same order as CardRecord's fields
RECORD_COLUMNS = [
    'Car Name',
    'Model',
    'Year',
    'Description',
    'Cross Price',
    'Actual Price',
    'Total',
    'Original Vehicle',
    'Period',
    'Mileage',
    'Insurance & Options',
]


@dataclass
class CardCandidate:
    """A card read from the listing, plus whether it has a "View Deal" action."""
    record: CardRecord
    has_action: bool = False


@dataclass
class PeriodScrapeOutcome:
    """Result of paginating one (vehicle, period) job."""
    success: bool
    message: Optional[str] = None
    records: List[CardRecord] = field(default_factory=list)
    cancelled: bool = False


class CancellationToken:
    """Cooperative stop flag for one run. Once set it stays set."""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self):
        if self._cancelled:
            raise ScrapeCancelledException()


@dataclass
class OrchestrationReport:
    """Everything one run produced: records, per-job errors and the overall verdict."""
    records: List[CardRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    cancelled: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return len(self.records) > 0

    @property
    def message(self) -> str:
        if self.success:
            if self.errors:
                return f"Scraping completed with errors: {'; '.join(self.errors)}"
            return "Scraping completed successfully"
        if self.errors:
            return '; '.join(self.errors)
        if self.cancelled:
            return "Scraping cancelled"
        return "No data scraped"

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at and self.started_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'message': self.message,
            'cancelled': self.cancelled,
            'records': len(self.records),
            'errors': list(self.errors),
            'started_at': self.started_at.isoformat(),
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'duration_seconds': self.duration_seconds,
        }


class RunContext:
    """
    State owned by a single orchestration run.

    Built fresh for every run and never shared between runs, so two
    overlapping triggers cannot write into each other's accumulators.
    """

    def __init__(self, token: Optional[CancellationToken] = None):
        self.token = token or CancellationToken()
        self.report = OrchestrationReport()

    def cancel(self):
        self.token.cancel()

    @property
    def is_cancelled(self) -> bool:
        return self.token.is_cancelled


# ============================================================
# BASE SCRAPER
# ============================================================

class BaseScraper(ABC):
    """
    Abstract base class for listing scrapers.

    Subclasses must implement:
    - build_listing_url(): URL of the ranked result list for one job
    - read_card(): Parse the card at an index from the loaded listing
    - enrich_card(): Attach detail-panel fields to a record in place

    The base class owns the pagination loop: the listing is reloaded
    before every index because cards have no stable identifiers, so the
    ranked list is re-fetched rather than cached.
    """

    def __init__(self, config: SiteConfig):
        """
        Initialize the scraper.

        Args:
            config: Site configuration
        """
        self.config = config
        self.selectors = config.selectors
        self.logger = logging.getLogger(f"scraper.{config.short_name}")
        # Session cookies from the last successful detail view
        self.cookie_store: List[Dict[str, Any]] = []
        self._last_request_time = 0.0

    @abstractmethod
    def build_listing_url(self, vehicle: str, period: RentalPeriod) -> str:
        """Build the listing URL for one (vehicle, period) job."""
        pass

    @abstractmethod
    async def read_card(self, page, index: int, vehicle: str, period_label: str) -> Optional[CardCandidate]:
        """
        Read the card at `index` from the currently loaded listing.

        Returns:
            CardCandidate, or None when no card exists at that index
        """
        pass

    @abstractmethod
    async def enrich_card(self, page, record: CardRecord, index: int) -> None:
        """Attach detail fields to `record`. Must not raise."""
        pass

    async def _wait_for_rate_limit(self):
        """Wait to respect the site's rate limit between listing loads."""
        if self.config.rate_limit_seconds <= 0:
            return
        elapsed = time.monotonic() - self._last_request_time
        wait_time = self.config.rate_limit_seconds - elapsed
        if wait_time > 0:
            await asyncio.sleep(wait_time)
        self._last_request_time = time.monotonic()

    async def load_listing(self, page, url: str, token: CancellationToken):
        """
        Navigate to the listing and wait for the result cards.

        Raises:
            ScrapeCancelledException: token set before navigating
            NavigationTimeout: page did not load in time
            NoInventory: cards never became visible
        """
        token.raise_if_cancelled()
        await self._wait_for_rate_limit()

        try:
            await page.goto(
                url,
                wait_until='domcontentloaded',
                timeout=self.config.navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(f"Timeout loading {url}: {e}") from e

        try:
            for selector in self.selectors.primary:
                await page.wait_for_selector(
                    selector,
                    state='visible',
                    timeout=self.config.selector_timeout_ms,
                )
        except PlaywrightTimeoutError as e:
            raise NoInventory(str(e)) from e

    async def extract_card(self, page, index: int, vehicle: str, period_label: str) -> Optional[CardCandidate]:
        """
        Read one card with a bounded retry.

        Raises:
            ExtractionTransient: every attempt failed
        """
        attempts = max(1, self.config.extract_attempts)
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                return await self.read_card(page, index, vehicle, period_label)
            except Exception as e:
                last_error = e
                self.logger.warning(
                    f"Error reading card {index + 1} for {vehicle} ({period_label}), "
                    f"attempt {attempt + 1}/{attempts}: {e}"
                )
                if attempt < attempts - 1 and self.config.retry_pause_seconds > 0:
                    await asyncio.sleep(self.config.retry_pause_seconds)

        raise ExtractionTransient(f"Card {index + 1} unreadable after {attempts} attempts: {last_error}")

    async def scrape_period(
        self,
        page,
        vehicle: str,
        period: RentalPeriod,
        token: CancellationToken,
    ) -> PeriodScrapeOutcome:
        """
        Walk the ranked listing one index at a time until it is exhausted.

        Args:
            page: Browser page owned by the caller
            vehicle: Vehicle name as requested
            period: Rental window for this job
            token: Run cancellation token

        Returns:
            PeriodScrapeOutcome
        """
        url = self.build_listing_url(vehicle, period)
        job = f"{vehicle} ({period.label})"
        results: List[CardRecord] = []
        index = 0

        try:
            while True:
                token.raise_if_cancelled()

                self.logger.info(f"Loading main page for car {index + 1} in {job}")
                try:
                    await self.load_listing(page, url, token)
                except NoInventory as e:
                    self.logger.warning(f"No car cards found for {job}: {e}")
                    break
                self.logger.debug(f"Car cards loaded for {job}")

                try:
                    candidate = await self.extract_card(page, index, vehicle, period.label)
                except ExtractionTransient as e:
                    self.logger.error(f"   {Colors.red('[ERR]')} {job}: {e}")
                    break

                if candidate is None:
                    self.logger.info(f"No more cards found for {job} at index {index}")
                    break

                record = candidate.record
                results.append(record)

                if candidate.has_action:
                    await self.enrich_card(page, record, index)
                else:
                    self.logger.info(f"No View Deal button found for car {index + 1}")
                    record.mileage = NOT_AVAILABLE
                    record.insurance_and_options = NOT_AVAILABLE

                index += 1

        except ScrapeCancelledException as e:
            self.logger.warning(f"{Colors.yellow('[STOP]')} {job}: {e}")
            return PeriodScrapeOutcome(success=False, message=str(e), cancelled=True)
        except NavigationTimeout as e:
            self.logger.error(f"   {Colors.red('[ERR]')} {job}: {e}")
            return PeriodScrapeOutcome(
                success=False,
                message=f"Check car name on {self.config.name} website",
            )
        except Exception as e:
            self.logger.error(f"   {Colors.red('[ERR]')} {job}: {e}")
            return PeriodScrapeOutcome(success=False, message=str(e))

        if not results:
            self.logger.info(f"No data scraped for {job}")
            return PeriodScrapeOutcome(success=False, message=f"No data found for {job}")

        self.logger.info(f"✅ {Colors.green(len(results))} card(s) scraped for {job}")
        return PeriodScrapeOutcome(success=True, records=results)
