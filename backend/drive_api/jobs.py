"""
Scrape run management.

Only one run may be in flight at a time. The API and the scheduler both
go through the module-level `jobs` registry, which refuses to start a
second run while one is active.
"""

import asyncio
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Awaitable, Callable, List, Optional
import logging

from drive_scraper.base import OrchestrationReport, RunContext
from drive_scraper.config import SCHEDULED_VEHICLES, get_site_config
from drive_scraper.crawlers.browser import BrowserSession
from drive_scraper.manager import ScraperManager
from drive_scraper.sites.yango import YangoScraper

from .config import Settings, settings as default_settings
from .export import generate_excel_file
from .notifier import send_email_with_attachment, send_failure_email

logger = logging.getLogger(__name__)


@dataclass
class ScrapeOptions:
    """What one run scrapes and what happens with the results."""
    vehicles: List[str] = field(default_factory=lambda: list(SCHEDULED_VEHICLES))
    daily: bool = True
    weekly: bool = True
    monthly: bool = True
    months: Optional[int] = 1
    send_email: bool = True
    recipients: Optional[List[str]] = None


def build_manager(settings: Settings) -> ScraperManager:
    """Scraper manager configured from application settings."""
    config = replace(
        get_site_config('yango'),
        base_url=settings.base_url,
        rate_limit_seconds=settings.rate_limit_seconds,
        retry_pause_seconds=settings.retry_pause_seconds,
        settle_seconds=settings.settle_seconds,
        navigation_timeout_ms=settings.navigation_timeout_ms,
        selector_timeout_ms=settings.selector_timeout_ms,
        click_timeout_ms=settings.click_timeout_ms,
        detail_timeout_ms=settings.detail_timeout_ms,
    )
    return ScraperManager(
        'yango',
        session_factory=lambda: BrowserSession(headless=settings.headless),
        scraper=YangoScraper(config),
        pickup_offset_hours=settings.pickup_offset_hours,
        tz=settings.tz,
        parallel=settings.parallel_vehicles,
    )


def deliver_report(report: OrchestrationReport, options: ScrapeOptions, settings: Settings):
    """Export and mail a finished run, or mail the failure reason."""
    recipients = options.recipients if options.recipients is not None else settings.recipients

    if report.success:
        file_path, file_name = generate_excel_file(report.records, options.vehicles, settings.output_dir)
        try:
            result = send_email_with_attachment(file_path, file_name, recipients, settings)
            if not result.success:
                logger.error(f"Failed to send email: {result.message}")
        finally:
            try:
                Path(file_path).unlink()
            except OSError as e:
                logger.error(f"Error deleting temp file {file_path}: {e}")
    elif report.cancelled:
        logger.info("Run was cancelled - no failure email sent")
    else:
        logger.error(f"Scraping failed: {report.message}")
        send_failure_email(report.message, recipients, settings)


async def run_scrape_cycle(
    options: ScrapeOptions,
    context: RunContext,
    settings: Settings = default_settings,
) -> OrchestrationReport:
    """One full cycle: scrape, then export and notify."""
    manager = build_manager(settings)
    report = await manager.scrape_vehicles(
        options.vehicles,
        daily=options.daily,
        weekly=options.weekly,
        monthly=options.monthly,
        months=options.months,
        context=context,
    )

    if options.send_email:
        # Export and SMTP are blocking
        await asyncio.to_thread(deliver_report, report, options, settings)

    return report


Runner = Callable[[ScrapeOptions, RunContext], Awaitable[OrchestrationReport]]


class ScrapeJobs:
    """
    Single-run admission and cancellation for scrape runs.

    Usage:
        context = jobs.start(ScrapeOptions(vehicles=['kia seltos']))
        if context is None:
            ...  # a run is already in progress
        jobs.cancel()
    """

    def __init__(self, runner: Optional[Runner] = None):
        self._runner = runner or run_scrape_cycle
        self.current: Optional[RunContext] = None
        self.last_report: Optional[OrchestrationReport] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.current is not None

    def _admit(self) -> Optional[RunContext]:
        if self.is_running:
            return None
        self.current = RunContext()
        return self.current

    async def _execute(self, options: ScrapeOptions, context: RunContext) -> Optional[OrchestrationReport]:
        try:
            report = await self._runner(options, context)
            self.last_report = report
            return report
        except Exception as e:
            logger.exception(f"Scrape run crashed: {e}")
            report = context.report
            report.errors.append(f"Scrape run crashed: {e}")
            self.last_report = report
            return report
        finally:
            self.current = None

    def start(self, options: ScrapeOptions) -> Optional[RunContext]:
        """
        Start a run in the background on the running event loop.

        Returns:
            The run's context, or None if a run is already in progress
        """
        context = self._admit()
        if context is None:
            return None
        self._task = asyncio.create_task(self._execute(options, context))
        return context

    async def run(self, options: ScrapeOptions) -> Optional[OrchestrationReport]:
        """Run to completion. Returns None when another run is in progress."""
        context = self._admit()
        if context is None:
            logger.warning("Scrape already in progress - skipping this trigger")
            return None
        return await self._execute(options, context)

    def cancel(self) -> bool:
        """Request cancellation of the current run."""
        if self.current is None:
            return False
        self.current.cancel()
        logger.info("Cancellation requested for the current scrape")
        return True

    async def wait(self):
        """Wait for a background run started with start()."""
        if self._task is not None:
            await self._task


# Global run registry shared by the API and the scheduler
jobs = ScrapeJobs()
