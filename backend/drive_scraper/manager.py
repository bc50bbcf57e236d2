"""
Scraper Manager - runs the vehicle x rental-period cross product.

Each (vehicle, period) pair is an independent job. A failing job adds a
labelled message to the run's error list and the run carries on; only a
vehicle validation error or cancellation stops more than one job.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Type
from datetime import datetime, timezone, tzinfo
import logging

from .base import (
    BaseScraper,
    Colors,
    OrchestrationReport,
    PeriodKind,
    RunContext,
    VehicleValidationError,
)
from .config import get_site_config
from .crawlers.browser import BrowserSession
from .periods import build_period, reference_now, validate_vehicle_name
from .sites.yango import YangoScraper

logger = logging.getLogger(__name__)


# Registry of implemented scrapers
SCRAPER_REGISTRY: Dict[str, Type[BaseScraper]] = {
    'yango': YangoScraper,
}


class ScraperManager:
    """
    Orchestrates one site scraper across vehicles and rental periods.

    Usage:
        manager = ScraperManager('yango')
        report = await manager.scrape_vehicles(
            ['kia seltos', 'mg 5'], daily=True, weekly=True, monthly=True, months=1
        )
        if report.success:
            ...
    """

    def __init__(
        self,
        site_key: str = 'yango',
        session_factory: Optional[Callable[[], BrowserSession]] = None,
        scraper: Optional[BaseScraper] = None,
        pickup_offset_hours: float = 2,
        tz: Optional[tzinfo] = None,
        parallel: int = 1,
    ):
        """
        Initialize the scraper manager.

        Args:
            site_key: Site identifier (e.g., 'yango')
            session_factory: Builds the browser session for a run
            scraper: Scraper instance; built from the registry when omitted
            pickup_offset_hours: Lead time added to "now" for rental windows
            tz: Timezone the rental windows are built in
            parallel: Vehicles scraped at once, each on an isolated page
        """
        self.config = get_site_config(site_key)
        if scraper is None:
            if site_key not in SCRAPER_REGISTRY:
                raise ValueError(f"Scraper not implemented for site: {site_key}")
            scraper = SCRAPER_REGISTRY[site_key](self.config)
        self.scraper = scraper
        self.session_factory = session_factory or BrowserSession
        self.pickup_offset_hours = pickup_offset_hours
        self.tz = tz
        self.parallel = max(1, parallel)

    def plan_periods(self, daily: bool, weekly: bool, monthly: bool, months: Optional[int]) -> List[tuple]:
        """List the enabled (kind, months) jobs for each vehicle, in run order."""
        plan = []
        if daily:
            plan.append((PeriodKind.DAILY, None))
        if weekly:
            plan.append((PeriodKind.WEEKLY, None))
        if monthly:
            if months and months >= 1:
                plan.append((PeriodKind.MONTHLY, months))
            else:
                logger.warning(f"Monthly scrape skipped: month count must be at least 1, got {months!r}")
        return plan

    async def scrape_vehicle(
        self,
        page,
        vehicle: str,
        plan: List[tuple],
        reference_time: datetime,
        context: RunContext,
    ):
        """Run every enabled period for one vehicle on one page."""
        report = context.report

        for kind, months in plan:
            if context.is_cancelled:
                return

            period = build_period(kind, reference_time, months=months, tz=self.tz)
            outcome = await self.scraper.scrape_period(page, vehicle, period, context.token)

            if outcome.success:
                report.records.extend(outcome.records)
                logger.info(
                    f"   {Colors.green('[OK]')} {kind.title} scrape for {vehicle}: "
                    f"{len(outcome.records)} record(s)"
                )
            elif outcome.cancelled:
                return
            else:
                message = f"{kind.title} scrape failed for {vehicle}: {outcome.message}"
                report.errors.append(message)
                logger.warning(f"   {Colors.yellow('[FAIL]')} {message}")

    async def _run_vehicle(self, session, vehicle: str, plan, reference_time, context: RunContext, isolated: bool):
        if context.is_cancelled:
            return

        page = None
        try:
            page = await session.open_page(isolated=isolated)
            await self.scrape_vehicle(page, vehicle, plan, reference_time, context)
        except Exception as e:
            context.report.errors.append(f"Failed to scrape {vehicle}: {e}")
            logger.error(f"   {Colors.red('[ERR]')} {vehicle}: {e}")
        finally:
            if page is not None:
                await session.close_page(page)

    async def scrape_vehicles(
        self,
        vehicles: List[str],
        daily: bool = True,
        weekly: bool = True,
        monthly: bool = False,
        months: Optional[int] = None,
        context: Optional[RunContext] = None,
        reference_time: Optional[datetime] = None,
    ) -> OrchestrationReport:
        """
        Scrape every enabled period for every vehicle.

        Args:
            vehicles: Vehicle names, e.g. ['kia seltos']
            daily: Include the 1-day window
            weekly: Include the 7-day window
            monthly: Include the N-month window
            months: Month count for the monthly window
            context: Run state; a fresh one is created when omitted
            reference_time: Window start; defaults to now plus the pickup offset

        Returns:
            OrchestrationReport for the run
        """
        context = context or RunContext()
        report = context.report

        validation_errors = []
        for vehicle in vehicles:
            try:
                validate_vehicle_name(vehicle)
            except VehicleValidationError as e:
                validation_errors.append(str(e))
        if validation_errors:
            report.errors.extend(validation_errors)
            report.completed_at = datetime.now(timezone.utc)
            logger.error(f"Scrape rejected: {'; '.join(validation_errors)}")
            return report

        plan = self.plan_periods(daily, weekly, monthly, months)
        if reference_time is None:
            reference_time = reference_now(self.pickup_offset_hours, self.tz)

        logger.info(
            f"Starting {self.config.name} scrape for {len(vehicles)} vehicle(s) x "
            f"{len(plan)} period(s)"
        )

        session = self.session_factory()
        try:
            await session.start()

            if self.parallel > 1:
                semaphore = asyncio.Semaphore(self.parallel)

                async def worker(vehicle: str):
                    async with semaphore:
                        await self._run_vehicle(session, vehicle, plan, reference_time, context, isolated=True)

                await asyncio.gather(*(worker(v) for v in vehicles))
            else:
                for idx, vehicle in enumerate(vehicles, 1):
                    if context.is_cancelled:
                        break
                    logger.info(f"\n{Colors.cyan('❯❯❯')}")
                    logger.info(f"{Colors.bold(f'[{idx}/{len(vehicles)}]')} Processing {Colors.bold(vehicle)}")
                    await self._run_vehicle(session, vehicle, plan, reference_time, context, isolated=False)

        except Exception as e:
            report.errors.append(str(e))
            logger.error(f"Scrape failed: {e}")
        finally:
            await session.close()

        report.cancelled = context.is_cancelled
        report.completed_at = datetime.now(timezone.utc)

        duration = report.duration_seconds or 0
        logger.info(
            f"✅ Scrape finished in {duration:.1f}s: {len(report.records)} record(s), "
            f"{len(report.errors)} error(s){' (cancelled)' if report.cancelled else ''}"
        )
        return report

