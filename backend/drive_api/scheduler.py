"""
Daily trigger for scheduled scrape runs.

Registers one APScheduler cron job per configured wall-clock time in a
pinned timezone. A trigger that fires while a run is still in progress is
skipped by the run registry.
"""

from datetime import datetime
from typing import List, Optional, Tuple
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from drive_scraper.config import SCHEDULED_VEHICLES

from .config import Settings
from .jobs import ScrapeJobs, ScrapeOptions

logger = logging.getLogger(__name__)


def parse_time_of_day(value: str) -> Tuple[int, int]:
    """
    Parse "HH:MM".

    Raises:
        ValueError: malformed or out-of-range time
    """
    try:
        hour_str, minute_str = value.strip().split(':')
        hour, minute = int(hour_str), int(minute_str)
    except ValueError:
        raise ValueError(f"Invalid schedule time '{value}', expected HH:MM")
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid schedule time '{value}', expected HH:MM")
    return hour, minute


class ScrapeScheduler:
    """
    Runs the scheduled vehicle list at each configured time of day.

    Schedule (settings.timezone):
        scheduled_scrape_HHMM — one cron job per entry in settings.schedule_times

    Usage:
        scheduler = ScrapeScheduler(jobs, settings)
        scheduler.start()      # inside a running event loop
        ...
        await scheduler.stop()
    """

    def __init__(self, jobs: ScrapeJobs, settings: Settings, vehicles: Optional[List[str]] = None):
        self.jobs = jobs
        self.settings = settings
        self.tz = settings.tz
        self.times = list(settings.schedule_times)
        self.vehicles = list(vehicles or SCHEDULED_VEHICLES)
        self.scheduler = AsyncIOScheduler(timezone=self.tz)

        for value in self.times:
            hour, minute = parse_time_of_day(value)
            self.scheduler.add_job(
                self.trigger,
                trigger=CronTrigger(hour=hour, minute=minute, timezone=self.tz),
                id=f"scheduled_scrape_{hour:02d}{minute:02d}",
                name=f"Scheduled scrape at {hour:02d}:{minute:02d}",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                misfire_grace_time=3600,
            )

    @property
    def is_running(self) -> bool:
        return self.scheduler.running

    def get_jobs(self):
        return self.scheduler.get_jobs()

    def build_options(self) -> ScrapeOptions:
        return ScrapeOptions(
            vehicles=list(self.vehicles),
            daily=True,
            weekly=True,
            monthly=True,
            months=self.settings.scheduled_months,
            send_email=True,
        )

    async def trigger(self):
        """Run one scheduled cycle now."""
        logger.info(f"Starting scheduled scrape at {datetime.now(self.tz):%Y-%m-%d %H:%M %Z}")
        report = await self.jobs.run(self.build_options())
        if report is not None:
            logger.info(f"Scheduled scrape finished: {report.message}")
        return report

    def start(self):
        if self.is_running:
            return
        self.scheduler.start()
        logger.info(
            f"Scheduler started with {len(self.get_jobs())} job(s): "
            f"daily at {', '.join(self.times)} ({self.settings.timezone})"
        )

    async def stop(self):
        if not self.is_running:
            return
        self.scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
