#!/usr/bin/env python3
"""
Command line entry point.

Usage:
    python -m drive_api run --vehicle "kia seltos" --daily --weekly --months 1
    python -m drive_api run --scheduled --email     # full scheduled cycle now
    python -m drive_api schedule                     # run at the configured times
    python -m drive_api serve                        # HTTP control API
    python -m drive_api vehicles                     # list scheduled vehicles
"""

import asyncio
import argparse
import json
import logging
import signal

from drive_scraper.config import SCHEDULED_VEHICLES

from .config import settings
from .jobs import ScrapeOptions, jobs
from .logging_config import setup_logging
from .scheduler import ScrapeScheduler

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="drive_api", description="Yango Drive rental listing scraper")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run one scrape now")
    run.add_argument("--vehicle", action="append", default=[], help="Vehicle name (repeatable)")
    run.add_argument("--scheduled", action="store_true", help="Use the scheduled vehicle list")
    run.add_argument("--daily", action="store_true", help="Scrape the 1-day window")
    run.add_argument("--weekly", action="store_true", help="Scrape the 7-day window")
    run.add_argument("--months", type=int, default=None, help="Scrape an N-month window")
    run.add_argument("--email", action="store_true", help="Export and email the results")

    sub.add_parser("schedule", help="Run scrapes at the configured times of day")
    sub.add_parser("serve", help="Start the HTTP control API")
    sub.add_parser("vehicles", help="List the scheduled vehicles")
    return parser


def options_from_args(args) -> ScrapeOptions:
    vehicles = list(SCHEDULED_VEHICLES) if args.scheduled or not args.vehicle else args.vehicle
    daily, weekly, months = args.daily, args.weekly, args.months
    monthly = months is not None
    if not (daily or weekly or monthly):
        # No period flags: same periods as a scheduled run
        daily, weekly, monthly = True, True, True
        months = settings.scheduled_months
    return ScrapeOptions(
        vehicles=vehicles,
        daily=daily,
        weekly=weekly,
        monthly=monthly,
        months=months,
        send_email=args.email,
    )


async def run_once(options: ScrapeOptions) -> int:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, jobs.cancel)
    except NotImplementedError:
        pass

    report = await jobs.run(options)
    if report is None:
        return 1
    print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.success else 1


async def run_scheduler():
    scheduler = ScrapeScheduler(jobs, settings)
    scheduler.start()
    try:
        while scheduler.is_running:
            await asyncio.sleep(3600)
    finally:
        await scheduler.stop()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "vehicles":
        for vehicle in SCHEDULED_VEHICLES:
            print(vehicle)
        return 0

    setup_logging(settings)

    if args.command == "run":
        return asyncio.run(run_once(options_from_args(args)))

    if args.command == "schedule":
        try:
            asyncio.run(run_scheduler())
        except KeyboardInterrupt:
            logger.info("Scheduler stopped")
        return 0

    if args.command == "serve":
        import uvicorn

        uvicorn.run("drive_api.main:app", host=settings.api_host, port=settings.api_port)
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
