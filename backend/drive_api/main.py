from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException, status
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from drive_scraper.config import SCHEDULED_VEHICLES
from drive_api.config import settings
from drive_api.jobs import ScrapeJobs, ScrapeOptions, jobs
from drive_api.logging_config import setup_logging
from drive_api.scheduler import ScrapeScheduler

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def get_jobs() -> ScrapeJobs:
    """Run registry dependency."""
    return jobs


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = ScrapeScheduler(jobs, settings)
        scheduler.start()
    try:
        yield
    finally:
        logger.info("Shutting down...")
        if scheduler is not None:
            await scheduler.stop()
        jobs.cancel()


app = FastAPI(title="Drive Rates API", version=API_VERSION, lifespan=lifespan)


class ScrapeRequest(BaseModel):
    vehicles: List[str] = Field(default_factory=lambda: list(SCHEDULED_VEHICLES))
    daily: bool = True
    weekly: bool = True
    monthly: bool = False
    months: Optional[int] = None
    email: bool = False
    recipients: Optional[List[str]] = None


class ScrapeStartResponse(BaseModel):
    started: bool
    vehicles: int


class ScrapeStatusResponse(BaseModel):
    running: bool
    last_report: Optional[dict] = None


@app.get("/")
def root():
    return {"message": "Drive Rates API", "version": API_VERSION}


@app.post("/api/scrape", status_code=status.HTTP_202_ACCEPTED, response_model=ScrapeStartResponse)
async def start_scrape(request: ScrapeRequest, registry: ScrapeJobs = Depends(get_jobs)):
    """Start a scrape run in the background."""
    options = ScrapeOptions(
        vehicles=request.vehicles,
        daily=request.daily,
        weekly=request.weekly,
        monthly=request.monthly,
        months=request.months,
        send_email=request.email,
        recipients=request.recipients,
    )
    context = registry.start(options)
    if context is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A scrape is already in progress")

    logger.info(f"Scrape started via API for {len(request.vehicles)} vehicle(s)")
    return ScrapeStartResponse(started=True, vehicles=len(request.vehicles))


@app.post("/api/scrape/cancel")
async def cancel_scrape(registry: ScrapeJobs = Depends(get_jobs)):
    """Ask the current run to stop at its next checkpoint."""
    return {"cancelled": registry.cancel()}


@app.get("/api/scrape/status", response_model=ScrapeStatusResponse)
async def scrape_status(registry: ScrapeJobs = Depends(get_jobs)):
    last = registry.last_report.to_dict() if registry.last_report else None
    return ScrapeStatusResponse(running=registry.is_running, last_report=last)


if __name__ == "__main__":
    import uvicorn

    setup_logging(settings)
    uvicorn.run(
        "drive_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        timeout_graceful_shutdown=5,
    )
