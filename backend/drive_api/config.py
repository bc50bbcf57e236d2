"""
Application Configuration
Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from pathlib import Path
from zoneinfo import ZoneInfo


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Marketplace
    base_url: str = "https://drive.yango.com"
    headless: bool = True
    pickup_offset_hours: float = 2
    parallel_vehicles: int = 1

    # Scraper timeouts (milliseconds) and pauses (seconds)
    navigation_timeout_ms: int = 15000
    selector_timeout_ms: int = 5000
    click_timeout_ms: int = 3000
    detail_timeout_ms: int = 3000
    retry_pause_seconds: float = 2.0
    settle_seconds: float = 2.0
    rate_limit_seconds: float = 0.0

    # Scheduler
    timezone: str = "Asia/Kolkata"
    schedule_times: List[str] = ["11:00", "16:00"]
    scheduler_enabled: bool = False
    scheduled_months: int = 1

    # Email
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    email_user: str = ""
    email_pass: str = ""
    recipient_email: str = ""  # Comma-separated

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def recipients(self) -> List[str]:
        """Recipient addresses parsed from RECIPIENT_EMAIL."""
        return [r.strip() for r in self.recipient_email.split(",") if r.strip()]

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    # Paths
    @property
    def log_dir(self) -> Path:
        """Get the log directory path."""
        return Path(__file__).parent.parent.parent / "logs"

    @property
    def log_file(self) -> Path:
        """Get the log file path."""
        return self.log_dir / "scraper.log"

    @property
    def output_dir(self) -> Path:
        """Directory for generated spreadsheets before they are mailed."""
        return Path(__file__).parent.parent / "temp"

    model_config = SettingsConfigDict(
        # Only load .env if it exists to avoid permission errors
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )


# Global settings instance
settings = Settings()
