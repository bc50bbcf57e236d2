"""
Tests for application configuration.
"""

import logging

import pytest
from zoneinfo import ZoneInfo

from drive_scraper.base import Colors
from drive_scraper.config import SCHEDULED_VEHICLES, get_site_config


class TestSettings:
    """Test the Settings configuration class."""

    def test_settings_defaults(self):
        """Test that settings have sensible defaults."""
        from drive_api.config import Settings

        settings = Settings()

        assert settings.base_url == "https://drive.yango.com"
        assert settings.pickup_offset_hours == 2
        assert settings.schedule_times == ["11:00", "16:00"]
        assert settings.scheduled_months == 1
        assert settings.smtp_port == 587
        assert settings.api_port == 8000

    def test_settings_recipients(self):
        """Test that the comma-separated recipient list is split."""
        from drive_api.config import Settings

        settings = Settings(recipient_email=" a@example.com, ,b@example.com ")

        assert settings.recipients == ["a@example.com", "b@example.com"]
        assert Settings(recipient_email="").recipients == []

    def test_settings_timezone(self):
        """Test that the schedule timezone resolves."""
        from drive_api.config import Settings

        assert Settings(timezone="Asia/Dubai").tz == ZoneInfo("Asia/Dubai")

    def test_settings_from_environment(self, monkeypatch):
        """Test that env vars load case-insensitively and unknown keys are ignored."""
        from drive_api.config import Settings

        monkeypatch.setenv("smtp_port", "2525")
        monkeypatch.setenv("SCHEDULER_ENABLED", "true")

        settings = Settings(not_a_setting="x")

        assert settings.smtp_port == 2525
        assert settings.scheduler_enabled is True
        assert not hasattr(settings, "not_a_setting")
        assert Settings.model_config["extra"] == "ignore"

    def test_settings_log_paths(self):
        """Test that log paths are valid."""
        from drive_api.config import settings

        assert settings.log_dir is not None
        assert settings.log_file.name == "scraper.log"
        assert settings.output_dir.name == "temp"


class TestSiteConfig:
    """Test the marketplace configuration."""

    def test_yango_config(self):
        config = get_site_config('yango')

        assert config.name == "Yango Drive"
        assert config.max_cards == 5
        assert config.extract_attempts == 2
        assert config.navigation_timeout_ms == 15000
        assert config.selectors.button == 'button[data-testid="Card.Book"]'

    def test_unknown_site(self):
        with pytest.raises(ValueError, match="Valid sites: yango"):
            get_site_config('turo')

    def test_scheduled_vehicles(self):
        assert len(SCHEDULED_VEHICLES) == 17
        assert "kia seltos" in SCHEDULED_VEHICLES


class TestLogging:
    """Test log formatting."""

    def test_color_codes_stripped_for_file(self):
        from drive_api.logging_config import ColorStripFormatter

        record = logging.LogRecord("scraper.YANGO", logging.INFO, __file__, 1, Colors.green("[OK]"), None, None)

        assert ColorStripFormatter("%(message)s").format(record) == "[OK]"

    def test_scraper_logger_does_not_propagate(self):
        from drive_api.config import Settings
        from drive_api.logging_config import setup_logging

        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        scraper_logger = logging.getLogger('scraper')
        try:
            setup_logging(Settings(log_level="DEBUG"), log_to_file=False)

            assert scraper_logger.propagate is False
            assert scraper_logger.level == logging.DEBUG
            assert len(scraper_logger.handlers) == 1
        finally:
            scraper_logger.handlers.clear()
            scraper_logger.propagate = True
            scraper_logger.setLevel(logging.NOTSET)
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
