"""
Tests for command line argument handling.
"""

from drive_scraper.config import SCHEDULED_VEHICLES
from drive_api.cli import build_parser, main, options_from_args
from drive_api.config import settings


def parse(*argv):
    return options_from_args(build_parser().parse_args(list(argv)))


class TestRunOptions:
    """Test translating `run` flags into scrape options."""

    def test_explicit_vehicles_and_periods(self):
        options = parse("run", "--vehicle", "kia seltos", "--vehicle", "mg 5", "--weekly")

        assert options.vehicles == ["kia seltos", "mg 5"]
        assert (options.daily, options.weekly, options.monthly) == (False, True, False)
        assert options.send_email is False

    def test_months_enables_monthly(self):
        options = parse("run", "--vehicle", "mg 5", "--months", "3", "--email")

        assert options.monthly is True
        assert options.months == 3
        assert options.daily is False
        assert options.send_email is True

    def test_no_flags_runs_scheduled_cycle(self):
        options = parse("run")

        assert options.vehicles == SCHEDULED_VEHICLES
        assert (options.daily, options.weekly, options.monthly) == (True, True, True)
        assert options.months == settings.scheduled_months


def test_vehicles_command(capsys):
    assert main(["vehicles"]) == 0
    assert capsys.readouterr().out.splitlines() == SCHEDULED_VEHICLES
