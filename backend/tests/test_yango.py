"""
Tests for the Yango Drive card extractor, detail enricher and the
pagination loop, using fake pages.
"""

import asyncio

import pytest
from bs4 import BeautifulSoup

from drive_scraper.base import (
    CancellationToken,
    CardRecord,
    ExtractionTransient,
    NOT_AVAILABLE,
    PeriodKind,
    RECORD_COLUMNS,
)
from drive_scraper.periods import build_period
from drive_scraper.sites.yango import parse_card, parse_detail, rendered_lines

from conftest import DETAIL_HTML, REFERENCE_TIME, FakePage, card_html, listing_html


def soup_of(html):
    return BeautifulSoup(html, "html.parser")


@pytest.fixture
def daily_period():
    return build_period(PeriodKind.DAILY, REFERENCE_TIME)


class TestParseCard:
    """Test reading one card from a listing snapshot."""

    def test_first_card(self, selectors, three_card_listing):
        candidate = parse_card(soup_of(three_card_listing), 0, selectors, "kia seltos", "P")
        record = candidate.record

        assert candidate.has_action is True
        assert record.car_name == "Kia Seltos"
        assert record.model == "Kia Seltos 2023 or similar"
        assert record.year == "2023"
        assert record.description == "Automatic, 5 seats"
        assert record.cross_price == "AED 140"
        assert record.actual_price == "AED 105 / day"
        assert record.total == "AED 105"
        assert record.original_vehicle == "kia seltos"
        assert record.period == "P"

    def test_card_without_action_or_year(self, selectors, three_card_listing):
        candidate = parse_card(soup_of(three_card_listing), 2, selectors, "kia seltos", "P")

        assert candidate.has_action is False
        assert candidate.record.year == NOT_AVAILABLE
        assert candidate.record.cross_price == NOT_AVAILABLE
        assert candidate.record.total == NOT_AVAILABLE

    def test_index_past_last_card(self, selectors, three_card_listing):
        assert parse_card(soup_of(three_card_listing), 3, selectors, "kia seltos", "P") is None

    def test_card_cap(self, selectors):
        html = listing_html([card_html(f"Car {i}") for i in range(8)])

        assert parse_card(soup_of(html), 4, selectors, "v", "P") is not None
        for index in (5, 6, 7):
            assert parse_card(soup_of(html), index, selectors, "v", "P") is None

    def test_empty_feature_list(self, selectors):
        html = listing_html([card_html("Kia Sonet", features=[])])
        record = parse_card(soup_of(html), 0, selectors, "kia sonet", "P").record

        assert record.description == NOT_AVAILABLE


class TestParseDetail:
    """Test reading the detail panel."""

    def test_mileage_and_insurance(self, selectors):
        mileage, insurance = parse_detail(soup_of(DETAIL_HTML), selectors)

        assert mileage == "1500 km, then 0.5 AED per km"
        assert insurance.splitlines()[0] == "Comprehensive Insurance"
        assert insurance.endswith(" or Deposit AED 1,000")

    def test_missing_panels(self, selectors):
        assert parse_detail(soup_of("<html></html>"), selectors) == (NOT_AVAILABLE, NOT_AVAILABLE)

    def test_insurance_lines_with_inline_markup(self, selectors):
        html = (
            '<div class="BookFormInsuranceOptions_island__x9">'
            '<div><span>Comprehensive</span> Insurance</div>'
            '<div>Excess amount up to <b>1500</b> AED</div>'
            '<div>Deposit-free ride for <span>AED 50</span></div>'
            '<div>Deposit</div>'
            '<div><span>AED</span> <span>1,000</span></div>'
            '</div>'
        )

        _, insurance = parse_detail(soup_of(html), selectors)

        assert insurance.split("\n") == [
            "Comprehensive Insurance",
            "Excess amount up to 1500 AED",
            "Deposit-free ride for AED 50",
            " or Deposit AED 1,000",
        ]


class TestRenderedLines:
    """Test splitting markup into rendered lines."""

    def test_block_and_inline_elements(self):
        soup = soup_of(
            "<section><p>Excess up to <b>1500</b>\n   AED</p>"
            "Loose text<br>after break<!-- hidden --><script>var x = 1;</script>"
            "<ul><li>One</li><li>Two</li></ul></section>"
        )

        assert rendered_lines(soup.section) == [
            "Excess up to 1500 AED",
            "Loose text",
            "after break",
            "One",
            "Two",
        ]


class TestExtractCard:
    """Test the bounded retry around card reads."""

    def test_retry_recovers_identical_record(self, scraper, three_card_listing):
        clean_page = FakePage({"kia/seltos": three_card_listing})
        flaky_page = FakePage({"kia/seltos": three_card_listing}, content_failures=1)
        for page in (clean_page, flaky_page):
            page.urls.append("https://drive.yango.com/search/all/kia/seltos")

        clean = asyncio.run(scraper.extract_card(clean_page, 0, "kia seltos", "P"))
        recovered = asyncio.run(scraper.extract_card(flaky_page, 0, "kia seltos", "P"))

        assert flaky_page.content_failures == 0
        assert recovered.record == clean.record
        assert recovered.has_action == clean.has_action

    def test_gives_up_after_two_attempts(self, scraper, three_card_listing):
        page = FakePage({"kia/seltos": three_card_listing}, content_failures=2)
        page.urls.append("https://drive.yango.com/search/all/kia/seltos")

        with pytest.raises(ExtractionTransient):
            asyncio.run(scraper.extract_card(page, 0, "kia seltos", "P"))


class TestEnrichCard:
    """Test detail enrichment."""

    def test_enrich_sets_fields_and_cookies(self, scraper):
        page = FakePage({})
        record = CardRecord()

        asyncio.run(scraper.enrich_card(page, record, 1))

        assert page.clicks == [1]
        assert record.mileage == "1500 km, then 0.5 AED per km"
        assert "Comprehensive Insurance" in record.insurance_and_options
        assert scraper.cookie_store[0]["name"] == "session"

    def test_click_failure_degrades_to_sentinel(self, scraper):
        page = FakePage({}, button_hidden=True)
        record = CardRecord(mileage="stale", insurance_and_options="stale")

        asyncio.run(scraper.enrich_card(page, record, 0))

        assert record.mileage == NOT_AVAILABLE
        assert record.insurance_and_options == NOT_AVAILABLE
        assert scraper.cookie_store == []

    def test_missing_detail_panel_is_not_fatal(self, scraper):
        page = FakePage({}, detail_html=None)
        record = CardRecord()

        asyncio.run(scraper.enrich_card(page, record, 0))

        assert record.mileage == NOT_AVAILABLE
        assert record.insurance_and_options == NOT_AVAILABLE


class TestScrapePeriod:
    """Test the pagination loop for one (vehicle, period) job."""

    def test_walks_listing_until_exhausted(self, scraper, three_card_listing, daily_period):
        page = FakePage({"kia/seltos": three_card_listing})

        outcome = asyncio.run(scraper.scrape_period(page, "kia seltos", daily_period, CancellationToken()))

        assert outcome.success is True
        assert len(outcome.records) == 3
        # One fresh listing load per index, including the one that finds nothing
        assert len(page.urls) == 4
        assert "duration_months=0" in page.urls[0]
        assert page.clicks == [0, 1]
        assert outcome.records[0].mileage == "1500 km, then 0.5 AED per km"
        assert outcome.records[2].mileage == NOT_AVAILABLE
        assert outcome.records[2].insurance_and_options == NOT_AVAILABLE

    def test_every_record_has_all_fields(self, scraper, daily_period):
        html = listing_html([card_html("Kia Seltos", button=False) for _ in range(2)])
        page = FakePage({"kia/seltos": html})

        outcome = asyncio.run(scraper.scrape_period(page, "kia seltos", daily_period, CancellationToken()))

        for record in outcome.records:
            row = record.to_row()
            assert list(row) == RECORD_COLUMNS
            assert row["Mileage"] == NOT_AVAILABLE
            assert row["Insurance & Options"] == NOT_AVAILABLE

    def test_stops_at_card_cap(self, scraper, daily_period):
        html = listing_html([card_html(f"Car {i}", button=False) for i in range(7)])
        page = FakePage({"kia/seltos": html})

        outcome = asyncio.run(scraper.scrape_period(page, "kia seltos", daily_period, CancellationToken()))

        assert len(outcome.records) == 5

    def test_no_inventory(self, scraper, daily_period):
        page = FakePage({})

        outcome = asyncio.run(scraper.scrape_period(page, "kia seltos", daily_period, CancellationToken()))

        assert outcome.success is False
        assert outcome.cancelled is False
        assert outcome.message == f"No data found for kia seltos ({daily_period.label})"

    def test_navigation_timeout_message(self, scraper, daily_period):
        page = FakePage({}, goto_timeout=True)

        outcome = asyncio.run(scraper.scrape_period(page, "kia seltos", daily_period, CancellationToken()))

        assert outcome.success is False
        assert outcome.message == "Check car name on Yango Drive website"

    def test_cancelled_before_start(self, scraper, three_card_listing, daily_period):
        page = FakePage({"kia/seltos": three_card_listing})
        token = CancellationToken()
        token.cancel()

        outcome = asyncio.run(scraper.scrape_period(page, "kia seltos", daily_period, token))

        assert outcome.cancelled is True
        assert outcome.message == "Scraping cancelled by user"
        assert page.urls == []

    def test_unreadable_card_keeps_earlier_records(self, scraper, three_card_listing, daily_period):
        page = FakePage({"kia/seltos": three_card_listing})
        original_read = scraper.read_card

        async def read_card(page, index, vehicle, period_label):
            if index == 1:
                raise RuntimeError("stale element")
            return await original_read(page, index, vehicle, period_label)

        scraper.read_card = read_card
        outcome = asyncio.run(scraper.scrape_period(page, "kia seltos", daily_period, CancellationToken()))

        assert outcome.success is True
        assert len(outcome.records) == 1
