"""
Pytest configuration and fixtures for the scraper tests.

Browser objects are replaced by small fakes that serve canned HTML, so the
pagination, retry and enrichment logic runs without Chromium.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import pytest
from bs4 import BeautifulSoup
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from drive_scraper.config import get_site_config
from drive_scraper.sites.yango import YangoScraper


REFERENCE_TIME = datetime(2024, 1, 1, 8, 0, 0, tzinfo=timezone.utc)


def card_html(
    title: str,
    model: str = "Kia Seltos 2023 or similar",
    features: Optional[List[str]] = None,
    prices: Optional[List[tuple]] = None,
    button: bool = True,
) -> str:
    """One listing card as the marketplace renders it."""
    if features is None:
        features = ["Automatic", "5 seats"]
    if prices is None:
        prices = [("AED 140", True), ("AED 105 / day", False), ("Total: AED 105", False)]

    feature_spans = "".join(
        f'<span class="Text_Text__F4Wpv Card_CardBubble__zukT3">{f}</span>' for f in features
    )
    price_lines = "".join(
        f'<p><span class="Price_crossOut__QufS3">{text}</span></p>' if struck else f"<p>{text}</p>"
        for text, struck in prices
    )
    button_html = '<button data-testid="Card.Book">View Deal</button>' if button else ""
    return (
        '<div class="Card_Card__Q1x">'
        '<div class="Card_CardHeader__zq2">'
        f'<span class="Card_CardTitleMedium__korrS">{title}</span>'
        f'<span class="ButtonSimilarInfo_ButtonSimilarInfoPrefix___Qou3">{model}</span>'
        '</div>'
        f'<div class="HStack_HStack__bHoaj Card_CardBubbles__zuOuw">{feature_spans}</div>'
        f'<div class="Heading_Heading__PjLg8 Card_CardPrice__spWUR">{price_lines}</div>'
        f'{button_html}'
        '</div>'
    )


def listing_html(cards: List[str]) -> str:
    return f"<html><body><main>{''.join(cards)}</main></body></html>"


DETAIL_HTML = """
<html><body>
<div class="Island_IslandWrap__QuZPl Book_Island__a1">
  <h3>Insurance</h3>
  <div class="SlotText_Title__gHEmU">Not this one 999 km</div>
</div>
<div class="Island_IslandWrap__QuZPl Book_Island__a2">
  <h3>Mileage limit</h3>
  <div class="SlotText_Title__gHEmU">1,500 km included</div>
  <div class="SlotText_Subtitle__yHTPE">then AED 0.5 per extra km</div>
</div>
<div class="BookFormInsuranceOptions_island__x9">
  <div>Comprehensive Insurance</div>
  <div>Excess amount up to 1500 AED</div>
  <div>Deposit-free ride for AED 50</div>
  <div>Deposit</div>
  <div>AED 1,000</div>
</div>
</body></html>
"""


class FakeLocator:
    def __init__(self, page, selector: str, index: int = 0):
        self.page = page
        self.selector = selector
        self.index = index

    def nth(self, index: int):
        return FakeLocator(self.page, self.selector, index)

    async def scroll_into_view_if_needed(self):
        pass

    async def wait_for(self, state: str = "visible", timeout: Optional[int] = None):
        if self.page.button_hidden:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    async def click(self, timeout: Optional[int] = None):
        self.page.clicks.append(self.index)
        self.page.showing_detail = True


class FakeBrowserContext:
    def __init__(self):
        self.cookie_jar = [{"name": "session", "value": "abc", "domain": "drive.yango.com"}]

    async def cookies(self):
        return list(self.cookie_jar)


class FakePage:
    """
    Serves listing HTML keyed by a URL fragment (e.g. "kia/seltos"), and
    the detail HTML after a View Deal click.
    """

    def __init__(
        self,
        listings: Dict[str, str],
        detail_html: Optional[str] = DETAIL_HTML,
        content_failures: int = 0,
        goto_timeout: bool = False,
        button_hidden: bool = False,
    ):
        self.listings = listings
        self.detail_html = detail_html
        self.content_failures = content_failures
        self.goto_timeout = goto_timeout
        self.button_hidden = button_hidden
        self.context = FakeBrowserContext()
        self.urls: List[str] = []
        self.clicks: List[int] = []
        self.showing_detail = False
        self.closed = False

    def _current_listing(self) -> Optional[str]:
        url = self.urls[-1] if self.urls else ""
        for fragment, html in self.listings.items():
            if fragment in url:
                return html
        return None

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None):
        if self.goto_timeout:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")
        self.urls.append(url)
        self.showing_detail = False

    async def wait_for_selector(self, selector: str, state: Optional[str] = None, timeout: Optional[int] = None):
        if self.showing_detail:
            if self.detail_html is None:
                raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
            return
        html = self._current_listing()
        if html is None or not BeautifulSoup(html, "html.parser").select(selector):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def content(self) -> str:
        if self.showing_detail:
            return self.detail_html or "<html></html>"
        if self.content_failures > 0:
            self.content_failures -= 1
            raise RuntimeError("Execution context was destroyed, most likely because of a navigation")
        return self._current_listing() or "<html></html>"

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def close(self):
        self.closed = True


class FakeSession:
    """Stands in for BrowserSession; hands out FakePages."""

    def __init__(self, page_factory: Callable[[], FakePage], on_close_page: Optional[Callable] = None):
        self.page_factory = page_factory
        self.on_close_page = on_close_page
        self.pages: List[FakePage] = []
        self.isolated_pages = 0
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def open_page(self, isolated: bool = False):
        page = self.page_factory()
        self.pages.append(page)
        if isolated:
            self.isolated_pages += 1
        return page

    async def close_page(self, page):
        await page.close()
        if self.on_close_page:
            self.on_close_page(page)

    async def close(self):
        self.closed = True


@pytest.fixture
def fast_config():
    """Yango site config without pauses between attempts."""
    return replace(get_site_config("yango"), retry_pause_seconds=0, settle_seconds=0)


@pytest.fixture
def scraper(fast_config):
    return YangoScraper(fast_config)


@pytest.fixture
def selectors(fast_config):
    return fast_config.selectors


@pytest.fixture
def three_card_listing():
    return listing_html([
        card_html("Kia Seltos", model="Kia Seltos 2023 or similar"),
        card_html("Kia Seltos", model="Kia Seltos 2022", prices=[("AED 120 / day", False), ("Total: AED 120", False)]),
        card_html("Kia Seltos", model="Kia Seltos", button=False, prices=[("AED 130 / day", False)]),
    ])
