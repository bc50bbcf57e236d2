"""
Yango Drive scraper.

The search results are a client-rendered list of uniform cards sorted by
price. Cards have no stable ids, so a card is addressed by its position
in each of the parallel title / feature / price lists.

Site structure:
- Listing page: card titles, feature bubbles and price blocks, one of each
  per card, plus a "View Deal" button per card
- Detail panel (after clicking "View Deal"): a mileage island with slot
  titles/subtitles and an insurance options island
"""

import asyncio
import re
from typing import List, Optional, Tuple
from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..base import (
    BaseScraper,
    CardCandidate,
    CardRecord,
    EnrichmentFailure,
    NOT_AVAILABLE,
    RentalPeriod,
    SelectorProfile,
    SiteConfig,
)
from ..config import get_site_config
from ..periods import build_listing_url
from ..utils.extractors import (
    classify_price_lines,
    extract_insurance,
    extract_mileage,
    extract_year,
    join_features,
)
from ..utils.normalizers import normalize_whitespace


# Elements that start a new line in rendered text
BLOCK_TAGS = {
    'address', 'article', 'aside', 'blockquote', 'dd', 'div', 'dl', 'dt',
    'fieldset', 'figcaption', 'figure', 'footer', 'form', 'h1', 'h2', 'h3',
    'h4', 'h5', 'h6', 'header', 'hr', 'li', 'main', 'nav', 'ol',
    'p', 'section', 'table', 'tr', 'ul',
}
SKIPPED_TAGS = {'script', 'style', 'template'}


def _collect_text(node: Tag, parts: List[str]):
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            parts.append(re.sub(r'\s+', ' ', str(child)))
        elif child.name == 'br':
            parts.append('\n')
        elif child.name in SKIPPED_TAGS:
            continue
        elif child.name in BLOCK_TAGS:
            parts.append('\n')
            _collect_text(child, parts)
            parts.append('\n')
        else:
            _collect_text(child, parts)


def rendered_lines(element: Tag) -> List[str]:
    """
    Split an element's text into the lines a browser would render.

    Inline markup stays on its line, block elements and <br> break lines:
        <div>Excess up to <b>1500</b> AED</div><div>Deposit</div>
            -> ["Excess up to 1500 AED", "Deposit"]
    """
    parts: List[str] = []
    _collect_text(element, parts)
    lines = (normalize_whitespace(line) for line in ''.join(parts).split('\n'))
    return [line for line in lines if line]


def parse_card(
    soup: BeautifulSoup,
    index: int,
    selectors: SelectorProfile,
    vehicle: str,
    period_label: str,
    max_cards: int = 5,
) -> Optional[CardCandidate]:
    """
    Parse the card at `index` from a listing snapshot.

    Returns:
        CardCandidate, or None when the index is past the card limit or no
        title exists there (the list is exhausted)
    """
    if index >= max_cards:
        return None

    titles = soup.select(selectors.title)
    if index >= len(titles):
        return None

    feature_divs = soup.select(selectors.features)
    price_divs = soup.select(selectors.price)
    buttons = soup.select(selectors.button)

    title = titles[index]
    container = title.find_parent('div')
    if container is None:
        return None

    record = CardRecord(original_vehicle=vehicle, period=period_label)
    record.car_name = title.get_text().strip() or NOT_AVAILABLE

    model_el = container.select_one(selectors.model)
    record.model = model_el.get_text().strip() if model_el else NOT_AVAILABLE
    record.year = extract_year(record.model)

    if index < len(feature_divs):
        spans = feature_divs[index].select(selectors.feature_spans)
        record.description = join_features(span.get_text() for span in spans)

    if index < len(price_divs):
        lines = [
            (p.get_text(), p.select_one(selectors.price_cross_out) is not None)
            for p in price_divs[index].find_all('p')
        ]
        prices = classify_price_lines(lines)
        record.cross_price = prices['cross_price']
        record.actual_price = prices['actual_price']
        record.total = prices['total']

    return CardCandidate(record=record, has_action=index < len(buttons))


def parse_detail(soup: BeautifulSoup, selectors: SelectorProfile) -> Tuple[str, str]:
    """
    Parse mileage and insurance terms from a detail panel snapshot.

    Returns:
        Tuple of (mileage, insurance_and_options)
    """
    mileage = NOT_AVAILABLE
    for island in soup.select(selectors.detail_island):
        heading = island.select_one(selectors.detail_heading)
        if heading and 'mileage' in heading.get_text().lower():
            texts = [el.get_text() for el in island.select(selectors.slot_title)]
            texts += [el.get_text() for el in island.select(selectors.slot_subtitle)]
            mileage = extract_mileage(texts)
            break

    insurance = NOT_AVAILABLE
    section = soup.select_one(selectors.insurance_section)
    if section is not None:
        insurance = extract_insurance(rendered_lines(section))

    return mileage, insurance


class YangoScraper(BaseScraper):
    """
    Scraper for Yango Drive.

    Reads up to `max_cards` cards per (vehicle, period) listing, opening
    each card's detail panel for mileage and insurance terms.
    """

    def __init__(self, config: Optional[SiteConfig] = None):
        super().__init__(config or get_site_config('yango'))

    def build_listing_url(self, vehicle: str, period: RentalPeriod) -> str:
        return build_listing_url(self.config.base_url, vehicle, period)

    async def read_card(self, page, index: int, vehicle: str, period_label: str) -> Optional[CardCandidate]:
        html = await page.content()
        soup = BeautifulSoup(html, 'html.parser')
        return parse_card(
            soup,
            index,
            self.selectors,
            vehicle,
            period_label,
            max_cards=self.config.max_cards,
        )

    async def _open_detail(self, page, index: int):
        """Click the card's View Deal button and wait for the detail panel."""
        try:
            button = page.locator(self.selectors.button).nth(index)
            await button.scroll_into_view_if_needed()
            await button.wait_for(state='visible', timeout=self.config.button_visible_timeout_ms)
            self.logger.info(f"Clicking View Deal for car {index + 1}")
            await button.click(timeout=self.config.click_timeout_ms)
        except Exception as e:
            raise EnrichmentFailure(f"View Deal click failed: {e}") from e

        if self.config.settle_seconds > 0:
            await asyncio.sleep(self.config.settle_seconds)

        try:
            await page.wait_for_selector(
                self.selectors.detail_island,
                state='visible',
                timeout=self.config.detail_timeout_ms,
            )
        except PlaywrightTimeoutError:
            self.logger.warning(f"Mileage section not found for car {index + 1}")

    async def enrich_card(self, page, record: CardRecord, index: int) -> None:
        try:
            await self._open_detail(page, index)
            soup = BeautifulSoup(await page.content(), 'html.parser')
            mileage, insurance = parse_detail(soup, self.selectors)

            self.logger.info(
                f"Scraped second page for car {index + 1}: "
                f'Mileage="{mileage}", Insurance="{insurance}"'
            )
            record.mileage = mileage
            record.insurance_and_options = insurance

            try:
                self.cookie_store = await page.context.cookies()
            except Exception as e:
                self.logger.debug(f"Could not snapshot cookies: {e}")

        except Exception as e:
            self.logger.error(f"Error on second page for car {index + 1}: {e}")
            record.mileage = NOT_AVAILABLE
            record.insurance_and_options = NOT_AVAILABLE
