"""
Site configuration for the Yango Drive marketplace.

Defines:
- The selector profile for listing cards and the detail panel
- The SiteConfig used by the scraper (URLs, timeouts, card limit)
- The fixed vehicle list used by scheduled runs
"""

from .base import SelectorProfile, SiteConfig


# ============================================================
# SELECTORS
# ============================================================

YANGO_SELECTORS = SelectorProfile(
    title='span[class*="Card_CardTitleMedium__korrS"]',
    features='div[class*="HStack_HStack__bHoaj Card_CardBubbles__zuOuw"]',
    feature_spans='span[class*="Text_Text__F4Wpv Card_CardBubble__zukT3"]',
    price='div[class*="Heading_Heading__PjLg8 Card_CardPrice__spWUR"]',
    price_cross_out='.Price_crossOut__QufS3',
    model='span[class*="ButtonSimilarInfo_ButtonSimilarInfoPrefix___Qou3"]',
    button='button[data-testid="Card.Book"]',
    detail_island='div[class*="Island_IslandWrap__QuZPl"]',
    detail_heading='h3',
    slot_title='div[class*="SlotText_Title__gHEmU"]',
    slot_subtitle='div[class*="SlotText_Subtitle__yHTPE"]',
    insurance_section='div[class*="BookFormInsuranceOptions_island__"]',
)


# ============================================================
# SITE CONFIGURATIONS
# ============================================================

SITES = {
    'yango': SiteConfig(
        name='Yango Drive',
        short_name='YANGO',
        base_url='https://drive.yango.com',
        selectors=YANGO_SELECTORS,
        max_cards=5,
    ),
}


# ============================================================
# SCHEDULED RUN
# ============================================================

# Vehicles scraped by every scheduled run
SCHEDULED_VEHICLES = [
    'exeed lx',
    'jac j7',
    'jac js4',
    'kaiyi x3',
    'kia pegas',
    'kia seltos',
    'kia sonet',
    'mg 3',
    'mg 5',
    'mg gt',
    'mitsubishi asx',
    'mitsubishi attrage',
    'mitsubishi xpander',
    'nissan kicks',
    'nissan sunny',
    'suzuki ciaz',
    'suzuki dzire',
]


def get_site_config(site_key: str) -> SiteConfig:
    """
    Get configuration for a site by its key.

    Raises:
        ValueError: If site_key is not found
    """
    if site_key not in SITES:
        valid_keys = ', '.join(sorted(SITES.keys()))
        raise ValueError(f"Unknown site: '{site_key}'. Valid sites: {valid_keys}")
    return SITES[site_key]

