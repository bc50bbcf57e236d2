"""Site-specific scraper implementations."""

from .yango import YangoScraper

__all__ = ['YangoScraper']
