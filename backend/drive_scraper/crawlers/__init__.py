"""Browser sessions used by the scrapers."""

from .browser import BrowserSession

__all__ = ['BrowserSession']
