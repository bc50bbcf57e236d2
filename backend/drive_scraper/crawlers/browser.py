"""
Playwright browser session for the marketplace's JS-rendered pages.

One session is opened per run. Pages are handed out per vehicle and
closed by the caller; isolated pages get their own browser context so
parallel workers never share page state.
"""

import asyncio
import os
from typing import Optional, Dict, List
from playwright.async_api import async_playwright, Browser, BrowserContext, Page
import logging

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

DEFAULT_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
}


class BrowserSession:
    """
    Chromium session shared by all jobs of one run.

    Usage:
        async with BrowserSession(headless=True) as session:
            page = await session.open_page()
            ...
            await session.close_page(page)
    """

    def __init__(
        self,
        headless: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        extra_headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the browser session.

        Args:
            headless: Run browser in headless mode
            user_agent: User-Agent sent with every request
            extra_headers: Headers added to every request
        """
        self.headless = headless
        self.user_agent = user_agent
        self.extra_headers = extra_headers or dict(DEFAULT_HEADERS)
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._isolated: List[BrowserContext] = []

    async def _new_context(self) -> BrowserContext:
        return await self._browser.new_context(
            viewport={'width': 1920, 'height': 1080},
            user_agent=self.user_agent,
            locale='en-US',
            extra_http_headers=self.extra_headers,
        )

    async def start(self):
        """Launch Playwright, Chromium and the shared context."""
        if self._browser is not None and self._browser.is_connected():
            return

        try:
            self._playwright = await async_playwright().start()

            chromium_path = self._playwright.chromium.executable_path
            if not chromium_path or not os.path.exists(chromium_path):
                raise RuntimeError("Chromium browser not found. Run: playwright install chromium")

            logger.debug("Launching Chromium browser...")
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=[
                    '--disable-blink-features=AutomationControlled',
                    '--disable-dev-shm-usage',
                    '--no-sandbox',
                ],
            )
            self._context = await self._new_context()
            logger.debug("Browser initialization successful")

        except Exception as e:
            logger.error(f"Failed to initialize browser: {e}")
            await self.close()
            raise

    async def open_page(self, isolated: bool = False) -> Page:
        """
        Open a page in the shared context, or in a fresh context when
        `isolated` is set.
        """
        if self._context is None:
            await self.start()

        if isolated:
            context = await self._new_context()
            self._isolated.append(context)
            return await context.new_page()

        return await asyncio.wait_for(self._context.new_page(), timeout=10.0)

    async def close_page(self, page: Page):
        """Close a page, and its context if it was isolated."""
        context = page.context
        try:
            await asyncio.wait_for(page.close(), timeout=2.0)
        except asyncio.TimeoutError:
            logger.warning("Page close timed out, forcing cleanup")
        except Exception as e:
            logger.debug(f"Error closing page: {e}")

        if context in self._isolated:
            self._isolated.remove(context)
            try:
                await asyncio.wait_for(context.close(), timeout=2.0)
            except Exception as e:
                logger.debug(f"Error closing isolated context: {e}")

    async def close(self):
        """Clean up browser resources with timeouts to prevent hanging."""
        cleanup_timeout = 2.0

        for context in self._isolated + ([self._context] if self._context else []):
            try:
                await asyncio.wait_for(context.close(), timeout=cleanup_timeout)
            except asyncio.TimeoutError:
                logger.warning("Context close timed out, forcing cleanup")
            except Exception as e:
                logger.warning(f"Error closing context: {e}")
        self._isolated = []
        self._context = None

        if self._browser:
            try:
                await asyncio.wait_for(self._browser.close(), timeout=cleanup_timeout)
            except asyncio.TimeoutError:
                logger.warning("Browser close timed out, forcing cleanup")
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright:
            try:
                await asyncio.wait_for(self._playwright.stop(), timeout=cleanup_timeout)
            except asyncio.TimeoutError:
                logger.warning("Playwright stop timed out, forcing cleanup")
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
