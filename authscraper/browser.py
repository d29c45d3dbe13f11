"""
Browser Session
===============
One Playwright driver, browser, context and page per scrape request.

Usage::

    async with BrowserSession(config) as session:
        await session.page.goto(url)

Teardown runs on every exit path, including failures halfway through
``__aenter__``.
"""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .errors import BrowserLaunchError, PageCreationError
from .run_config import ScraperRunConfig
from .stealth import apply_evasions, context_options, launch_args

logger = logging.getLogger(__name__)


class BrowserSession:
    """Async context manager owning the browser for one request."""

    def __init__(self, config: Optional[ScraperRunConfig] = None):
        self.config = config or ScraperRunConfig()
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    async def __aenter__(self) -> "BrowserSession":
        try:
            await self._start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _start(self) -> None:
        logger.info(f"[SESSION] Launching Chromium (headless={self.config.headless})")
        try:
            self._playwright = await async_playwright().start()
            self.browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=launch_args(),
            )
        except PlaywrightError as exc:
            raise BrowserLaunchError(str(exc)) from exc

        try:
            self.context = await self.browser.new_context(**context_options(self.config))
            self.context.set_default_navigation_timeout(self.config.navigation_timeout_ms)
            await apply_evasions(self.context)
            self.page = await self.context.new_page()
        except PlaywrightError as exc:
            raise PageCreationError(str(exc)) from exc

    async def close(self) -> None:
        """Close page, context, browser and driver; never raises."""
        if self.context is not None:
            try:
                await self.context.close()
            except PlaywrightError as exc:
                logger.debug(f"[SESSION] Context close failed: {exc}")
            self.context = None
            self.page = None
        if self.browser is not None:
            try:
                await self.browser.close()
            except PlaywrightError as exc:
                logger.debug(f"[SESSION] Browser close failed: {exc}")
            self.browser = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as exc:
                logger.debug(f"[SESSION] Driver stop failed: {exc}")
            self._playwright = None
            logger.info("[SESSION] Browser closed")
