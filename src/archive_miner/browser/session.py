"""Shared headless Chromium session.

One :class:`BrowserSession` is started per run and owns the Playwright
driver, the browser process and a single browser context.  Every consumer
opens pages through :meth:`BrowserSession.page`, which closes the page on
every exit path so that repeated failures cannot leak tabs.

Install Playwright and download the Chromium browser binary::

    pip install playwright>=1.48
    playwright install chromium
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from archive_miner.core.exceptions import BrowserStartupError
from archive_miner.scraper.config import BROWSER_ARGS, DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)


class BrowserSession:
    """Owns one Chromium instance and hands out short-lived pages.

    Use as an async context manager::

        async with BrowserSession(headless=True) as session:
            async with session.page("index") as page:
                await page.goto("https://example.com")

    Args:
        headless: Launch without a visible window.
        user_agent: User-Agent presented by every page.
        browser_args: Extra Chromium command-line flags.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        browser_args: Sequence[str] = BROWSER_ARGS,
    ) -> None:
        self._headless = headless
        self._user_agent = user_agent
        self._browser_args = list(browser_args)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._open_pages: dict[int, str] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> BrowserSession:
        """Launch the driver, the browser and the shared context.

        Raises:
            BrowserStartupError: If any launch step fails.  Partially started
                resources are released before raising.
        """
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._headless,
                args=self._browser_args,
            )
            self._context = await self._browser.new_context(
                user_agent=self._user_agent,
                viewport={"width": 1920, "height": 1080},
            )
        except Exception as exc:
            await self.close()
            raise BrowserStartupError(f"could not start Chromium: {exc}") from exc

        logger.info("browser: session started (headless=%s)", self._headless)
        return self

    async def close(self) -> None:
        """Close the context, the browser and the driver.  Safe to call twice."""
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as exc:  # noqa: BLE001
                logger.debug("browser: context close failed: %s", exc)
            self._context = None
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:  # noqa: BLE001
                logger.debug("browser: browser close failed: %s", exc)
            self._browser = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:  # noqa: BLE001
                logger.debug("browser: driver stop failed: %s", exc)
            self._playwright = None

    async def __aenter__(self) -> BrowserSession:
        return await self.start()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    @property
    def open_page_count(self) -> int:
        """Number of pages opened through :meth:`page` that are still open."""
        return len(self._open_pages)

    @asynccontextmanager
    async def page(self, name: str = "page") -> AsyncIterator[Page]:
        """Open a page for the duration of the ``async with`` block.

        The page is closed when the block exits, whether it returns normally
        or raises.

        Args:
            name: Label used in log messages (e.g. ``"index"``, ``"archive"``).
        """
        if self._context is None:
            raise RuntimeError("BrowserSession.page() called before start()")

        page = await self._context.new_page()
        self._open_pages[id(page)] = name
        logger.debug("browser: opened %s page (open=%d)", name, self.open_page_count)
        try:
            yield page
        finally:
            self._open_pages.pop(id(page), None)
            try:
                await page.close()
            except Exception as exc:  # noqa: BLE001
                logger.debug("browser: closing %s page failed: %s", name, exc)
