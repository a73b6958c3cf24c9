"""Article link discovery from the paginated index page.

:class:`LinkCollector` loads the index, clicks its "load more" control until
the control disappears, then reads every article title link and resolves it
with :func:`resolve_links`.

Failure to load the index is recoverable: the collector returns an empty
list and the run proceeds with nothing to mine.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any
from urllib.parse import urljoin, urldefrag, urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Response

from archive_miner.browser.polling import first_completed
from archive_miner.core.models import ArticleLink
from archive_miner.scraper.config import (
    LOAD_MORE_SELECTOR,
    PAGINATION_URL_FRAGMENTS,
    TITLE_LINK_SELECTOR,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def resolve_links(hrefs: Iterable[str | None], base_url: str) -> list[ArticleLink]:
    """Resolve raw anchor hrefs into deduplicated absolute article URLs.

    Each href is joined against ``base_url``.  Empty hrefs, non-HTTP schemes
    (``javascript:``, ``mailto:``) and URLs on another origin are dropped, and
    URL fragments are removed.  Order of first appearance is preserved.

    Args:
        hrefs: Raw ``href`` attribute values, possibly relative or ``None``.
        base_url: Origin of the index site, e.g. ``"https://hbr.org"``.

    Returns:
        Absolute URLs under ``base_url``'s origin, without duplicates.
    """
    origin = _origin(base_url)
    seen: dict[str, None] = {}
    for href in hrefs:
        if not href or not href.strip():
            continue
        absolute, _fragment = urldefrag(urljoin(base_url, href.strip()))
        parsed = urlparse(absolute)
        if parsed.scheme not in ("http", "https"):
            continue
        if _origin(absolute) != origin:
            continue
        seen.setdefault(absolute, None)
    return list(seen)


def _is_pagination_response(response: Response) -> bool:
    return any(fragment in response.url for fragment in PAGINATION_URL_FRAGMENTS)


# ---------------------------------------------------------------------------
# Collector
# ---------------------------------------------------------------------------


class LinkCollector:
    """Collects article links from the index page.

    Args:
        index_url: Listing page to load.
        base_url: Origin that relative hrefs are resolved against.
        load_timeout: Seconds to wait for the index and its first title links.
        settle_delay: Seconds after each "load more" click before moving on
            when no pagination response has arrived.
        max_steps: Maximum number of "load more" clicks.
        title_selector: Selector for article title anchors.
        load_more_selector: Selector for the pagination control.
        sleep: Async sleep used for the post-click settle delay.
    """

    def __init__(
        self,
        index_url: str,
        base_url: str,
        *,
        load_timeout: float = 80.0,
        settle_delay: float = 0.8,
        max_steps: int = 200,
        title_selector: str = TITLE_LINK_SELECTOR,
        load_more_selector: str = LOAD_MORE_SELECTOR,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.index_url = index_url
        self.base_url = base_url
        self.load_timeout = load_timeout
        self.settle_delay = settle_delay
        self.max_steps = max_steps
        self.title_selector = title_selector
        self.load_more_selector = load_more_selector
        self._sleep = sleep

    async def collect(self, page: Page) -> list[ArticleLink]:
        """Load the index, exhaust pagination and return the article links.

        Returns an empty list, without raising, when the index or its title
        links fail to load in time.
        """
        timeout_ms = self.load_timeout * 1000
        try:
            await page.goto(self.index_url, wait_until="load", timeout=timeout_ms)
            await page.wait_for_selector(self.title_selector, timeout=timeout_ms)
        except PlaywrightError as exc:
            logger.warning("collector: failed to load index %s: %s", self.index_url, exc)
            return []

        steps = await self._paginate(page)
        try:
            hrefs: Sequence[str | None] = await page.eval_on_selector_all(
                self.title_selector,
                "anchors => anchors.map(a => a.getAttribute('href'))",
            )
        except PlaywrightError as exc:
            logger.warning("collector: could not read title links: %s", exc)
            return []
        links = resolve_links(hrefs, self.base_url)
        logger.info(
            "collector: %d unique links from %d anchors after %d pagination step(s)",
            len(links),
            len(hrefs),
            steps,
        )
        return links

    async def _paginate(self, page: Page) -> int:
        """Click "load more" until it vanishes; return the number of clicks."""
        steps = 0
        while steps < self.max_steps:
            try:
                button = await page.query_selector(self.load_more_selector)
            except PlaywrightError as exc:
                logger.info("collector: load-more lookup failed, stopping: %s", exc)
                break
            if button is None:
                break

            response_wait = asyncio.ensure_future(self._wait_for_pagination_response(page))
            try:
                await button.click(timeout=self.load_timeout * 1000)
            except PlaywrightError as exc:
                response_wait.cancel()
                await asyncio.gather(response_wait, return_exceptions=True)
                logger.info("collector: load-more control unusable, stopping: %s", exc)
                break

            await first_completed(response_wait, self._sleep(self.settle_delay))
            steps += 1
        else:
            logger.warning("collector: stopped pagination at %d steps", self.max_steps)
        return steps

    async def _wait_for_pagination_response(self, page: Page) -> bool:
        try:
            await page.wait_for_event(
                "response",
                predicate=_is_pagination_response,
                timeout=self.load_timeout * 1000,
            )
        except PlaywrightError:
            return False
        return True
