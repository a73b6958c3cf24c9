"""Drive the archive provider from an original article URL to a rendered snapshot.

Three interchangeable strategies are provided, selected by
:class:`~archive_miner.scraper.config.Strategy`:

``SEARCH_FORM``
    Type the URL into the provider's search form, find the first snapshot
    link on the results page (which may sit inside a ``frame``), and follow it.

``DIRECT_LOADER``
    Request the provider's submit endpoint, then poll for either a snapshot
    frame or a top-level ``h1``.

``DIRECT_REVISIT``
    Request the combined search-and-run URL, wait for capture to settle, find
    the snapshot link, then navigate to it explicitly and wait for the
    article heading.

Every locator honours the same contract: :meth:`SnapshotLocator.locate`
returns an :class:`~archive_miner.core.models.ExtractionContext`, or
:data:`~archive_miner.core.models.NOT_FOUND` when the provider shows no
snapshot within the time budget.  Navigation faults propagate so the retry
layer can classify them.  Locators never open or close pages; the caller
owns the page's lifecycle.

Example usage::

    locator = build_locator(Strategy.SEARCH_FORM, archive_base_url="https://archive.is")
    located = await locator.locate(page, "https://hbr.org/2024/05/some-article")
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, ClassVar, Union
from urllib.parse import quote

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from archive_miner.browser.polling import poll_first
from archive_miner.core.models import NOT_FOUND, ExtractionContext, _NotFound
from archive_miner.scraper.config import (
    ARTICLE_HEADING_SELECTOR,
    LOADER_PATH_TEMPLATE,
    RESULTS_FRAME_SELECTOR,
    RUN_PATH_TEMPLATE,
    SEARCH_INPUT_SELECTOR,
    Strategy,
    snapshot_link_selector,
    snapshot_url_pattern,
)

if TYPE_CHECKING:
    from playwright.async_api import Frame, Page

    from archive_miner.config.settings import Settings

logger = logging.getLogger(__name__)

#: Return type of :meth:`SnapshotLocator.locate`.
LocateResult = Union[ExtractionContext, _NotFound]


class SnapshotLocator(ABC):
    """Base class for archive provider navigation strategies.

    Subclasses set ``strategy`` and implement :meth:`_locate`.  The public
    :meth:`locate` enforces the overall time budget.

    Args:
        archive_base_url: Provider origin, e.g. ``"https://archive.is"``.
        navigation_timeout: Seconds allowed for any one page navigation.
        snapshot_link_timeout: Seconds to wait for a snapshot link.
        budget: Hard cap in seconds on one :meth:`locate` call.
        sleep: Async sleep used for fixed waits and polling.
        clock: Monotonic clock used for polling deadlines.
    """

    strategy: ClassVar[Strategy]

    def __init__(
        self,
        archive_base_url: str = "https://archive.is",
        *,
        navigation_timeout: float = 60.0,
        snapshot_link_timeout: float = 15.0,
        budget: float = 180.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.archive_base_url = archive_base_url.rstrip("/")
        self.navigation_timeout = navigation_timeout
        self.snapshot_link_timeout = snapshot_link_timeout
        self.budget = budget
        self.link_selector = snapshot_link_selector(self.archive_base_url)
        self.snapshot_pattern = snapshot_url_pattern(self.archive_base_url)
        self._sleep = sleep
        self._clock = clock

    async def locate(self, page: Page, original_url: str) -> LocateResult:
        """Return the context holding the snapshot of ``original_url``.

        Returns:
            An :class:`ExtractionContext`, or ``NOT_FOUND`` if no snapshot
            appeared within the budget.

        Raises:
            playwright.async_api.Error: On navigation faults that may succeed
                on retry.
        """
        try:
            return await asyncio.wait_for(self._locate(page, original_url), timeout=self.budget)
        except asyncio.TimeoutError:
            logger.warning(
                "locator[%s]: budget of %.0fs exhausted for %s",
                self.strategy.value,
                self.budget,
                original_url,
            )
            return NOT_FOUND

    @abstractmethod
    async def _locate(self, page: Page, original_url: str) -> LocateResult:
        """Strategy-specific navigation.  Must not wait without a timeout."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @property
    def _nav_ms(self) -> float:
        return self.navigation_timeout * 1000

    def _endpoint(self, template: str, original_url: str) -> str:
        return self.archive_base_url + template.format(url=quote(original_url, safe=""))

    async def _results_root(self, page: Page) -> tuple[Union[Page, Frame], bool]:
        """Return the frame holding search results, or the page itself."""
        handle = await page.query_selector(RESULTS_FRAME_SELECTOR)
        if handle is not None:
            frame = await handle.content_frame()
            if frame is not None:
                return frame, True
        return page, False

    async def _find_snapshot_link(self, root: Union[Page, Frame]) -> str | None:
        """Return the href of the first snapshot link, or ``None`` on timeout."""
        try:
            await root.wait_for_selector(
                self.link_selector, timeout=self.snapshot_link_timeout * 1000
            )
        except PlaywrightTimeoutError:
            return None
        return await root.eval_on_selector(self.link_selector, "a => a.href")


class SearchFormLocator(SnapshotLocator):
    """Submit the URL through the provider's search form and follow the first hit."""

    strategy = Strategy.SEARCH_FORM

    async def _locate(self, page: Page, original_url: str) -> LocateResult:
        await page.goto(
            self.archive_base_url + "/",
            wait_until="domcontentloaded",
            timeout=self._nav_ms,
        )
        await page.wait_for_selector(SEARCH_INPUT_SELECTOR, timeout=self._nav_ms)
        await page.fill(SEARCH_INPUT_SELECTOR, original_url)
        async with page.expect_navigation(wait_until="domcontentloaded", timeout=self._nav_ms):
            await page.press(SEARCH_INPUT_SELECTOR, "Enter")

        root, nested = await self._results_root(page)
        href = await self._find_snapshot_link(root)
        if href is None:
            logger.info("locator[search_form]: no snapshot for %s", original_url)
            return NOT_FOUND

        if nested:
            # A click inside the results frame would only navigate the frame.
            await page.goto(href, wait_until="domcontentloaded", timeout=self._nav_ms)
        else:
            async with page.expect_navigation(
                wait_until="domcontentloaded", timeout=self._nav_ms
            ):
                await page.click(self.link_selector)

        logger.debug("locator[search_form]: %s -> %s", original_url, page.url)
        return ExtractionContext(root=page, snapshot_url=page.url or href)


class DirectLoaderLocator(SnapshotLocator):
    """Hit the provider's submit endpoint and poll for a rendered snapshot.

    Args:
        loader_timeout: Total seconds to poll.
        poll_interval: Seconds between polls.
        **kwargs: Forwarded to :class:`SnapshotLocator`.
    """

    strategy = Strategy.DIRECT_LOADER

    def __init__(
        self,
        archive_base_url: str = "https://archive.is",
        *,
        loader_timeout: float = 45.0,
        poll_interval: float = 1.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(archive_base_url, **kwargs)
        self.loader_timeout = loader_timeout
        self.poll_interval = poll_interval

    async def _locate(self, page: Page, original_url: str) -> LocateResult:
        # "commit" returns as soon as the provider responds; capture may take
        # far longer than a full load would be allowed.
        await page.goto(
            self._endpoint(LOADER_PATH_TEMPLATE, original_url),
            wait_until="commit",
            timeout=self._nav_ms,
        )

        outcome = await poll_first(
            {
                "frame": lambda: self._snapshot_frame(page),
                "heading": lambda: self._top_level_heading(page),
            },
            timeout=self.loader_timeout,
            interval=self.poll_interval,
            clock=self._clock,
            sleep=self._sleep,
        )
        if outcome is None:
            logger.info(
                "locator[direct_loader]: nothing rendered for %s within %.0fs",
                original_url,
                self.loader_timeout,
            )
            return NOT_FOUND

        if outcome.name == "frame":
            frame: Frame = outcome.value
            return ExtractionContext(root=frame, snapshot_url=frame.url, nested=True)
        return ExtractionContext(root=page, snapshot_url=page.url)

    async def _snapshot_frame(self, page: Page) -> Frame | None:
        for frame in page.frames:
            if frame is page.main_frame:
                continue
            if self.snapshot_pattern.match(frame.url or ""):
                return frame
        return None

    async def _top_level_heading(self, page: Page) -> bool:
        try:
            return await page.query_selector("h1") is not None
        except PlaywrightError as exc:
            # The document is replaced mid-poll while the provider redirects.
            logger.debug("locator[direct_loader]: heading check interrupted: %s", exc)
            return False


class DirectRevisitLocator(SnapshotLocator):
    """Request search-and-run in one go, then revisit the resolved snapshot URL.

    Args:
        settle_delay: Seconds to let asynchronous capture finish before
            looking for the snapshot link.
        **kwargs: Forwarded to :class:`SnapshotLocator`.
    """

    strategy = Strategy.DIRECT_REVISIT

    def __init__(
        self,
        archive_base_url: str = "https://archive.is",
        *,
        settle_delay: float = 5.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(archive_base_url, **kwargs)
        self.settle_delay = settle_delay

    async def _locate(self, page: Page, original_url: str) -> LocateResult:
        await page.goto(
            self._endpoint(RUN_PATH_TEMPLATE, original_url),
            wait_until="domcontentloaded",
            timeout=self._nav_ms,
        )
        await self._sleep(self.settle_delay)

        root, _nested = await self._results_root(page)
        href = await self._find_snapshot_link(root)
        if href is None:
            logger.info("locator[direct_revisit]: no snapshot for %s", original_url)
            return NOT_FOUND

        # The first render can be an intermediate shell; reload the snapshot itself.
        await page.goto(href, wait_until="domcontentloaded", timeout=self._nav_ms)
        try:
            await page.wait_for_selector(
                ARTICLE_HEADING_SELECTOR, timeout=self.snapshot_link_timeout * 1000
            )
        except PlaywrightTimeoutError:
            logger.info("locator[direct_revisit]: snapshot %s never showed a heading", href)
            return NOT_FOUND

        return ExtractionContext(root=page, snapshot_url=page.url or href)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_LOCATORS: dict[Strategy, type[SnapshotLocator]] = {
    Strategy.SEARCH_FORM: SearchFormLocator,
    Strategy.DIRECT_LOADER: DirectLoaderLocator,
    Strategy.DIRECT_REVISIT: DirectRevisitLocator,
}


def build_locator(strategy: Strategy | str, **kwargs: Any) -> SnapshotLocator:
    """Instantiate the locator registered for ``strategy``.

    Args:
        strategy: A :class:`Strategy` or its string value.
        **kwargs: Constructor arguments for the chosen locator.

    Raises:
        ValueError: If ``strategy`` is not a known strategy name.
    """
    return _LOCATORS[Strategy(strategy)](**kwargs)


def locator_from_settings(settings: Settings, **overrides: Any) -> SnapshotLocator:
    """Build the configured locator, passing only the options it accepts."""
    strategy = Strategy(overrides.pop("strategy", settings.locator_strategy))
    kwargs: dict[str, Any] = {
        "archive_base_url": settings.archive_base_url,
        "navigation_timeout": settings.navigation_timeout,
        "snapshot_link_timeout": settings.snapshot_link_timeout,
        "budget": settings.locate_budget,
    }
    if strategy is Strategy.DIRECT_LOADER:
        kwargs.update(loader_timeout=settings.loader_timeout, poll_interval=settings.poll_interval)
    elif strategy is Strategy.DIRECT_REVISIT:
        kwargs.update(settle_delay=settings.revisit_settle_delay)
    kwargs.update(overrides)
    return build_locator(strategy, **kwargs)
