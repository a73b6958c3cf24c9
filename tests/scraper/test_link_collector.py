"""Unit tests for index page link collection.

Covers href resolution (dedupe, absolute, same-origin), the recoverable
empty result when the index never loads, and "load more" pagination
termination paths.
"""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import urlparse

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from archive_miner.scraper.config import LOAD_MORE_SELECTOR, TITLE_LINK_SELECTOR
from archive_miner.scraper.link_collector import LinkCollector, resolve_links

from tests.fakes import FakeClock, FakeElement, FakePage

_BASE = "https://hbr.org"


# ---------------------------------------------------------------------------
# resolve_links
# ---------------------------------------------------------------------------


class TestResolveLinks:
    def test_relative_hrefs_become_absolute(self) -> None:
        links = resolve_links(["/2024/05/a", "2024/05/b"], _BASE)
        assert links == ["https://hbr.org/2024/05/a", "https://hbr.org/2024/05/b"]

    def test_duplicates_removed_preserving_first_order(self) -> None:
        hrefs = ["/b", "/a", "https://hbr.org/b", "/a#comments", "/c", "/a"]
        links = resolve_links(hrefs, _BASE)
        assert links == ["https://hbr.org/b", "https://hbr.org/a", "https://hbr.org/c"]

    def test_foreign_origins_and_junk_dropped(self) -> None:
        hrefs = [
            None,
            "",
            "   ",
            "javascript:void(0)",
            "mailto:editor@hbr.org",
            "https://store.hbr.org/product",
            "https://evil.example.com/hbr.org/x",
            "/2024/05/kept",
        ]
        assert resolve_links(hrefs, _BASE) == ["https://hbr.org/2024/05/kept"]

    def test_output_unique_absolute_and_same_origin(self) -> None:
        hrefs = [
            "/a", "/a", "a", "./a", "/b?x=1", "/b?x=1", "https://hbr.org/c",
            "//hbr.org/d", "//other.org/e", "http://hbr.org/f", "#top", "/g#frag",
        ]
        links = resolve_links(hrefs, _BASE)

        assert len(links) == len(set(links))
        for link in links:
            parsed = urlparse(link)
            assert parsed.scheme == "https"
            assert parsed.netloc == "hbr.org"
            assert parsed.fragment == ""


# ---------------------------------------------------------------------------
# LinkCollector.collect
# ---------------------------------------------------------------------------


class IndexPage(FakePage):
    """Index page whose "load more" button disappears after ``pages`` clicks."""

    def __init__(self, hrefs: list[str | None], pages: int = 0, **kwargs: Any) -> None:
        super().__init__(elements={TITLE_LINK_SELECTOR: FakeElement()}, **kwargs)
        self.hrefs = hrefs
        self.remaining_pages = pages
        self.button = FakeElement()
        self.awaited_events: list[str] = []

    async def query_selector(self, selector: str) -> FakeElement | None:
        if selector == LOAD_MORE_SELECTOR:
            if self.remaining_pages > self.button.clicks:
                return self.button
            return None
        return await super().query_selector(selector)

    async def wait_for_event(self, event: str, predicate: Any = None, timeout: float | None = None) -> None:
        self.awaited_events.append(event)

    async def eval_on_selector_all(self, selector: str, expression: str) -> list[str | None]:
        assert selector == TITLE_LINK_SELECTOR
        return self.hrefs


def _collector(**kwargs: Any) -> LinkCollector:
    return LinkCollector(
        f"{_BASE}/the-latest", _BASE, load_timeout=1.0, settle_delay=0.0, **kwargs
    )


@pytest.mark.asyncio
class TestCollect:
    async def test_index_load_timeout_returns_empty_list(self) -> None:
        page = IndexPage(["/a"], goto_error=PlaywrightTimeoutError("Timeout 80000ms exceeded"))

        assert await _collector().collect(page) == []

    async def test_missing_title_selector_returns_empty_list(self) -> None:
        page = IndexPage(["/a"])
        page.elements.clear()

        assert await _collector().collect(page) == []

    async def test_paginates_until_button_disappears(self) -> None:
        page = IndexPage(["/a", "/b", "/a"], pages=3)

        links = await _collector().collect(page)

        assert page.button.clicks == 3
        assert page.awaited_events == ["response", "response", "response"]
        assert links == ["https://hbr.org/a", "https://hbr.org/b"]
        assert page.visited == ["https://hbr.org/the-latest"]

    async def test_click_failure_treated_as_exhausted(self) -> None:
        page = IndexPage(["/a"], pages=5)
        page.button.click_error = PlaywrightError("Element is not attached to the DOM")

        links = await _collector().collect(page)

        assert links == ["https://hbr.org/a"]
        assert page.button.clicks == 0

    async def test_max_steps_bounds_pagination(self) -> None:
        page = IndexPage(["/a"], pages=100)

        links = await _collector(max_steps=2).collect(page)

        assert page.button.clicks == 2
        assert links == ["https://hbr.org/a"]

    async def test_hung_pagination_response_falls_back_to_settle_delay(
        self, fake_clock: FakeClock
    ) -> None:
        class SilentNetworkPage(IndexPage):
            async def wait_for_event(self, event: str, predicate: Any = None, timeout: float | None = None) -> None:
                await asyncio.Event().wait()

        page = SilentNetworkPage(["/a"], pages=2)
        collector = LinkCollector(
            f"{_BASE}/the-latest", _BASE, settle_delay=0.8, sleep=fake_clock.sleep
        )

        links = await collector.collect(page)

        assert page.button.clicks == 2
        assert fake_clock.sleeps == [0.8, 0.8]
        assert links == ["https://hbr.org/a"]
