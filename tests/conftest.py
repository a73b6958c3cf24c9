"""Shared pytest fixtures for Archive Miner tests.

Fixture summary
---------------
fake_clock       — manually advanced clock + async sleep (no real waiting).
browser_context  — in-memory browser context handing out ``FakePage`` objects.
session          — a real ``BrowserSession`` wired to ``browser_context``.

No test launches a browser or touches the network.
"""

from __future__ import annotations

import os

import pytest

# Keep a developer's .env or exported variables from leaking into Settings().
for _key in ("GROQ_API_KEY", "WP_URL", "LOCATOR_STRATEGY", "RESULTS_PATH"):
    os.environ.pop(_key, None)

from archive_miner.browser.session import BrowserSession  # noqa: E402
from archive_miner.config.settings import get_settings  # noqa: E402

from tests.fakes import FakeBrowserContext, FakeClock  # noqa: E402

get_settings.cache_clear()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def browser_context() -> FakeBrowserContext:
    return FakeBrowserContext()


@pytest.fixture
def session(browser_context: FakeBrowserContext) -> BrowserSession:
    """A started-looking session whose pages come from ``browser_context``."""
    browser_session = BrowserSession()
    browser_session._context = browser_context  # type: ignore[assignment]
    return browser_session
