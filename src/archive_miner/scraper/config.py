"""Constants and tuning parameters for link collection and snapshot mining."""

from __future__ import annotations

import enum
import re

# ---------------------------------------------------------------------------
# Browser
# ---------------------------------------------------------------------------

#: User-agent string presented to the index site and the archive provider.
DEFAULT_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

#: Chromium command-line flags used for container-friendly headless runs.
BROWSER_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--window-size=1920,1080",
)

# ---------------------------------------------------------------------------
# Index site selectors
# ---------------------------------------------------------------------------

#: Anchors pointing at individual articles on the index page.
TITLE_LINK_SELECTOR: str = "h3.hed a"

#: The "load more" pagination control.
LOAD_MORE_SELECTOR: str = 'li.load-more a[js-target="load-ten-more-link"]'

#: URL fragments identifying the index site's pagination XHR responses.
PAGINATION_URL_FRAGMENTS: tuple[str, ...] = ("/latest", "/load")

# ---------------------------------------------------------------------------
# Archive provider selectors
# ---------------------------------------------------------------------------

#: The provider landing page's search field.
SEARCH_INPUT_SELECTOR: str = 'form#search input[name="q"]'

#: Name of the frame that sometimes wraps the provider's search results.
RESULTS_FRAME_NAME: str = "frame"

#: Element hosting the results frame, when present.
RESULTS_FRAME_SELECTOR: str = f'frame[name="{RESULTS_FRAME_NAME}"], iframe[name="{RESULTS_FRAME_NAME}"]'

#: Heading selector that signals an article has rendered.
ARTICLE_HEADING_SELECTOR: str = "#CONTENT h1, h1"


def snapshot_link_selector(archive_base_url: str) -> str:
    """Return the CSS selector for snapshot links on the provider results page."""
    return f'div.TEXT-BLOCK a[href^="{archive_base_url.rstrip("/")}/"]'


#: Provider paths that look like snapshot ids but are service endpoints.
_RESERVED_PROVIDER_PATHS: str = "newest|oldest|submit|search|wip|timegate|timemap"


def snapshot_url_pattern(archive_base_url: str) -> re.Pattern[str]:
    """Return a regex matching snapshot URLs.

    Accepts both the short-id form (``<provider>/AbC12``) and the timestamped
    form (``<provider>/20240101120000/<original url>``).
    """
    base = re.escape(archive_base_url.rstrip("/"))
    return re.compile(
        rf"^{base}/(?:\d{{14}}/\S+"
        rf"|(?!(?:{_RESERVED_PROVIDER_PATHS})\b)[A-Za-z0-9]{{4,}}/?(?:[?#]\S*)?)$"
    )


class Strategy(str, enum.Enum):
    """Interchangeable ways of driving the archive provider to a snapshot."""

    SEARCH_FORM = "search_form"
    DIRECT_LOADER = "direct_loader"
    DIRECT_REVISIT = "direct_revisit"


# ---------------------------------------------------------------------------
# Content extraction
# ---------------------------------------------------------------------------

#: Block selectors tried in order; the first yielding any kept block wins.
BLOCK_SELECTOR_CANDIDATES: tuple[str, ...] = (
    "#CONTENT p",
    "#CONTENT div",
    "article p",
)

#: Title selectors tried in order before falling back to ``<title>``.
TITLE_SELECTOR_CANDIDATES: tuple[str, ...] = (
    "#CONTENT h1",
    "h1",
)

#: Exact block texts treated as page chrome rather than article content.
DEFAULT_CHROME_DENYLIST: tuple[str, ...] = (
    "Subscribe",
    "Sign In",
    "Read more",
    "Post",
    "Share",
    "Save",
    "Print",
    "{{terminalError}}",
    "Recaptcha requires verification",
    "Privacy - Terms",
)

#: Loading / quota indicators ending in a percentage, e.g. ``"Loading 37%"``.
TRAILING_PERCENTAGE_PATTERN: re.Pattern[str] = re.compile(r"\d{1,3}%\s*$")

#: First block longer than this starts the article; shorter leading blocks
#: are breadcrumbs.
DEFAULT_MIN_BLOCK_LENGTH: int = 40

#: Trailing `` | Site Name`` suffix on document titles.
TITLE_SUFFIX_PATTERN: re.Pattern[str] = re.compile(r" \|.*$")

# ---------------------------------------------------------------------------
# Archive provider endpoints
# ---------------------------------------------------------------------------

#: Endpoint that forwards to an existing snapshot or starts a live capture.
LOADER_PATH_TEMPLATE: str = "/submit/?url={url}"

#: Combined search-and-capture endpoint used by the revisit strategy.
RUN_PATH_TEMPLATE: str = "/?run=1&url={url}"
