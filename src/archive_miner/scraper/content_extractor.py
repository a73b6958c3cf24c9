"""Article title and body extraction from a rendered snapshot.

The extractor reads the serialized DOM of an
:class:`~archive_miner.core.models.ExtractionContext` and parses it with
BeautifulSoup.  All selection and filtering happens in pure functions over
the HTML string, so identical DOM content always produces identical output.

Body extraction:

1. Try each block selector candidate in order (``#CONTENT p``,
   ``#CONTENT div``, ``article p``); the first that keeps any block wins.
   Wrapper elements holding nested blocks are skipped so no text repeats.
2. Drop blocks that are empty, exactly match a chrome phrase from the
   denylist, or end in a percentage such as ``"Loading 37%"``.
3. Discard every block before the first one longer than the minimum content
   length (breadcrumbs such as ``"Business"`` or ``"Strategy"``).
4. Join the survivors with a blank line.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from archive_miner.core.models import ExtractionContext
from archive_miner.scraper.config import (
    TRAILING_PERCENTAGE_PATTERN,
    BLOCK_SELECTOR_CANDIDATES,
    DEFAULT_CHROME_DENYLIST,
    DEFAULT_MIN_BLOCK_LENGTH,
    TITLE_SELECTOR_CANDIDATES,
    TITLE_SUFFIX_PATTERN,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

#: Tags whose text never belongs to the article.
_SKIP_TAGS: tuple[str, ...] = ("script", "style", "noscript", "template")

#: Block-level tags; an element containing one of these is a wrapper, not a block.
_BLOCK_TAGS: tuple[str, ...] = ("div", "p", "section", "article", "blockquote")

#: Separator placed between kept body blocks.
BLOCK_SEPARATOR: str = "\n\n"


# ---------------------------------------------------------------------------
# Output and rule dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtractedArticle:
    """Title and cleaned body text pulled from a snapshot.

    Attributes:
        title: Article headline, or ``""`` if none was found.
        body: Kept blocks joined by a blank line, or ``""``.
    """

    title: str
    body: str


@dataclass(frozen=True)
class ExtractionRules:
    """Tunable noise-filtering heuristics.

    The denylist and the minimum block length were tuned by hand against
    archived HBR pages and should be revisited against fresh snapshots.

    Attributes:
        denylist: Exact block texts treated as page chrome.
        min_block_length: The article starts at the first block longer than
            this many characters.
        percentage_pattern: Blocks ending in a match of this are progress/quota
            indicators.
        block_selectors: Ordered body selector candidates.
        title_selectors: Ordered headline selector candidates.
    """

    denylist: frozenset[str] = field(default_factory=lambda: frozenset(DEFAULT_CHROME_DENYLIST))
    min_block_length: int = DEFAULT_MIN_BLOCK_LENGTH
    percentage_pattern: re.Pattern[str] = TRAILING_PERCENTAGE_PATTERN
    block_selectors: tuple[str, ...] = BLOCK_SELECTOR_CANDIDATES
    title_selectors: tuple[str, ...] = TITLE_SELECTOR_CANDIDATES

    @classmethod
    def from_settings(cls, denylist: Iterable[str], min_block_length: int) -> ExtractionRules:
        return cls(denylist=frozenset(denylist), min_block_length=min_block_length)

    def is_noise(self, text: str) -> bool:
        """Return ``True`` if a normalized block should be dropped."""
        return (
            not text
            or text in self.denylist
            or self.percentage_pattern.search(text) is not None
        )


DEFAULT_RULES = ExtractionRules()


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def _normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _parse(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(list(_SKIP_TAGS)):
        tag.decompose()
    # Line breaks separate words the same way a browser's innerText does.
    for br in soup.find_all("br"):
        br.replace_with("\n")
    return soup


def filter_blocks(texts: Iterable[str], rules: ExtractionRules = DEFAULT_RULES) -> list[str]:
    """Normalize whitespace in each block and drop chrome/noise blocks."""
    kept: list[str] = []
    for raw in texts:
        text = _normalize(raw)
        if not rules.is_noise(text):
            kept.append(text)
    return kept


def trim_leading_short_blocks(blocks: Sequence[str], min_length: int) -> list[str]:
    """Drop every block before the first one longer than ``min_length``.

    If no block is long enough the blocks are returned unchanged.
    """
    for index, block in enumerate(blocks):
        if len(block) > min_length:
            return list(blocks[index:])
    return list(blocks)


def extract_title(soup: BeautifulSoup, rules: ExtractionRules = DEFAULT_RULES) -> str:
    """Return the first non-empty headline, falling back to ``<title>``."""
    for selector in rules.title_selectors:
        element = soup.select_one(selector)
        if element is not None:
            text = _normalize(element.get_text())
            if text:
                return text

    if soup.title is not None:
        return TITLE_SUFFIX_PATTERN.sub("", _normalize(soup.title.get_text())).strip()
    return ""


def extract_body(soup: BeautifulSoup, rules: ExtractionRules = DEFAULT_RULES) -> str:
    """Return the filtered, trimmed and joined article body."""
    for selector in rules.block_selectors:
        leaves = (el for el in soup.select(selector) if el.find(list(_BLOCK_TAGS)) is None)
        blocks = filter_blocks((el.get_text() for el in leaves), rules)
        if blocks:
            logger.debug("extractor: %d block(s) kept via %r", len(blocks), selector)
            return BLOCK_SEPARATOR.join(trim_leading_short_blocks(blocks, rules.min_block_length))
    return ""


def extract_from_html(html: str, rules: ExtractionRules = DEFAULT_RULES) -> ExtractedArticle:
    """Extract the headline and body from serialized snapshot HTML.

    Args:
        html: Full HTML of the page or frame holding the article.
        rules: Noise-filtering heuristics.

    Returns:
        An :class:`ExtractedArticle`; fields are ``""`` when nothing matched.
    """
    soup = _parse(html)
    return ExtractedArticle(title=extract_title(soup, rules), body=extract_body(soup, rules))


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class ContentExtractor:
    """Reads the located context's DOM and extracts the article.

    Never navigates; the context is only read.
    """

    def __init__(self, rules: ExtractionRules | None = None) -> None:
        self.rules = rules or DEFAULT_RULES

    async def extract(self, context: ExtractionContext) -> ExtractedArticle:
        html = await context.root.content()
        article = extract_from_html(html, self.rules)
        logger.debug(
            "extractor: %s -> title=%r body_len=%d",
            context.snapshot_url,
            article.title[:80],
            len(article.body),
        )
        return article
