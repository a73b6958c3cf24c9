"""One archive acquisition attempt for one article URL.

:class:`ArchiveMiner` opens a single page, lets the configured locator find
the snapshot, extracts the article, and closes the page before returning,
whatever the outcome.
"""

from __future__ import annotations

import logging

from archive_miner.browser.session import BrowserSession
from archive_miner.core.models import NOT_FOUND, SnapshotResult
from archive_miner.scraper.content_extractor import ContentExtractor
from archive_miner.scraper.snapshot_locator import SnapshotLocator

logger = logging.getLogger(__name__)


class ArchiveMiner:
    """Locate and extract the archived snapshot of an article.

    Args:
        session: Shared browser session that owns page lifecycles.
        locator: Provider navigation strategy.
        extractor: Title/body extractor.
    """

    def __init__(
        self,
        session: BrowserSession,
        locator: SnapshotLocator,
        extractor: ContentExtractor,
    ) -> None:
        self.session = session
        self.locator = locator
        self.extractor = extractor

    async def mine(self, original_url: str) -> SnapshotResult:
        """Run one attempt for ``original_url``.

        Returns:
            A ``FOUND`` or ``NOT_FOUND`` :class:`SnapshotResult`.

        Raises:
            Exception: Any navigation or extraction fault, after the page
                has been closed.  The retry layer decides what to do next.
        """
        async with self.session.page("archive") as page:
            located = await self.locator.locate(page, original_url)
            if located is NOT_FOUND:
                return SnapshotResult.not_found(original_url)

            article = await self.extractor.extract(located)
            snapshot_url = located.snapshot_url or page.url
            logger.info(
                "miner: %s -> %s (title=%r, body_len=%d, frame=%s)",
                original_url,
                snapshot_url,
                article.title[:80],
                len(article.body),
                located.nested,
            )
            return SnapshotResult.found(
                original_url,
                title=article.title,
                body=article.body,
                snapshot_url=snapshot_url,
            )
