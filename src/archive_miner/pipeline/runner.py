"""End-to-end run: collect links, mine each snapshot, hand results onwards.

Links are processed strictly one at a time.  A single link's failure never
aborts the run:

- ``NOT_FOUND`` snapshots are skipped without consuming a retry.
- Exceptions are retried by :class:`~archive_miner.scraper.retry.RetryOrchestrator`;
  exhaustion marks the link ``FAILED`` and the run moves on.
- Cleanup failures fall back to the raw extracted body.
- Publish and sink failures are logged.

A fixed delay follows every link, successful or not, to stay under the
archive provider's implicit rate limit.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from archive_miner.browser.session import BrowserSession
from archive_miner.collaborators.base import (
    ContentCleaner,
    NullPublisher,
    PassThroughCleaner,
    Publisher,
    ResultSink,
)
from archive_miner.collaborators.cleanup import GroqContentCleaner
from archive_miner.collaborators.publisher import WordPressPublisher
from archive_miner.collaborators.sink import CsvResultSink
from archive_miner.config.settings import Settings
from archive_miner.core.exceptions import RetriesExhaustedError
from archive_miner.core.logging_config import run_id_var
from archive_miner.core.models import (
    ArticleLink,
    PipelineRow,
    RunSummary,
    SnapshotResult,
    SnapshotStatus,
)
from archive_miner.scraper.archive_miner import ArchiveMiner
from archive_miner.scraper.content_extractor import ContentExtractor, ExtractionRules
from archive_miner.scraper.link_collector import LinkCollector
from archive_miner.scraper.retry import RetryOrchestrator
from archive_miner.scraper.snapshot_locator import locator_from_settings

logger = structlog.get_logger(__name__)


class PipelineRunner:
    """Sequences link collection, per-link acquisition and collaborator handoff.

    Args:
        session: Shared browser session (used for the index page).
        collector: Index page link collector.
        miner: Single-attempt snapshot miner.
        orchestrator: Retry policy wrapped around ``miner``.
        cleaner: Body cleanup collaborator.
        publisher: Publishing collaborator.
        sink: End-of-run result sink, or ``None`` to keep rows in memory only.
        inter_link_delay: Seconds to wait after every link.
        max_links: Optional cap on how many collected links are processed.
        sleep: Async sleep function, injectable for tests.
    """

    def __init__(
        self,
        session: BrowserSession,
        collector: LinkCollector,
        miner: ArchiveMiner,
        orchestrator: RetryOrchestrator,
        *,
        cleaner: ContentCleaner | None = None,
        publisher: Publisher | None = None,
        sink: ResultSink | None = None,
        inter_link_delay: float = 1.5,
        max_links: int | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.session = session
        self.collector = collector
        self.miner = miner
        self.orchestrator = orchestrator
        self.cleaner: ContentCleaner = cleaner or PassThroughCleaner()
        self.publisher: Publisher = publisher or NullPublisher()
        self.sink = sink
        self.inter_link_delay = inter_link_delay
        self.max_links = max_links
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session: BrowserSession,
        *,
        max_links: int | None = None,
    ) -> PipelineRunner:
        """Wire every component from validated settings."""
        collector = LinkCollector(
            settings.index_url,
            settings.index_base_url,
            load_timeout=settings.index_load_timeout,
            settle_delay=settings.pagination_settle_delay,
            max_steps=settings.max_pagination_steps,
        )
        extractor = ContentExtractor(
            ExtractionRules.from_settings(settings.chrome_denylist, settings.min_block_length)
        )
        miner = ArchiveMiner(session, locator_from_settings(settings), extractor)
        orchestrator = RetryOrchestrator(settings.max_attempts, settings.backoff_delay)

        cleaner: ContentCleaner | None = None
        if settings.groq_api_key:
            cleaner = GroqContentCleaner(
                settings.groq_api_key,
                model=settings.groq_model,
                api_url=settings.groq_api_url,
                max_tokens=settings.groq_max_tokens,
                timeout=settings.cleanup_timeout,
            )
        publisher: Publisher | None = None
        if settings.wp_url:
            publisher = WordPressPublisher(settings.wp_url, timeout=settings.publish_timeout)

        return cls(
            session,
            collector,
            miner,
            orchestrator,
            cleaner=cleaner,
            publisher=publisher,
            sink=CsvResultSink(settings.results_path),
            inter_link_delay=settings.inter_link_delay,
            max_links=max_links,
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> RunSummary:
        """Execute one full pipeline run and return its summary."""
        token = run_id_var.set(uuid.uuid4().hex[:12])
        try:
            return await self._run()
        finally:
            run_id_var.reset(token)

    async def _run(self) -> RunSummary:
        summary = RunSummary()

        logger.info("collecting article links")
        async with self.session.page("index") as index_page:
            links = await self.collector.collect(index_page)
        if self.max_links is not None:
            links = links[: self.max_links]
        summary.links_total = len(links)
        logger.info("links collected", count=len(links))

        for position, link in enumerate(links, start=1):
            log = logger.bind(url=link, position=position, total=len(links))
            log.info("archiving link")
            result = await self.acquire(link)
            await self._handle_result(result, summary, log)
            await self._sleep(self.inter_link_delay)

        await self._flush(summary)
        logger.info(
            "run complete",
            links=summary.links_total,
            found=summary.found,
            not_found=summary.not_found,
            failed=summary.failed,
            empty=summary.empty,
            rows=len(summary.rows),
        )
        return summary

    async def acquire(self, link: ArticleLink) -> SnapshotResult:
        """Mine ``link`` with retries; exhaustion becomes a ``FAILED`` result."""
        try:
            return await self.orchestrator.run(lambda: self.miner.mine(link), label=link)
        except RetriesExhaustedError as exc:
            return SnapshotResult.failed(link, str(exc))

    async def _handle_result(
        self,
        result: SnapshotResult,
        summary: RunSummary,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        if result.status is SnapshotStatus.NOT_FOUND:
            summary.not_found += 1
            log.info("no snapshot, skipping")
            return
        if result.status is SnapshotStatus.FAILED:
            summary.failed += 1
            log.warning("acquisition failed, skipping", error=result.error)
            return

        summary.found += 1
        if not result.has_content:
            summary.empty += 1
            log.warning(
                "snapshot had no usable content, skipping",
                snapshot_url=result.snapshot_url,
                title_len=len(result.title),
                body_len=len(result.body),
            )
            return

        body = await self._clean(result, log)
        await self._publish(result.title, body, summary, log)
        summary.rows.append(PipelineRow(title=result.title, body=body))
        log.info("row added", title=result.title[:80], body_len=len(body))

    async def _clean(self, result: SnapshotResult, log: structlog.stdlib.BoundLogger) -> str:
        try:
            cleaned = await self.cleaner.clean(result.title, result.body)
        except Exception as exc:  # noqa: BLE001
            log.warning("cleanup failed, keeping extracted text", error=str(exc))
            return result.body
        return cleaned or result.body

    async def _publish(
        self,
        title: str,
        body: str,
        summary: RunSummary,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        try:
            await self.publisher.publish(title, body)
        except Exception as exc:  # noqa: BLE001
            summary.publish_errors += 1
            log.error("publish failed", error=str(exc))
            return
        summary.published += 1

    async def _flush(self, summary: RunSummary) -> None:
        if self.sink is None:
            return
        if not summary.rows:
            logger.info("no rows to write")
            return
        try:
            await self.sink.write(list(summary.rows))
        except Exception as exc:  # noqa: BLE001
            logger.error("result sink failed", error=str(exc), rows=len(summary.rows))
