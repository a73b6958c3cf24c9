"""Unit tests for the pipeline runner.

The collector and miner are mocked; retry, session and collaborator
handoff run for real (collaborators as ``AsyncMock``s) so the per-link
outcome rules are exercised end to end.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from archive_miner.browser.session import BrowserSession
from archive_miner.collaborators.base import NullPublisher, PassThroughCleaner, ResultSink
from archive_miner.collaborators.cleanup import GroqContentCleaner
from archive_miner.collaborators.publisher import WordPressPublisher
from archive_miner.collaborators.sink import CsvResultSink
from archive_miner.config.settings import Settings
from archive_miner.core.exceptions import CleanupError, PublishError, SinkError
from archive_miner.core.logging_config import run_id_var
from archive_miner.core.models import PipelineRow, SnapshotResult, SnapshotStatus
from archive_miner.pipeline.runner import PipelineRunner
from archive_miner.scraper.retry import RetryOrchestrator
from archive_miner.scraper.snapshot_locator import DirectLoaderLocator

from tests.fakes import FakeBrowserContext, FakeClock

_A = "https://hbr.org/2024/05/a"
_B = "https://hbr.org/2024/05/b"
_C = "https://hbr.org/2024/05/c"


def _found(url: str, title: str, body: str) -> SnapshotResult:
    return SnapshotResult.found(url, title=title, body=body, snapshot_url=f"https://archive.is/{title}")


def _miner(outcomes: dict[str, object]) -> MagicMock:
    """Miner whose ``mine`` returns (or raises) the outcome mapped to each URL."""

    async def mine(url: str) -> SnapshotResult:
        outcome = outcomes[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    miner = MagicMock()
    miner.mine = AsyncMock(side_effect=mine)
    return miner


def _runner(
    session: BrowserSession,
    clock: FakeClock,
    links: list[str],
    outcomes: dict[str, object],
    **kwargs,
) -> PipelineRunner:
    collector = MagicMock()
    collector.collect = AsyncMock(return_value=links)
    kwargs.setdefault("sink", AsyncMock())
    return PipelineRunner(
        session,
        collector,
        _miner(outcomes),
        RetryOrchestrator(3, 5.0, sleep=clock.sleep),
        inter_link_delay=1.5,
        sleep=clock.sleep,
        **kwargs,
    )


@pytest.mark.asyncio
class TestPipelineRunner:
    async def test_found_and_not_found_produce_one_row(
        self,
        session: BrowserSession,
        browser_context: FakeBrowserContext,
        fake_clock: FakeClock,
    ) -> None:
        runner = _runner(
            session,
            fake_clock,
            [_A, _B],
            {_A: _found(_A, "T1", "B1 long enough"), _B: SnapshotResult.not_found(_B)},
        )

        summary = await runner.run()

        runner.sink.write.assert_awaited_once_with([PipelineRow("T1", "B1 long enough")])
        assert summary.links_total == 2
        assert summary.found == 1
        assert summary.not_found == 1
        assert summary.rows == [PipelineRow("T1", "B1 long enough")]
        # NOT_FOUND is never retried.
        assert runner.miner.mine.await_count == 2
        # Index page opened and closed before mining.
        assert browser_context.pages[0].closed is True

    async def test_delay_follows_every_link(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        runner = _runner(
            session,
            fake_clock,
            [_A, _B, _C],
            {
                _A: SnapshotResult.not_found(_A),
                _B: SnapshotResult.not_found(_B),
                _C: SnapshotResult.not_found(_C),
            },
        )

        await runner.run()

        assert fake_clock.sleeps == [1.5, 1.5, 1.5]

    async def test_failed_link_skipped_after_retries(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        runner = _runner(
            session,
            fake_clock,
            [_A, _B],
            {_A: RuntimeError("net::ERR_CONNECTION_RESET"), _B: _found(_B, "T2", "Body two")},
        )

        summary = await runner.run()

        assert summary.failed == 1
        assert summary.rows == [PipelineRow("T2", "Body two")]
        # Three attempts for A, one for B.
        assert runner.miner.mine.await_count == 4
        assert fake_clock.sleeps == [5.0, 5.0, 1.5, 1.5]

    async def test_acquire_converts_exhaustion_to_failed_result(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        runner = _runner(session, fake_clock, [], {_A: RuntimeError("boom")})

        result = await runner.acquire(_A)

        assert result.status is SnapshotStatus.FAILED
        assert result.original_url == _A
        assert "boom" in (result.error or "")

    async def test_empty_content_is_not_a_row(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        runner = _runner(
            session,
            fake_clock,
            [_A, _B],
            {_A: _found(_A, "T1", ""), _B: _found(_B, "", "orphan body")},
        )

        summary = await runner.run()

        assert summary.found == 2
        assert summary.empty == 2
        assert summary.rows == []
        runner.sink.write.assert_not_awaited()

    async def test_cleaned_body_is_published_and_stored(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        cleaner = MagicMock()
        cleaner.clean = AsyncMock(return_value="Cleaned body")
        publisher = MagicMock()
        publisher.publish = AsyncMock()
        runner = _runner(
            session,
            fake_clock,
            [_A],
            {_A: _found(_A, "T1", "Raw body Subscribe")},
            cleaner=cleaner,
            publisher=publisher,
        )

        summary = await runner.run()

        cleaner.clean.assert_awaited_once_with("T1", "Raw body Subscribe")
        publisher.publish.assert_awaited_once_with("T1", "Cleaned body")
        assert summary.rows == [PipelineRow("T1", "Cleaned body")]
        assert summary.published == 1

    @pytest.mark.parametrize(
        "clean_effect",
        [CleanupError("groq: HTTP 429", collaborator="groq"), ""],
    )
    async def test_cleanup_failure_keeps_raw_body(
        self, session: BrowserSession, fake_clock: FakeClock, clean_effect: object
    ) -> None:
        cleaner = MagicMock()
        if isinstance(clean_effect, Exception):
            cleaner.clean = AsyncMock(side_effect=clean_effect)
        else:
            cleaner.clean = AsyncMock(return_value=clean_effect)
        runner = _runner(
            session, fake_clock, [_A], {_A: _found(_A, "T1", "Raw body")}, cleaner=cleaner
        )

        summary = await runner.run()

        assert summary.rows == [PipelineRow("T1", "Raw body")]

    async def test_publish_error_is_not_fatal(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        publisher = MagicMock()
        publisher.publish = AsyncMock(
            side_effect=[PublishError("wordpress: HTTP 503", status_code=503), None]
        )
        runner = _runner(
            session,
            fake_clock,
            [_A, _B],
            {_A: _found(_A, "T1", "Body one"), _B: _found(_B, "T2", "Body two")},
            publisher=publisher,
        )

        summary = await runner.run()

        assert summary.publish_errors == 1
        assert summary.published == 1
        assert [row.title for row in summary.rows] == ["T1", "T2"]

    async def test_custom_sink_receives_rows(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        class ListSink:
            def __init__(self) -> None:
                self.batches: list[list[PipelineRow]] = []

            async def write(self, rows) -> None:
                self.batches.append(list(rows))

        sink = ListSink()
        assert isinstance(sink, ResultSink)
        runner = _runner(
            session, fake_clock, [_A], {_A: _found(_A, "T1", "Body")}, sink=sink
        )

        await runner.run()

        assert sink.batches == [[PipelineRow("T1", "Body")]]

    async def test_sink_error_is_logged_not_raised(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        sink = AsyncMock()
        sink.write.side_effect = SinkError("csv: disk full", collaborator="csv")
        runner = _runner(
            session, fake_clock, [_A], {_A: _found(_A, "T1", "Body")}, sink=sink
        )

        summary = await runner.run()

        assert len(summary.rows) == 1
        sink.write.assert_awaited_once()

    async def test_max_links_caps_processing(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        runner = _runner(
            session,
            fake_clock,
            [_A, _B, _C],
            {_A: SnapshotResult.not_found(_A)},
            max_links=1,
        )

        summary = await runner.run()

        assert summary.links_total == 1
        runner.miner.mine.assert_awaited_once_with(_A)

    async def test_no_links_writes_nothing(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        runner = _runner(session, fake_clock, [], {})

        summary = await runner.run()

        assert summary.links_total == 0
        assert fake_clock.sleeps == []
        runner.sink.write.assert_not_awaited()

    async def test_run_id_scoped_to_run(
        self, session: BrowserSession, fake_clock: FakeClock
    ) -> None:
        seen: list[str | None] = []
        runner = _runner(session, fake_clock, [], {})

        async def collect(page):
            seen.append(run_id_var.get())
            return []

        runner.collector.collect = AsyncMock(side_effect=collect)

        await runner.run()

        assert seen[0] is not None
        assert run_id_var.get() is None


class TestFromSettings:
    def test_unconfigured_collaborators_are_null(self, session: BrowserSession) -> None:
        runner = PipelineRunner.from_settings(Settings(), session)

        assert isinstance(runner.cleaner, PassThroughCleaner)
        assert isinstance(runner.publisher, NullPublisher)
        assert isinstance(runner.sink, CsvResultSink)
        assert runner.inter_link_delay == 1.5
        assert runner.orchestrator.max_attempts == 3

    def test_configured_collaborators_are_wired(self, session: BrowserSession) -> None:
        settings = Settings(
            groq_api_key="gsk_test",
            wp_url="https://blog.example.com/intake",
            locator_strategy="direct_loader",
            results_path="out/rows.csv",
            max_attempts=5,
        )

        runner = PipelineRunner.from_settings(settings, session, max_links=10)

        assert isinstance(runner.cleaner, GroqContentCleaner)
        assert runner.cleaner.api_key == "gsk_test"
        assert isinstance(runner.publisher, WordPressPublisher)
        assert runner.publisher.endpoint == "https://blog.example.com/intake"
        assert str(runner.sink.path) == "out/rows.csv"
        assert isinstance(runner.miner.locator, DirectLoaderLocator)
        assert runner.orchestrator.max_attempts == 5
        assert runner.max_links == 10
