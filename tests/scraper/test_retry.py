"""Unit tests for the fixed-backoff retry orchestrator."""

from __future__ import annotations

import pytest

from archive_miner.core.exceptions import RetriesExhaustedError
from archive_miner.core.models import SnapshotResult, SnapshotStatus
from archive_miner.scraper.retry import RetryOrchestrator

from tests.fakes import FakeClock

_URL = "https://hbr.org/2024/05/a"


def _flaky(failures: int, result: object = "ok"):
    """Return an attempt function that raises ``failures`` times, then succeeds."""
    calls: list[int] = []

    async def attempt() -> object:
        calls.append(len(calls) + 1)
        if len(calls) <= failures:
            raise RuntimeError(f"navigation failed #{len(calls)}")
        return result

    return attempt, calls


@pytest.mark.asyncio
class TestRetryOrchestrator:
    async def test_succeeds_after_two_failures(self, fake_clock: FakeClock) -> None:
        attempt, calls = _flaky(failures=2)
        orchestrator = RetryOrchestrator(3, 5.0, sleep=fake_clock.sleep)

        result = await orchestrator.run(attempt, label=_URL)

        assert result == "ok"
        assert calls == [1, 2, 3]
        assert fake_clock.sleeps == [5.0, 5.0]

    async def test_exhaustion_raises_after_exactly_max_attempts(self, fake_clock: FakeClock) -> None:
        attempt, calls = _flaky(failures=99)
        orchestrator = RetryOrchestrator(3, 5.0, sleep=fake_clock.sleep)

        with pytest.raises(RetriesExhaustedError) as exc_info:
            await orchestrator.run(attempt, label=_URL)

        assert len(calls) == 3
        # No backoff after the final attempt.
        assert fake_clock.sleeps == [5.0, 5.0]
        assert exc_info.value.attempts == 3
        assert exc_info.value.url == _URL
        assert isinstance(exc_info.value.last_error, RuntimeError)
        assert exc_info.value.__cause__ is exc_info.value.last_error

    async def test_not_found_result_is_not_retried(self, fake_clock: FakeClock) -> None:
        not_found = SnapshotResult.not_found(_URL)
        attempt, calls = _flaky(failures=0, result=not_found)

        result = await RetryOrchestrator(sleep=fake_clock.sleep).run(attempt)

        assert result.status is SnapshotStatus.NOT_FOUND
        assert calls == [1]
        assert fake_clock.sleeps == []

    async def test_per_call_overrides(self, fake_clock: FakeClock) -> None:
        attempt, calls = _flaky(failures=99)
        orchestrator = RetryOrchestrator(3, 5.0, sleep=fake_clock.sleep)

        with pytest.raises(RetriesExhaustedError):
            await orchestrator.run(attempt, max_attempts=2, backoff_delay=0.5)

        assert len(calls) == 2
        assert fake_clock.sleeps == [0.5]

    async def test_single_attempt_never_sleeps(self, fake_clock: FakeClock) -> None:
        attempt, calls = _flaky(failures=1)

        with pytest.raises(RetriesExhaustedError):
            await RetryOrchestrator(1, 5.0, sleep=fake_clock.sleep).run(attempt)

        assert calls == [1]
        assert fake_clock.sleeps == []


class TestRetryOrchestratorConfig:
    def test_zero_attempts_rejected(self) -> None:
        with pytest.raises(ValueError):
            RetryOrchestrator(max_attempts=0)
