"""Bounded retry with a fixed backoff for archive acquisition attempts.

Only raised exceptions are retried.  A returned value, including a
``NOT_FOUND`` :class:`~archive_miner.core.models.SnapshotResult`, is a
definitive answer and is passed straight back to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from archive_miner.core.exceptions import RetriesExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryOrchestrator:
    """Runs an async attempt up to ``max_attempts`` times.

    Args:
        max_attempts: Default number of attempts (at least 1).
        backoff_delay: Default fixed seconds to wait between attempts.
        sleep: Async sleep function, injectable for tests.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_delay: float = 5.0,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff_delay = backoff_delay
        self._sleep = sleep

    async def run(
        self,
        attempt: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
        backoff_delay: float | None = None,
        *,
        label: str = "",
    ) -> T:
        """Await ``attempt()`` until it returns or the attempts run out.

        Args:
            attempt: Zero-argument coroutine function performing one try.
            max_attempts: Overrides the instance default.
            backoff_delay: Overrides the instance default.
            label: Identifier used in log messages and the terminal error
                (usually the article URL).

        Returns:
            The first value ``attempt()`` returns.

        Raises:
            RetriesExhaustedError: If every attempt raised.
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        delay = backoff_delay if backoff_delay is not None else self.backoff_delay
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        last_error: Exception | None = None
        for number in range(1, attempts + 1):
            try:
                return await attempt()
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "retry: attempt %d/%d failed for %s: %s",
                    number,
                    attempts,
                    label or "<attempt>",
                    exc,
                )
            if number < attempts:
                await self._sleep(delay)

        raise RetriesExhaustedError(attempts, last_error, url=label or None) from last_error
