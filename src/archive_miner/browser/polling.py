"""Bounded waiting primitives shared by the index collector and snapshot locators.

Business logic never sleeps directly while waiting for a DOM condition; it
calls :func:`poll_first` (check a set of conditions until one holds or a
deadline passes) or :func:`first_completed` (race several awaitables).  The
clock and sleep functions are injectable so tests can run without real time
passing.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

#: An async zero-argument predicate.  A truthy return value satisfies it.
Check = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class PollOutcome:
    """The condition that satisfied a :func:`poll_first` call.

    Attributes:
        name: Key of the satisfied check in the mapping passed to
            :func:`poll_first`.
        value: The truthy value the check returned.
    """

    name: str
    value: Any


async def poll_first(
    checks: Mapping[str, Check],
    *,
    timeout: float,
    interval: float,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> PollOutcome | None:
    """Evaluate ``checks`` in order every ``interval`` seconds until one holds.

    Every check is evaluated at least once, even with a zero ``timeout``.
    Checks are evaluated in mapping order within a round, so earlier keys win
    ties.

    Args:
        checks: Named async predicates.
        timeout: Total seconds before giving up.
        interval: Seconds between rounds.
        clock: Monotonic clock returning seconds.
        sleep: Async sleep function.

    Returns:
        The first satisfied :class:`PollOutcome`, or ``None`` on timeout.
    """
    deadline = clock() + timeout
    while True:
        for name, check in checks.items():
            value = await check()
            if value:
                return PollOutcome(name=name, value=value)
        remaining = deadline - clock()
        if remaining <= 0:
            return None
        await sleep(min(interval, remaining))


async def first_completed(*aws: Awaitable[Any], timeout: float | None = None) -> Any:
    """Race ``aws`` and return the result of whichever finishes first.

    The losers are cancelled and awaited before returning so no task outlives
    the call.  If the winner raised, its exception propagates.

    Args:
        *aws: Coroutines, tasks or futures to race.
        timeout: Optional overall cap in seconds.

    Returns:
        The winner's result, or ``None`` if ``timeout`` elapsed first.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, _pending = await asyncio.wait(
            tasks, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    if not done:
        return None
    # Preserve argument order when several finished in the same loop tick.
    winner = next(task for task in tasks if task in done)
    return winner.result()
