"""Command-line entry point: ``archive-miner``.

Run from the project root::

    archive-miner --strategy search_form --max-links 20 --results out.csv

Options:
    --strategy   Provider navigation strategy (default from settings).
    --max-links  Process at most this many collected links.
    --results    CSV file receiving the run's rows.
    --log-level  Logging verbosity.
    --headed     Show the browser window.

Exit codes:
    0 — Run completed (individual links may still have been skipped).
    1 — The browser could not be started.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from archive_miner.browser.session import BrowserSession
from archive_miner.config.settings import Settings, get_settings
from archive_miner.core.exceptions import BrowserStartupError
from archive_miner.core.logging_config import configure_logging
from archive_miner.core.models import RunSummary
from archive_miner.pipeline.runner import PipelineRunner
from archive_miner.scraper.config import Strategy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archive-miner",
        description="Mine archived snapshots of freshly published articles.",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy],
        default=None,
        help="Archive provider navigation strategy.",
    )
    parser.add_argument(
        "--max-links",
        type=int,
        default=None,
        help="Process at most this many collected links.",
    )
    parser.add_argument("--results", default=None, help="CSV file for the run's rows.")
    parser.add_argument("--log-level", default=None, help="Logging verbosity.")
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless.",
    )
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return a copy of ``settings`` with command-line overrides applied."""
    updates: dict[str, object] = {}
    if args.strategy is not None:
        updates["locator_strategy"] = Strategy(args.strategy)
    if args.results is not None:
        updates["results_path"] = args.results
    if args.log_level is not None:
        updates["log_level"] = args.log_level
    if args.headed:
        updates["headless"] = False
    return settings.model_copy(update=updates)


async def _run(settings: Settings, max_links: Optional[int]) -> RunSummary:
    async with BrowserSession(
        headless=settings.headless,
        user_agent=settings.user_agent,
    ) as session:
        runner = PipelineRunner.from_settings(settings, session, max_links=max_links)
        return await runner.run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = apply_overrides(get_settings(), args)
    configure_logging(settings.log_level)

    try:
        summary = asyncio.run(_run(settings, args.max_links))
    except BrowserStartupError as exc:
        logger.error("archive-miner: %s", exc)
        return 1

    print(
        f"[archive-miner] {len(summary.rows)} row(s) from {summary.links_total} link(s) "
        f"(not found: {summary.not_found}, failed: {summary.failed}, empty: {summary.empty})"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
