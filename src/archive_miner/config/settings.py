"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
All credentials and endpoints are read exclusively through this module —
never call ``os.getenv`` directly elsewhere in the codebase.  Collaborators
receive the values they need through their constructors.

Usage::

    from archive_miner.config.settings import get_settings

    settings = get_settings()
    strategy = settings.locator_strategy
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from archive_miner.scraper.config import (
    DEFAULT_CHROME_DENYLIST,
    DEFAULT_MIN_BLOCK_LENGTH,
    DEFAULT_USER_AGENT,
    Strategy,
)


class Settings(BaseSettings):
    """Runtime configuration backed by environment variables and an optional .env file.

    Every field has a default so the pipeline can run against the public
    index and archive provider without any configuration.  The Groq and
    WordPress collaborators are disabled when their key/endpoint is unset.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Index site
    # ------------------------------------------------------------------

    index_url: str = "https://hbr.org/the-latest"
    """Listing page enumerating freshly published articles."""

    index_base_url: str = "https://hbr.org"
    """Origin that relative article hrefs are resolved against."""

    index_load_timeout: float = 80.0
    """Seconds to wait for the index page and its first title links."""

    pagination_settle_delay: float = 0.8
    """Seconds after a "load more" click before pagination proceeds regardless
    of whether a matching network response arrived."""

    max_pagination_steps: int = 200
    """Upper bound on "load more" clicks in one collection."""

    # ------------------------------------------------------------------
    # Archive provider
    # ------------------------------------------------------------------

    archive_base_url: str = "https://archive.is"
    """Origin of the archive provider.  Snapshot links start with this prefix."""

    locator_strategy: Strategy = Strategy.SEARCH_FORM
    """Which provider-navigation strategy the snapshot locator uses."""

    navigation_timeout: float = 60.0
    """Seconds allowed for any single provider page navigation."""

    snapshot_link_timeout: float = 15.0
    """Seconds to wait for a snapshot link on the provider's results page."""

    loader_timeout: float = 45.0
    """Total seconds the direct-loader strategy polls for a snapshot."""

    poll_interval: float = 1.0
    """Seconds between checks while polling for a snapshot frame or heading."""

    revisit_settle_delay: float = 5.0
    """Seconds the revisit strategy waits for asynchronous capture to finish."""

    locate_budget: float = 180.0
    """Hard cap in seconds on one locate call, across all of its waits."""

    # ------------------------------------------------------------------
    # Browser
    # ------------------------------------------------------------------

    headless: bool = True
    """Launch Chromium without a visible window."""

    user_agent: str = DEFAULT_USER_AGENT
    """User-Agent string presented to both the index site and the provider."""

    # ------------------------------------------------------------------
    # Retry and throttling
    # ------------------------------------------------------------------

    max_attempts: int = Field(default=3, ge=1)
    """Attempts per article URL before the URL is skipped."""

    backoff_delay: float = 5.0
    """Fixed seconds to wait between attempts for the same URL."""

    inter_link_delay: float = 1.5
    """Seconds to wait after every article URL, including failures."""

    # ------------------------------------------------------------------
    # Extraction heuristics
    # ------------------------------------------------------------------

    min_block_length: int = DEFAULT_MIN_BLOCK_LENGTH
    """Blocks before the first one longer than this are treated as breadcrumbs.
    Empirically tuned; recalibrate against real snapshots."""

    chrome_denylist: list[str] = list(DEFAULT_CHROME_DENYLIST)
    """Exact block texts dropped as page chrome.  Supply as a JSON array."""

    # ------------------------------------------------------------------
    # Cleanup collaborator (Groq, OpenAI-compatible)
    # ------------------------------------------------------------------

    groq_api_key: Optional[str] = None
    """Groq API key.  When ``None``, cleanup is skipped and raw text is kept."""

    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    """Chat completions endpoint."""

    groq_model: str = "llama3-70b-8192"
    """Model identifier sent with each cleanup request."""

    groq_max_tokens: int = 2000
    """Completion token cap per cleanup request."""

    cleanup_timeout: float = 60.0
    """HTTP timeout in seconds for cleanup requests."""

    # ------------------------------------------------------------------
    # Publishing collaborator (WordPress)
    # ------------------------------------------------------------------

    wp_url: Optional[str] = None
    """Endpoint receiving ``{"title", "body"}`` JSON posts.  ``None`` disables
    publishing."""

    publish_timeout: float = 30.0
    """HTTP timeout in seconds for publish requests."""

    # ------------------------------------------------------------------
    # Result sink
    # ------------------------------------------------------------------

    results_path: str = "articles.csv"
    """CSV file that receives the run's rows at the end of a run.  Any object
    implementing :class:`~archive_miner.collaborators.base.ResultSink` (a
    spreadsheet append, for instance) can be passed to
    :class:`~archive_miner.pipeline.runner.PipelineRunner` instead."""

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings singleton.

    In tests, call ``get_settings.cache_clear()`` after patching environment
    variables.
    """
    return Settings()
