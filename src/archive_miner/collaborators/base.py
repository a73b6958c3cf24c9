"""Interfaces for the pipeline's external collaborators.

The pipeline depends only on these protocols.  Concrete adapters live in
the sibling modules; the null implementations here stand in when a
collaborator is not configured.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from archive_miner.core.models import PipelineRow

logger = logging.getLogger(__name__)


@runtime_checkable
class ContentCleaner(Protocol):
    """Rewrites an extracted body into publishable text."""

    async def clean(self, title: str, body: str) -> str: ...


@runtime_checkable
class Publisher(Protocol):
    """Performs a one-way write of an article to a publishing endpoint."""

    async def publish(self, title: str, body: str) -> None: ...


@runtime_checkable
class ResultSink(Protocol):
    """Durably stores the rows accumulated during a run."""

    async def write(self, rows: Sequence[PipelineRow]) -> None: ...


class PassThroughCleaner:
    """Returns the body unchanged.  Used when no cleanup service is configured."""

    async def clean(self, title: str, body: str) -> str:  # noqa: ARG002
        return body


class NullPublisher:
    """Publishes nothing.  Used when no publishing endpoint is configured."""

    async def publish(self, title: str, body: str) -> None:  # noqa: ARG002
        logger.debug("publisher: disabled, not publishing %r", title[:80])
