"""Value types passed between pipeline stages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Union

if TYPE_CHECKING:
    from playwright.async_api import Frame, Page

#: An absolute article URL resolved against the index origin.
ArticleLink = str


class SnapshotStatus(str, enum.Enum):
    """Outcome of one archive acquisition."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class SnapshotResult:
    """Immutable result of mining one article URL from the archive provider.

    ``title`` and ``body`` are empty strings unless ``status`` is
    :attr:`SnapshotStatus.FOUND`.
    """

    title: str
    body: str
    snapshot_url: str
    status: SnapshotStatus
    original_url: str = ""
    error: str | None = None

    @classmethod
    def found(
        cls, original_url: str, title: str, body: str, snapshot_url: str
    ) -> SnapshotResult:
        return cls(
            title=title,
            body=body,
            snapshot_url=snapshot_url,
            status=SnapshotStatus.FOUND,
            original_url=original_url,
        )

    @classmethod
    def not_found(cls, original_url: str) -> SnapshotResult:
        return cls(
            title="",
            body="",
            snapshot_url="",
            status=SnapshotStatus.NOT_FOUND,
            original_url=original_url,
        )

    @classmethod
    def failed(cls, original_url: str, error: str) -> SnapshotResult:
        return cls(
            title="",
            body="",
            snapshot_url="",
            status=SnapshotStatus.FAILED,
            original_url=original_url,
            error=error,
        )

    @property
    def has_content(self) -> bool:
        """``True`` when the snapshot was found and yielded a title and a body."""
        return self.status is SnapshotStatus.FOUND and bool(self.title) and bool(self.body)


@dataclass
class ExtractionContext:
    """The DOM scope currently holding the article.

    Attributes:
        root: The top-level Playwright page, or a nested frame inside it.
        snapshot_url: URL of the snapshot the context is rendering.
        nested: ``True`` when ``root`` is a sub-frame rather than the page.
    """

    root: Union[Page, Frame]
    snapshot_url: str
    nested: bool = False


class _NotFound:
    """Sentinel type for a confirmed absence of a snapshot."""

    _instance: _NotFound | None = None

    def __new__(cls) -> _NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND: Final = _NotFound()
"""Returned by snapshot locators when the provider has no snapshot in budget."""


@dataclass(frozen=True)
class PipelineRow:
    """One ``(title, body)`` row accumulated during a run."""

    title: str
    body: str

    def as_tuple(self) -> tuple[str, str]:
        return (self.title, self.body)


@dataclass
class RunSummary:
    """Counters and accumulated rows for one pipeline run."""

    links_total: int = 0
    found: int = 0
    not_found: int = 0
    failed: int = 0
    empty: int = 0
    published: int = 0
    publish_errors: int = 0
    rows: list[PipelineRow] = field(default_factory=list)
