"""Application-wide exception hierarchy for Archive Miner.

All custom exceptions subclass ``ArchiveMinerError``, enabling consistent
error handling and structured logging across the pipeline.

Hierarchy::

    ArchiveMinerError
    ├── AcquisitionError            (url)
    │   └── RetriesExhaustedError   (attempts, last_error)
    ├── CollaboratorError           (collaborator)
    │   ├── CleanupError
    │   ├── PublishError            (status_code)
    │   └── SinkError
    └── BrowserStartupError

A missing snapshot is *not* an exception: the locator returns the
:data:`~archive_miner.core.models.NOT_FOUND` sentinel instead.
"""

from __future__ import annotations


class ArchiveMinerError(Exception):
    """Base class for all Archive Miner exceptions."""


# ---------------------------------------------------------------------------
# Acquisition exceptions
# ---------------------------------------------------------------------------


class AcquisitionError(ArchiveMinerError):
    """Raised when a snapshot cannot be acquired for an article URL.

    Args:
        message: Human-readable description of the failure.
        url: The original article URL being acquired.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class RetriesExhaustedError(AcquisitionError):
    """Raised when every retry attempt for a URL ended in an exception.

    The pipeline treats this as terminal for the URL and skips it.

    Args:
        attempts: Number of attempts made.
        last_error: Exception raised by the final attempt.
        url: The original article URL, when known.
    """

    def __init__(
        self,
        attempts: int,
        last_error: BaseException | None = None,
        url: str | None = None,
    ) -> None:
        msg = f"Gave up after {attempts} attempt(s)"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(msg, url=url)
        self.attempts = attempts
        self.last_error = last_error


# ---------------------------------------------------------------------------
# Collaborator exceptions
# ---------------------------------------------------------------------------


class CollaboratorError(ArchiveMinerError):
    """Raised when an external collaborator (cleanup, publish, sink) fails.

    Collaborator faults are never fatal to a run.

    Args:
        message: Human-readable description of the failure.
        collaborator: Short collaborator name (e.g. ``"wordpress"``).
    """

    def __init__(self, message: str, collaborator: str | None = None) -> None:
        super().__init__(message)
        self.collaborator = collaborator


class CleanupError(CollaboratorError):
    """Raised when the text-cleanup service fails or returns nothing usable."""


class PublishError(CollaboratorError):
    """Raised when the publishing endpoint rejects or drops a post.

    Args:
        message: Human-readable description of the failure.
        status_code: HTTP status code, or ``None`` on network error.
        collaborator: Short collaborator name.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        collaborator: str | None = None,
    ) -> None:
        super().__init__(message, collaborator=collaborator)
        self.status_code = status_code


class SinkError(CollaboratorError):
    """Raised when the result sink cannot persist the run's rows."""


# ---------------------------------------------------------------------------
# Browser exceptions
# ---------------------------------------------------------------------------


class BrowserStartupError(ArchiveMinerError):
    """Raised when the shared headless browser cannot be launched.

    This is the only error that aborts a run.
    """
