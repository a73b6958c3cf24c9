"""Publishing adapter that posts articles to a WordPress intake endpoint."""

from __future__ import annotations

import logging

import httpx

from archive_miner.core.exceptions import PublishError

logger = logging.getLogger(__name__)

_COLLABORATOR = "wordpress"


class WordPressPublisher:
    """POSTs ``{"title": ..., "body": ...}`` JSON to a configured endpoint.

    The write is one-way: the response body is logged, not interpreted.

    Args:
        endpoint: Intake URL (``WP_URL``).
        timeout: HTTP timeout in seconds.
        client: Optional shared :class:`httpx.AsyncClient`.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client

    async def publish(self, title: str, body: str) -> None:
        """Send one article.

        Raises:
            PublishError: On a non-2xx response or a network error.
        """
        if self._client is not None:
            await self._post(self._client, title, body)
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            await self._post(client, title, body)

    async def _post(self, client: httpx.AsyncClient, title: str, body: str) -> None:
        try:
            response = await client.post(
                self.endpoint,
                json={"title": title, "body": body},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            raise PublishError(
                f"wordpress: HTTP {code}: {exc.response.text[:200]}",
                status_code=code,
                collaborator=_COLLABORATOR,
            ) from exc
        except httpx.RequestError as exc:
            raise PublishError(
                f"wordpress: request error: {exc}", collaborator=_COLLABORATOR
            ) from exc

        logger.info(
            "publisher: posted %r (HTTP %d): %s",
            title[:80],
            response.status_code,
            response.text[:200],
        )
