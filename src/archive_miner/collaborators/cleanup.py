"""LLM-based article cleanup through Groq's OpenAI-compatible chat API.

:class:`GroqContentCleaner` asks the model to strip leftover page chrome
(share/subscribe prompts, ads, social mentions) while keeping the full
article.  Failures raise :class:`~archive_miner.core.exceptions.CleanupError`;
the pipeline then keeps the raw extracted body.

Error handling maps outcomes to ``CleanupError`` with a reason:

- Non-2xx responses (including 401/403 for a bad key and 429 rate limits)
- Network errors and timeouts
- Malformed or empty completion payloads
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from archive_miner.core.exceptions import CleanupError

logger = logging.getLogger(__name__)

_COLLABORATOR = "groq"

CLEANUP_PROMPT_TEMPLATE: str = """
Clean the following article content:
- Remove ads, social media mentions, "share", "subscribe", "sign in", "sign up", or any unrelated text.
- Preserve the article's main content only.
- Do not write an introduction such as "Here is the cleaned-up article content:".
- Give the full article and do not cut it off in between.

Title: {title}
Body:
{body}
"""


def build_cleanup_prompt(title: str, body: str) -> str:
    """Return the user message sent to the model for one article."""
    return CLEANUP_PROMPT_TEMPLATE.format(title=title, body=body)


def _completion_text(payload: dict[str, Any]) -> str:
    """Pull the first choice's message content out of a chat completion."""
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise CleanupError(
            f"groq: malformed completion payload ({exc!r})", collaborator=_COLLABORATOR
        ) from exc
    if not isinstance(content, str) or not content.strip():
        raise CleanupError("groq: empty completion", collaborator=_COLLABORATOR)
    return content.strip()


class GroqContentCleaner:
    """Cleans article bodies with a Groq-hosted chat model.

    Args:
        api_key: Groq API key (``Bearer`` token).
        model: Model identifier, e.g. ``"llama3-70b-8192"``.
        api_url: Chat completions endpoint.
        max_tokens: Completion token cap.
        timeout: HTTP timeout in seconds.
        client: Optional shared :class:`httpx.AsyncClient`.  When omitted a
            client is created per call.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "llama3-70b-8192",
        api_url: str = "https://api.groq.com/openai/v1/chat/completions",
        max_tokens: int = 2000,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = client

    async def clean(self, title: str, body: str) -> str:
        """Return the model's cleaned version of ``body``.

        Raises:
            CleanupError: On any HTTP, network or payload failure.
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": build_cleanup_prompt(title, body)}],
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        if self._client is not None:
            data = await self._post(self._client, payload, headers)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                data = await self._post(client, payload, headers)

        cleaned = _completion_text(data)
        logger.debug("cleanup: %r %d -> %d chars", title[:80], len(body), len(cleaned))
        return cleaned

    async def _post(
        self,
        client: httpx.AsyncClient,
        payload: dict[str, Any],
        headers: dict[str, str],
    ) -> dict[str, Any]:
        try:
            response = await client.post(
                self.api_url, json=payload, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            raise CleanupError(
                f"groq: HTTP {code}: {exc.response.text[:200]}",
                collaborator=_COLLABORATOR,
            ) from exc
        except httpx.RequestError as exc:
            raise CleanupError(
                f"groq: request error: {exc}", collaborator=_COLLABORATOR
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise CleanupError(
                "groq: response was not JSON", collaborator=_COLLABORATOR
            ) from exc
