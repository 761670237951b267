"""doc_rewriter.client module.

This module defines the `AIAPIClient` class, the HTTP implementation of the
pipeline's ``Transformer`` capability. It sends a file's text to an
OpenAI-compatible chat-completions endpoint, handles transient network
failures with retries and backoff, throttles the request rate with
``aiolimiter``, and returns the model's answer stripped of code fences.

The client never performs file I/O. ``process_content`` reports every
failure in its return value; ``transform`` translates those results into
the project's error taxonomy (:mod:`src.exceptions`) so the pipeline can
record a per-file failure.

Examples
--------
>>> import asyncio
>>> from src.pipeline.doc_rewriter.client import AIAPIClient
>>> from src.pipeline.doc_rewriter.config import OpenAIConfig
>>> async def main():
...     async with AIAPIClient(OpenAIConfig()) as client:
...         return await client.transform("object A")
>>> # asyncio.run(main())

Notes
-----
- All configuration values (timeouts, endpoint, retries) are injected via
  the config argument, never hardcoded.
- Concurrency is bounded by the pipeline's admission gate; the connector
  limit only caps open sockets.
"""

from __future__ import annotations

import asyncio
import json
import logging
from types import TracebackType
from typing import Any

import aiohttp
from aiolimiter import AsyncLimiter

from src.config import AI_PAYLOAD_MAX_TOKENS
from src.exceptions import (
    APIRateLimitError,
    ExternalServiceError,
    RetryExhaustedError,
    TimeoutExceededError,
    TransformationError,
)

from .prompts import PromptBuilder, build_documentation_prompt, clean_ai_response

logger = logging.getLogger(__name__)


class AIAPIClient:
    r"""Asynchronous transformer backed by a chat-completions endpoint.

    Parameters
    ----------
    config : Any
        Configuration object (e.g., `OpenAIConfig`) providing the endpoint,
        credentials, retry limits and timeouts. Optional attributes are read
        with ``getattr`` defaults so tests can pass a ``SimpleNamespace``.
    prompt_builder : PromptBuilder, optional
        Turns the input text into chat messages.
    session : aiohttp.ClientSession | None, optional
        Externally owned session. When omitted the client creates and owns
        one on first use.
    rate_limiter : AsyncLimiter | None, optional
        Shared limiter; defaults to ``target_rpm`` requests per minute.

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> cfg = SimpleNamespace(chat_endpoint="http://mock", api_key="secret")
    >>> AIAPIClient(cfg)
    <src.pipeline.doc_rewriter.client.AIAPIClient object at ...>
    """

    def __init__(
        self,
        config: Any,
        prompt_builder: PromptBuilder = build_documentation_prompt,
        *,
        session: aiohttp.ClientSession | None = None,
        rate_limiter: AsyncLimiter | None = None,
    ) -> None:
        self.config = config
        self.prompt_builder = prompt_builder
        self._session = session
        self._owns_session = session is None
        self.rate_limiter = rate_limiter or AsyncLimiter(
            getattr(config, "target_rpm", 500), 60
        )

    async def __aenter__(self) -> AIAPIClient:
        self._ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=getattr(self.config, "max_concurrent_requests", 5)
            )
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    def with_prompt(self, prompt_builder: PromptBuilder) -> AIAPIClient:
        """Return a client sharing this one's session and limiter with another prompt."""
        clone = AIAPIClient(
            self.config,
            prompt_builder,
            session=self._ensure_session(),
            rate_limiter=self.rate_limiter,
        )
        return clone

    def create_payload(self, text: str) -> dict[str, Any]:
        """Build the JSON request body for ``text``."""
        return {
            "model": getattr(self.config, "model", None),
            "messages": self.prompt_builder(text),
            "max_tokens": AI_PAYLOAD_MAX_TOKENS,
            "temperature": getattr(self.config, "temperature", 0.1),
        }

    async def transform(self, text: str) -> str:
        r"""Return the model's rewrite of ``text``.

        Parameters
        ----------
        text : str
            Content to send.

        Returns
        -------
        str
            The cleaned response text.

        Raises
        ------
        APIRateLimitError
            The service kept answering HTTP 429 until retries ran out.
        TimeoutExceededError
            Every attempt timed out.
        RetryExhaustedError
            Network errors persisted through every retry.
        ExternalServiceError
            The service answered with another HTTP error status.
        TransformationError
            The service answered without usable content.
        """
        session = self._ensure_session()
        ok, content, raw = await self.process_content(session, self.create_payload(text))
        if ok and content:
            return content
        raise _error_from_response(raw)

    async def process_content(
        self, session: aiohttp.ClientSession, payload: dict[str, Any]
    ) -> tuple[bool, str | None, dict[str, Any] | None]:
        r"""Send a payload to the external AI API and return a normalized result or error.

        Handles network issues (retries on ``aiohttp.ClientError`` and
        ``TimeoutError``, up to ``config.max_retries``), malformed or empty
        responses (retried), HTTP 429 with sleep-and-retry, and other HTTP
        error codes (retried, then surfaced with status and body).

        Parameters
        ----------
        session : aiohttp.ClientSession
            Session used for the POST. Not closed by this method.
        payload : dict[str, Any]
            JSON-serializable request body.

        Returns
        -------
        tuple[bool, str or None, dict[str, Any] or None]
            ``(ok, cleaned_content, raw_response)``; on failure
            ``raw_response`` describes the error (``error_type`` or
            ``status_code``).

        Notes
        -----
        No exceptions propagate to the caller apart from cancellation.
        """
        endpoint = getattr(self.config, "chat_endpoint", "")
        if not endpoint:
            return (
                False,
                None,
                {"error_type": "ConfigurationError", "message": "AI endpoint not set."},
            )

        headers = {"Content-Type": "application/json"}
        if hasattr(self.config, "auth_headers"):
            headers.update(self.config.auth_headers())
        else:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        max_retries = getattr(self.config, "max_retries", 3)
        backoff = getattr(self.config, "backoff_factor", 2.0)
        last_error: dict[str, Any] | None = None

        for attempt in range(max_retries + 1):
            if attempt:
                logger.debug("Retrying AI request (attempt %d)", attempt + 1)
            try:
                async with self.rate_limiter:
                    async with session.post(
                        endpoint,
                        json=payload,
                        headers=headers,
                        timeout=aiohttp.ClientTimeout(
                            total=getattr(self.config, "request_timeout", 300)
                        ),
                    ) as response:
                        status = response.status
                        text = await response.text()
            except aiohttp.ClientError as e:
                last_error = {"error_type": "ClientError", "message": str(e)}
            except asyncio.TimeoutError:
                last_error = {"error_type": "TimeoutError"}
            else:
                if status == 200:
                    try:
                        data = json.loads(text)
                    except json.JSONDecodeError:
                        return False, None, {"raw_response_text": text}
                    content = _extract_content(data)
                    if content:
                        return True, clean_ai_response(content), data
                    last_error = data if isinstance(data, dict) else {"raw": data}
                elif status == 429:
                    last_error = {"status_code": status, "error_body": text}
                    if attempt < max_retries:
                        await asyncio.sleep(
                            getattr(self.config, "retry_sleep_on_429", 60)
                            * (attempt + 1)
                        )
                    continue
                else:
                    last_error = {"status_code": status, "error_body": text}
                    if 400 <= status < 500:
                        # Client errors other than 429 will not improve on retry.
                        return False, None, last_error

            if attempt < max_retries:
                await asyncio.sleep(backoff**attempt)

        return False, None, last_error


def _extract_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices", [])
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message", {})
    content = message.get("content", "") if isinstance(message, dict) else ""
    return content if isinstance(content, str) else ""


def _error_from_response(raw: dict[str, Any] | None) -> TransformationError:
    """Translate a ``process_content`` error description into an exception."""
    raw = raw or {}
    error_type = raw.get("error_type")
    status = raw.get("status_code")
    if status == 429:
        return APIRateLimitError("AI service rate limit persisted", context=raw)
    if error_type == "TimeoutError":
        return TimeoutExceededError("AI request timed out", context=raw)
    if error_type == "ClientError":
        return RetryExhaustedError(
            f"AI request failed after retries: {raw.get('message', '')}", context=raw
        )
    if status is not None:
        return ExternalServiceError(
            f"AI service answered HTTP {status}",
            context=raw,
            transient=int(status) >= 500,
        )
    if error_type is not None:
        return TransformationError(str(raw.get("message", error_type)), context=raw)
    return TransformationError("AI service returned no usable content", context=raw)


__all__ = ["AIAPIClient"]
