"""Client wrapper for the hosted chat-completion endpoint."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from app.core.config import InferenceSettings
from app.schemas import ChatMessage, FallbackBehavior
from app.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 2000


class InferenceError(RuntimeError):
    """Raised when the endpoint cannot produce a completion."""


class InferenceClient:
    """POST role-tagged messages and return the first choice's content."""

    def __init__(
        self,
        settings: InferenceSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        fallback: FallbackBehavior = FallbackBehavior.ERROR,
        simplified_messages: Sequence[ChatMessage] | None = None,
    ) -> str:
        """Request a completion, applying ``fallback`` when the call fails.

        ``error`` makes a single attempt, ``retry`` retries with exponential
        backoff and ``simplify`` issues one more call with
        ``simplified_messages``.
        """
        payload = self._build_payload(messages, temperature, max_tokens)
        retry_config = RetryConfig(attempts=1)
        if fallback is FallbackBehavior.RETRY:
            retry_config = RetryConfig(
                attempts=self._settings.retry_attempts,
                backoff_seconds=self._settings.retry_backoff_seconds,
            )

        async with self._client() as client:
            try:
                return await self._post(client, payload, retry_config)
            except InferenceError:
                if fallback is not FallbackBehavior.SIMPLIFY or not simplified_messages:
                    raise
                logger.warning("Completion failed; retrying once with simplified prompt.")
                simplified = self._build_payload(simplified_messages, temperature, max_tokens)
                return await self._post(client, simplified, RetryConfig(attempts=1))

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        return httpx.AsyncClient(
            headers=headers,
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        )

    def _build_payload(
        self,
        messages: Sequence[ChatMessage],
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        return {
            "model": self._settings.model_name,
            "messages": [message.model_dump() for message in messages],
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
        }

    async def _post(
        self,
        client: httpx.AsyncClient,
        payload: dict[str, Any],
        retry_config: RetryConfig,
    ) -> str:
        try:
            response = await request_with_retry(
                client.post,
                self._settings.api_url,
                json=payload,
                retry_config=retry_config,
            )
        except httpx.HTTPStatusError as exc:
            raise InferenceError(
                f"Inference API error: {exc.response.status_code} "
                f"{exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise InferenceError(f"Inference request failed: {exc}") from exc

        try:
            body = response.json()
            content = body["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise InferenceError("Inference API returned an unexpected payload.") from exc
        if not isinstance(content, str):
            raise InferenceError("Inference API returned non-text content.")
        return content


__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "InferenceClient",
    "InferenceError",
]
