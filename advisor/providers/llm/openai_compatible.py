"""
Provider for OpenAI-style ``POST /chat/completions`` endpoints.

Gaia nodes expose this dialect, as does OpenAI itself, so one class serves
both; only the base URL and the key differ.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from .base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ProviderAPIError,
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
    user,
)

CHAT_COMPLETIONS_PATH = "/chat/completions"
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def error_for_status(status: int, body: str) -> ProviderError:
    if status in (401, 403):
        return ProviderAuthError(f"Endpoint rejected the API key ({status})")
    if status == 429:
        return ProviderRateLimitError("Rate limited by the completion endpoint")
    return ProviderAPIError(f"Completion endpoint returned {status}: {body[:200]}")


def message_text(content: Any) -> str:
    """Flatten ``message.content``, which may be a string or a list of parts."""
    if content is None:
        return ""
    if isinstance(content, list):
        return "".join(
            part if isinstance(part, str) else str(part.get("text") or "")
            for part in content
            if isinstance(part, (str, dict))
        )
    return str(content)


class OpenAICompatibleProvider(LLMProvider):
    """
    Retries transport errors and 429/5xx up to ``max_retries`` times with a
    linear backoff; everything else fails on the first attempt.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_backoff_seconds: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds
        super().__init__(api_key, model, transport=transport, **kwargs)

    def _setup_client(self, transport: Optional[httpx.AsyncBaseTransport] = None, **kwargs: Any) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
        )

    async def _backoff(self, attempt: int, reason: str) -> None:
        self.logger.warning(
            "Completion attempt %d/%d failed (%s); retrying",
            attempt, self.max_retries + 1, reason,
        )
        await asyncio.sleep(self.retry_backoff_seconds * attempt)

    async def _post_with_retries(self, body: Dict[str, Any]) -> Dict[str, Any]:
        attempt = 0
        while True:
            attempt += 1
            can_retry = attempt <= self.max_retries
            try:
                response = await self._client.post(CHAT_COMPLETIONS_PATH, json=body)
            except httpx.RequestError as exc:
                if can_retry:
                    await self._backoff(attempt, type(exc).__name__)
                    continue
                raise ProviderAPIError(f"Completion request failed: {exc!r}") from exc

            if response.status_code >= 400:
                if response.status_code in RETRYABLE_STATUS and can_retry:
                    await self._backoff(attempt, f"HTTP {response.status_code}")
                    continue
                raise error_for_status(response.status_code, response.text)

            try:
                return response.json()
            except ValueError as exc:
                raise ProviderAPIError("Completion endpoint returned invalid JSON") from exc

    def _request_body(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int],
        temperature: Optional[float],
        overrides: Dict[str, Any],
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [msg.model_dump() for msg in messages],
        }
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        if temperature is not None:
            body["temperature"] = temperature
        # None means "use the default", including for model
        body.update({key: value for key, value in overrides.items() if value is not None})
        return body

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        started = time.time()
        body = self._request_body(messages, max_tokens, temperature, kwargs)
        data = await self._post_with_retries(body)

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise ProviderAPIError("Completion response has no choices")
        first = choices[0]

        return self._create_response(
            content=message_text((first.get("message") or {}).get("content")),
            model=data.get("model") or body["model"],
            tokens_used=(data.get("usage") or {}).get("total_tokens"),
            finish_reason=first.get("finish_reason"),
            response_time_ms=self._elapsed_ms(started),
        )

    async def health_check(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {"model": self.model, "base_url": self.base_url}
        try:
            response = await self.generate_response([user("Reply with one short greeting.")], max_tokens=50)
        except ProviderRateLimitError:
            return {**status, "status": "degraded", "error": "rate_limited"}
        except ProviderError as exc:
            return {**status, "status": "error", "error": str(exc)}
        return {**status, "status": "healthy", "response_preview": (response.content or "")[:32]}

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OpenAICompatibleProvider":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
