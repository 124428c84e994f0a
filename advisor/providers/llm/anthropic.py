"""Anthropic Messages API provider."""

import time
from typing import Any, Dict, List, Optional, Tuple

import anthropic
from anthropic import AsyncAnthropic

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

DEFAULT_MAX_TOKENS = 1000


def split_system(messages: List[LLMMessage]) -> Tuple[Optional[str], List[Dict[str, str]]]:
    """Anthropic takes the system prompt out of band; the transcript keeps it at index 0."""
    system_prompt = None
    turns: List[Dict[str, str]] = []
    for msg in messages:
        if msg.role == "system":
            system_prompt = msg.content
        else:
            turns.append({"role": msg.role, "content": msg.content})
    return system_prompt, turns


class AnthropicProvider(LLMProvider):
    def __init__(self, api_key: str, model: Optional[str] = None, **kwargs: Any):
        if not model:
            raise ValueError("AnthropicProvider needs a model id (set QUICK_MODEL / DETAILED_MODEL)")
        super().__init__(api_key, model, **kwargs)

    def _setup_client(self, timeout: float = 30.0, max_retries: int = 2, **kwargs: Any) -> None:
        # The SDK retries 429/5xx itself, so max_retries is handed straight through
        self.client = AsyncAnthropic(api_key=self.api_key, timeout=timeout, max_retries=max_retries)

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        started = time.time()
        system_prompt, turns = split_system(messages)

        params: Dict[str, Any] = {
            "model": kwargs.pop("model", None) or self.model,
            "messages": turns,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
        }
        if system_prompt:
            params["system"] = system_prompt
        if temperature is not None:
            params["temperature"] = temperature
        params.update({key: value for key, value in kwargs.items() if value is not None})

        try:
            message = await self.client.messages.create(**params)
        except anthropic.AuthenticationError as exc:
            raise ProviderAuthError(f"Anthropic rejected the API key: {exc}") from exc
        except anthropic.RateLimitError as exc:
            raise ProviderRateLimitError(f"Anthropic rate limit: {exc}") from exc
        except anthropic.APIError as exc:
            raise ProviderAPIError(f"Anthropic request failed: {exc}") from exc

        text = "".join(
            block.text for block in (message.content or []) if getattr(block, "type", None) == "text"
        )
        usage = getattr(message, "usage", None)
        return self._create_response(
            content=text,
            model=params["model"],
            tokens_used=usage.output_tokens if usage else None,
            finish_reason=getattr(message, "stop_reason", None),
            response_time_ms=self._elapsed_ms(started),
        )

    async def health_check(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {"model": self.model}
        try:
            response = await self.generate_response([user("Hello")], max_tokens=10)
        except ProviderRateLimitError:
            return {**status, "status": "degraded", "error": "rate_limited"}
        except ProviderError as exc:
            return {**status, "status": "error", "error": str(exc)}
        return {**status, "status": "healthy", "response_time_ms": response.response_time_ms}

    async def close(self) -> None:
        await self.client.close()
