"""
Model provider contract.

The session tracker and the market analyst only ever call ``complete()``; the
concrete providers implement ``generate_response()`` against their API and
translate transport or API failures into ``ProviderError`` subclasses.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel


class ProviderError(Exception):
    """The model provider could not produce a completion."""


class ProviderAuthError(ProviderError):
    """API key rejected (401/403)."""


class ProviderRateLimitError(ProviderError):
    """Provider asked us to back off (429) and retries did not help."""


class ProviderAPIError(ProviderError):
    """Any other remote, transport or response-shape failure."""


Role = Literal["system", "user", "assistant"]


class LLMMessage(BaseModel):
    """One transcript entry"""
    role: Role
    content: str


def system(content: str) -> LLMMessage:
    return LLMMessage(role="system", content=content)


def user(content: str) -> LLMMessage:
    return LLMMessage(role="user", content=content)


def assistant(content: str) -> LLMMessage:
    return LLMMessage(role="assistant", content=content)


class LLMResponse(BaseModel):
    content: Optional[str] = None
    model: Optional[str] = None
    tokens_used: Optional[int] = None
    finish_reason: Optional[str] = None
    response_time_ms: Optional[float] = None


class LLMProvider(ABC):
    """Chat completion backend.

    ``model`` is the default model id; callers pick a different one per call
    through ``complete(model=...)`` (detailed vs. quick turns).
    """

    def __init__(self, api_key: str, model: str, **kwargs: Any):
        self.api_key = api_key
        self.model = model
        self.logger = logging.getLogger(f"advisor.providers.{self.__class__.__name__}")
        self._setup_client(**kwargs)

    @abstractmethod
    def _setup_client(self, **kwargs: Any) -> None:
        """Build the HTTP/SDK client from provider-specific options"""

    @abstractmethod
    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Send the transcript and return the raw completion.

        Extra keyword arguments are passed through to the request body;
        ``model`` overrides the default model for this call only.
        Raises ProviderError.
        """

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Status dict with at least a ``status`` key"""

    async def close(self) -> None:
        return None

    async def complete(
        self,
        messages: List[LLMMessage],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Return only the completion text, failing if the model said nothing."""
        response = await self.generate_response(
            messages,
            max_tokens=max_tokens,
            temperature=temperature,
            model=model,
        )
        if not response.content:
            raise ProviderAPIError(
                f"Empty completion from {self.__class__.__name__} "
                f"(finish_reason={response.finish_reason})"
            )
        return response.content

    def _create_response(self, content: str, **metadata: Any) -> LLMResponse:
        metadata.setdefault("model", self.model)
        return LLMResponse(content=content, **metadata)

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.time() - started) * 1000
