from typing import Any, Dict, Optional, Type

from .base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ProviderAPIError,
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
)
from .anthropic import AnthropicProvider
from .openai_compatible import OpenAICompatibleProvider

PROVIDER_ALIAS_MAP: Dict[str, str] = {
    "claude": "anthropic",
    "gpt": "openai",
}

DEFAULT_BASE_URLS: Dict[str, str] = {
    "gaia": "https://consensus.gaia.domains/v1",
    "openai": "https://api.openai.com/v1",
}


def canonical_provider_name(name: str) -> str:
    """Normalize provider aliases to their canonical identifier."""

    return PROVIDER_ALIAS_MAP.get(name.lower(), name.lower())


# Registry of available LLM providers
PROVIDER_REGISTRY: Dict[str, Type[LLMProvider]] = {
    "gaia": OpenAICompatibleProvider,
    "openai": OpenAICompatibleProvider,
    "anthropic": AnthropicProvider,
}


def _api_key_for(provider: str, settings: Any) -> str:
    if provider == "gaia":
        return settings.gaia_api_key
    if provider == "openai":
        return settings.openai_api_key
    if provider == "anthropic":
        return settings.anthropic_api_key
    return ""


def get_llm_provider(
    settings: Any = None,
    provider_name: Optional[str] = None,
    **kwargs: Any,
) -> LLMProvider:
    """Instantiate the configured model provider.

    Raises ValueError for unknown providers or a missing API key.
    """

    if settings is None:
        from ...config import settings  # Local import to avoid circular dependency

    provider_key = canonical_provider_name(provider_name or settings.llm_provider)
    if provider_key not in PROVIDER_REGISTRY:
        available_providers = ", ".join(PROVIDER_REGISTRY.keys())
        raise ValueError(
            f"Unsupported provider '{provider_key}'. "
            f"Available providers: {available_providers}"
        )

    api_key = _api_key_for(provider_key, settings)
    if not api_key:
        raise ValueError(f"No API key configured for provider: {provider_key}")

    provider_class = PROVIDER_REGISTRY[provider_key]
    options: Dict[str, Any] = {
        "timeout": settings.request_timeout_seconds,
        "max_retries": settings.max_retries,
    }
    if provider_class is OpenAICompatibleProvider:
        options["base_url"] = settings.llm_base_url or DEFAULT_BASE_URLS[provider_key]
    options.update(kwargs)

    return provider_class(api_key=api_key, model=settings.quick_model, **options)


__all__ = [
    "LLMProvider",
    "LLMMessage",
    "LLMResponse",
    "ProviderError",
    "ProviderAPIError",
    "ProviderAuthError",
    "ProviderRateLimitError",
    "AnthropicProvider",
    "OpenAICompatibleProvider",
    "get_llm_provider",
    "PROVIDER_REGISTRY",
    "canonical_provider_name",
]
