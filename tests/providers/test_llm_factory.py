"""
Tests for get_llm_provider.
"""

import pytest

from advisor.config import Settings
from advisor.providers.llm import (
    AnthropicProvider,
    OpenAICompatibleProvider,
    canonical_provider_name,
    get_llm_provider,
)

KEY_VARS = [
    "GAIA_API_KEY",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "CLAUDE_API_KEY",
    "LLM_PROVIDER",
    "LLM_BASE_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in KEY_VARS:
        monkeypatch.delenv(var, raising=False)


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


def test_alias_normalization():
    assert canonical_provider_name("Claude") == "anthropic"
    assert canonical_provider_name("gpt") == "openai"
    assert canonical_provider_name("GAIA") == "gaia"


@pytest.mark.asyncio
async def test_gaia_default_base_url():
    settings = make_settings(llm_provider="gaia", gaia_api_key="gaia-key")

    provider = get_llm_provider(settings)

    assert isinstance(provider, OpenAICompatibleProvider)
    assert provider.base_url == "https://consensus.gaia.domains/v1"
    assert provider.model == "Llama-3.2-3B-Instruct"
    assert provider.timeout == 30.0
    assert provider.max_retries == 2
    await provider.close()


@pytest.mark.asyncio
async def test_base_url_override():
    settings = make_settings(
        llm_provider="gpt",
        openai_api_key="sk-test",
        llm_base_url="http://localhost:8080/v1",
    )

    provider = get_llm_provider(settings)

    assert provider.base_url == "http://localhost:8080/v1"
    await provider.close()


def test_anthropic_provider():
    settings = make_settings(llm_provider="claude", anthropic_api_key="sk-ant", quick_model="claude-haiku")

    provider = get_llm_provider(settings)

    assert isinstance(provider, AnthropicProvider)
    assert provider.model == "claude-haiku"


def test_missing_key_raises():
    settings = make_settings(llm_provider="gaia")

    with pytest.raises(ValueError, match="No API key"):
        get_llm_provider(settings)


def test_unknown_provider_raises():
    settings = make_settings(gaia_api_key="gaia-key")

    with pytest.raises(ValueError, match="Unsupported provider"):
        get_llm_provider(settings, provider_name="mystery")
