import pytest
from pydantic import ValidationError

from advisor.config import Settings


def test_anthropic_api_key_alias(monkeypatch):
    """Anthropic key should load from the legacy CLAUDE_API_KEY alias."""

    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setenv("CLAUDE_API_KEY", "alias-from-legacy")

    settings = Settings(_env_file=None)

    assert settings.anthropic_api_key == "alias-from-legacy"


def test_cryptopanic_key_aliases(monkeypatch):
    """Both CryptoPanic variable names are accepted, the long one first."""

    monkeypatch.setenv("CRYPTOPANIC_API_KEY", "short-name")
    monkeypatch.delenv("CRYPTOPANIC_NEWS_API_KEY", raising=False)
    assert Settings(_env_file=None).cryptopanic_news_api_key == "short-name"

    monkeypatch.setenv("CRYPTOPANIC_NEWS_API_KEY", "primary-key")
    settings = Settings(_env_file=None)
    assert settings.cryptopanic_news_api_key == "primary-key"
    assert settings.has_news_key


def test_turn_budget_defaults(monkeypatch):
    for var in ("DETAILED_MAX_TOKENS", "QUICK_MAX_TOKENS", "DETAILED_MODEL", "QUICK_MODEL"):
        monkeypatch.delenv(var, raising=False)

    settings = Settings(_env_file=None)

    assert settings.detailed_max_tokens == 1000
    assert settings.quick_max_tokens == 150
    assert settings.detailed_model == "Llama-3.2-3B-Instruct"
    assert settings.port == 3000


def test_detailed_budget_must_exceed_quick_budget():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, detailed_max_tokens=150, quick_max_tokens=150)


def test_has_llm_key_follows_provider(monkeypatch):
    for var in ("GAIA_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "CLAUDE_API_KEY"):
        monkeypatch.delenv(var, raising=False)

    assert not Settings(_env_file=None, llm_provider="gaia").has_llm_key
    assert Settings(_env_file=None, llm_provider="gaia", gaia_api_key="k").has_llm_key
    assert not Settings(_env_file=None, llm_provider="claude", gaia_api_key="k").has_llm_key
    assert Settings(_env_file=None, llm_provider="gpt", openai_api_key="k").has_llm_key
    assert not Settings(_env_file=None, llm_provider="unknown", openai_api_key="k").has_llm_key
