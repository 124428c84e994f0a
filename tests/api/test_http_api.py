"""
Tests for the HTTP side of the app: root, health and news endpoints.
"""

import pytest
import socketio
from fastapi.testclient import TestClient

from advisor.config import Settings
from advisor.main import build_api, create_app
from advisor.providers import FetchError
from advisor.providers.llm.base import ProviderAPIError

from conftest import FakeLLMProvider, FakeNewsProvider, make_news


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.delenv("CRYPTOPANIC_NEWS_API_KEY", raising=False)
    monkeypatch.delenv("CRYPTOPANIC_API_KEY", raising=False)
    return Settings(_env_file=None, gaia_api_key="gaia-key")


def test_root_without_news(settings):
    client = TestClient(build_api(settings, llm_provider=FakeLLMProvider()))

    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["news_enabled"] is False
    assert body["socket_path"] == "/socket.io"
    assert body["personas"]["crypto_advisor"] == "Crypto Advisor"
    assert "x-request-id" in response.headers


def test_health_reports_providers(settings):
    client = TestClient(build_api(settings, llm_provider=FakeLLMProvider(), news_provider=FakeNewsProvider()))

    body = client.get("/healthz").json()

    assert body["status"] == "healthy"
    assert body["providers"]["llm"]["status"] == "healthy"
    assert body["providers"]["news"]["status"] == "healthy"
    assert body["active_sessions"] == 0


def test_health_without_news_feed(settings):
    client = TestClient(build_api(settings, llm_provider=FakeLLMProvider()))

    body = client.get("/healthz").json()

    assert body["status"] == "healthy"
    assert body["providers"]["news"]["status"] == "unavailable"


def test_news_endpoint(settings):
    news = FakeNewsProvider([make_news(5)])
    client = TestClient(build_api(settings, llm_provider=FakeLLMProvider(), news_provider=news))

    response = client.get("/news", params={"limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert [item["title"] for item in body["items"]] == ["Headline 0", "Headline 1"]


def test_news_endpoint_not_configured(settings):
    client = TestClient(build_api(settings, llm_provider=FakeLLMProvider()))

    assert client.get("/news").status_code == 503
    assert client.get("/news/analysis").status_code == 503


def test_news_endpoint_upstream_failure(settings):
    news = FakeNewsProvider([FetchError("HTTP 500")])
    client = TestClient(build_api(settings, llm_provider=FakeLLMProvider(), news_provider=news))

    assert client.get("/news").status_code == 502


def test_analysis_endpoint(settings):
    llm = FakeLLMProvider(["trends", "outlook"])
    client = TestClient(build_api(settings, llm_provider=llm, news_provider=FakeNewsProvider()))

    response = client.get("/news/analysis")

    assert response.status_code == 200
    assert response.json() == {
        "headlines": ["Headline 0", "Headline 1", "Headline 2"],
        "trends": "trends",
        "outlook": "outlook",
    }


def test_analysis_endpoint_model_failure(settings):
    llm = FakeLLMProvider([ProviderAPIError("down")])
    client = TestClient(build_api(settings, llm_provider=llm, news_provider=FakeNewsProvider()))

    assert client.get("/news/analysis").status_code == 502


def test_lifespan_closes_providers(settings):
    llm = FakeLLMProvider()
    news = FakeNewsProvider()

    with TestClient(build_api(settings, llm_provider=llm, news_provider=news)):
        pass

    assert llm.closed
    assert news.closed


def test_missing_llm_key_fails_fast(monkeypatch):
    monkeypatch.delenv("GAIA_API_KEY", raising=False)
    settings = Settings(_env_file=None, llm_provider="gaia")

    with pytest.raises(ValueError, match="gaia"):
        build_api(settings)


def test_key_for_other_provider_does_not_count(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("CLAUDE_API_KEY", raising=False)
    settings = Settings(_env_file=None, llm_provider="claude", gaia_api_key="gaia-key")

    with pytest.raises(ValueError, match="No API key"):
        build_api(settings)


def test_missing_analysis_persona_fails_fast(settings, tmp_path, monkeypatch):
    (tmp_path / "crypto_advisor.yaml").write_text(
        "name: crypto_advisor\ndisplay_name: Crypto Advisor\nsystem_prompt: Be helpful.\n",
        encoding="utf-8",
    )
    monkeypatch.setattr("advisor.core.personas.PERSONAS_DIR", tmp_path)

    build_api(settings, llm_provider=FakeLLMProvider())
    with pytest.raises(ValueError, match="gossiper, financial_analyst"):
        build_api(settings, llm_provider=FakeLLMProvider(), news_provider=FakeNewsProvider())


def test_create_app_mounts_socketio(settings):
    app = create_app(settings)

    assert isinstance(app, socketio.ASGIApp)
