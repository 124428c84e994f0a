"""
Tests for the CryptoPanic news provider.
"""

import httpx
import pytest

from advisor.providers import CryptoPanicProvider, FetchError


def posts(*titles):
    return {
        "count": len(titles),
        "results": [
            {
                "title": title,
                "url": f"https://cryptopanic.com/news/{i}",
                "published_at": "2024-01-15T12:00:00Z",
                "source": {"title": "CoinDesk", "domain": "coindesk.com"},
            }
            for i, title in enumerate(titles)
        ],
    }


def make_provider(handler):
    return CryptoPanicProvider(
        api_key="panic-key",
        base_url="https://cryptopanic.example/api/v1/",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_fetch_latest_parses_posts():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=posts("BTC breaks out", "ETH upgrade ships"))

    provider = make_provider(handler)
    items = await provider.fetch_latest()
    await provider.close()

    assert [item.title for item in items] == ["BTC breaks out", "ETH upgrade ships"]
    assert items[0].source == "CoinDesk"
    assert items[0].url == "https://cryptopanic.com/news/0"
    assert items[0].published_at == "2024-01-15T12:00:00Z"

    request = seen[0]
    assert request.url.path == "/api/v1/posts/"
    assert request.url.params["auth_token"] == "panic-key"
    assert request.url.params["public"] == "true"


@pytest.mark.asyncio
async def test_source_falls_back_to_domain():
    payload = {"results": [{"title": "Headline", "source": {"domain": "decrypt.co"}}]}
    provider = make_provider(lambda request: httpx.Response(200, json=payload))

    items = await provider.fetch_latest()
    await provider.close()

    assert items[0].source == "decrypt.co"
    assert items[0].url == ""


@pytest.mark.asyncio
async def test_malformed_posts_are_skipped():
    payload = {"results": [{"url": "https://no-title"}, "junk", {"title": "Kept"}]}
    provider = make_provider(lambda request: httpx.Response(200, json=payload))

    items = await provider.fetch_latest()
    await provider.close()

    assert [item.title for item in items] == ["Kept"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="down"),
        httpx.Response(401, json={"detail": "bad token"}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"detail": "no results key"}),
        httpx.Response(200, json=[1, 2, 3]),
    ],
)
async def test_fetch_errors(response):
    provider = make_provider(lambda request: response)

    with pytest.raises(FetchError):
        await provider.fetch_latest()
    await provider.close()


@pytest.mark.asyncio
async def test_network_error_is_fetch_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    provider = make_provider(handler)
    with pytest.raises(FetchError):
        await provider.fetch_latest()
    await provider.close()


@pytest.mark.asyncio
async def test_health_check():
    provider = make_provider(lambda request: httpx.Response(200, json=posts("a", "b")))
    assert await provider.health_check() == {"status": "healthy", "items": 2}
    await provider.close()

    missing_key = CryptoPanicProvider(api_key="")
    health = await missing_key.health_check()
    assert health["status"] == "unavailable"
