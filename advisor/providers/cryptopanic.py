import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import FetchError, NewsProvider
from ..types import NewsItem

logger = logging.getLogger(__name__)


class CryptoPanicProvider(NewsProvider):
    """CryptoPanic public posts feed"""

    name = "cryptopanic"
    timeout_s = 15

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://cryptopanic.com/api/v1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_s,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def ready(self) -> bool:
        return bool(self.api_key)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "CryptoPanic API key not configured"
            }

        try:
            items = await self.fetch_latest()
            return {"status": "healthy", "items": len(items)}
        except FetchError as e:
            return {"status": "error", "reason": str(e)}

    async def fetch_latest(self) -> List[NewsItem]:
        client = await self._get_client()
        params = {"auth_token": self.api_key, "public": "true"}

        try:
            response = await client.get(f"{self.base_url}/posts/", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"CryptoPanic returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise FetchError(f"CryptoPanic request failed: {e!r}") from e
        except ValueError as e:
            raise FetchError(f"CryptoPanic response was not valid JSON: {e}") from e

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise FetchError("CryptoPanic response missing results")

        items: List[NewsItem] = []
        for article in results:
            try:
                items.append(self._parse_article(article))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed CryptoPanic post: %s", e)

        logger.info("Fetched %d headlines from CryptoPanic", len(items))
        return items

    def _parse_article(self, article: Dict[str, Any]) -> NewsItem:
        source = article.get("source") or {}
        return NewsItem(
            title=article["title"],
            url=article.get("url") or "",
            source=source.get("title") or source.get("domain") or "",
            published_at=article.get("published_at") or "",
        )
