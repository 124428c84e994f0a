"""
News API Endpoints

Stateless HTTP access to the headlines and the market analysis that socket
clients receive.
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from typing import List
import logging

from ..providers.base import FetchError
from ..providers.llm.base import ProviderError
from ..types import NewsItem

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/news")


class NewsResponse(BaseModel):
    """Response containing news items."""
    items: List[NewsItem]
    count: int


class AnalysisResponse(BaseModel):
    headlines: List[str]
    trends: str
    outlook: str


@router.get("", response_model=NewsResponse)
async def get_latest_news(request: Request, limit: int = 20):
    """Get the latest headlines."""
    provider = getattr(request.app.state, "news_provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="News feed not configured")

    try:
        items = await provider.fetch_latest()
    except FetchError as e:
        logger.warning(f"News fetch failed: {e}")
        raise HTTPException(status_code=502, detail="Unable to fetch the latest news")

    items = items[: max(limit, 0)]
    return NewsResponse(items=items, count=len(items))


@router.get("/analysis", response_model=AnalysisResponse)
async def get_market_analysis(request: Request):
    """Run the news-driven market analysis once."""
    analyst = getattr(request.app.state, "market_analyst", None)
    if analyst is None:
        raise HTTPException(status_code=503, detail="News feed not configured")

    try:
        analysis = await analyst.run()
    except FetchError as e:
        logger.warning(f"Market analysis news fetch failed: {e}")
        raise HTTPException(status_code=502, detail="Unable to fetch the latest news")
    except ProviderError as e:
        logger.error(f"Market analysis model call failed: {e}")
        raise HTTPException(status_code=502, detail="Model provider unavailable")

    return AnalysisResponse(
        headlines=analysis.headlines,
        trends=analysis.trends,
        outlook=analysis.outlook,
    )
