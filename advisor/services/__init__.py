from .market_analysis import MarketAnalysis, MarketAnalyst
from .news_feed import NewsSubscriptionManager, error_payload

__all__ = [
    "MarketAnalysis",
    "MarketAnalyst",
    "NewsSubscriptionManager",
    "error_payload",
]
