from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..types import NewsItem


class FetchError(Exception):
    """Raised when an upstream data provider cannot deliver a result"""
    pass


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class NewsProvider(Provider):
    """Provider for ranked crypto headlines"""

    @abstractmethod
    async def fetch_latest(self) -> List[NewsItem]:
        """Latest headlines, newest first; raises FetchError on failure"""
        pass
