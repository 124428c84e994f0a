from .base import FetchError, NewsProvider, Provider
from .cryptopanic import CryptoPanicProvider

__all__ = [
    "FetchError",
    "Provider",
    "NewsProvider",
    "CryptoPanicProvider",
]
