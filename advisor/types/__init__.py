from .envelope import EnvelopeContext, InboundEnvelope, MalformedPayload, parse_envelope
from .news import NewsItem
from .portfolio import Asset, WalletContext, percent_change

__all__ = [
    "Asset",
    "WalletContext",
    "percent_change",
    "EnvelopeContext",
    "InboundEnvelope",
    "MalformedPayload",
    "parse_envelope",
    "NewsItem",
]
