"""Socket chat backend that pairs a wallet-aware crypto advisor with a news feed."""

__version__ = "0.1.0"
