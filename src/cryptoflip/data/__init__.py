"""Market data module."""

from cryptoflip.data.models import Ticker
from cryptoflip.data.provider import MarketDataProvider, ResamplingProvider

__all__ = [
    "MarketDataProvider",
    "ResamplingProvider",
    "Ticker",
]
