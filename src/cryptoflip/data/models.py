"""Data models for market data."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Ticker:
    """Current price and 24h change, used for display and as reference price."""

    symbol: str
    price: float
    change_24h: float
    timestamp: datetime | None = None
