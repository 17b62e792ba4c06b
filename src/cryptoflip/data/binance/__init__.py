"""Binance market data."""

from cryptoflip.data.binance.rest import MAX_KLINE_LIMIT, BinanceRestClient

__all__ = ["BinanceRestClient", "MAX_KLINE_LIMIT"]
