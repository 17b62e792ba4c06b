"""Binance REST API client implementation."""

import asyncio
import logging
from datetime import datetime
from typing import Any

from binance_common.configuration import ConfigurationRestAPI
from binance_common.constants import DERIVATIVES_TRADING_USDS_FUTURES_REST_API_PROD_URL
from binance_sdk_derivatives_trading_usds_futures.derivatives_trading_usds_futures import (
    DerivativesTradingUsdsFutures,
)

from cryptoflip.data.models import Ticker

logger = logging.getLogger(__name__)

# Binance kline format: [open_time, open, high, low, close, volume, close_time, ...]
CLOSE_INDEX = 4

# Most klines the futures endpoint returns per request
MAX_KLINE_LIMIT = 1500


def _to_dict(data: Any) -> dict[str, Any]:
    if hasattr(data, "to_dict"):
        return data.to_dict()  # type: ignore[no-any-return]
    if hasattr(data, "model_dump"):
        return data.model_dump()  # type: ignore[no-any-return]
    if isinstance(data, dict):
        return data
    raise ValueError(f"Unexpected response payload: {type(data).__name__}")


def parse_closes(rows: Any) -> list[float]:
    """Extract close prices from raw kline rows.

    Raises:
        ValueError: If the payload is not a list of kline rows
    """
    if not isinstance(rows, list):
        raise ValueError(f"Expected a list of klines, got {type(rows).__name__}")

    closes = []
    for row in rows:
        if hasattr(row, "root"):
            row = row.root
        if not isinstance(row, list | tuple) or len(row) <= CLOSE_INDEX:
            raise ValueError(f"Malformed kline row: {row!r}")
        closes.append(float(row[CLOSE_INDEX]))
    return closes


class BinanceRestClient:
    """Binance Futures REST API client.

    Fetches public market data from Binance USDS-M Futures.
    """

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
    ) -> None:
        """Initialize Binance REST client.

        Args:
            api_key: Binance API key (optional for public endpoints)
            api_secret: Binance API secret (optional for public endpoints)
        """
        self._api_key = api_key
        self._api_secret = api_secret
        self._client: DerivativesTradingUsdsFutures | None = None

    def _get_client(self) -> DerivativesTradingUsdsFutures:
        """Get or create Binance client."""
        if self._client is None:
            config = ConfigurationRestAPI(
                api_key=self._api_key if self._api_key else None,
                api_secret=self._api_secret if self._api_secret else None,
                base_path=DERIVATIVES_TRADING_USDS_FUTURES_REST_API_PROD_URL,
            )
            self._client = DerivativesTradingUsdsFutures(config_rest_api=config)
        return self._client

    async def get_ticker(self, asset_id: str) -> Ticker:
        """Get current price and 24h change for a symbol.

        Args:
            asset_id: Trading pair (e.g., "BTCUSDT")

        Returns:
            Ticker data
        """
        client = self._get_client()

        def _fetch() -> dict[str, Any]:
            response = client.rest_api.ticker24hr_price_change_statistics(symbol=asset_id)
            return _to_dict(response.data())

        data = await asyncio.to_thread(_fetch)

        return Ticker(
            symbol=data.get("symbol", asset_id),
            price=float(data.get("lastPrice", 0)),
            change_24h=float(data.get("priceChangePercent", 0)),
            timestamp=datetime.now(),
        )

    async def get_closes(self, asset_id: str, timeframe: str, limit: int) -> list[float]:
        """Get recent close prices, oldest first.

        Args:
            asset_id: Trading pair (e.g., "BTCUSDT")
            timeframe: Kline interval (e.g., "1h", "4h")
            limit: Number of klines to fetch

        Returns:
            Close prices

        Raises:
            ValueError: If the response is malformed
        """
        client = self._get_client()

        def _fetch() -> Any:
            response = client.rest_api.kline_candlestick_data(
                symbol=asset_id,
                interval=timeframe,
                limit=limit,
            )
            return response.data()

        rows = await asyncio.to_thread(_fetch)
        closes = parse_closes(rows)
        logger.debug(f"{asset_id} {timeframe}: fetched {len(closes)} closes")
        return closes
