"""Pytest configuration and shared fixtures."""

import pytest

from cryptoflip.config import SignalSettings
from cryptoflip.core.types import AssetSignal, Confidence


@pytest.fixture
def settings() -> SignalSettings:
    """EMA 9/21, RSI 14, 52/48 dead-band on four timeframes."""
    return SignalSettings(
        fast_period=9,
        slow_period=21,
        momentum_period=14,
        upper_threshold=52.0,
        lower_threshold=48.0,
        timeframes=("1h", "4h", "1d", "1w"),
        history_length=50,
    )


@pytest.fixture
def rising_closes() -> list[float]:
    """Strictly increasing closes: bullish trend, RSI 100."""
    return [100.0 + i for i in range(50)]


@pytest.fixture
def falling_closes() -> list[float]:
    """Strictly decreasing closes: bearish trend, RSI 0."""
    return [200.0 - i for i in range(50)]


@pytest.fixture
def make_asset_signal():
    """Factory for asset signals with a given label."""

    def _make(
        confidence: Confidence,
        asset_id: str = "BTCUSDT",
        price: float | None = 100.0,
        strength: float = 1.0,
    ) -> AssetSignal:
        return AssetSignal(
            asset_id=asset_id,
            overall=confidence.direction,
            confidence=confidence,
            strength=strength,
            price=price,
        )

    return _make
