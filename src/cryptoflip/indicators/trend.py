"""Trend and momentum indicators over a list of closes.

Every function recomputes from the full series; nothing is carried
between calls.
"""

from talipp.indicators import EMA

from cryptoflip.config import SignalSettings
from cryptoflip.core.types import UNAVAILABLE, IndicatorResult


def _check_period(period: int) -> None:
    if period <= 0:
        raise ValueError(f"Indicator period must be positive, got {period}")


def ema(closes: list[float], period: int) -> float | None:
    """Calculate the exponential moving average of the last close.

    Seeded with the simple mean of the first ``period`` closes, then
    ``v = close * k + v * (1 - k)`` with ``k = 2 / (period + 1)``.

    Args:
        closes: Close prices, oldest first
        period: EMA period

    Returns:
        EMA value or None if fewer than ``period`` closes
    """
    _check_period(period)
    if len(closes) < period:
        return None

    values = EMA(period, [float(c) for c in closes])
    return float(values[-1]) if values and values[-1] is not None else None


def rsi(closes: list[float], period: int) -> float | None:
    """Calculate Wilder's Relative Strength Index.

    Args:
        closes: Close prices, oldest first
        period: RSI period

    Returns:
        RSI in [0, 100], or None if fewer than ``period + 1`` closes
    """
    _check_period(period)
    if len(closes) < period + 1:
        return None

    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]

    # Seed with plain averages over the first period
    avg_gain = sum(max(0.0, c) for c in changes[:period]) / period
    avg_loss = sum(abs(min(0.0, c)) for c in changes[:period]) / period

    # Wilder's smoothing for the rest
    for change in changes[period:]:
        avg_gain = (avg_gain * (period - 1) + max(0.0, change)) / period
        avg_loss = (avg_loss * (period - 1) + abs(min(0.0, change))) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def compute_indicators(closes: list[float] | None, settings: SignalSettings) -> IndicatorResult:
    """Compute fast/slow EMA and RSI for one series.

    Args:
        closes: Close prices, oldest first (None if the series is unavailable)
        settings: Indicator periods

    Returns:
        IndicatorResult with None for every indicator lacking history
    """
    if not closes:
        return UNAVAILABLE

    return IndicatorResult(
        fast_trend=ema(closes, settings.fast_period),
        slow_trend=ema(closes, settings.slow_period),
        momentum=rsi(closes, settings.momentum_period),
    )
