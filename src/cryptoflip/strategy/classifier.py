"""Timeframe classifier.

Turns the indicators of one timeframe into a direction plus a
confirmed/weak tag:

- EMA fast > EMA slow -> bullish, otherwise bearish (equal EMAs count as bearish)
- Bullish is confirmed when RSI > upper threshold
- Bearish is confirmed when RSI < lower threshold
- RSI inside [lower, upper] or missing never confirms
"""

import logging

from cryptoflip.config import SignalSettings
from cryptoflip.core.types import Direction, IndicatorResult, TimeframeSignal
from cryptoflip.indicators.trend import compute_indicators

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA = "insufficient data"


def _neutral(timeframe: str, momentum: float | None = None) -> TimeframeSignal:
    return TimeframeSignal(
        direction=Direction.NEUTRAL,
        confirmed=False,
        reason=INSUFFICIENT_DATA,
        momentum=momentum,
        timeframe=timeframe,
    )


def _confirm(
    direction: Direction,
    momentum: float | None,
    settings: SignalSettings,
) -> tuple[bool, str]:
    if momentum is None:
        return False, "no RSI"

    if direction == Direction.BULLISH:
        threshold = settings.upper_threshold
        if momentum > threshold:
            return True, f"RSI {momentum:.1f} > {threshold:g}"
        return False, f"RSI {momentum:.1f} <= {threshold:g} (unconfirmed)"

    threshold = settings.lower_threshold
    if momentum < threshold:
        return True, f"RSI {momentum:.1f} < {threshold:g}"
    return False, f"RSI {momentum:.1f} >= {threshold:g} (unconfirmed)"


def classify(
    result: IndicatorResult,
    settings: SignalSettings,
    timeframe: str = "",
) -> TimeframeSignal:
    """Classify one timeframe from its indicator values.

    Pure function: the same inputs always give the same signal.

    Args:
        result: Indicator values for the timeframe
        settings: Confirmation thresholds
        timeframe: Timeframe label carried on the signal

    Returns:
        TimeframeSignal for the timeframe
    """
    fast, slow = result.fast_trend, result.slow_trend
    if fast is None or slow is None:
        return _neutral(timeframe, result.momentum)

    direction = Direction.BULLISH if fast > slow else Direction.BEARISH
    spread = (fast - slow) / slow * 100 if slow != 0 else None
    confirmed, reason = _confirm(direction, result.momentum, settings)

    return TimeframeSignal(
        direction=direction,
        confirmed=confirmed,
        reason=reason,
        trend_spread_pct=spread,
        momentum=result.momentum,
        timeframe=timeframe,
        fast_trend=fast,
        slow_trend=slow,
    )


def classify_series(
    closes: list[float] | None,
    settings: SignalSettings,
    timeframe: str = "",
) -> TimeframeSignal:
    """Compute indicators for a close series and classify them.

    Series shorter than ``slow_period + 1`` are treated as unavailable.
    """
    if not closes or len(closes) < settings.min_series_length:
        logger.debug(
            f"{timeframe or 'series'}: {len(closes) if closes else 0} closes "
            f"< {settings.min_series_length}, neutral"
        )
        return _neutral(timeframe)

    return classify(compute_indicators(closes, settings), settings, timeframe)
