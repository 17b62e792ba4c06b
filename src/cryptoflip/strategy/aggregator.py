"""Asset aggregator - combines timeframe signals into one asset signal.

Precedence, evaluated over the full timeframe set:
1. More confirmed-bullish than confirmed-bearish -> CONFIRMED_BULLISH
   (and the mirror for bearish). Strength = confirmed count / timeframes.
2. Confirmed counts tied (including 0/0) -> raw directions decide,
   ignoring confirmation -> WEAK_BULLISH / WEAK_BEARISH.
   Strength = raw count / timeframes * 0.5.
3. Still tied -> NEUTRAL. Strength is 0.5 when both sides have at least
   one raw signal (display ranking only), else 0.

A single confirmed timeframe therefore outranks any number of merely
directional ones on the other side.
"""

import logging
from collections.abc import Iterable, Mapping

from cryptoflip.core.errors import AggregationIncompleteError
from cryptoflip.core.types import AssetSignal, Confidence, Direction, TimeframeSignal

logger = logging.getLogger(__name__)

# Weak labels are ranked at half the weight of confirmed ones
WEAK_STRENGTH_FACTOR = 0.5
SPLIT_NEUTRAL_STRENGTH = 0.5


def aggregate(
    asset_id: str,
    signals: Iterable[TimeframeSignal],
    price: float | None = None,
    change_24h: float | None = None,
) -> AssetSignal:
    """Aggregate a complete set of timeframe signals for one asset.

    Args:
        asset_id: Asset identifier
        signals: One signal per configured timeframe
        price: Current price, carried as the reference price
        change_24h: 24h change percentage (display only)

    Returns:
        AssetSignal

    Raises:
        AggregationIncompleteError: If no signals were given
    """
    signals = list(signals)
    if not signals:
        raise AggregationIncompleteError(asset_id)

    total = len(signals)
    confirmed_bullish = sum(1 for s in signals if s.is_confirmed_bullish)
    confirmed_bearish = sum(1 for s in signals if s.is_confirmed_bearish)
    raw_bullish = sum(1 for s in signals if s.direction == Direction.BULLISH)
    raw_bearish = sum(1 for s in signals if s.direction == Direction.BEARISH)

    if confirmed_bullish > confirmed_bearish:
        confidence = Confidence.CONFIRMED_BULLISH
        strength = confirmed_bullish / total
    elif confirmed_bearish > confirmed_bullish:
        confidence = Confidence.CONFIRMED_BEARISH
        strength = confirmed_bearish / total
    elif raw_bullish > raw_bearish:
        confidence = Confidence.WEAK_BULLISH
        strength = raw_bullish / total * WEAK_STRENGTH_FACTOR
    elif raw_bearish > raw_bullish:
        confidence = Confidence.WEAK_BEARISH
        strength = raw_bearish / total * WEAK_STRENGTH_FACTOR
    else:
        confidence = Confidence.NEUTRAL
        strength = SPLIT_NEUTRAL_STRENGTH if raw_bullish > 0 else 0.0

    return AssetSignal(
        asset_id=asset_id,
        overall=confidence.direction,
        confidence=confidence,
        strength=strength,
        timeframes={s.timeframe: s for s in signals if s.timeframe},
        price=price,
        change_24h=change_24h,
        bullish_count=raw_bullish,
        bearish_count=raw_bearish,
    )


def aggregate_complete(
    asset_id: str,
    signals: Mapping[str, TimeframeSignal],
    expected_timeframes: Iterable[str],
    price: float | None = None,
    change_24h: float | None = None,
) -> AssetSignal:
    """Aggregate after checking every configured timeframe is present.

    Args:
        asset_id: Asset identifier
        signals: Timeframe -> signal
        expected_timeframes: Configured timeframes
        price: Current price
        change_24h: 24h change percentage

    Raises:
        AggregationIncompleteError: If a configured timeframe has no signal
    """
    expected = list(expected_timeframes)
    missing = [tf for tf in expected if tf not in signals]
    if missing:
        raise AggregationIncompleteError(asset_id, missing)

    return aggregate(
        asset_id,
        [signals[tf] for tf in expected],
        price=price,
        change_24h=change_24h,
    )
