"""Core types and errors."""

from cryptoflip.core.errors import AggregationIncompleteError, DataUnavailableError
from cryptoflip.core.types import (
    UNAVAILABLE,
    AssetSignal,
    Confidence,
    Direction,
    FlipEvent,
    IndicatorResult,
    SignalSnapshot,
    TimeframeSignal,
)

__all__ = [
    "AggregationIncompleteError",
    "AssetSignal",
    "Confidence",
    "DataUnavailableError",
    "Direction",
    "FlipEvent",
    "IndicatorResult",
    "SignalSnapshot",
    "TimeframeSignal",
    "UNAVAILABLE",
]
