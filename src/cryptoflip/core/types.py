"""Core type definitions for timeframe classification and flip tracking."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Direction(str, Enum):
    """Directional bias of a trend."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Confidence(str, Enum):
    """Asset-level signal label.

    Closed set of labels. Only the two confirmed labels are eligible
    destinations for a flip.
    """

    CONFIRMED_BULLISH = "confirmed_bullish"
    CONFIRMED_BEARISH = "confirmed_bearish"
    WEAK_BULLISH = "weak_bullish"
    WEAK_BEARISH = "weak_bearish"
    NEUTRAL = "neutral"

    @property
    def is_confirmed(self) -> bool:
        """Check if the label is a confirmed one."""
        return self in (Confidence.CONFIRMED_BULLISH, Confidence.CONFIRMED_BEARISH)

    @property
    def direction(self) -> Direction:
        """Direction carried by the label."""
        if self in (Confidence.CONFIRMED_BULLISH, Confidence.WEAK_BULLISH):
            return Direction.BULLISH
        if self in (Confidence.CONFIRMED_BEARISH, Confidence.WEAK_BEARISH):
            return Direction.BEARISH
        return Direction.NEUTRAL

    @classmethod
    def from_direction(cls, direction: Direction, confirmed: bool) -> "Confidence":
        """Build a label from a direction and a confirmation flag."""
        if direction == Direction.BULLISH:
            return cls.CONFIRMED_BULLISH if confirmed else cls.WEAK_BULLISH
        if direction == Direction.BEARISH:
            return cls.CONFIRMED_BEARISH if confirmed else cls.WEAK_BEARISH
        return cls.NEUTRAL


@dataclass(frozen=True)
class IndicatorResult:
    """Indicator values for one price series.

    None means the series was too short for that indicator.
    """

    fast_trend: float | None = None
    slow_trend: float | None = None
    momentum: float | None = None

    @property
    def has_trend(self) -> bool:
        return self.fast_trend is not None and self.slow_trend is not None


# Result used when a series could not be fetched at all
UNAVAILABLE = IndicatorResult()


@dataclass(frozen=True)
class TimeframeSignal:
    """Classification of a single timeframe."""

    direction: Direction
    confirmed: bool
    reason: str
    trend_spread_pct: float | None = None
    momentum: float | None = None
    timeframe: str = ""
    fast_trend: float | None = None
    slow_trend: float | None = None

    @property
    def is_confirmed_bullish(self) -> bool:
        return self.direction == Direction.BULLISH and self.confirmed

    @property
    def is_confirmed_bearish(self) -> bool:
        return self.direction == Direction.BEARISH and self.confirmed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "timeframe": self.timeframe,
            "direction": self.direction.value,
            "confirmed": self.confirmed,
            "reason": self.reason,
            "trend_spread_pct": self.trend_spread_pct,
            "momentum": self.momentum,
            "fast_trend": self.fast_trend,
            "slow_trend": self.slow_trend,
        }


@dataclass(frozen=True)
class AssetSignal:
    """Aggregated signal for one asset across all configured timeframes."""

    asset_id: str
    overall: Direction
    confidence: Confidence
    strength: float
    timeframes: dict[str, TimeframeSignal] = field(default_factory=dict)
    price: float | None = None
    change_24h: float | None = None
    bullish_count: int = 0
    bearish_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "asset_id": self.asset_id,
            "overall": self.overall.value,
            "confidence": self.confidence.value,
            "strength": self.strength,
            "price": self.price,
            "change_24h": self.change_24h,
            "bullish_count": self.bullish_count,
            "bearish_count": self.bearish_count,
            "timeframes": {tf: sig.to_dict() for tf, sig in self.timeframes.items()},
        }


@dataclass
class SignalSnapshot:
    """Last observed label of an asset, as persisted between cycles."""

    asset_id: str
    confidence: Confidence
    reference_price: float | None = None
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def from_signal(cls, signal: AssetSignal) -> "SignalSnapshot":
        return cls(
            asset_id=signal.asset_id,
            confidence=signal.confidence,
            reference_price=signal.price,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "confidence": self.confidence.value,
            "reference_price": self.reference_price,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SignalSnapshot":
        """Rebuild a snapshot from its stored form.

        Raises:
            ValueError: If the record is malformed
        """
        try:
            price = data.get("reference_price")
            return cls(
                asset_id=str(data["asset_id"]),
                confidence=Confidence(data["confidence"]),
                reference_price=float(price) if price is not None else None,
                updated_at=str(data.get("updated_at", "")),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed snapshot record: {data!r}") from e


@dataclass(frozen=True)
class FlipEvent:
    """Transition of an asset onto a confirmed label.

    Events are ephemeral: handed to a notifier, never stored.
    """

    asset_id: str
    from_confidence: Confidence
    to_confidence: Confidence
    reference_price: float | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def notification_key(self) -> str:
        """Stable per-asset key so notifiers can replace pending alerts."""
        return f"flip:{self.asset_id}"

    @property
    def is_bullish(self) -> bool:
        return self.to_confidence == Confidence.CONFIRMED_BULLISH

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "from_confidence": self.from_confidence.value,
            "to_confidence": self.to_confidence.value,
            "reference_price": self.reference_price,
            "timestamp": self.timestamp.isoformat(),
        }
