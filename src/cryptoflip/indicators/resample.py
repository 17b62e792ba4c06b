"""Approximate higher timeframes from a finer close series.

Some sources only serve hourly candles. A 4h, 1d or 1w series is then
approximated by keeping every Nth close.
"""

# Number of base candles per target candle, keyed by (base, target)
_FACTORS: dict[tuple[str, str], int] = {
    ("1h", "4h"): 4,
    ("1h", "1d"): 24,
    ("1h", "1w"): 168,
    ("4h", "1d"): 6,
    ("4h", "1w"): 42,
    ("1d", "1w"): 7,
    ("15m", "1h"): 4,
}


def resample_factor(base: str, target: str) -> int:
    """Get how many base candles make one target candle.

    Raises:
        ValueError: If the pair is not supported
    """
    if base == target:
        return 1
    try:
        return _FACTORS[(base, target)]
    except KeyError:
        raise ValueError(f"Cannot resample {base} closes into {target}") from None


def resample_closes(closes: list[float], factor: int) -> list[float]:
    """Keep the last close of every complete group of ``factor`` closes.

    Args:
        closes: Close prices, oldest first
        factor: Group size

    Returns:
        Resampled closes, oldest first
    """
    if factor <= 0:
        raise ValueError(f"Resample factor must be positive, got {factor}")
    return [c for i, c in enumerate(closes) if i % factor == factor - 1]
