"""Indicators module - EMA (talipp) and Wilder RSI over close series."""

from cryptoflip.indicators.resample import resample_closes, resample_factor
from cryptoflip.indicators.trend import compute_indicators, ema, rsi

__all__ = [
    "compute_indicators",
    "ema",
    "resample_closes",
    "resample_factor",
    "rsi",
]
