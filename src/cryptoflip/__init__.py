"""CryptoFlip - multi-timeframe trend signals with flip alerts."""

__version__ = "0.1.0"

# Re-export submodules for convenient access
from cryptoflip import core, data, indicators, notifications, storage, strategy

__all__ = [
    "__version__",
    "core",
    "data",
    "indicators",
    "notifications",
    "storage",
    "strategy",
]
