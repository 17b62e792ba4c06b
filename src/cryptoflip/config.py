"""Configuration management for CryptoFlip."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Timeframes understood by the market data provider
SUPPORTED_TIMEFRAMES = ("15m", "1h", "4h", "1d", "1w")


def _split_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class SignalSettings:
    """Parameters of the indicator, classification and aggregation steps.

    The algorithm modules read every parameter from here; none of them
    carries its own fallback value.
    """

    fast_period: int
    slow_period: int
    momentum_period: int
    upper_threshold: float
    lower_threshold: float
    timeframes: tuple[str, ...]
    history_length: int

    def __post_init__(self) -> None:
        if self.fast_period <= 0 or self.slow_period <= 0 or self.momentum_period <= 0:
            raise ValueError("Indicator periods must be positive")
        if self.fast_period >= self.slow_period:
            raise ValueError(
                f"Fast period ({self.fast_period}) must be shorter than "
                f"slow period ({self.slow_period})"
            )
        if self.lower_threshold > self.upper_threshold:
            raise ValueError(
                f"Lower threshold ({self.lower_threshold}) above "
                f"upper threshold ({self.upper_threshold})"
            )
        if not 0 <= self.lower_threshold <= 100 or not 0 <= self.upper_threshold <= 100:
            raise ValueError("Momentum thresholds must lie within 0..100")
        if not self.timeframes:
            raise ValueError("At least one timeframe is required")
        if len(set(self.timeframes)) != len(self.timeframes):
            raise ValueError(f"Duplicate timeframes: {self.timeframes}")
        if self.history_length <= 0:
            raise ValueError("History length must be positive")

    @property
    def min_series_length(self) -> int:
        """Closes needed before a series is worth classifying."""
        return self.slow_period + 1


@dataclass
class APIConfig:
    """API configuration for the market data provider."""

    binance_api_key: str = ""
    binance_api_secret: str = ""


@dataclass
class RuntimeConfig:
    """Evaluation loop parameters."""

    assets: list[str] = field(
        default_factory=lambda: [
            "BTCUSDT",
            "ETHUSDT",
            "SOLUSDT",
            "BNBUSDT",
            "XRPUSDT",
            "ADAUSDT",
            "AVAXUSDT",
            "DOGEUSDT",
            "DOTUSDT",
            "LINKUSDT",
            "UNIUSDT",
        ]
    )
    refresh_interval_seconds: int = 300  # 5 minutes
    cycle_timeout_seconds: float = 120.0
    fetch_timeout_seconds: float = 20.0
    snapshot_path: Path = Path("data/snapshots.json")
    store_write_retries: int = 2


@dataclass
class TelegramConfig:
    """Telegram notification configuration."""

    bot_token: str = ""
    chat_id: str = ""
    account_label: str = ""


def default_signal_settings() -> SignalSettings:
    """EMA 9/21, RSI 14 with a 48..52 dead-band on 1h/4h/1d/1w."""
    return SignalSettings(
        fast_period=9,
        slow_period=21,
        momentum_period=14,
        upper_threshold=52.0,
        lower_threshold=48.0,
        timeframes=("1h", "4h", "1d", "1w"),
        history_length=50,
    )


@dataclass
class Config:
    """Main configuration container."""

    signals: SignalSettings = field(default_factory=default_signal_settings)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    api: APIConfig = field(default_factory=APIConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = True

    @classmethod
    def from_env(cls, env_path: Path | None = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            env_path: Path to .env file (optional)

        Returns:
            Config instance populated from environment

        Raises:
            ValueError: If a value is malformed or inconsistent
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        defaults = default_signal_settings()
        timeframes_raw = os.getenv("SIGNAL_TIMEFRAMES", "")
        timeframes = tuple(_split_list(timeframes_raw)) or defaults.timeframes
        unknown = [tf for tf in timeframes if tf not in SUPPORTED_TIMEFRAMES]
        if unknown:
            raise ValueError(f"Unsupported timeframes: {', '.join(unknown)}")

        signals = SignalSettings(
            fast_period=int(os.getenv("EMA_FAST_PERIOD", str(defaults.fast_period))),
            slow_period=int(os.getenv("EMA_SLOW_PERIOD", str(defaults.slow_period))),
            momentum_period=int(os.getenv("RSI_PERIOD", str(defaults.momentum_period))),
            upper_threshold=float(os.getenv("RSI_BULL_THRESHOLD", str(defaults.upper_threshold))),
            lower_threshold=float(os.getenv("RSI_BEAR_THRESHOLD", str(defaults.lower_threshold))),
            timeframes=timeframes,
            history_length=int(os.getenv("HISTORY_LENGTH", str(defaults.history_length))),
        )

        runtime_defaults = RuntimeConfig()
        assets = [a.upper() for a in _split_list(os.getenv("FLIP_ASSETS", ""))]
        runtime = RuntimeConfig(
            assets=assets or runtime_defaults.assets,
            refresh_interval_seconds=int(
                os.getenv("REFRESH_INTERVAL_SECONDS", str(runtime_defaults.refresh_interval_seconds))
            ),
            cycle_timeout_seconds=float(
                os.getenv("CYCLE_TIMEOUT_SECONDS", str(runtime_defaults.cycle_timeout_seconds))
            ),
            fetch_timeout_seconds=float(
                os.getenv("FETCH_TIMEOUT_SECONDS", str(runtime_defaults.fetch_timeout_seconds))
            ),
            snapshot_path=Path(os.getenv("SNAPSHOT_PATH", str(runtime_defaults.snapshot_path))),
            store_write_retries=max(
                0, int(os.getenv("STORE_WRITE_RETRIES", str(runtime_defaults.store_write_retries)))
            ),
        )

        api = APIConfig(
            binance_api_key=os.getenv("BINANCE_API_KEY", ""),
            binance_api_secret=os.getenv("BINANCE_API_SECRET", ""),
        )

        telegram = TelegramConfig(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
            account_label=os.getenv("TELEGRAM_ACCOUNT_LABEL", ""),
        )

        return cls(
            signals=signals,
            runtime=runtime,
            api=api,
            telegram=telegram,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=Path(os.getenv("LOG_DIR", "logs")),
            log_to_file=os.getenv("LOG_TO_FILE", "true").lower() in ("1", "true", "yes"),
        )
