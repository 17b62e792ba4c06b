"""CryptoFlip - Entry point for the signal flip watcher.

Every refresh interval:
1. Fetches recent closes per asset and timeframe from Binance
2. Classifies each timeframe (EMA 9/21 trend, RSI 14 confirmation)
3. Aggregates timeframes into one label per asset
4. Compares the label with the persisted snapshot and alerts on flips

Flags:
    --once      Run a single cycle and print the signal table
    --resample  Derive 4h/1d/1w from hourly closes instead of native klines
"""

import asyncio
import contextlib
import logging
import signal
import sys

from cryptoflip.config import Config
from cryptoflip.core.errors import DataUnavailableError
from cryptoflip.core.types import AssetSignal
from cryptoflip.data.binance import MAX_KLINE_LIMIT, BinanceRestClient
from cryptoflip.data.provider import MarketDataProvider, ResamplingProvider
from cryptoflip.logging import daily_log_file, get_logger, setup_logging
from cryptoflip.notifications import LoggingNotifier, Notifier, TelegramNotifier
from cryptoflip.storage import JsonSnapshotStore
from cryptoflip.strategy import FlipDetector, SignalEvaluator

logger = get_logger("main")


def build_evaluator(config: Config, resample: bool = False) -> SignalEvaluator:
    """Wire provider, store, detector and notifier from configuration.

    Raises:
        ValueError: If resampling cannot serve every configured timeframe
    """
    provider: MarketDataProvider = BinanceRestClient(
        api_key=config.api.binance_api_key,
        api_secret=config.api.binance_api_secret,
    )
    if resample:
        resampling = ResamplingProvider(
            provider, base_timeframe="1h", max_base_limit=MAX_KLINE_LIMIT
        )
        resampling.check_timeframes(
            config.signals.timeframes,
            config.signals.history_length,
            config.signals.min_series_length,
        )
        provider = resampling

    notifier: Notifier
    telegram = TelegramNotifier(
        bot_token=config.telegram.bot_token,
        chat_id=config.telegram.chat_id,
        account_label=config.telegram.account_label,
    )
    if telegram.enabled:
        notifier = telegram
    else:
        logger.info("Telegram not configured, flips are logged only")
        notifier = LoggingNotifier()

    store = JsonSnapshotStore(config.runtime.snapshot_path)
    detector = FlipDetector(store, write_retries=config.runtime.store_write_retries)

    return SignalEvaluator(
        provider=provider,
        settings=config.signals,
        detector=detector,
        notifier=notifier,
        fetch_timeout=config.runtime.fetch_timeout_seconds,
        cycle_timeout=config.runtime.cycle_timeout_seconds,
    )


def format_signal_row(signal: AssetSignal) -> str:
    """One line per asset for the --once summary."""
    cells = []
    for tf, sig in signal.timeframes.items():
        spread = f"{sig.trend_spread_pct:+.2f}%" if sig.trend_spread_pct is not None else "-"
        mark = "*" if sig.confirmed else ""
        cells.append(f"{tf}:{sig.direction.value[:4]}{mark}({spread})")
    price = f"{signal.price:g}" if signal.price is not None else "-"
    return (
        f"{signal.asset_id:<10} {price:>12} {signal.confidence.value:<18} "
        f"{signal.strength:.2f}  " + " ".join(cells)
    )


async def main_async(run_once: bool = False, resample: bool = False) -> int:
    """Async main entry point.

    Returns:
        Process exit code
    """
    config = Config.from_env()
    log_file = daily_log_file(config.log_dir) if config.log_to_file and not run_once else None
    setup_logging(level=config.log_level, log_file=log_file)

    try:
        evaluator = build_evaluator(config, resample=resample)
    except ValueError as e:
        logger.error(f"{e} (set SIGNAL_TIMEFRAMES to a smaller set)")
        return 1
    assets = config.runtime.assets

    logger.info(
        f"Watching {len(assets)} assets on {', '.join(config.signals.timeframes)} "
        f"(EMA {config.signals.fast_period}/{config.signals.slow_period}, "
        f"RSI {config.signals.momentum_period})"
    )

    if run_once:
        try:
            result = await evaluator.run_cycle(assets)
        except DataUnavailableError as e:
            logger.error(str(e))
            return 1
        ranked = sorted(result.signals.values(), key=lambda s: s.strength, reverse=True)
        for sig in ranked:
            print(format_signal_row(sig))
        return 0

    task = asyncio.create_task(
        evaluator.run_forever(assets, config.runtime.refresh_interval_seconds)
    )

    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("Shutdown signal received")
        task.cancel()

    for sig in (signal.SIGTERM, signal.SIGINT):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, shutdown_handler)

    with contextlib.suppress(asyncio.CancelledError):
        await task
    logging.shutdown()
    return 0


def main() -> None:
    """Application entry point."""
    run_once = "--once" in sys.argv
    resample = "--resample" in sys.argv

    with contextlib.suppress(KeyboardInterrupt):
        sys.exit(asyncio.run(main_async(run_once=run_once, resample=resample)))


if __name__ == "__main__":
    main()
