"""Logging configuration for CryptoFlip.

A long-running watcher writes to the console and a per-day file; a single
``--once`` run only writes to the console.
"""

import logging
import sys
from datetime import date
from pathlib import Path

PACKAGE_LOGGER = "cryptoflip"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP and SDK loggers chatter at INFO on every kline request
NOISY_LOGGERS = ("urllib3", "binance_common", "binance_sdk_derivatives_trading_usds_futures")


def daily_log_file(log_dir: Path, day: date | None = None) -> Path:
    """Get the log file for a day (default: today)."""
    day = day or date.today()
    return log_dir / f"cryptoflip_{day:%Y%m%d}.log"


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(level: int | str = logging.INFO, log_file: Path | None = None) -> logging.Logger:
    """Configure the package logger.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Logging level, as a number or a name such as "DEBUG"
        log_file: File to append to in addition to the console (optional)

    Returns:
        Package logger

    Raises:
        ValueError: If the level name is unknown
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(_resolve_level(level))
    # Own handlers only; the root logger would print everything twice
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific module.

    Args:
        name: Module name (will be prefixed with 'cryptoflip.')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
