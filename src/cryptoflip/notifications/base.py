"""Notifier interface."""

import logging
from typing import Protocol, runtime_checkable

from cryptoflip.core.types import FlipEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Receives flip events. Responsible for collapsing duplicate alerts per asset."""

    async def notify(self, event: FlipEvent) -> None: ...


class LoggingNotifier:
    """Writes flips to the log. Used when no Telegram credentials are set."""

    async def notify(self, event: FlipEvent) -> None:
        logger.info(
            f"FLIP {event.asset_id}: {event.from_confidence.value} -> "
            f"{event.to_confidence.value} (price={event.reference_price})"
        )
