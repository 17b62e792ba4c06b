"""Telegram notification client."""

from __future__ import annotations

import asyncio
import html
import logging
import urllib.parse
import urllib.request

from cryptoflip.core.types import Confidence, FlipEvent

logger = logging.getLogger(__name__)

_LABELS = {
    Confidence.CONFIRMED_BULLISH: "🟢 Confirmed bullish",
    Confidence.CONFIRMED_BEARISH: "🔴 Confirmed bearish",
    Confidence.WEAK_BULLISH: "🟡 Weak bullish",
    Confidence.WEAK_BEARISH: "🟠 Weak bearish",
    Confidence.NEUTRAL: "⚪ Neutral",
}


def format_flip_message(event: FlipEvent, account_label: str = "") -> str:
    """Render a flip as an HTML Telegram message."""
    lines = []
    if account_label:
        lines.append(f"<b>[{html.escape(account_label)}]</b>")
    lines.append(f"<b>Signal flip</b> <code>{html.escape(event.asset_id)}</code>")
    lines.append(f"{_LABELS[event.from_confidence]} → {_LABELS[event.to_confidence]}")
    if event.reference_price is not None:
        lines.append(f"Price: {event.reference_price:g}")
    lines.append(f"{event.timestamp:%Y-%m-%d %H:%M:%S}")
    return "\n".join(lines)


class TelegramNotifier:
    """Send Telegram messages via Bot API.

    Flip alerts are keyed per asset: while one alert for an asset is being
    sent, newer flips for the same asset replace each other, and only the
    latest is sent next.
    """

    def __init__(self, bot_token: str, chat_id: str, account_label: str = "") -> None:
        self._bot_token = bot_token.strip()
        self._chat_id = chat_id.strip()
        self._account_label = account_label.strip()
        self._enabled = bool(self._bot_token and self._chat_id)
        self._pending: dict[str, FlipEvent] = {}
        self._sending: set[str] = set()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def account_label(self) -> str:
        return self._account_label

    async def notify(self, event: FlipEvent) -> None:
        """Queue a flip alert, replacing any unsent alert for the same asset."""
        if not self._enabled:
            return

        key = event.notification_key
        self._pending[key] = event
        if key in self._sending:
            return

        self._sending.add(key)
        try:
            while key in self._pending:
                latest = self._pending.pop(key)
                await self.send_message(format_flip_message(latest, self._account_label))
        finally:
            self._sending.discard(key)

    async def send_message(self, message: str) -> None:
        if not self._enabled:
            return
        try:
            await asyncio.to_thread(self._post_message, message)
        except Exception as exc:
            logger.warning("Telegram message failed: %s", exc)

    def _post_message(self, message: str) -> None:
        url = f"https://api.telegram.org/bot{self._bot_token}/sendMessage"
        payload = urllib.parse.urlencode(
            {
                "chat_id": self._chat_id,
                "text": message,
                "parse_mode": "HTML",
                "disable_web_page_preview": "true",
            }
        ).encode("utf-8")
        request = urllib.request.Request(url, data=payload, method="POST")
        with urllib.request.urlopen(request, timeout=10) as response:
            response.read()
