"""Evaluation cycle - fetch, classify, aggregate, detect flips, notify.

One cycle per refresh:
1. Every asset is evaluated concurrently; within an asset, every
   timeframe series is fetched concurrently.
2. A failed or timed-out fetch degrades only that timeframe to
   "unavailable" (neutral, unconfirmed).
3. Aggregation waits for the whole timeframe set.
4. The flip detector reads the prior snapshot and writes the new one.
5. Flip events are handed to the notifier after the cycle.

Assets that miss the cycle deadline are skipped: their snapshot and last
known signal stay as they were.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime

from cryptoflip.config import SignalSettings
from cryptoflip.core.errors import DataUnavailableError
from cryptoflip.core.types import AssetSignal, FlipEvent
from cryptoflip.data.models import Ticker
from cryptoflip.data.provider import MarketDataProvider
from cryptoflip.notifications.base import Notifier
from cryptoflip.strategy.aggregator import aggregate_complete
from cryptoflip.strategy.classifier import classify_series
from cryptoflip.strategy.flip_detector import FlipDetector

logger = logging.getLogger(__name__)


@dataclass
class AssetEvaluation:
    """Outcome of evaluating one asset in one cycle."""

    asset_id: str
    signal: AssetSignal
    event: FlipEvent | None = None
    degraded: list[str] = field(default_factory=list)
    available: bool = True


@dataclass
class CycleResult:
    """Outcome of one evaluation cycle."""

    evaluations: dict[str, AssetEvaluation] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @property
    def signals(self) -> dict[str, AssetSignal]:
        return {asset: ev.signal for asset, ev in self.evaluations.items()}

    @property
    def events(self) -> list[FlipEvent]:
        return [ev.event for ev in self.evaluations.values() if ev.event is not None]


class SignalEvaluator:
    """Runs evaluation cycles over a set of assets."""

    def __init__(
        self,
        provider: MarketDataProvider,
        settings: SignalSettings,
        detector: FlipDetector,
        notifier: Notifier | None = None,
        fetch_timeout: float = 20.0,
        cycle_timeout: float = 120.0,
    ) -> None:
        """Initialize signal evaluator.

        Args:
            provider: Market data source
            settings: Indicator and classification parameters
            detector: Flip detector bound to a snapshot store
            notifier: Receiver of flip events (optional)
            fetch_timeout: Seconds allowed per series or ticker fetch
            cycle_timeout: Seconds allowed per cycle
        """
        self._provider = provider
        self._settings = settings
        self._detector = detector
        self._notifier = notifier
        self._fetch_timeout = fetch_timeout
        self._cycle_timeout = cycle_timeout

        # One lock per asset so cycles for the same asset never overlap
        self._locks: dict[str, asyncio.Lock] = {}

        # Last known signal per asset, kept across skipped cycles
        self._last_signals: dict[str, AssetSignal] = {}

    @property
    def last_signals(self) -> dict[str, AssetSignal]:
        return dict(self._last_signals)

    def _lock_for(self, asset_id: str) -> asyncio.Lock:
        lock = self._locks.get(asset_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[asset_id] = lock
        return lock

    async def _fetch_closes(self, asset_id: str, timeframe: str) -> list[float] | None:
        try:
            return await asyncio.wait_for(
                self._provider.get_closes(asset_id, timeframe, self._settings.history_length),
                timeout=self._fetch_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"{asset_id} {timeframe}: fetch timed out, treating as unavailable")
        except Exception as e:
            logger.warning(f"{asset_id} {timeframe}: fetch failed, treating as unavailable: {e}")
        return None

    async def _fetch_ticker(self, asset_id: str) -> Ticker | None:
        try:
            return await asyncio.wait_for(
                self._provider.get_ticker(asset_id),
                timeout=self._fetch_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"{asset_id}: ticker timed out")
        except Exception as e:
            logger.warning(f"{asset_id}: ticker failed: {e}")
        return None

    async def evaluate_asset(self, asset_id: str) -> AssetEvaluation:
        """Evaluate one asset and run flip detection on it.

        Flip detection is skipped when no close series arrived, so a kline
        outage does not overwrite the last good snapshot. A working ticker
        alone does not count.
        """
        timeframes = self._settings.timeframes

        async with self._lock_for(asset_id):
            ticker, *series = await asyncio.gather(
                self._fetch_ticker(asset_id),
                *(self._fetch_closes(asset_id, tf) for tf in timeframes),
            )

            signals = {
                tf: classify_series(closes, self._settings, tf)
                for tf, closes in zip(timeframes, series, strict=True)
            }
            degraded = [tf for tf, closes in zip(timeframes, series, strict=True) if closes is None]
            # The ticker only supplies the price; availability follows the series
            available = len(degraded) < len(timeframes)

            signal = aggregate_complete(
                asset_id,
                signals,
                timeframes,
                price=ticker.price if ticker else None,
                change_24h=ticker.change_24h if ticker else None,
            )

            for tf, sig in signals.items():
                logger.debug(f"{asset_id} {tf}: {sig.direction.value} ({sig.reason})")

            event = None
            if available:
                event = self._detector.process(signal)
            else:
                logger.warning(f"{asset_id}: no close series available, snapshot kept")

            self._last_signals[asset_id] = signal

        return AssetEvaluation(
            asset_id=asset_id,
            signal=signal,
            event=event,
            degraded=degraded,
            available=available,
        )

    async def _notify(self, events: list[FlipEvent]) -> None:
        if self._notifier is None:
            return
        for event in events:
            try:
                await self._notifier.notify(event)
            except Exception as e:
                logger.error(f"Notifier failed for {event.asset_id}: {e}")

    async def run_cycle(self, assets: list[str]) -> CycleResult:
        """Evaluate all assets once.

        Args:
            assets: Asset identifiers

        Returns:
            CycleResult with per-asset evaluations and skipped assets

        Raises:
            DataUnavailableError: If no close series arrived for any asset
        """
        result = CycleResult()
        if not assets:
            result.finished_at = datetime.now()
            return result

        tasks = {asset: asyncio.create_task(self.evaluate_asset(asset)) for asset in assets}
        _, pending = await asyncio.wait(tasks.values(), timeout=self._cycle_timeout)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for asset, task in tasks.items():
            if task in pending:
                logger.warning(f"{asset}: cycle deadline reached, skipped")
                result.skipped.append(asset)
                continue
            error = task.exception()
            if error is not None:
                logger.error(f"{asset}: evaluation failed: {error}")
                result.skipped.append(asset)
                continue
            result.evaluations[asset] = task.result()

        result.finished_at = datetime.now()

        if result.evaluations and not any(ev.available for ev in result.evaluations.values()):
            raise DataUnavailableError(
                f"Market data unavailable for all {len(result.evaluations)} assets"
            )

        events = result.events
        logger.info(
            f"Cycle done: {len(result.evaluations)} evaluated, "
            f"{len(result.skipped)} skipped, {len(events)} flips"
        )
        await self._notify(events)
        return result

    async def run_forever(self, assets: list[str], interval_seconds: float) -> None:
        """Run cycles until cancelled."""
        while True:
            try:
                await self.run_cycle(assets)
            except DataUnavailableError as e:
                logger.error(f"Cycle failed: {e}")
            await asyncio.sleep(interval_seconds)
