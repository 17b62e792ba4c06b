"""Tests for the evaluation cycle."""

import asyncio
from collections import defaultdict

import pytest

from cryptoflip.core.errors import DataUnavailableError
from cryptoflip.core.types import Confidence, Direction, SignalSnapshot
from cryptoflip.data.models import Ticker
from cryptoflip.data.provider import ResamplingProvider
from cryptoflip.storage import InMemorySnapshotStore
from cryptoflip.strategy.evaluator import SignalEvaluator
from cryptoflip.strategy.flip_detector import FlipDetector

RISING = [100.0 + i for i in range(50)]
FALLING = [200.0 - i for i in range(50)]


class FakeProvider:
    """In-memory market data with optional failures and delays."""

    def __init__(self) -> None:
        self.series: dict[tuple[str, str], list[float] | Exception] = {}
        self.tickers: dict[str, Ticker | Exception] = {}
        self.delays: dict[str, float] = {}
        self.calls: list[tuple[str, str, int]] = []
        self.active: dict[str, int] = defaultdict(int)
        self.max_active: dict[str, int] = defaultdict(int)

    def set_all(self, asset_id: str, closes, timeframes) -> None:
        for tf in timeframes:
            self.series[(asset_id, tf)] = closes
        self.tickers[asset_id] = Ticker(symbol=asset_id, price=closes[-1], change_24h=1.0)

    async def get_closes(self, asset_id: str, timeframe: str, limit: int) -> list[float]:
        self.calls.append((asset_id, timeframe, limit))
        await asyncio.sleep(self.delays.get(asset_id, 0))
        value = self.series.get((asset_id, timeframe))
        if value is None:
            raise ConnectionError("no data")
        if isinstance(value, Exception):
            raise value
        return value

    async def get_ticker(self, asset_id: str) -> Ticker:
        self.active[asset_id] += 1
        self.max_active[asset_id] = max(self.max_active[asset_id], self.active[asset_id])
        try:
            await asyncio.sleep(self.delays.get(asset_id, 0.001))
            value = self.tickers.get(asset_id)
            if value is None:
                raise ConnectionError("no ticker")
            if isinstance(value, Exception):
                raise value
            return value
        finally:
            self.active[asset_id] -= 1


class RecordingNotifier:
    def __init__(self) -> None:
        self.events = []

    async def notify(self, event) -> None:
        self.events.append(event)


class BrokenNotifier:
    async def notify(self, event) -> None:
        raise RuntimeError("notifier down")


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def evaluator(provider, settings, store, notifier) -> SignalEvaluator:
    return SignalEvaluator(
        provider=provider,
        settings=settings,
        detector=FlipDetector(store),
        notifier=notifier,
        fetch_timeout=1.0,
        cycle_timeout=5.0,
    )


class TestRunCycle:
    """Test full evaluation cycles."""

    def test_first_cycle_is_baseline(self, evaluator, provider, settings, store, notifier):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        result = asyncio.run(evaluator.run_cycle(["BTCUSDT"]))

        signal = result.signals["BTCUSDT"]
        assert signal.confidence == Confidence.CONFIRMED_BULLISH
        assert signal.strength == 1.0
        assert signal.price == RISING[-1]
        assert result.events == []
        assert notifier.events == []
        assert store.get("BTCUSDT").confidence == Confidence.CONFIRMED_BULLISH

    def test_fetches_configured_history(self, evaluator, provider, settings):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        asyncio.run(evaluator.run_cycle(["BTCUSDT"]))
        assert sorted(tf for _, tf, _ in provider.calls) == sorted(settings.timeframes)
        assert all(limit == settings.history_length for _, _, limit in provider.calls)

    def test_flip_is_notified(self, evaluator, provider, settings, notifier):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        asyncio.run(evaluator.run_cycle(["BTCUSDT"]))

        provider.set_all("BTCUSDT", FALLING, settings.timeframes)
        result = asyncio.run(evaluator.run_cycle(["BTCUSDT"]))

        assert len(result.events) == 1
        event = result.events[0]
        assert event.from_confidence == Confidence.CONFIRMED_BULLISH
        assert event.to_confidence == Confidence.CONFIRMED_BEARISH
        assert event.reference_price == FALLING[-1]
        assert notifier.events == [event]

    def test_identical_rerun_emits_nothing(self, evaluator, provider, settings, store):
        store.put("BTCUSDT", SignalSnapshot("BTCUSDT", Confidence.NEUTRAL))
        provider.set_all("BTCUSDT", RISING, settings.timeframes)

        first = asyncio.run(evaluator.run_cycle(["BTCUSDT"]))
        second = asyncio.run(evaluator.run_cycle(["BTCUSDT"]))

        assert len(first.events) == 1
        assert second.events == []
        assert first.signals["BTCUSDT"] == second.signals["BTCUSDT"]

    def test_failed_timeframe_degrades_only_itself(self, evaluator, provider, settings):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        provider.series[("BTCUSDT", "1w")] = ValueError("malformed")

        result = asyncio.run(evaluator.run_cycle(["BTCUSDT"]))
        evaluation = result.evaluations["BTCUSDT"]

        assert evaluation.degraded == ["1w"]
        assert evaluation.available
        assert evaluation.signal.timeframes["1w"].direction == Direction.NEUTRAL
        assert evaluation.signal.confidence == Confidence.CONFIRMED_BULLISH
        assert evaluation.signal.strength == pytest.approx(0.75)

    def test_fetch_timeout_degrades(self, provider, settings, store):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        provider.delays["BTCUSDT"] = 0.5
        evaluator = SignalEvaluator(
            provider, settings, FlipDetector(store), fetch_timeout=0.05, cycle_timeout=5.0
        )
        with pytest.raises(DataUnavailableError):
            asyncio.run(evaluator.run_cycle(["BTCUSDT"]))
        assert store.get("BTCUSDT") is None

    def test_one_asset_down_does_not_fail_cycle(self, evaluator, provider, settings, store):
        store.put("ETHUSDT", SignalSnapshot("ETHUSDT", Confidence.CONFIRMED_BEARISH))
        provider.set_all("BTCUSDT", RISING, settings.timeframes)

        result = asyncio.run(evaluator.run_cycle(["BTCUSDT", "ETHUSDT"]))

        eth = result.evaluations["ETHUSDT"]
        assert not eth.available
        assert eth.signal.confidence == Confidence.NEUTRAL
        # Outage does not overwrite the last good snapshot
        assert store.get("ETHUSDT").confidence == Confidence.CONFIRMED_BEARISH

    def test_kline_outage_with_live_ticker_keeps_snapshot(
        self, evaluator, provider, settings, store, notifier
    ):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        provider.set_all("ETHUSDT", RISING, settings.timeframes)
        asyncio.run(evaluator.run_cycle(["BTCUSDT", "ETHUSDT"]))

        for tf in settings.timeframes:
            provider.series[("BTCUSDT", tf)] = OSError("klines down")
        outage = asyncio.run(evaluator.run_cycle(["BTCUSDT", "ETHUSDT"]))

        btc = outage.evaluations["BTCUSDT"]
        assert not btc.available
        assert btc.signal.price == RISING[-1]
        assert btc.signal.confidence == Confidence.NEUTRAL
        assert store.get("BTCUSDT").confidence == Confidence.CONFIRMED_BULLISH

        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        recovery = asyncio.run(evaluator.run_cycle(["BTCUSDT", "ETHUSDT"]))

        assert recovery.events == []
        assert notifier.events == []

    def test_ticker_alone_is_not_data(self, evaluator, provider, settings, store):
        for asset in ("BTCUSDT", "ETHUSDT"):
            provider.tickers[asset] = Ticker(symbol=asset, price=1.0, change_24h=0.0)
        with pytest.raises(DataUnavailableError):
            asyncio.run(evaluator.run_cycle(["BTCUSDT", "ETHUSDT"]))
        assert len(store) == 0

    def test_total_outage_raises(self, evaluator, store):
        with pytest.raises(DataUnavailableError):
            asyncio.run(evaluator.run_cycle(["BTCUSDT", "ETHUSDT"]))
        assert len(store) == 0

    def test_no_assets(self, evaluator):
        result = asyncio.run(evaluator.run_cycle([]))
        assert result.evaluations == {}
        assert result.finished_at is not None

    def test_slow_asset_is_skipped(self, provider, settings, store):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        provider.set_all("ETHUSDT", FALLING, settings.timeframes)
        store.put("ETHUSDT", SignalSnapshot("ETHUSDT", Confidence.WEAK_BULLISH))
        provider.delays["ETHUSDT"] = 2.0

        evaluator = SignalEvaluator(
            provider, settings, FlipDetector(store), fetch_timeout=10.0, cycle_timeout=0.2
        )
        result = asyncio.run(evaluator.run_cycle(["BTCUSDT", "ETHUSDT"]))

        assert result.skipped == ["ETHUSDT"]
        assert "BTCUSDT" in result.evaluations
        assert store.get("ETHUSDT").confidence == Confidence.WEAK_BULLISH
        assert "ETHUSDT" not in evaluator.last_signals

    def test_skipped_asset_keeps_last_signal(self, provider, settings, store):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        evaluator = SignalEvaluator(
            provider, settings, FlipDetector(store), fetch_timeout=10.0, cycle_timeout=0.2
        )
        asyncio.run(evaluator.run_cycle(["BTCUSDT"]))

        provider.set_all("BTCUSDT", FALLING, settings.timeframes)
        provider.delays["BTCUSDT"] = 2.0
        result = asyncio.run(evaluator.run_cycle(["BTCUSDT"]))

        assert result.skipped == ["BTCUSDT"]
        assert evaluator.last_signals["BTCUSDT"].confidence == Confidence.CONFIRMED_BULLISH
        assert store.get("BTCUSDT").confidence == Confidence.CONFIRMED_BULLISH

    def test_notifier_failure_is_contained(self, provider, settings, store):
        store.put("BTCUSDT", SignalSnapshot("BTCUSDT", Confidence.NEUTRAL))
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        evaluator = SignalEvaluator(
            provider, settings, FlipDetector(store), notifier=BrokenNotifier()
        )
        result = asyncio.run(evaluator.run_cycle(["BTCUSDT"]))
        assert len(result.events) == 1


class TestEvaluateAsset:
    """Test per-asset evaluation."""

    def test_same_asset_cycles_do_not_overlap(self, evaluator, provider, settings):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)

        async def run_twice():
            return await asyncio.gather(
                evaluator.evaluate_asset("BTCUSDT"),
                evaluator.evaluate_asset("BTCUSDT"),
            )

        first, second = asyncio.run(run_twice())
        assert provider.max_active["BTCUSDT"] == 1
        assert first.signal == second.signal
        assert second.event is None

    def test_missing_ticker_keeps_signal(self, evaluator, provider, settings):
        provider.set_all("BTCUSDT", RISING, settings.timeframes)
        provider.tickers["BTCUSDT"] = ConnectionError("down")
        evaluation = asyncio.run(evaluator.evaluate_asset("BTCUSDT"))
        assert evaluation.available
        assert evaluation.signal.price is None
        assert evaluation.signal.confidence == Confidence.CONFIRMED_BULLISH


class TestResamplingProvider:
    """Test higher timeframe approximation through a provider."""

    def test_resamples_base_interval(self, provider):
        hourly = [float(i) for i in range(1, 97)]
        provider.series[("SOLUSDT", "1h")] = hourly
        resampling = ResamplingProvider(provider, base_timeframe="1h")

        closes = asyncio.run(resampling.get_closes("SOLUSDT", "4h", 10))

        assert provider.calls == [("SOLUSDT", "1h", 40)]
        assert closes == [float(i) for i in range(60, 97, 4)]

    def test_serves_default_timeframes(self, provider, settings, store):
        hourly = [100.0 + i for i in range(settings.history_length * 168)]
        provider.series[("SOLUSDT", "1h")] = hourly
        provider.tickers["SOLUSDT"] = Ticker(symbol="SOLUSDT", price=hourly[-1], change_24h=0.0)
        evaluator = SignalEvaluator(
            ResamplingProvider(provider, base_timeframe="1h"),
            settings,
            FlipDetector(store),
            fetch_timeout=1.0,
            cycle_timeout=5.0,
        )

        result = asyncio.run(evaluator.run_cycle(["SOLUSDT"]))
        evaluation = result.evaluations["SOLUSDT"]

        assert evaluation.degraded == []
        assert set(evaluation.signal.timeframes) == set(settings.timeframes)
        assert evaluation.signal.confidence == Confidence.CONFIRMED_BULLISH
        assert evaluation.signal.strength == 1.0

    def test_caps_base_request(self, provider):
        provider.series[("SOLUSDT", "1h")] = [float(i) for i in range(1, 1501)]
        resampling = ResamplingProvider(provider, base_timeframe="1h", max_base_limit=1500)

        daily = asyncio.run(resampling.get_closes("SOLUSDT", "1d", 50))
        weekly = asyncio.run(resampling.get_closes("SOLUSDT", "1w", 50))

        assert provider.calls == [("SOLUSDT", "1h", 1200), ("SOLUSDT", "1h", 1500)]
        assert len(daily) == 50
        assert len(weekly) == 8

    def test_check_rejects_weekly_beyond_cap(self, provider, settings):
        resampling = ResamplingProvider(provider, base_timeframe="1h", max_base_limit=1500)
        with pytest.raises(ValueError, match="1w"):
            resampling.check_timeframes(
                settings.timeframes, settings.history_length, settings.min_series_length
            )

    def test_check_accepts_servable_timeframes(self, provider, settings):
        resampling = ResamplingProvider(provider, base_timeframe="1h", max_base_limit=1500)
        resampling.check_timeframes(
            ("1h", "4h", "1d"), settings.history_length, settings.min_series_length
        )
        ResamplingProvider(provider, base_timeframe="1h").check_timeframes(
            settings.timeframes, settings.history_length, settings.min_series_length
        )

    def test_check_rejects_finer_timeframe(self, provider):
        resampling = ResamplingProvider(provider, base_timeframe="1d")
        with pytest.raises(ValueError, match="Cannot resample 1d closes into 1h"):
            resampling.check_timeframes(("1h", "1d"), 50, 22)
