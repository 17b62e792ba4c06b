"""Market data provider interface."""

from typing import Protocol, runtime_checkable

from cryptoflip.data.models import Ticker
from cryptoflip.indicators.resample import resample_closes, resample_factor


@runtime_checkable
class MarketDataProvider(Protocol):
    """Source of close series and current prices.

    Implementations raise on failure; callers degrade the affected
    timeframe rather than the whole evaluation.
    """

    async def get_closes(self, asset_id: str, timeframe: str, limit: int) -> list[float]: ...

    async def get_ticker(self, asset_id: str) -> Ticker: ...


class ResamplingProvider:
    """Serves coarser timeframes by sampling a single base interval.

    Used for sources that only expose one candle size: a 4h series is
    every 4th hourly close, a 1d series every 24th.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        base_timeframe: str = "1h",
        max_base_limit: int | None = None,
    ) -> None:
        """Initialize resampling provider.

        Args:
            provider: Source of base interval closes
            base_timeframe: The one interval the source serves
            max_base_limit: Most base candles the source returns per request
        """
        self._provider = provider
        self._base = base_timeframe
        self._max_base_limit = max_base_limit

    def _base_limit(self, limit: int, factor: int) -> int:
        wanted = limit * factor
        if self._max_base_limit is None:
            return wanted
        return min(wanted, self._max_base_limit)

    def check_timeframes(self, timeframes: tuple[str, ...], limit: int, min_closes: int) -> None:
        """Verify every timeframe can be served with enough history.

        Args:
            timeframes: Timeframes the evaluator will request
            limit: Closes requested per timeframe
            min_closes: Closes a series needs to be classified

        Raises:
            ValueError: If a timeframe cannot be resampled or would come
                back too short because of the request cap
        """
        problems = []
        for tf in timeframes:
            try:
                factor = resample_factor(self._base, tf)
            except ValueError as e:
                problems.append(str(e))
                continue
            available = self._base_limit(limit, factor) // factor
            if available < min(limit, min_closes):
                problems.append(
                    f"{tf} needs {min_closes} closes but {self._max_base_limit} "
                    f"{self._base} candles only give {available}"
                )
        if problems:
            raise ValueError("Cannot resample: " + "; ".join(problems))

    async def get_closes(self, asset_id: str, timeframe: str, limit: int) -> list[float]:
        factor = resample_factor(self._base, timeframe)
        closes = await self._provider.get_closes(
            asset_id, self._base, self._base_limit(limit, factor)
        )
        return resample_closes(closes, factor)[-limit:]

    async def get_ticker(self, asset_id: str) -> Ticker:
        return await self._provider.get_ticker(asset_id)
