"""Exceptions raised across module boundaries."""


class AggregationIncompleteError(ValueError):
    """Aggregation was attempted over a partial set of timeframes.

    This is a caller bug: the aggregator must only see a complete set.
    """

    def __init__(self, asset_id: str, missing: list[str] | None = None) -> None:
        self.asset_id = asset_id
        self.missing = missing or []
        detail = f"missing timeframes: {', '.join(self.missing)}" if self.missing else "no timeframes"
        super().__init__(f"Cannot aggregate {asset_id}: {detail}")


class DataUnavailableError(RuntimeError):
    """The market data provider could not be reached for any asset."""
