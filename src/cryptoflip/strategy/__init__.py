"""Signal classification, aggregation and flip detection.

Per cycle and per asset:
- classifier: one TimeframeSignal per timeframe (EMA fast/slow + RSI confirmation)
- aggregator: one AssetSignal from the complete timeframe set
- flip_detector: FlipEvent when the asset lands on a confirmed label
- evaluator: runs the above concurrently over all assets
"""

from cryptoflip.strategy.aggregator import aggregate, aggregate_complete
from cryptoflip.strategy.classifier import classify, classify_series
from cryptoflip.strategy.evaluator import AssetEvaluation, CycleResult, SignalEvaluator
from cryptoflip.strategy.flip_detector import FlipDetector, detect_flip

__all__ = [
    "AssetEvaluation",
    "CycleResult",
    "FlipDetector",
    "SignalEvaluator",
    "aggregate",
    "aggregate_complete",
    "classify",
    "classify_series",
    "detect_flip",
]
