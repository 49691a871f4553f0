"""Signal generation — sentiment, momentum and their fusion."""

from signal_engine.signals.aggregator import SignalAggregator, momentum_to_score
from signal_engine.signals.momentum import MomentumCalculator, determine_trend
from signal_engine.signals.sentiment import SentimentAnalyzer

__all__ = [
    "MomentumCalculator",
    "SentimentAnalyzer",
    "SignalAggregator",
    "determine_trend",
    "momentum_to_score",
]
