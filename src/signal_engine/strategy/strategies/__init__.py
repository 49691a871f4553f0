"""Built-in strategies."""

from signal_engine.strategy.strategies.rebalance import Rebalance
from signal_engine.strategy.strategies.sentiment_momentum import SentimentMomentum

BUILTIN_STRATEGIES = (SentimentMomentum, Rebalance)

__all__ = ["BUILTIN_STRATEGIES", "Rebalance", "SentimentMomentum"]
