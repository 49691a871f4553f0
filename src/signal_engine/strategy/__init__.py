"""Strategy framework."""

from signal_engine.strategy.base import Strategy, StrategyContext
from signal_engine.strategy.registry import StrategyRegistry


def default_registry() -> StrategyRegistry:
    """A fresh registry holding the built-in strategies."""
    from signal_engine.strategy.strategies import BUILTIN_STRATEGIES

    registry = StrategyRegistry()
    for cls in BUILTIN_STRATEGIES:
        registry.register(cls)
    return registry


__all__ = ["Strategy", "StrategyContext", "StrategyRegistry", "default_registry"]
