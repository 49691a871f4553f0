"""Configuration system."""

from signal_engine.config.loader import load_config
from signal_engine.config.schema import (
    AggregationConfig,
    AppConfig,
    ExecutionConfig,
    LearningConfig,
    MomentumConfig,
    ProvidersConfig,
    RiskConfig,
    SentimentConfig,
    StrategyConfig,
)

__all__ = [
    "AggregationConfig",
    "AppConfig",
    "ExecutionConfig",
    "LearningConfig",
    "MomentumConfig",
    "ProvidersConfig",
    "RiskConfig",
    "SentimentConfig",
    "StrategyConfig",
    "load_config",
]
