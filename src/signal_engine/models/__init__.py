"""Pydantic domain models."""

from signal_engine.models.cycle import CycleResult, CycleStage
from signal_engine.models.execution import (
    ExecutionRequest,
    ExecutionResult,
    QuoteRequest,
    QuoteResult,
)
from signal_engine.models.market import PriceBar, RawSentimentItem
from signal_engine.models.portfolio import Holding, PortfolioSnapshot, TradeRecord
from signal_engine.models.prediction import (
    AccuracyMetrics,
    PredictionEvaluation,
    PredictionRecord,
)
from signal_engine.models.signal import (
    AggregatedSignal,
    MomentumSignal,
    SentimentComponent,
    SentimentSignal,
    SignalQuality,
)
from signal_engine.models.trade import (
    CircuitBreakerState,
    NoTrade,
    PositionSizeResult,
    RiskAssessment,
    RiskMetrics,
    TradeIntent,
)

__all__ = [
    "AccuracyMetrics",
    "AggregatedSignal",
    "CircuitBreakerState",
    "CycleResult",
    "CycleStage",
    "ExecutionRequest",
    "ExecutionResult",
    "Holding",
    "MomentumSignal",
    "NoTrade",
    "PortfolioSnapshot",
    "PositionSizeResult",
    "PredictionEvaluation",
    "PredictionRecord",
    "PriceBar",
    "QuoteRequest",
    "QuoteResult",
    "RawSentimentItem",
    "RiskAssessment",
    "RiskMetrics",
    "SentimentComponent",
    "SentimentSignal",
    "SignalQuality",
    "TradeIntent",
    "TradeRecord",
]
