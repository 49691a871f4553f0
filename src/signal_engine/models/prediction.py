"""Prediction records submitted after execution."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from signal_engine.models.signal import AggregatedSignal
from signal_engine.models.trade import TradeIntent


class PredictionEvaluation(BaseModel):
    window_hours: int
    evaluated_at: datetime
    price: float
    change_percent: float
    correct: bool


class PredictionRecord(BaseModel):
    id: str
    timestamp: datetime
    symbol: str
    signal: AggregatedSignal
    intent: TradeIntent
    price_at_prediction: float
    direction: Literal["up", "down"]
    evaluations: list[PredictionEvaluation] = Field(default_factory=list)


class AccuracyMetrics(BaseModel):
    total_predictions: int = 0
    evaluated: int = 0
    accuracy_by_window: dict[int, float] = Field(default_factory=dict)
    average_change_when_correct: float = 0.0
    average_change_when_wrong: float = 0.0
    accuracy_by_recommendation: dict[str, float] = Field(default_factory=dict)
