"""Cycle outcome — how far one decision cycle got and what it produced."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from signal_engine.models.execution import ExecutionResult, QuoteResult
from signal_engine.models.signal import AggregatedSignal
from signal_engine.models.trade import NoTrade, RiskAssessment, TradeIntent

CycleStage = Literal[
    "no_trade",
    "rejected",
    "quote_failed",
    "quoted",
    "executed",
    "execution_failed",
]


class CycleResult(BaseModel):
    symbol: str
    stage: CycleStage
    signal: AggregatedSignal
    decision: TradeIntent | NoTrade
    assessment: RiskAssessment | None = None
    quote: QuoteResult | None = None
    execution: ExecutionResult | None = None
    prediction_id: str | None = None

    @property
    def intent(self) -> TradeIntent | None:
        return self.decision if isinstance(self.decision, TradeIntent) else None
