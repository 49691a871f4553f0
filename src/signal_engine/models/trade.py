"""Trade intent and risk models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TradeAction = Literal["buy", "sell", "hold"]
Urgency = Literal["low", "medium", "high"]
TriggerType = Literal["max_drawdown", "daily_loss", "trade_frequency", "error", "manual"]


class TradeIntent(BaseModel):
    """A sized trade proposed by a strategy.

    Never mutated after creation; the risk manager produces an adjusted
    copy instead.
    """

    action: TradeAction
    symbol: str
    from_token: str
    to_token: str
    chain_id: int
    suggested_size_percent: float = Field(ge=0.0, le=100.0)
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str
    signals: list[str] = Field(default_factory=list)
    urgency: Urgency = "low"
    max_slippage: float = Field(default=0.01, ge=0.0, le=1.0)


class NoTrade(BaseModel):
    """A strategy's explicit decision to pass."""

    reason: str


class RiskAssessment(BaseModel):
    approved: bool
    original_intent: TradeIntent
    adjusted_intent: TradeIntent | None = None
    risk_score: float = Field(ge=0.0, le=100.0)
    reasons: list[str] = Field(default_factory=list)
    risk_factors: dict[str, float] = Field(default_factory=dict)


class CircuitBreakerState(BaseModel):
    is_triggered: bool = False
    trigger_type: TriggerType | None = None
    reason: str | None = None
    triggered_at: datetime | None = None
    reset_at: datetime | None = None
    current_drawdown: float = 0.0
    trades_last_hour: int = 0
    daily_pnl_percent: float = 0.0


class PositionSizeResult(BaseModel):
    original_size_percent: float
    adjusted_size_percent: float
    adjusted_size_usd: float
    reasons: list[str] = Field(default_factory=list)
    was_adjusted: bool = False


class RiskMetrics(BaseModel):
    trades_today: int = 0
    trades_last_hour: int = 0
    current_drawdown: float = 0.0
    daily_pnl_percent: float = 0.0
    win_rate: float = 0.0
    average_trade_size_usd: float = 0.0
    largest_position_percent: float = 0.0
    utilization_percent: float = 0.0
    kelly_fraction: float = 0.0
    circuit_breaker: CircuitBreakerState = Field(default_factory=CircuitBreakerState)
