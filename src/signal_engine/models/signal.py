"""Signal models — outputs of the sentiment, momentum and aggregation stages."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

SentimentLabel = Literal["very_bullish", "bullish", "neutral", "bearish", "very_bearish"]
Trend = Literal["strong_up", "up", "sideways", "down", "strong_down"]
Recommendation = Literal["strong_buy", "buy", "hold", "sell", "strong_sell"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SentimentComponent(BaseModel):
    """Per-source-group breakdown of a sentiment signal."""

    score: float = Field(default=0.0, ge=-100.0, le=100.0)
    weight: float = 0.0
    sample_size: int = 0


class SentimentSignal(BaseModel):
    score: float = Field(ge=-100.0, le=100.0)
    confidence: float = Field(ge=0.0, le=1.0)
    label: SentimentLabel
    components: dict[str, SentimentComponent] = Field(default_factory=dict)
    recency_factor: float = Field(default=0.0, ge=0.0, le=1.0)
    negation_adjustment: float = 0.0
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def sample_size(self) -> int:
        return sum(c.sample_size for c in self.components.values())


class MomentumSignal(BaseModel):
    trend: Trend
    rsi: float = Field(ge=0.0, le=100.0)
    macd_line: float = 0.0
    macd_histogram: float = 0.0
    price_change_24h: float = 0.0
    volume_change_24h: float = 0.0
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=_utcnow)


class AggregatedSignal(BaseModel):
    """Fused sentiment + momentum view of one symbol."""

    symbol: str
    sentiment: SentimentSignal
    momentum: MomentumSignal | None = None
    overall_score: float = Field(ge=-100.0, le=100.0)
    overall_confidence: float = Field(ge=0.0, le=1.0)
    recommendation: Recommendation
    timestamp: datetime = Field(default_factory=_utcnow)


class SignalQuality(BaseModel):
    level: Literal["high", "medium", "low"]
    reasons: list[str] = Field(default_factory=list)
