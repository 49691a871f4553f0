"""Signal aggregator — fuses sentiment and momentum into one recommendation."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from signal_engine.config.schema import AggregationConfig
from signal_engine.models import (
    AggregatedSignal,
    MomentumSignal,
    SentimentSignal,
    SignalQuality,
)
from signal_engine.models.signal import Recommendation

AGREEMENT_BOOST = 1.15
CONFLICT_PENALTY = 0.7
CONFLICT_MAGNITUDE = 30
VETO_MAGNITUDE = 40
SENTIMENT_ONLY_DISCOUNT = 0.85
OVERBOUGHT_RSI = 80
OVERSOLD_RSI = 20
MIN_RECOMMENDATION_CONFIDENCE = 0.3


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


def momentum_to_score(momentum: MomentumSignal) -> float:
    """Project a momentum signal onto the [-100, 100] sentiment scale."""
    score = 0.0

    if momentum.rsi > 70:
        score += 30
    elif momentum.rsi > 55:
        score += (momentum.rsi - 50) * 2
    elif momentum.rsi < 30:
        score -= 30
    elif momentum.rsi < 45:
        score -= (50 - momentum.rsi) * 2

    hist = momentum.macd_histogram
    score += min(30.0, abs(hist * 100)) * _sign(hist)

    change = momentum.price_change_24h
    score += min(40.0, abs(change * 2)) * _sign(change)

    return max(-100.0, min(100.0, score))


def score_to_recommendation(
    score: float,
    confidence: float,
    bullish_threshold: float = 40,
    bearish_threshold: float = -40,
    strong_multiplier: float = 1.5,
    min_confidence: float = MIN_RECOMMENDATION_CONFIDENCE,
) -> Recommendation:
    if confidence < min_confidence:
        return "hold"
    if score >= bullish_threshold * strong_multiplier:
        return "strong_buy"
    if score >= bullish_threshold:
        return "buy"
    if score <= bearish_threshold * strong_multiplier:
        return "strong_sell"
    if score <= bearish_threshold:
        return "sell"
    return "hold"


def signals_conflict(sentiment_score: float, momentum_score: float, magnitude: float) -> bool:
    return (
        abs(sentiment_score) > magnitude
        and abs(momentum_score) > magnitude
        and _sign(sentiment_score) != _sign(momentum_score)
    )


class SignalAggregator:
    def __init__(self, config: AggregationConfig | None = None) -> None:
        self.config = config or AggregationConfig()

    def aggregate(
        self,
        symbol: str,
        sentiment: SentimentSignal,
        momentum: MomentumSignal | None = None,
    ) -> AggregatedSignal:
        cfg = self.config
        use_momentum = momentum is not None and momentum.confidence > 0

        if use_momentum:
            m_score = momentum_to_score(momentum)
            total_weight = cfg.sentiment_weight + cfg.momentum_weight
            if total_weight > 0:
                score = (
                    sentiment.score * cfg.sentiment_weight + m_score * cfg.momentum_weight
                ) / total_weight
            else:
                score = (sentiment.score + m_score) / 2

            conf = math.sqrt(sentiment.confidence * momentum.confidence)
            if _sign(sentiment.score) != 0 and _sign(sentiment.score) == _sign(m_score):
                conf = min(1.0, conf * AGREEMENT_BOOST)
            elif signals_conflict(sentiment.score, m_score, CONFLICT_MAGNITUDE):
                conf *= CONFLICT_PENALTY
        else:
            score = sentiment.score
            conf = sentiment.confidence * SENTIMENT_ONLY_DISCOUNT

        score = max(-100.0, min(100.0, score))
        conf = max(0.0, min(1.0, conf))

        return AggregatedSignal(
            symbol=symbol,
            sentiment=sentiment,
            momentum=momentum,
            overall_score=round(score, 1),
            overall_confidence=round(conf, 2),
            recommendation=self._recommend(score, conf, sentiment, momentum if use_momentum else None),
            timestamp=datetime.now(timezone.utc),
        )

    def _recommend(
        self,
        score: float,
        conf: float,
        sentiment: SentimentSignal,
        momentum: MomentumSignal | None,
    ) -> Recommendation:
        cfg = self.config
        if conf < cfg.min_confidence_threshold:
            return "hold"

        if momentum is not None:
            if signals_conflict(sentiment.score, momentum_to_score(momentum), VETO_MAGNITUDE):
                return "hold"
            # Extremes tend to mean-revert
            if momentum.rsi > OVERBOUGHT_RSI and score > 0:
                return "hold"
            if momentum.rsi < OVERSOLD_RSI and score < 0:
                return "hold"

        return score_to_recommendation(
            score,
            conf,
            cfg.bullish_threshold,
            cfg.bearish_threshold,
            cfg.strong_multiplier,
            cfg.min_confidence_threshold,
        )

    def assess_quality(self, signal: AggregatedSignal) -> SignalQuality:
        """Grade how much a signal's inputs can be trusted."""
        reasons: list[str] = []
        points = 0

        samples = signal.sentiment.sample_size
        if samples >= 10:
            points += 2
            reasons.append(f"Good sample size ({samples} items)")
        elif samples >= 5:
            points += 1
            reasons.append(f"Moderate sample size ({samples} items)")
        else:
            reasons.append(f"Low sample size ({samples} items)")

        if signal.sentiment.recency_factor > 0.7:
            points += 1
            reasons.append("Fresh data")
        elif signal.sentiment.recency_factor < 0.3:
            reasons.append("Stale data")

        momentum = signal.momentum
        if momentum is None:
            reasons.append("No momentum data")
        else:
            if momentum.confidence > 0.7:
                points += 2
                reasons.append("Strong momentum data")
            elif momentum.confidence > 0.4:
                points += 1
                reasons.append("Moderate momentum data")

            m_score = momentum_to_score(momentum)
            if _sign(signal.sentiment.score) == _sign(m_score):
                points += 1
                reasons.append("Signals agree")
            elif signals_conflict(signal.sentiment.score, m_score, CONFLICT_MAGNITUDE):
                points -= 1
                reasons.append("Signals conflict")

        if points >= 4:
            level = "high"
        elif points >= 2:
            level = "medium"
        else:
            level = "low"
        return SignalQuality(level=level, reasons=reasons)
