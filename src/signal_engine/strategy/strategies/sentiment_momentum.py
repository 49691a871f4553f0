"""Sentiment-momentum strategy — trade the fused signal between a risk asset and a stable."""

from __future__ import annotations

from typing import Any

from signal_engine.config.schema import StrategyConfig
from signal_engine.models import NoTrade, TradeIntent
from signal_engine.models.trade import TradeAction, Urgency
from signal_engine.strategy.base import Strategy, StrategyContext

MIN_SIZE_PERCENT = 5.0
MIN_TRADEABLE_PERCENT = 1.0
# Leave 10% of the sold holding untouched
BALANCE_BUFFER = 0.9

SLIPPAGE_BY_URGENCY: dict[str, float] = {
    "high": 0.05,
    "medium": 0.03,
    "low": 0.01,
}


class SentimentMomentum(Strategy):
    """Buy the risk asset on bullish fused signals, sell it on bearish ones.

    score >= bullish_threshold  → BUY  (stable → risk asset)
    score <= bearish_threshold  → SELL (risk asset → stable)
    otherwise                   → pass
    """

    name = "sentiment-momentum"
    description = "Trades the weighted blend of social sentiment and price momentum"
    version = "1.0.0"
    docs = {
        "thesis": "Crowd sentiment that agrees with price momentum tends to persist over the next few hours. Size grows with confidence above the minimum.",
        "data": "Aggregated signal (sentiment score, RSI, MACD histogram, 24h change) plus current holdings for the configured risk and stable assets.",
        "risk": "Sentiment can be manipulated and reverses quickly. Size is capped by max_position_percent and 90% of the holding being sold.",
    }

    def evaluate(self, context: StrategyContext) -> TradeIntent | NoTrade:
        signal = context.signal
        cfg = context.config

        # Only the risk asset's own signal may move it
        if signal.symbol.upper() != cfg.risk_asset.upper():
            return NoTrade(reason=f"{signal.symbol} signal does not trade {cfg.risk_asset}")

        if signal.overall_confidence < cfg.min_confidence:
            return NoTrade(
                reason=f"confidence {signal.overall_confidence:.2f} below minimum {cfg.min_confidence:.2f}",
            )

        action = self._action(signal.overall_score, cfg)
        if action == "hold":
            return NoTrade(reason=f"score {signal.overall_score:.1f} inside hold band")

        from_token, to_token = self._trading_pair(action, context)
        size = self._position_size(action, context)
        if size < MIN_TRADEABLE_PERCENT:
            return NoTrade(reason=f"position size {size:.2f}% too small")

        urgency = self._urgency(signal.overall_score, signal.overall_confidence)
        return TradeIntent(
            action=action,
            symbol=cfg.risk_asset,
            from_token=from_token,
            to_token=to_token,
            chain_id=context.default_chain_id,
            suggested_size_percent=round(size, 2),
            confidence=signal.overall_confidence,
            reason=self._reason(signal.overall_score, action),
            signals=self._describe_signals(context),
            urgency=urgency,
            max_slippage=SLIPPAGE_BY_URGENCY[urgency],
        )

    @staticmethod
    def _action(score: float, cfg: StrategyConfig) -> TradeAction:
        if score >= cfg.bullish_threshold:
            return "buy"
        if score <= cfg.bearish_threshold:
            return "sell"
        return "hold"

    @staticmethod
    def _trading_pair(action: TradeAction, context: StrategyContext) -> tuple[str, str]:
        cfg = context.config

        def resolve(symbol: str) -> str:
            holding = context.find_holding(symbol)
            if holding is not None and holding.token_address:
                return holding.token_address
            return symbol

        risk, stable = resolve(cfg.risk_asset), resolve(cfg.stable_asset)
        return (stable, risk) if action == "buy" else (risk, stable)

    @staticmethod
    def _position_size(action: TradeAction, context: StrategyContext) -> float:
        cfg = context.config
        span = 1 - cfg.min_confidence
        scale = (context.signal.overall_confidence - cfg.min_confidence) / span if span > 0 else 0.0
        size = MIN_SIZE_PERCENT + (cfg.max_position_percent - MIN_SIZE_PERCENT) * scale

        source = cfg.stable_asset if action == "buy" else cfg.risk_asset
        holding = context.find_holding(source)
        if holding is None or context.total_value_usd <= 0:
            available_pct = 0.0
        else:
            available_pct = holding.value_usd / context.total_value_usd * 100
        size = min(size, available_pct * BALANCE_BUFFER)

        return min(size, cfg.max_position_percent)

    @staticmethod
    def _urgency(score: float, confidence: float) -> Urgency:
        strength = abs(score)
        if strength >= 70 and confidence >= 0.8:
            return "high"
        if strength >= 50 and confidence >= 0.6:
            return "medium"
        return "low"

    @staticmethod
    def _reason(score: float, action: TradeAction) -> str:
        strength = "Strong" if abs(score) >= 60 else "Moderate"
        direction = "bullish" if score > 0 else "bearish"
        verb = "buying" if action == "buy" else "selling"
        return f"{strength} {direction} signal (score: {score:.1f}) suggests {verb} opportunity"

    @staticmethod
    def _describe_signals(context: StrategyContext) -> list[str]:
        signal = context.signal
        sentiment = signal.sentiment
        lines = [f"Sentiment: {sentiment.label} ({sentiment.score:.0f})"]

        reddit = sentiment.components.get("reddit")
        if reddit is not None and reddit.sample_size > 0:
            lines.append(f"Reddit: {reddit.sample_size} posts")
        news = sentiment.components.get("news")
        if news is not None and news.sample_size > 0:
            lines.append(f"News: {news.sample_size} articles")

        momentum = signal.momentum
        if momentum is not None and momentum.confidence > 0:
            lines.append(f"RSI: {momentum.rsi:.1f}")
            lines.append(f"Trend: {momentum.trend}")
            lines.append(f"24h Change: {momentum.price_change_24h:.2f}%")
        return lines

    def validate_config(self, config: StrategyConfig) -> bool:
        if config.bullish_threshold <= 0:
            return False
        if config.bearish_threshold >= 0:
            return False
        if not 0 <= config.min_confidence <= 1:
            return False
        if not 0 < config.max_position_percent <= 100:
            return False
        if config.momentum_weight + config.sentiment_weight == 0:
            return False
        return True

    def get_default_config(self) -> dict[str, Any]:
        defaults = StrategyConfig()
        return {
            "bullish_threshold": defaults.bullish_threshold,
            "bearish_threshold": defaults.bearish_threshold,
            "min_confidence": defaults.min_confidence,
            "momentum_weight": defaults.momentum_weight,
            "sentiment_weight": defaults.sentiment_weight,
            "max_position_percent": defaults.max_position_percent,
        }
