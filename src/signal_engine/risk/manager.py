"""Risk manager — sizes, scores and approves trade intents."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from signal_engine.config.schema import RiskConfig
from signal_engine.models import (
    CircuitBreakerState,
    Holding,
    PortfolioSnapshot,
    RiskAssessment,
    RiskMetrics,
    TradeIntent,
    TradeRecord,
)
from signal_engine.risk.circuit_breaker import CircuitBreaker
from signal_engine.risk.sizing import (
    calculate_kelly_size,
    calculate_position_size,
    check_concentration_risk,
)

log = structlog.get_logger("risk_manager")

APPROVAL_THRESHOLD = 50
LOW_CONFIDENCE_SCORE = 30
CONCENTRATION_SCORE = 25
FREQUENCY_SCORE = 20
DRAWDOWN_SCORE = 15
SLIPPAGE_SCORE = 10
HIGH_SLIPPAGE = 0.05
WIN_RATE_WINDOW = 20


class RiskManager:
    """Owns the circuit breaker and turns intents into assessments.

    Never raises for a rejected trade; rejections are data on the
    returned RiskAssessment.
    """

    def __init__(self, config: RiskConfig | None = None) -> None:
        self.config = config or RiskConfig()
        self.circuit_breaker = CircuitBreaker(self.config)
        self.last_snapshot: PortfolioSnapshot | None = None

    def evaluate(
        self,
        intent: TradeIntent,
        holdings: list[Holding],
        total_value_usd: float,
        now: datetime | None = None,
    ) -> RiskAssessment:
        cfg = self.config
        state = self.circuit_breaker.check(now)

        if state.is_triggered:
            return RiskAssessment(
                approved=False,
                original_intent=intent,
                risk_score=100,
                reasons=[f"Circuit breaker active: {state.reason}"],
                risk_factors={"circuit_breaker": 100},
            )

        reasons: list[str] = []
        factors: dict[str, float] = {}

        if intent.confidence < cfg.min_confidence_to_trade:
            factors["low_confidence"] = LOW_CONFIDENCE_SCORE
            reasons.append(
                f"Confidence too low: {intent.confidence * 100:.0f}% < "
                f"{cfg.min_confidence_to_trade * 100:.0f}%"
            )

        sizing = calculate_position_size(
            requested_percent=intent.suggested_size_percent,
            confidence=intent.confidence,
            holdings=holdings,
            total_value_usd=total_value_usd,
            from_token=intent.from_token,
            config=cfg,
        )
        reasons.extend(sizing.reasons)

        if sizing.adjusted_size_percent <= 0:
            return RiskAssessment(
                approved=False,
                original_intent=intent,
                risk_score=100,
                reasons=["Position size reduced to zero", *reasons],
                risk_factors=factors,
            )

        if intent.action == "buy":
            concentration = check_concentration_risk(
                to_token=intent.to_token,
                trade_size_usd=sizing.adjusted_size_usd,
                holdings=holdings,
                total_value_usd=total_value_usd,
                # Whole position may reach twice the per-trade limit
                max_concentration_percent=cfg.max_position_percent * 2,
            )
            if concentration.is_risky:
                factors["concentration"] = CONCENTRATION_SCORE
                reasons.append(
                    f"High concentration: {intent.to_token} would be "
                    f"{concentration.post_trade_percent:.1f}% of portfolio"
                )

        if state.trades_last_hour >= cfg.max_trades_per_hour - 1:
            factors["trade_frequency"] = FREQUENCY_SCORE
            reasons.append(
                f"Near trade limit: {state.trades_last_hour}/{cfg.max_trades_per_hour} trades this hour"
            )

        if state.current_drawdown > cfg.max_drawdown_percent * 0.7:
            factors["drawdown"] = DRAWDOWN_SCORE
            reasons.append(
                f"Elevated drawdown: {state.current_drawdown:.1f}% (limit: {cfg.max_drawdown_percent}%)"
            )

        if intent.max_slippage > HIGH_SLIPPAGE:
            factors["slippage"] = SLIPPAGE_SCORE
            reasons.append(f"High slippage tolerance: {intent.max_slippage * 100:.1f}%")

        score = min(100.0, sum(factors.values()))
        approved = score < APPROVAL_THRESHOLD

        adjusted = None
        if approved:
            adjusted = intent
            if sizing.was_adjusted:
                adjusted = intent.model_copy(
                    update={"suggested_size_percent": sizing.adjusted_size_percent},
                )

        log.info(
            "risk_assessed",
            symbol=intent.symbol,
            action=intent.action,
            approved=approved,
            risk_score=score,
            size_percent=sizing.adjusted_size_percent,
        )
        return RiskAssessment(
            approved=approved,
            original_intent=intent,
            adjusted_intent=adjusted,
            risk_score=score,
            reasons=reasons,
            risk_factors=factors,
        )

    # ── Circuit breaker passthrough ───────────────────────────

    def check_circuit_breaker(self, now: datetime | None = None) -> CircuitBreakerState:
        return self.circuit_breaker.check(now)

    def record_trade(self, trade: TradeRecord) -> None:
        """Record an executed trade; a success clears the error streak."""
        self.circuit_breaker.record_trade(trade)
        self.circuit_breaker.clear_errors()

    def record_success(self) -> None:
        self.circuit_breaker.clear_errors()

    def record_error(self, now: datetime | None = None) -> None:
        self.circuit_breaker.record_error(now)

    def update_portfolio(self, snapshot: PortfolioSnapshot) -> None:
        self.last_snapshot = snapshot
        self.circuit_breaker.update_portfolio(snapshot)

    def trigger_circuit_breaker(self, reason: str, now: datetime | None = None) -> None:
        self.circuit_breaker.trigger("manual", reason, now=now)

    def reset_circuit_breaker(self) -> None:
        self.circuit_breaker.reset()

    # ── Metrics ───────────────────────────────────────────────

    def get_metrics(self, now: datetime | None = None) -> RiskMetrics:
        now = now or datetime.now(timezone.utc)
        state = self.circuit_breaker.check(now)
        trades = self.circuit_breaker.trade_history

        closed = [
            t for t in self.circuit_breaker.recent_trades(WIN_RATE_WINDOW)
            if t.status == "closed" and t.pnl_usd is not None
        ]
        wins = [t.pnl_usd for t in closed if t.pnl_usd > 0]
        losses = [t.pnl_usd for t in closed if t.pnl_usd <= 0]
        win_rate = len(wins) / len(closed) if closed else 0.0

        kelly = 0.0
        if wins and losses:
            kelly = calculate_kelly_size(
                win_probability=win_rate,
                average_win=sum(wins) / len(wins),
                average_loss=sum(losses) / len(losses),
                fraction=self.config.kelly_fraction,
            )

        avg_size = sum(t.amount_usd for t in trades) / len(trades) if trades else 0.0

        largest = 0.0
        snapshot = self.last_snapshot
        if snapshot is not None and snapshot.total_value_usd > 0:
            largest = max(
                (h.value_usd / snapshot.total_value_usd * 100 for h in snapshot.holdings),
                default=0.0,
            )

        today = now.astimezone(timezone.utc).date()
        trades_today = sum(1 for t in trades if t.timestamp.astimezone(timezone.utc).date() == today)

        utilization = 0.0
        if self.config.max_drawdown_percent > 0:
            utilization = state.current_drawdown / self.config.max_drawdown_percent * 100
        if self.config.max_trades_per_hour > 0:
            utilization = max(
                utilization,
                state.trades_last_hour / self.config.max_trades_per_hour * 100,
            )

        return RiskMetrics(
            trades_today=trades_today,
            trades_last_hour=state.trades_last_hour,
            current_drawdown=state.current_drawdown,
            daily_pnl_percent=state.daily_pnl_percent,
            win_rate=round(win_rate, 2),
            average_trade_size_usd=round(avg_size, 2),
            largest_position_percent=round(largest, 2),
            utilization_percent=round(utilization, 2),
            kelly_fraction=round(kelly, 4),
            circuit_breaker=state,
        )
