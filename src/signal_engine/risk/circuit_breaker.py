"""Circuit breaker — portfolio-wide interlock that halts all trading."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta, timezone

import structlog

from signal_engine.config.schema import RiskConfig
from signal_engine.models import CircuitBreakerState, PortfolioSnapshot, TradeRecord
from signal_engine.models.trade import TriggerType

log = structlog.get_logger("circuit_breaker")

COOLDOWN_MINUTES: dict[str, int] = {
    "max_drawdown": 120,
    "daily_loss": 240,
    "trade_frequency": 60,
    "error": 30,
    "manual": 60,
}
MAX_TRADE_HISTORY = 100
SNAPSHOT_RETENTION = timedelta(hours=48)
MAX_CONSECUTIVE_ERRORS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _day_key(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d")


class CircuitBreaker:
    """Trips on drawdown, trade frequency, daily loss or repeated errors.

    Once tripped it stays tripped until its trigger-specific cooldown has
    elapsed (checked lazily on the next ``check``) or ``reset`` is called.
    All time-dependent methods take an optional ``now`` for testing.
    """

    def __init__(self, config: RiskConfig) -> None:
        self.config = config
        self.is_triggered = False
        self.trigger_type: TriggerType | None = None
        self.reason: str | None = None
        self.triggered_at: datetime | None = None
        self.reset_at: datetime | None = None
        self.error_count = 0

        self._trades: deque[TradeRecord] = deque(maxlen=MAX_TRADE_HISTORY)
        self._snapshots: list[PortfolioSnapshot] = []
        self.daily_start_value = 0.0
        self.daily_high_watermark = 0.0
        self._day_key = ""

    # ── State ─────────────────────────────────────────────────

    def check(self, now: datetime | None = None) -> CircuitBreakerState:
        """Auto-reset if due, recompute metrics, then evaluate triggers."""
        now = now or _utcnow()
        if self.is_triggered and self.reset_at is not None and now >= self.reset_at:
            log.info("circuit_breaker_auto_reset", trigger=self.trigger_type)
            self.reset()

        drawdown = self.current_drawdown()
        trades_last_hour = self.trades_in_last_hour(now)
        daily_pnl = self._daily_pnl()

        if not self.is_triggered:
            self._evaluate_triggers(drawdown, trades_last_hour, daily_pnl, now)

        return CircuitBreakerState(
            is_triggered=self.is_triggered,
            trigger_type=self.trigger_type,
            reason=self.reason,
            triggered_at=self.triggered_at,
            reset_at=self.reset_at,
            current_drawdown=drawdown,
            trades_last_hour=trades_last_hour,
            daily_pnl_percent=round(daily_pnl, 2),
        )

    def _evaluate_triggers(
        self,
        drawdown: float,
        trades_last_hour: int,
        daily_pnl: float,
        now: datetime,
    ) -> None:
        cfg = self.config
        if drawdown >= cfg.max_drawdown_percent:
            self.trigger(
                "max_drawdown",
                f"Portfolio drawdown {drawdown:.1f}% exceeds limit of {cfg.max_drawdown_percent}%",
                now=now,
            )
        elif trades_last_hour >= cfg.max_trades_per_hour:
            self.trigger(
                "trade_frequency",
                f"{trades_last_hour} trades in last hour exceeds limit of {cfg.max_trades_per_hour}",
                now=now,
            )
        elif daily_pnl <= -cfg.daily_loss_limit_percent:
            self.trigger(
                "daily_loss",
                f"Daily loss {daily_pnl:.1f}% exceeds limit of {cfg.daily_loss_limit_percent}%",
                now=now,
            )

    def trigger(self, trigger_type: TriggerType, reason: str, now: datetime | None = None) -> None:
        now = now or _utcnow()
        self.is_triggered = True
        self.trigger_type = trigger_type
        self.reason = reason
        self.triggered_at = now
        self.reset_at = now + timedelta(minutes=COOLDOWN_MINUTES[trigger_type])
        log.warning(
            "circuit_breaker_triggered",
            trigger=trigger_type,
            reason=reason,
            reset_at=self.reset_at.isoformat(),
        )

    def reset(self) -> None:
        self.is_triggered = False
        self.trigger_type = None
        self.reason = None
        self.triggered_at = None
        self.reset_at = None
        self.error_count = 0

    # ── Inputs ────────────────────────────────────────────────

    def record_trade(self, trade: TradeRecord) -> None:
        self._trades.append(trade)

    def update_portfolio(self, snapshot: PortfolioSnapshot) -> None:
        """Append a snapshot and roll the daily start/high-watermark."""
        self._snapshots.append(snapshot)
        cutoff = snapshot.timestamp - SNAPSHOT_RETENTION
        self._snapshots = [s for s in self._snapshots if s.timestamp > cutoff]

        today = _day_key(snapshot.timestamp)
        if today != self._day_key:
            self._day_key = today
            self.daily_start_value = snapshot.total_value_usd
            self.daily_high_watermark = snapshot.total_value_usd
        elif snapshot.total_value_usd > self.daily_high_watermark:
            self.daily_high_watermark = snapshot.total_value_usd

    def record_error(self, now: datetime | None = None) -> None:
        self.error_count += 1
        if self.error_count >= MAX_CONSECUTIVE_ERRORS and not self.is_triggered:
            self.trigger(
                "error",
                f"{self.error_count} consecutive errors - pausing trading",
                now=now,
            )

    def clear_errors(self) -> None:
        self.error_count = 0

    # ── Metrics ───────────────────────────────────────────────

    @property
    def latest_value(self) -> float | None:
        return self._snapshots[-1].total_value_usd if self._snapshots else None

    def current_drawdown(self) -> float:
        """Percent below today's high-watermark."""
        current = self.latest_value
        if current is None or self.daily_high_watermark == 0:
            return 0.0
        drawdown = (self.daily_high_watermark - current) / self.daily_high_watermark * 100
        return max(0.0, drawdown)

    def daily_pnl_percent(self) -> float:
        return round(self._daily_pnl(), 2)

    def _daily_pnl(self) -> float:
        # Unrounded, so limits compare against the exact loss
        current = self.latest_value
        if current is None or self.daily_start_value == 0:
            return 0.0
        return (current - self.daily_start_value) / self.daily_start_value * 100

    def trades_in_last_hour(self, now: datetime | None = None) -> int:
        cutoff = (now or _utcnow()) - timedelta(hours=1)
        return sum(1 for t in self._trades if t.timestamp > cutoff)

    @property
    def trade_history(self) -> list[TradeRecord]:
        return list(self._trades)

    @property
    def snapshots(self) -> list[PortfolioSnapshot]:
        return list(self._snapshots)

    def recent_trades(self, count: int) -> list[TradeRecord]:
        if count <= 0:
            return []
        return list(self._trades)[-count:]
