"""Tests for the circuit breaker."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from signal_engine.config import RiskConfig
from signal_engine.models import PortfolioSnapshot, TradeRecord
from signal_engine.risk import COOLDOWN_MINUTES, CircuitBreaker

NOW = datetime(2025, 6, 15, 12, tzinfo=timezone.utc)


def _make_breaker(**config) -> CircuitBreaker:
    return CircuitBreaker(RiskConfig(**config))


def _snapshot(value: float, at: datetime) -> PortfolioSnapshot:
    return PortfolioSnapshot(timestamp=at, total_value_usd=value)


def _trade(at: datetime, n: int = 0) -> TradeRecord:
    return TradeRecord(id=f"t{n}", timestamp=at, action="buy", symbol="ETH", amount_usd=100)


class TestCircuitBreakerState:
    def test_fresh_breaker(self):
        state = _make_breaker().check(NOW)
        assert not state.is_triggered
        assert state.current_drawdown == 0
        assert state.trades_last_hour == 0
        assert state.daily_pnl_percent == 0

    def test_cooldown_table(self):
        assert COOLDOWN_MINUTES == {
            "max_drawdown": 120,
            "daily_loss": 240,
            "trade_frequency": 60,
            "error": 30,
            "manual": 60,
        }


class TestTriggers:
    def test_max_drawdown(self):
        cb = _make_breaker(max_drawdown_percent=15)
        cb.update_portfolio(_snapshot(1000, NOW - timedelta(hours=1)))
        cb.update_portfolio(_snapshot(840, NOW - timedelta(minutes=30)))

        state = cb.check(NOW)
        assert state.is_triggered
        assert state.trigger_type == "max_drawdown"
        assert state.current_drawdown == pytest.approx(16)
        assert state.reset_at == NOW + timedelta(minutes=120)
        assert "16.0%" in state.reason

    def test_drawdown_below_limit(self):
        cb = _make_breaker(max_drawdown_percent=15, daily_loss_limit_percent=20)
        cb.update_portfolio(_snapshot(1000, NOW - timedelta(hours=1)))
        cb.update_portfolio(_snapshot(900, NOW - timedelta(minutes=30)))
        assert not cb.check(NOW).is_triggered

    def test_drawdown_from_intraday_high(self):
        cb = _make_breaker()
        cb.update_portfolio(_snapshot(1000, NOW - timedelta(hours=3)))
        cb.update_portfolio(_snapshot(1200, NOW - timedelta(hours=2)))
        cb.update_portfolio(_snapshot(1080, NOW - timedelta(hours=1)))
        assert cb.current_drawdown() == pytest.approx(10)
        assert cb.daily_pnl_percent() == pytest.approx(8)

    def test_trade_frequency(self):
        cb = _make_breaker(max_trades_per_hour=5)
        for i in range(5):
            cb.record_trade(_trade(NOW - timedelta(minutes=10 + i), i))

        state = cb.check(NOW)
        assert state.is_triggered
        assert state.trigger_type == "trade_frequency"
        assert state.reset_at == NOW + timedelta(minutes=60)

    def test_old_trades_not_counted(self):
        cb = _make_breaker(max_trades_per_hour=5)
        for i in range(5):
            cb.record_trade(_trade(NOW - timedelta(hours=2), i))
        assert cb.trades_in_last_hour(NOW) == 0
        assert not cb.check(NOW).is_triggered

    def test_daily_loss(self):
        cb = _make_breaker(daily_loss_limit_percent=5, max_drawdown_percent=10)
        cb.update_portfolio(_snapshot(1000, NOW - timedelta(hours=2)))
        cb.update_portfolio(_snapshot(940, NOW - timedelta(hours=1)))

        state = cb.check(NOW)
        assert state.trigger_type == "daily_loss"
        assert state.daily_pnl_percent == -6
        assert state.reset_at == NOW + timedelta(minutes=240)

    def test_daily_loss_just_inside_limit(self):
        cb = _make_breaker(daily_loss_limit_percent=5, max_drawdown_percent=10)
        cb.update_portfolio(_snapshot(10000, NOW - timedelta(hours=2)))
        cb.update_portfolio(_snapshot(9500.4, NOW - timedelta(hours=1)))

        state = cb.check(NOW)
        # -4.996% reports as -5.0 but has not reached the limit
        assert not state.is_triggered
        assert state.daily_pnl_percent == -5.0

    def test_consecutive_errors(self):
        cb = _make_breaker()
        cb.record_error(NOW)
        cb.record_error(NOW)
        assert not cb.is_triggered
        cb.record_error(NOW)

        state = cb.check(NOW)
        assert state.trigger_type == "error"
        assert state.reset_at == NOW + timedelta(minutes=30)

    def test_cleared_errors_do_not_accumulate(self):
        cb = _make_breaker()
        cb.record_error(NOW)
        cb.record_error(NOW)
        cb.clear_errors()
        cb.record_error(NOW)
        assert not cb.check(NOW).is_triggered

    def test_first_trigger_kept(self):
        cb = _make_breaker()
        cb.trigger("manual", "operator halt", now=NOW)
        for _ in range(3):
            cb.record_error(NOW)
        assert cb.check(NOW).trigger_type == "manual"


class TestReset:
    def test_auto_reset_after_cooldown(self):
        cb = _make_breaker()
        cb.trigger("manual", "operator halt", now=NOW)

        assert cb.check(NOW + timedelta(minutes=59)).is_triggered
        state = cb.check(NOW + timedelta(minutes=60))
        assert not state.is_triggered
        assert state.reason is None
        assert state.reset_at is None

    def test_manual_reset(self):
        cb = _make_breaker()
        cb.trigger("manual", "operator halt", now=NOW)
        cb.reset()
        assert not cb.check(NOW).is_triggered

    def test_reset_clears_error_count(self):
        cb = _make_breaker()
        cb.record_error(NOW)
        cb.record_error(NOW)
        cb.reset()
        cb.record_error(NOW)
        assert not cb.is_triggered

    def test_retrips_if_condition_persists(self):
        cb = _make_breaker(max_drawdown_percent=10)
        cb.update_portfolio(_snapshot(1000, NOW - timedelta(hours=1)))
        cb.update_portfolio(_snapshot(800, NOW - timedelta(minutes=30)))
        cb.check(NOW)

        cb.reset()
        state = cb.check(NOW + timedelta(minutes=1))
        assert state.is_triggered
        assert state.trigger_type == "max_drawdown"


class TestTracking:
    def test_new_day_rolls_daily_values(self):
        cb = _make_breaker()
        cb.update_portfolio(_snapshot(1000, NOW))
        cb.update_portfolio(_snapshot(930, NOW + timedelta(days=1)))
        assert cb.daily_start_value == 930
        assert cb.daily_high_watermark == 930
        assert cb.current_drawdown() == 0

    def test_snapshot_retention(self):
        cb = _make_breaker()
        cb.update_portfolio(_snapshot(1000, NOW - timedelta(hours=50)))
        cb.update_portfolio(_snapshot(1000, NOW - timedelta(hours=10)))
        cb.update_portfolio(_snapshot(1000, NOW))
        assert len(cb.snapshots) == 2

    def test_trade_history_capped(self):
        cb = _make_breaker()
        for i in range(120):
            cb.record_trade(_trade(NOW - timedelta(days=1), i))
        history = cb.trade_history
        assert len(history) == 100
        assert history[0].id == "t20"

    def test_recent_trades(self):
        cb = _make_breaker()
        for i in range(5):
            cb.record_trade(_trade(NOW, i))
        assert [t.id for t in cb.recent_trades(2)] == ["t3", "t4"]
        assert cb.recent_trades(0) == []
