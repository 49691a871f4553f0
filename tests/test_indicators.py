"""Tests for technical indicators — known-value validation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from signal_engine.signals.indicators import (
    ema,
    macd,
    price_change_pct,
    rsi,
    volume_change_pct,
)


class TestRSI:
    def test_insufficient_data_returns_none(self):
        assert rsi([Decimal(i) for i in range(14)], period=14) is None
        assert rsi([], period=14) is None

    def test_exactly_enough_data(self):
        # 15 closes -> 14 deltas -> exactly one period
        assert rsi([Decimal(i) for i in range(15)], period=14) is not None

    def test_all_gains_returns_100(self):
        closes = [Decimal(i) for i in range(20)]
        assert rsi(closes, period=14) == Decimal(100)

    def test_all_losses_returns_0(self):
        closes = [Decimal(20 - i) for i in range(20)]
        assert rsi(closes, period=14) == Decimal(0)

    def test_equal_gains_and_losses_around_50(self):
        closes = []
        price = Decimal(100)
        for i in range(30):
            closes.append(price)
            price += Decimal(1) if i % 2 == 0 else Decimal(-1)
        result = rsi(closes, period=14)
        assert Decimal(40) < result < Decimal(60)

    def test_wilder_smoothing_after_seed(self):
        # 14 gains of +1 seed avg_gain=1, then one loss of -1:
        # gain 13/14, loss 1/14 -> RS=13 -> RSI=92.857...
        closes = [Decimal(100 + i) for i in range(15)]
        closes.append(closes[-1] - 1)
        result = rsi(closes, period=14)
        assert float(result) == pytest.approx(100 - 100 / 14, rel=1e-9)

    def test_custom_period(self):
        closes = [Decimal(i) for i in range(10)]
        assert rsi(closes, period=5) == Decimal(100)
        assert rsi(closes, period=10) is None


class TestEMA:
    def test_too_short(self):
        assert ema([Decimal(1), Decimal(2)], 3) == []

    def test_seeded_with_sma(self):
        values = [Decimal(v) for v in (2, 4, 6, 8)]
        out = ema(values, 3)
        assert out[0] == Decimal(4)
        # k = 0.5 -> (8 - 4) * 0.5 + 4
        assert out[1] == Decimal(6)
        assert len(out) == 2


class TestMACD:
    def test_insufficient_data(self):
        assert macd([Decimal(100)] * 34) is None

    def test_flat_series_is_zero(self):
        line, signal, hist = macd([Decimal(100)] * 40)
        assert line == 0
        assert signal == 0
        assert hist == 0

    def test_uptrend_positive(self):
        closes = [Decimal(100) + Decimal(i) * Decimal("1.5") for i in range(60)]
        line, _, _ = macd(closes)
        assert line > 0

    def test_downtrend_negative(self):
        closes = [Decimal(200) - Decimal(i) * Decimal("1.5") for i in range(60)]
        line, _, _ = macd(closes)
        assert line < 0

    def test_histogram_is_line_minus_signal(self):
        closes = [Decimal(100 + (i % 7) * 3 - i % 3) for i in range(50)]
        line, signal, hist = macd(closes)
        assert hist == line - signal

    def test_fast_must_be_shorter(self):
        assert macd([Decimal(i) for i in range(100)], fast=26, slow=12) is None


class TestChanges:
    def test_price_change(self):
        closes = [Decimal(100), Decimal(105), Decimal(110)]
        assert price_change_pct(closes, 2) == Decimal(10)

    def test_price_change_not_enough_bars(self):
        assert price_change_pct([Decimal(100)], 1) == 0

    def test_price_change_from_zero(self):
        assert price_change_pct([Decimal(0), Decimal(5)], 1) == 0

    def test_volume_change(self):
        volumes = [Decimal(10)] * 2 + [Decimal(15)] * 2
        assert volume_change_pct(volumes, 2) == Decimal(50)

    def test_volume_change_not_enough_bars(self):
        assert volume_change_pct([Decimal(10)] * 3, 2) == 0
