"""Momentum calculator — price bars to indicators and a trend label."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from signal_engine.config.schema import MomentumConfig
from signal_engine.models import MomentumSignal, PriceBar
from signal_engine.models.signal import Trend
from signal_engine.signals.indicators import (
    macd,
    price_change_pct,
    rsi,
    volume_change_pct,
)

# Bars in a 24h window at hourly resolution
DAY_BARS = 24


def determine_trend(rsi_value: float, histogram: float, price_change: float) -> Trend:
    score = 0

    if rsi_value >= 70:
        score += 2
    elif rsi_value >= 55:
        score += 1
    elif rsi_value <= 30:
        score -= 2
    elif rsi_value <= 45:
        score -= 1

    if histogram > 0.05:
        score += 2
    elif histogram > 0.01:
        score += 1
    elif histogram < -0.05:
        score -= 2
    elif histogram < -0.01:
        score -= 1

    if price_change > 5:
        score += 2
    elif price_change > 2:
        score += 1
    elif price_change < -5:
        score -= 2
    elif price_change < -2:
        score -= 1

    if score >= 4:
        return "strong_up"
    if score >= 2:
        return "up"
    if score <= -4:
        return "strong_down"
    if score <= -2:
        return "down"
    return "sideways"


class MomentumCalculator:
    def __init__(self, config: MomentumConfig | None = None) -> None:
        self.config = config or MomentumConfig()

    def calculate(self, bars: list[PriceBar]) -> MomentumSignal:
        if len(bars) < 2:
            return self._empty_signal()

        closes = [b.close for b in bars]
        volumes = [b.volume for b in bars]
        cfg = self.config

        rsi_value = rsi(closes, cfg.rsi_period)
        rsi_float = 50.0 if rsi_value is None else round(float(rsi_value), 1)

        macd_values = macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)
        if macd_values is None:
            macd_values = (Decimal(0), Decimal(0), Decimal(0))
        macd_line, _, histogram = (round(float(v), 3) for v in macd_values)

        price_change = round(float(price_change_pct(closes, min(DAY_BARS, len(closes) - 1))), 2)
        volume_change = round(float(volume_change_pct(volumes, min(DAY_BARS, len(volumes) // 2))), 2)

        return MomentumSignal(
            trend=determine_trend(rsi_float, histogram, price_change),
            rsi=max(0.0, min(100.0, rsi_float)),
            macd_line=macd_line,
            macd_histogram=histogram,
            price_change_24h=price_change,
            volume_change_24h=volume_change,
            confidence=self._confidence(bars),
            timestamp=bars[-1].timestamp,
        )

    def _confidence(self, bars: list[PriceBar]) -> float:
        conf = 0.5
        if len(bars) >= self.config.min_bars * 2:
            conf += 0.3
        elif len(bars) >= self.config.min_bars:
            conf += 0.15
        if any(b.volume > 0 for b in bars):
            conf += 0.2
        return min(1.0, conf)

    @staticmethod
    def _empty_signal() -> MomentumSignal:
        return MomentumSignal(
            trend="sideways",
            rsi=50.0,
            confidence=0.0,
            timestamp=datetime.now(timezone.utc),
        )
