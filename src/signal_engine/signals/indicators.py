"""Technical indicators — pure functions on price series."""

from __future__ import annotations

from decimal import Decimal
from statistics import mean


def rsi(closes: list[Decimal], period: int = 14) -> Decimal | None:
    """Relative Strength Index (Wilder's smoothing).

    Returns a Decimal in [0, 100] or None if there are fewer than
    ``period + 1`` data points.
    """
    if period <= 0 or len(closes) < period + 1:
        return None

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]

    # Seed with simple average of first *period* changes
    avg_gain = Decimal(mean([d if d > 0 else Decimal(0) for d in deltas[:period]]))
    avg_loss = Decimal(mean([-d if d < 0 else Decimal(0) for d in deltas[:period]]))

    for d in deltas[period:]:
        avg_gain = (avg_gain * (period - 1) + (d if d > 0 else Decimal(0))) / period
        avg_loss = (avg_loss * (period - 1) + (-d if d < 0 else Decimal(0))) / period

    if avg_loss == 0:
        return Decimal(100)
    rs = avg_gain / avg_loss
    return Decimal(100) - Decimal(100) / (1 + rs)


def ema(values: list[Decimal], period: int) -> list[Decimal]:
    """Exponential moving average seeded with the SMA of the first *period* values.

    The result starts at index ``period - 1`` of the input, so it has
    ``len(values) - period + 1`` entries (empty if too short).
    """
    if period <= 0 or len(values) < period:
        return []
    k = Decimal(2) / Decimal(period + 1)
    current = sum(values[:period], Decimal(0)) / period
    out = [current]
    for v in values[period:]:
        current = (v - current) * k + current
        out.append(current)
    return out


def macd(
    closes: list[Decimal],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> tuple[Decimal, Decimal, Decimal] | None:
    """MACD line, signal line and histogram for the latest bar.

    Returns ``(macd, signal, histogram)`` or None if there are fewer than
    ``slow + signal`` data points.
    """
    if fast >= slow or len(closes) < slow + signal:
        return None

    fast_ema = ema(closes, fast)
    slow_ema = ema(closes, slow)
    # fast_ema starts (slow - fast) bars earlier than slow_ema
    offset = slow - fast
    macd_line = [fast_ema[i + offset] - s for i, s in enumerate(slow_ema)]

    signal_line = ema(macd_line, signal)
    if not signal_line:
        return None
    latest_macd = macd_line[-1]
    latest_signal = signal_line[-1]
    return (latest_macd, latest_signal, latest_macd - latest_signal)


def price_change_pct(closes: list[Decimal], periods: int) -> Decimal:
    """Percent change of the last close versus *periods* bars earlier."""
    if periods <= 0 or len(closes) <= periods:
        return Decimal(0)
    previous = closes[-1 - periods]
    if previous == 0:
        return Decimal(0)
    return (closes[-1] - previous) / previous * 100


def volume_change_pct(volumes: list[Decimal], periods: int) -> Decimal:
    """Percent change of total volume in the last window versus the one before."""
    if periods <= 0 or len(volumes) < periods * 2:
        return Decimal(0)
    recent = sum(volumes[-periods:], Decimal(0))
    previous = sum(volumes[-2 * periods:-periods], Decimal(0))
    if previous == 0:
        return Decimal(0)
    return (recent - previous) / previous * 100
