"""Position sizing — pure functions, no state."""

from __future__ import annotations

import math
from dataclasses import dataclass

from signal_engine.config.schema import RiskConfig
from signal_engine.models import Holding, PositionSizeResult

# Fraction of a holding that may be spent in one trade
AVAILABLE_BALANCE_BUFFER = 0.95
MAX_KELLY = 0.5


def confidence_multiplier(confidence: float, min_confidence: float) -> float:
    """Scale factor for a requested size.

    0 below *min_confidence*, then linear from 0.5 at the minimum to 1.0 at
    full confidence.
    """
    if confidence < min_confidence:
        return 0.0
    span = 1 - min_confidence
    if span <= 0:
        return 1.0
    return 0.5 + (confidence - min_confidence) / span * 0.5


def calculate_position_size(
    requested_percent: float,
    confidence: float,
    holdings: list[Holding],
    total_value_usd: float,
    from_token: str,
    config: RiskConfig,
) -> PositionSizeResult:
    """Shrink a requested size to fit every limit, in order.

    1. confidence scaling (if enabled)
    2. max_position_percent
    3. max_position_size_usd, converted back to percent
    4. 95% of the source token's share of the portfolio
    """
    reasons: list[str] = []
    size = requested_percent

    if total_value_usd <= 0:
        return PositionSizeResult(
            original_size_percent=requested_percent,
            adjusted_size_percent=0.0,
            adjusted_size_usd=0.0,
            reasons=["Portfolio has no value"],
            was_adjusted=True,
        )

    if config.confidence_scaling:
        scaled = requested_percent * confidence_multiplier(confidence, config.min_confidence_to_trade)
        if scaled < size:
            reasons.append(
                f"Confidence scaling: {requested_percent:.1f}% → {scaled:.1f}% "
                f"(confidence: {confidence * 100:.0f}%)"
            )
            size = scaled

    if size > config.max_position_percent:
        reasons.append(f"Max position limit: {size:.1f}% → {config.max_position_percent}%")
        size = config.max_position_percent

    size_usd = size / 100 * total_value_usd
    if size_usd > config.max_position_size_usd:
        capped = config.max_position_size_usd / total_value_usd * 100
        reasons.append(
            f"Max USD limit: ${size_usd:.0f} → ${config.max_position_size_usd:.0f} "
            f"({size:.1f}% → {capped:.1f}%)"
        )
        size = capped

    holding = next((h for h in holdings if h.matches(from_token)), None)
    if holding is None:
        reasons.append(f"No {from_token} balance available")
        size = 0.0
    else:
        available = holding.value_usd / total_value_usd * 100
        limit = available * AVAILABLE_BALANCE_BUFFER
        if size > limit:
            reasons.append(
                f"Available balance: {size:.1f}% → {limit:.1f}% "
                f"(have {available:.1f}% in {from_token})"
            )
            size = max(0.0, limit)

    return PositionSizeResult(
        original_size_percent=requested_percent,
        adjusted_size_percent=_round_down(size),
        adjusted_size_usd=_round_down(size / 100 * total_value_usd),
        reasons=reasons,
        was_adjusted=bool(reasons),
    )


def calculate_kelly_size(
    win_probability: float,
    average_win: float,
    average_loss: float,
    fraction: float = 0.25,
) -> float:
    """Fractional Kelly stake as a share of the portfolio.

    b = average_win / |average_loss|
    kelly = (b * p - q) / b
    result = kelly * fraction, clamped to [0, 0.5]

    Returns 0.0 when the loss size is zero or p is not strictly inside (0, 1).
    """
    if average_loss == 0 or not 0 < win_probability < 1:
        return 0.0
    b = average_win / abs(average_loss)
    if b <= 0:
        return 0.0
    kelly = (b * win_probability - (1 - win_probability)) / b
    return max(0.0, min(MAX_KELLY, kelly * fraction))


@dataclass
class ConcentrationCheck:
    post_trade_percent: float
    is_risky: bool


def check_concentration_risk(
    to_token: str,
    trade_size_usd: float,
    holdings: list[Holding],
    total_value_usd: float,
    max_concentration_percent: float,
) -> ConcentrationCheck:
    """Would buying *to_token* push its share of the portfolio over the limit?"""
    if total_value_usd <= 0:
        return ConcentrationCheck(post_trade_percent=0.0, is_risky=False)
    current = sum(h.value_usd for h in holdings if h.matches(to_token))
    post_trade = (current + trade_size_usd) / total_value_usd * 100
    return ConcentrationCheck(
        post_trade_percent=post_trade,
        is_risky=post_trade > max_concentration_percent,
    )


def _round_down(value: float) -> float:
    # Never round a capped size back over its cap
    return math.floor(value * 100 + 1e-9) / 100
