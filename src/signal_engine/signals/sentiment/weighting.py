"""Weighting helpers — recency decay, engagement, source credibility, confidence."""

from __future__ import annotations

import math
from datetime import datetime

from signal_engine.models.signal import SentimentLabel

DEFAULT_SOURCE_WEIGHTS: dict[str, float] = {
    "reddit": 1.0,
    "tavily": 0.85,
    "twitter": 0.9,
    "news": 0.95,
    "unknown": 0.75,
}

# Engagement normalisation per source; reddit upvotes are the unit
ENGAGEMENT_SCALE: dict[str, float] = {
    "reddit": 1.0,
    "twitter": 2.0,
}
DEFAULT_ENGAGEMENT_SCALE = 0.5

# (threshold, multiplier), highest first
ENGAGEMENT_TIERS: tuple[tuple[float, float], ...] = (
    (1000, 1.5),  # viral
    (200, 1.3),   # high
    (50, 1.1),    # medium
    (10, 1.0),    # low
)
BELOW_LOW_ENGAGEMENT = 0.8

MIN_RECENCY = 0.1


def recency_multiplier(timestamp: datetime, decay_hours: float, now: datetime) -> float:
    """exp(-age/decay), 1.0 for non-positive age, floored at 0.1."""
    age_hours = (now - timestamp).total_seconds() / 3600
    if age_hours <= 0:
        return 1.0
    if decay_hours <= 0 or age_hours > decay_hours * 4:
        return MIN_RECENCY
    return max(MIN_RECENCY, math.exp(-age_hours / decay_hours))


def engagement_multiplier(engagement: float, source: str) -> float:
    scaled = engagement * ENGAGEMENT_SCALE.get(source.lower(), DEFAULT_ENGAGEMENT_SCALE)
    for threshold, multiplier in ENGAGEMENT_TIERS:
        if scaled >= threshold:
            return multiplier
    return BELOW_LOW_ENGAGEMENT


def source_weight(source: str, overrides: dict[str, float] | None = None) -> float:
    weights = {**DEFAULT_SOURCE_WEIGHTS, **{k.lower(): v for k, v in (overrides or {}).items()}}
    return weights.get(source.lower(), weights["unknown"])


def sample_confidence(count: int, min_items: int) -> float:
    """0.8 at *min_items*, saturating at 1.0 from twice that."""
    if count <= 0:
        return 0.0
    if min_items <= 0:
        return 1.0
    ratio = count / min_items
    if ratio <= 1:
        return 0.4 + ratio * 0.4
    return min(1.0, 0.8 + (ratio - 1) * 0.2)


def confidence(count: int, min_items: int, avg_recency: float) -> float:
    """Geometric mean of the sample-size and recency terms."""
    if count <= 0:
        return 0.0
    recency_term = 0.3 + avg_recency * 0.7
    return min(1.0, math.sqrt(sample_confidence(count, min_items) * recency_term))


def normalize_score(raw: float, count: float) -> float:
    """Squash an average raw score into [-100, 100]."""
    if count == 0:
        return 0.0
    return round(math.tanh((raw / count) / 5) * 100, 1)


def score_to_label(score: float) -> SentimentLabel:
    if score >= 60:
        return "very_bullish"
    if score >= 25:
        return "bullish"
    if score <= -60:
        return "very_bearish"
    if score <= -25:
        return "bearish"
    return "neutral"
