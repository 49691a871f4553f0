"""Sentiment analyzer — raw text items to a scored, confidence-weighted signal."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from signal_engine.config.schema import SentimentConfig
from signal_engine.models import RawSentimentItem, SentimentComponent, SentimentSignal
from signal_engine.signals.sentiment.keywords import EMOJI_SENTIMENTS, build_keywords
from signal_engine.signals.sentiment.negation import (
    KeywordMatch,
    find_matches,
    negation_adjustment,
)
from signal_engine.signals.sentiment.weighting import (
    confidence,
    engagement_multiplier,
    normalize_score,
    recency_multiplier,
    score_to_label,
    source_weight,
)

COMPONENT_GROUPS = ("reddit", "news", "social")
_NEWS_SOURCES = frozenset({"tavily", "news"})


@dataclass
class ItemAnalysis:
    """Per-item scoring intermediate."""

    source: str
    raw_score: float
    adjusted_score: float
    recency: float
    engagement: float
    matches: list[KeywordMatch]


def component_group(source: str) -> str:
    source = source.lower()
    if source == "reddit":
        return "reddit"
    if source in _NEWS_SOURCES:
        return "news"
    return "social"


class SentimentAnalyzer:
    """Scores text items against keyword tables.

    Each keyword hit contributes +/- its weight; negated hits flip direction.
    Item scores are scaled by recency, engagement and source credibility,
    then squashed into [-100, 100].
    """

    def __init__(self, config: SentimentConfig | None = None) -> None:
        self.config = config or SentimentConfig()
        self.keywords = build_keywords(
            self.config.extra_bullish_keywords,
            self.config.extra_bearish_keywords,
        )

    def analyze(
        self,
        items: list[RawSentimentItem],
        now: datetime | None = None,
    ) -> SentimentSignal:
        now = now or datetime.now(timezone.utc)
        if not items:
            return self._empty_signal(now)

        analyses = [self.analyze_item(item, now) for item in items]

        total_score = sum(a.adjusted_score for a in analyses)
        total_weight = sum(a.recency * a.engagement for a in analyses)
        score = normalize_score(total_score, total_weight or 1)

        avg_recency = sum(a.recency for a in analyses) / len(analyses)
        conf = confidence(len(items), self.config.min_data_points, avg_recency)

        adjustment = 0.0
        if self.config.negation_enabled:
            adjustment = negation_adjustment([m for a in analyses for m in a.matches])

        return SentimentSignal(
            score=_clamp(score, -100, 100),
            confidence=_clamp(conf, 0, 1),
            label=score_to_label(score),
            components=self._components(analyses),
            recency_factor=_clamp(avg_recency, 0, 1),
            negation_adjustment=adjustment,
            timestamp=now,
        )

    def analyze_item(self, item: RawSentimentItem, now: datetime) -> ItemAnalysis:
        text = item.text
        matches = find_matches(text, self.keywords, self.config.negation_enabled)
        matches.extend(_emoji_matches(text))

        raw = sum(m.weight if m.direction == "bullish" else -m.weight for m in matches)
        recency = recency_multiplier(item.timestamp, self.config.recency_decay_hours, now)
        engagement = engagement_multiplier(item.engagement, item.source)
        credibility = source_weight(item.source, self.config.source_weights)

        return ItemAnalysis(
            source=item.source,
            raw_score=raw,
            adjusted_score=raw * recency * engagement * credibility,
            recency=recency,
            engagement=engagement,
            matches=matches,
        )

    def _components(self, analyses: list[ItemAnalysis]) -> dict[str, SentimentComponent]:
        groups: dict[str, list[ItemAnalysis]] = {g: [] for g in COMPONENT_GROUPS}
        for a in analyses:
            groups[component_group(a.source)].append(a)

        components: dict[str, SentimentComponent] = {}
        for name, group in groups.items():
            if not group:
                components[name] = SentimentComponent()
                continue
            components[name] = SentimentComponent(
                score=normalize_score(sum(a.adjusted_score for a in group), len(group)),
                weight=sum(a.recency * a.engagement for a in group) / len(group),
                sample_size=len(group),
            )
        return components

    @staticmethod
    def _empty_signal(now: datetime) -> SentimentSignal:
        return SentimentSignal(
            score=0.0,
            confidence=0.0,
            label="neutral",
            components={g: SentimentComponent() for g in COMPONENT_GROUPS},
            recency_factor=0.0,
            negation_adjustment=0.0,
            timestamp=now,
        )


def _emoji_matches(text: str) -> list[KeywordMatch]:
    # Emoji count once per item and are never negated
    return [
        KeywordMatch(keyword=emoji, direction=direction, weight=weight, negated=False)
        for emoji, (direction, weight) in EMOJI_SENTIMENTS.items()
        if emoji in text
    ]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
