"""Prediction tracking — record executed decisions and score them later."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import numpy as np
import structlog

from signal_engine.config.schema import LearningConfig
from signal_engine.models import (
    AccuracyMetrics,
    AggregatedSignal,
    PredictionEvaluation,
    PredictionRecord,
    TradeIntent,
)

log = structlog.get_logger("prediction_tracker")


class PredictionTracker(ABC):
    """Append-only sink for executed predictions."""

    @abstractmethod
    async def record_prediction(
        self,
        signal: AggregatedSignal,
        intent: TradeIntent,
        price: float,
        now: datetime | None = None,
    ) -> str:
        """Store a prediction and return its id."""
        ...


class MemoryPredictionTracker(PredictionTracker):
    def __init__(self, config: LearningConfig | None = None) -> None:
        self.config = config or LearningConfig()
        self._records: dict[str, PredictionRecord] = {}

    async def record_prediction(
        self,
        signal: AggregatedSignal,
        intent: TradeIntent,
        price: float,
        now: datetime | None = None,
    ) -> str:
        record = PredictionRecord(
            id=uuid.uuid4().hex,
            timestamp=now or datetime.now(timezone.utc),
            symbol=intent.symbol,
            signal=signal,
            intent=intent,
            price_at_prediction=price,
            direction="up" if intent.action == "buy" else "down",
        )
        self._records[record.id] = record
        log.info("prediction_recorded", id=record.id, symbol=record.symbol, direction=record.direction)
        return record.id

    def get_prediction(self, prediction_id: str) -> PredictionRecord | None:
        return self._records.get(prediction_id)

    def recent_predictions(self, limit: int = 20) -> list[PredictionRecord]:
        records = sorted(self._records.values(), key=lambda r: r.timestamp, reverse=True)
        return records[:limit]

    def evaluate_pending(
        self,
        current_prices: dict[str, float],
        now: datetime | None = None,
    ) -> int:
        """Score every prediction whose evaluation windows have elapsed.

        Returns the number of new evaluations.
        """
        now = now or datetime.now(timezone.utc)
        added = 0
        for record in self._records.values():
            price = current_prices.get(record.symbol)
            if price is None or record.price_at_prediction <= 0:
                continue
            done = {e.window_hours for e in record.evaluations}
            for window in self.config.evaluation_windows_h:
                if window in done or now - record.timestamp < timedelta(hours=window):
                    continue
                change = (price - record.price_at_prediction) / record.price_at_prediction * 100
                correct = change > 0 if record.direction == "up" else change < 0
                record.evaluations.append(PredictionEvaluation(
                    window_hours=window,
                    evaluated_at=now,
                    price=price,
                    change_percent=round(change, 4),
                    correct=correct,
                ))
                added += 1
        if added:
            log.info("predictions_evaluated", count=added)
        return added

    def get_accuracy(self) -> AccuracyMetrics:
        records = list(self._records.values())
        evaluated = [r for r in records if r.evaluations]

        by_window: dict[int, list[bool]] = defaultdict(list)
        by_recommendation: dict[str, list[bool]] = defaultdict(list)
        correct_moves: list[float] = []
        wrong_moves: list[float] = []
        for record in evaluated:
            for ev in record.evaluations:
                by_window[ev.window_hours].append(ev.correct)
                (correct_moves if ev.correct else wrong_moves).append(abs(ev.change_percent))
            # Longest window decides the recommendation's hit
            final = max(record.evaluations, key=lambda e: e.window_hours)
            by_recommendation[record.signal.recommendation].append(final.correct)

        return AccuracyMetrics(
            total_predictions=len(records),
            evaluated=len(evaluated),
            accuracy_by_window={w: _hit_rate(v) for w, v in sorted(by_window.items())},
            average_change_when_correct=_mean(correct_moves),
            average_change_when_wrong=_mean(wrong_moves),
            accuracy_by_recommendation={k: _hit_rate(v) for k, v in by_recommendation.items()},
        )

    def cleanup(self, max_age: timedelta, now: datetime | None = None) -> int:
        """Drop predictions older than *max_age*; returns how many were removed."""
        cutoff = (now or datetime.now(timezone.utc)) - max_age
        stale = [pid for pid, r in self._records.items() if r.timestamp < cutoff]
        for pid in stale:
            del self._records[pid]
        return len(stale)

    def __len__(self) -> int:
        return len(self._records)


def _hit_rate(hits: list[bool]) -> float:
    if not hits:
        return 0.0
    return round(float(np.mean(np.array(hits, dtype=np.float64))), 4)


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return round(float(np.mean(np.array(values, dtype=np.float64))), 4)
