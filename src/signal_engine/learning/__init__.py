"""Prediction tracking for executed decisions."""

from signal_engine.learning.tracker import MemoryPredictionTracker, PredictionTracker

__all__ = ["MemoryPredictionTracker", "PredictionTracker"]
