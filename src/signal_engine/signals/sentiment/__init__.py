"""Sentiment scoring."""

from signal_engine.signals.sentiment.analyzer import SentimentAnalyzer

__all__ = ["SentimentAnalyzer"]
