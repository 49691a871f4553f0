"""Pluggable market data providers."""

from signal_engine.providers.aggregator import (
    FetchResult,
    PriceAggregator,
    ProviderAggregator,
    ProviderResult,
    SentimentAggregator,
)
from signal_engine.providers.base import DataProvider, PriceProvider, SentimentProvider
from signal_engine.providers.errors import (
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)

__all__ = [
    "DataProvider",
    "FetchResult",
    "PriceAggregator",
    "PriceProvider",
    "ProviderAggregator",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderResult",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "SentimentAggregator",
    "SentimentProvider",
]
