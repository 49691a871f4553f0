"""Data provider interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from signal_engine.models import PriceBar, RawSentimentItem


class DataProvider(ABC):
    """A pluggable source of market data for a symbol."""

    name: str
    version: str = "1.0.0"

    @abstractmethod
    async def fetch(self, symbol: str) -> list[Any]:
        ...

    async def health_check(self) -> bool:
        return True


class SentimentProvider(DataProvider):
    @abstractmethod
    async def fetch(self, symbol: str) -> list[RawSentimentItem]:
        ...


class PriceProvider(DataProvider):
    @abstractmethod
    async def fetch(self, symbol: str) -> list[PriceBar]:
        """Bars for *symbol*, oldest first."""
        ...
