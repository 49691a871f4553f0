"""Market input models — raw sentiment items and price bars."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class RawSentimentItem(BaseModel):
    """One piece of text fetched from a sentiment source."""

    source: str
    title: str
    content: str | None = None
    url: str = ""
    timestamp: datetime
    engagement: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return f"{self.title} {self.content or ''}"


class PriceBar(BaseModel):
    """One OHLCV bar."""

    timestamp: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")
