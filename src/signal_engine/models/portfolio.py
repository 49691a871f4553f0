"""Portfolio models — holdings, snapshots and executed-trade history."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel


class Holding(BaseModel):
    """A token balance on one chain, valued in USD."""

    chain_id: int
    chain_name: str = ""
    token: str
    token_address: str = ""
    balance: Decimal
    value_usd: float

    def matches(self, identifier: str) -> bool:
        """True if *identifier* is this holding's symbol or address."""
        ident = identifier.lower()
        if ident == self.token.lower():
            return True
        return bool(self.token_address) and ident == self.token_address.lower()


class PortfolioSnapshot(BaseModel):
    """A point-in-time portfolio valuation."""

    timestamp: datetime
    total_value_usd: float
    holdings: list[Holding] = []


class TradeRecord(BaseModel):
    """One executed trade, fed to the circuit breaker."""

    id: str
    timestamp: datetime
    action: Literal["buy", "sell"]
    symbol: str
    amount_usd: float
    status: Literal["open", "closed"] = "open"
    pnl_usd: float | None = None
