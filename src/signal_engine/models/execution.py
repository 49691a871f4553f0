"""Quote and execution models exchanged with a trade executor."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel


class QuoteRequest(BaseModel):
    from_token: str
    to_token: str
    from_chain_id: int
    to_chain_id: int
    amount: Decimal
    slippage: float = 0.01


class QuoteResult(BaseModel):
    success: bool
    request: QuoteRequest
    estimated_output: Decimal = Decimal("0")
    minimum_output: Decimal = Decimal("0")
    exchange_rate: Decimal = Decimal("0")
    fee_usd: float = 0.0
    gas_usd: float = 0.0
    route: str = ""
    expires_at: datetime | None = None
    error: str | None = None


class ExecutionRequest(BaseModel):
    quote: QuoteResult
    wallet_address: str
    user_approved: bool = False


class ExecutionResult(BaseModel):
    status: Literal["success", "failed", "cancelled"]
    tx_hash: str | None = None
    output_amount: Decimal | None = None
    error: str | None = None
    timestamp: datetime

    @property
    def success(self) -> bool:
        return self.status == "success"
