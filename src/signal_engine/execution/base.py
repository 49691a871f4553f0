"""Executor and portfolio interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod

from signal_engine.models import (
    ExecutionRequest,
    ExecutionResult,
    Holding,
    QuoteRequest,
    QuoteResult,
)


class TradeExecutor(ABC):
    """Quotes and executes swaps. Failures come back as results, not exceptions."""

    name: str

    @abstractmethod
    async def get_quote(self, request: QuoteRequest) -> QuoteResult:
        ...

    @abstractmethod
    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        ...

    async def health_check(self) -> bool:
        return True


class PortfolioManager(ABC):
    @abstractmethod
    async def get_holdings(self) -> list[Holding]:
        ...

    async def get_total_value_usd(self) -> float:
        return sum(h.value_usd for h in await self.get_holdings())

    @abstractmethod
    async def apply_trade(self, quote: QuoteResult, result: ExecutionResult) -> None:
        """Reflect a completed execution in the holdings."""
        ...
