"""Strategy abstract base class and evaluation context."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from signal_engine.config.schema import StrategyConfig
from signal_engine.models import AggregatedSignal, Holding, NoTrade, TradeIntent


class StrategyContext(BaseModel):
    """Everything a strategy sees for one decision."""

    signal: AggregatedSignal
    holdings: list[Holding] = Field(default_factory=list)
    total_value_usd: float = 0.0
    config: StrategyConfig = Field(default_factory=StrategyConfig)
    available_chains: list[int] = Field(default_factory=lambda: [1])
    default_chain_id: int = 1

    def find_holding(self, token: str) -> Holding | None:
        return next((h for h in self.holdings if h.matches(token)), None)


class Strategy(ABC):
    """Base class for all decision strategies.

    Subclasses set the class-level attributes and implement evaluate().
    Instantiate with keyword params to override defaults.
    """

    name: str
    description: str = ""
    version: str = "1.0.0"

    def __init__(self, **params: Any) -> None:
        self.params = params

    @abstractmethod
    def evaluate(self, context: StrategyContext) -> TradeIntent | NoTrade:
        """Turn an aggregated signal into a trade intent, or pass.

        Returns a TradeIntent to act on, or NoTrade with the reason.
        """
        ...

    def validate_config(self, config: StrategyConfig) -> bool:
        return True

    def get_default_config(self) -> dict[str, Any]:
        return {}
