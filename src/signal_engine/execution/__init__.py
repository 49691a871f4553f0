"""Trade execution — executor interfaces and the demo simulator."""

from signal_engine.execution.base import PortfolioManager, TradeExecutor
from signal_engine.execution.simulator import (
    SIMULATED_PRICES,
    SimulatedExecutor,
    SimulatedPortfolioManager,
)

__all__ = [
    "PortfolioManager",
    "SIMULATED_PRICES",
    "SimulatedExecutor",
    "SimulatedPortfolioManager",
    "TradeExecutor",
]
