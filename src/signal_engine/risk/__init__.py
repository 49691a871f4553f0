"""Risk controls — position sizing, circuit breaker, trade approval."""

from signal_engine.risk.circuit_breaker import COOLDOWN_MINUTES, CircuitBreaker
from signal_engine.risk.manager import RiskManager
from signal_engine.risk.sizing import (
    calculate_kelly_size,
    calculate_position_size,
    check_concentration_risk,
    confidence_multiplier,
)

__all__ = [
    "COOLDOWN_MINUTES",
    "CircuitBreaker",
    "RiskManager",
    "calculate_kelly_size",
    "calculate_position_size",
    "check_concentration_risk",
    "confidence_multiplier",
]
