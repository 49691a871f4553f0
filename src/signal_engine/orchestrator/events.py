"""Agent events and the observer list that delivers them."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Literal

import structlog
from pydantic import BaseModel, Field

from signal_engine.models import (
    AggregatedSignal,
    ExecutionResult,
    NoTrade,
    QuoteResult,
    RiskAssessment,
    TradeIntent,
)

log = structlog.get_logger("events")

Phase = Literal["init", "monitor", "decide", "quote", "execute", "done"]
PHASE_ORDER: tuple[Phase, ...] = ("init", "monitor", "decide", "quote", "execute", "done")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AgentEvent(BaseModel):
    type: str
    timestamp: datetime = Field(default_factory=_utcnow)


class PhaseChangeEvent(AgentEvent):
    type: Literal["phase_change"] = "phase_change"
    previous: Phase
    phase: Phase


class SignalUpdateEvent(AgentEvent):
    type: Literal["signal_update"] = "signal_update"
    signal: AggregatedSignal


class DecisionEvent(AgentEvent):
    type: Literal["decision"] = "decision"
    decision: TradeIntent | NoTrade


class RiskAssessmentEvent(AgentEvent):
    type: Literal["risk_assessment"] = "risk_assessment"
    assessment: RiskAssessment


class QuoteEvent(AgentEvent):
    type: Literal["quote"] = "quote"
    quote: QuoteResult


class ExecutionEvent(AgentEvent):
    type: Literal["execution"] = "execution"
    result: ExecutionResult


class ErrorEvent(AgentEvent):
    type: Literal["error"] = "error"
    stage: str
    message: str


class LogEvent(AgentEvent):
    type: Literal["log"] = "log"
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


EventHandler = Callable[[AgentEvent], None]


class EventBus:
    """Synchronous observer list.

    Handlers run in subscription order; one that raises is logged and
    skipped so the remaining handlers and the cycle carry on.
    """

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Add *handler*; call the returned function to remove it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, event: AgentEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                log.exception("event_handler_failed", event_type=event.type)

    def __len__(self) -> int:
        return len(self._handlers)
