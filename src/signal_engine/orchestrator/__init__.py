"""Decision agent — events, cycle driver and polling loop."""

from signal_engine.orchestrator.agent import Agent, AgentState
from signal_engine.orchestrator.events import (
    PHASE_ORDER,
    AgentEvent,
    DecisionEvent,
    ErrorEvent,
    EventBus,
    ExecutionEvent,
    LogEvent,
    PhaseChangeEvent,
    QuoteEvent,
    RiskAssessmentEvent,
    SignalUpdateEvent,
)
from signal_engine.orchestrator.runner import build_agent, run_loop

__all__ = [
    "PHASE_ORDER",
    "Agent",
    "AgentEvent",
    "AgentState",
    "DecisionEvent",
    "ErrorEvent",
    "EventBus",
    "ExecutionEvent",
    "LogEvent",
    "PhaseChangeEvent",
    "QuoteEvent",
    "RiskAssessmentEvent",
    "SignalUpdateEvent",
    "build_agent",
    "run_loop",
]
