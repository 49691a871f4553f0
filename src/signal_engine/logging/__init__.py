"""Structured logging."""

from signal_engine.logging.setup import (
    bind_cycle_context,
    clear_cycle_context,
    get_logger,
    setup_logging,
    setup_logging_from_config,
)

__all__ = [
    "bind_cycle_context",
    "clear_cycle_context",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]
