"""Orchestrator runner — builds the agent and polls the configured symbols."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import structlog

from signal_engine.config.loader import load_config
from signal_engine.config.schema import AppConfig
from signal_engine.execution import (
    PortfolioManager,
    SimulatedExecutor,
    SimulatedPortfolioManager,
    TradeExecutor,
)
from signal_engine.learning import MemoryPredictionTracker
from signal_engine.logging.setup import setup_logging_from_config
from signal_engine.orchestrator.agent import Agent
from signal_engine.providers import (
    PriceAggregator,
    PriceProvider,
    SentimentAggregator,
    SentimentProvider,
)
from signal_engine.strategy import StrategyRegistry, default_registry

log = structlog.get_logger("orchestrator")


def build_agent(
    config: AppConfig,
    registry: StrategyRegistry | None = None,
    sentiment_providers: list[SentimentProvider] | tuple = (),
    price_providers: list[PriceProvider] | tuple = (),
    executor: TradeExecutor | None = None,
    portfolio: PortfolioManager | None = None,
) -> Agent:
    """Wire an agent from config.

    Demo mode falls back to the simulator funded with ``demo_balances``;
    live mode needs an executor and portfolio supplied by the caller.
    """
    if config.execution.mode == "live":
        if executor is None or portfolio is None:
            raise ValueError("Live mode requires an executor and a portfolio manager")
    else:
        if executor is None:
            executor = SimulatedExecutor(delay_s=config.execution.simulation_delay_s)
        if portfolio is None:
            simulated = SimulatedPortfolioManager(
                executor if isinstance(executor, SimulatedExecutor) else None
            )
            for token, amount in config.execution.demo_balances.items():
                if amount > 0:
                    simulated.deposit(token, Decimal(str(amount)), config.execution.default_chain_id)
            portfolio = simulated

    registry = registry or default_registry()
    if config.strategy.name not in registry:
        raise ValueError(f"Unknown strategy {config.strategy.name!r}; available: {registry.names()}")

    return Agent(
        config,
        registry,
        executor,
        portfolio,
        tracker=MemoryPredictionTracker(config.learning) if config.learning.enabled else None,
        sentiment_providers=SentimentAggregator(list(sentiment_providers), config.providers),
        price_providers=PriceAggregator(list(price_providers), config.providers),
    )


async def run_loop(agent: Agent, config: AppConfig) -> int:
    """Cycle every symbol each tick. Returns the number of ticks run."""
    log.info(
        "orchestrator_started",
        strategy=config.strategy.name,
        symbols=config.symbols,
        mode=config.execution.mode,
    )

    iterations = 0
    while config.max_iterations is None or iterations < config.max_iterations:
        for symbol in config.symbols:
            try:
                result = await agent.run_symbol(symbol)
            except Exception:
                log.exception("cycle_error", symbol=symbol)
                continue
            if result.intent is not None:
                log.info(
                    "trade_decided",
                    symbol=symbol,
                    action=result.intent.action,
                    size_percent=result.intent.suggested_size_percent,
                    stage=result.stage,
                )
        iterations += 1
        if config.max_iterations is not None and iterations >= config.max_iterations:
            break
        await asyncio.sleep(config.polling_interval_s)

    log.info("orchestrator_stopped", iterations=iterations)
    return iterations


def main(config_path: str | None = None) -> None:
    """Entry point — load config, set up logging, run the async loop."""
    config = load_config(config_path)
    setup_logging_from_config(config.logging)
    agent = build_agent(config)
    asyncio.run(run_loop(agent, config))
