"""Tests for the decision agent and runner."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from signal_engine.config import AppConfig
from signal_engine.execution import SimulatedExecutor, SimulatedPortfolioManager
from signal_engine.learning import MemoryPredictionTracker
from signal_engine.models import (
    ExecutionRequest,
    ExecutionResult,
    Holding,
    NoTrade,
    PriceBar,
    QuoteRequest,
    QuoteResult,
    RawSentimentItem,
)
from signal_engine.orchestrator import (
    Agent,
    DecisionEvent,
    ErrorEvent,
    PhaseChangeEvent,
    build_agent,
    run_loop,
)
from signal_engine.providers import SentimentProvider
from signal_engine.strategy import Strategy, StrategyRegistry, default_registry

NOW = datetime(2025, 6, 15, 12, tzinfo=timezone.utc)
BULLISH = "Bullish on ETH, time to buy before the moon"


def _items(title: str = BULLISH, count: int = 3) -> list[RawSentimentItem]:
    return [
        RawSentimentItem(source="reddit", title=title, timestamp=NOW, engagement=500)
        for _ in range(count)
    ]


def _make_portfolio(executor: SimulatedExecutor, usdc: str = "500", eth: str = "0.1") -> SimulatedPortfolioManager:
    portfolio = SimulatedPortfolioManager(executor)
    portfolio.deposit("USDC", Decimal(usdc))
    portfolio.deposit("ETH", Decimal(eth))
    return portfolio


def _make_agent(
    config: AppConfig | None = None,
    registry: StrategyRegistry | None = None,
    executor=None,
    portfolio=None,
    tracker=None,
) -> Agent:
    executor = executor or SimulatedExecutor()
    return Agent(
        config or AppConfig(),
        registry if registry is not None else default_registry(),
        executor,
        portfolio or _make_portfolio(executor),
        tracker=tracker,
    )


def _phases(agent: Agent) -> list[str]:
    phases: list[str] = []
    agent.subscribe(lambda e: phases.append(e.phase) if isinstance(e, PhaseChangeEvent) else None)
    return phases


class BrokenStrategy(Strategy):
    name = "sentiment-momentum"

    def evaluate(self, context):
        raise ZeroDivisionError("bad math")


class BrokenPortfolio(SimulatedPortfolioManager):
    async def get_holdings(self) -> list[Holding]:
        raise ConnectionError("rpc down")


class SlowPortfolio(SimulatedPortfolioManager):
    async def get_holdings(self) -> list[Holding]:
        await asyncio.sleep(0.01)
        return await super().get_holdings()


class QuoteDownExecutor(SimulatedExecutor):
    async def get_quote(self, request: QuoteRequest) -> QuoteResult:
        raise ConnectionError("aggregator unreachable")


class HangingPortfolio(SimulatedPortfolioManager):
    async def get_holdings(self) -> list[Holding]:
        await asyncio.sleep(3600)
        return []


class HangingQuoteExecutor(SimulatedExecutor):
    async def get_quote(self, request: QuoteRequest) -> QuoteResult:
        await asyncio.sleep(3600)
        raise AssertionError("unreachable")


class HangingExecutionExecutor(SimulatedExecutor):
    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        await asyncio.sleep(3600)
        raise AssertionError("unreachable")


class RejectingExecutor(SimulatedExecutor):
    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        return ExecutionResult(status="failed", error="reverted", timestamp=NOW)


class BullishFeed(SentimentProvider):
    name = "feed"

    async def fetch(self, symbol: str) -> list[RawSentimentItem]:
        return _items()


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_bullish_cycle_stops_at_quote(self):
        agent = _make_agent()
        phases = _phases(agent)

        result = await agent.run_cycle("ETH", _items(), now=NOW)

        assert result.stage == "quoted"
        assert result.signal.recommendation == "buy"
        assert result.intent.action == "buy"
        assert result.intent.from_token == "USDC"
        assert result.assessment.approved
        # strategy sized 15.4%, risk scaled it by confidence
        assert result.assessment.adjusted_intent.suggested_size_percent == pytest.approx(11.7)
        assert result.quote.success
        assert result.quote.request.amount == Decimal("58.5")
        assert result.execution is None
        assert phases == ["monitor", "decide", "quote", "done"]
        assert agent.state.phase == "done"
        assert agent.state.cycles == 1

    @pytest.mark.asyncio
    async def test_auto_execute(self):
        executor = SimulatedExecutor()
        portfolio = _make_portfolio(executor)
        tracker = MemoryPredictionTracker()
        agent = _make_agent(executor=executor, portfolio=portfolio, tracker=tracker)
        phases = _phases(agent)

        result = await agent.run_cycle("ETH", _items(), auto_execute=True, now=NOW)

        assert result.stage == "executed"
        assert result.execution.success
        assert portfolio.balance("USDC") == Decimal("441.5")
        assert portfolio.balance("ETH") > Decimal("0.1")
        assert phases == ["monitor", "decide", "quote", "execute", "done"]

        trades = agent.risk_manager.circuit_breaker.trade_history
        assert len(trades) == 1
        assert trades[0].id == result.execution.tx_hash
        # 11.7% of the 500 USDC holding, not of the whole portfolio
        assert trades[0].amount_usd == pytest.approx(58.5)

        record = tracker.get_prediction(result.prediction_id)
        assert record.direction == "up"
        assert record.price_at_prediction == pytest.approx(2500)

    @pytest.mark.asyncio
    async def test_auto_execute_from_config(self):
        config = AppConfig(execution={"auto_execute": True}, learning={"enabled": False})
        tracker = MemoryPredictionTracker()
        agent = _make_agent(config=config, tracker=tracker)
        result = await agent.run_cycle("ETH", _items(), now=NOW)
        assert result.stage == "executed"
        assert result.prediction_id is None
        assert len(tracker) == 0

    @pytest.mark.asyncio
    async def test_neutral_signal_no_trade(self):
        agent = _make_agent()
        phases = _phases(agent)
        result = await agent.run_cycle("ETH", _items("Weekly ETH discussion thread"), now=NOW)

        assert result.stage == "no_trade"
        assert isinstance(result.decision, NoTrade)
        assert result.assessment is None
        assert phases == ["monitor", "decide", "done"]

    @pytest.mark.asyncio
    async def test_circuit_breaker_rejects(self):
        agent = _make_agent()
        agent.risk_manager.trigger_circuit_breaker("operator halt", now=NOW)
        result = await agent.run_cycle("ETH", _items(), now=NOW)

        assert result.stage == "rejected"
        assert not result.assessment.approved
        assert result.quote is None

    @pytest.mark.asyncio
    async def test_strategy_error_becomes_no_trade(self):
        registry = StrategyRegistry()
        registry.register(BrokenStrategy)
        agent = _make_agent(registry=registry)
        errors = []
        agent.subscribe(lambda e: errors.append(e) if isinstance(e, ErrorEvent) else None)

        result = await agent.run_cycle("ETH", _items(), now=NOW)

        assert result.stage == "no_trade"
        assert "bad math" in result.decision.reason
        assert [e.stage for e in errors] == ["decide"]
        assert agent.risk_manager.circuit_breaker.error_count == 1

    @pytest.mark.asyncio
    async def test_unknown_strategy_raises(self):
        agent = _make_agent(registry=StrategyRegistry())
        with pytest.raises(KeyError):
            await agent.run_cycle("ETH", _items(), now=NOW)
        assert agent.state.phase == "done"

    @pytest.mark.asyncio
    async def test_portfolio_failure_keeps_last_holdings(self):
        executor = SimulatedExecutor()
        agent = _make_agent(executor=executor, portfolio=BrokenPortfolio(executor))
        errors = []
        agent.subscribe(lambda e: errors.append(e) if isinstance(e, ErrorEvent) else None)

        result = await agent.run_cycle("ETH", _items(), now=NOW)

        assert result.stage == "no_trade"
        assert agent.state.holdings == []
        assert errors[0].stage == "monitor"
        assert "rpc down" in errors[0].message

    @pytest.mark.asyncio
    async def test_quote_failure(self):
        executor = QuoteDownExecutor()
        agent = _make_agent(executor=executor, portfolio=_make_portfolio(executor))
        result = await agent.run_cycle("ETH", _items(), auto_execute=True, now=NOW)

        assert result.stage == "quote_failed"
        assert result.quote.error == "aggregator unreachable"
        assert result.execution is None
        assert agent.risk_manager.circuit_breaker.error_count == 1

    @pytest.mark.asyncio
    async def test_execution_failure(self):
        executor = RejectingExecutor()
        portfolio = _make_portfolio(executor)
        agent = _make_agent(executor=executor, portfolio=portfolio)
        result = await agent.run_cycle("ETH", _items(), auto_execute=True, now=NOW)

        assert result.stage == "execution_failed"
        assert result.execution.error == "reverted"
        assert portfolio.balance("USDC") == Decimal(500)
        assert agent.risk_manager.circuit_breaker.trade_history == []

    @pytest.mark.asyncio
    async def test_repeated_failures_trip_breaker(self):
        executor = QuoteDownExecutor()
        agent = _make_agent(executor=executor, portfolio=_make_portfolio(executor))
        stages = [(await agent.run_cycle("ETH", _items(), now=NOW)).stage for _ in range(4)]
        assert stages == ["quote_failed", "quote_failed", "quote_failed", "rejected"]

    @pytest.mark.asyncio
    async def test_other_symbol_cycle_no_trade(self):
        executor = SimulatedExecutor()
        portfolio = _make_portfolio(executor)
        agent = _make_agent(executor=executor, portfolio=portfolio)

        result = await agent.run_cycle("BTC", _items(), auto_execute=True, now=NOW)

        assert result.stage == "no_trade"
        assert "does not trade ETH" in result.decision.reason
        assert portfolio.balance("USDC") == Decimal(500)


class TestTimeouts:
    @pytest.mark.asyncio
    async def test_portfolio_timeout(self):
        executor = SimulatedExecutor()
        agent = _make_agent(
            config=AppConfig(providers={"timeout_s": 0.05}),
            executor=executor,
            portfolio=HangingPortfolio(executor),
        )
        errors = []
        agent.subscribe(lambda e: errors.append(e) if isinstance(e, ErrorEvent) else None)

        result = await asyncio.wait_for(agent.run_cycle("ETH", _items(), now=NOW), 2)

        assert result.stage == "no_trade"
        assert errors[0].stage == "monitor"
        assert "timed out" in errors[0].message
        # lock released for the next cycle
        await asyncio.wait_for(agent.run_cycle("ETH", _items(), now=NOW), 2)
        assert agent.state.cycles == 2

    @pytest.mark.asyncio
    async def test_quote_timeout(self):
        executor = HangingQuoteExecutor()
        agent = _make_agent(
            config=AppConfig(execution={"timeout_s": 0.05}),
            executor=executor,
            portfolio=_make_portfolio(executor),
        )

        result = await asyncio.wait_for(agent.run_cycle("ETH", _items(), now=NOW), 2)

        assert result.stage == "quote_failed"
        assert result.quote.error == "Quote timed out after 0.05s"
        assert agent.risk_manager.circuit_breaker.error_count == 1

    @pytest.mark.asyncio
    async def test_execution_timeout(self):
        executor = HangingExecutionExecutor()
        portfolio = _make_portfolio(executor)
        agent = _make_agent(
            config=AppConfig(execution={"timeout_s": 0.05}),
            executor=executor,
            portfolio=portfolio,
        )

        result = await asyncio.wait_for(
            agent.run_cycle("ETH", _items(), auto_execute=True, now=NOW), 2,
        )

        assert result.stage == "execution_failed"
        assert result.execution.error == "Execution timed out after 0.05s"
        assert portfolio.balance("USDC") == Decimal(500)
        assert agent.risk_manager.circuit_breaker.trade_history == []


class TestExecutionPrice:
    @pytest.mark.asyncio
    async def test_bars_only_price_their_own_symbol(self):
        result = await _make_agent().run_cycle("ETH", _items(), now=NOW)
        intent = result.assessment.adjusted_intent
        bars = [PriceBar(timestamp=NOW, open=45000, high=45500, low=44800, close=45000)]

        assert Agent._execution_price(result.signal, intent, result.quote, bars) == 45000
        btc_signal = result.signal.model_copy(update={"symbol": "BTC"})
        # falls back to the quote's rate for ETH
        assert Agent._execution_price(btc_signal, intent, result.quote, bars) == pytest.approx(2500)

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_break_cycle(self):
        agent = _make_agent()

        def broken(event):
            raise RuntimeError("ui crashed")

        agent.subscribe(broken)
        result = await agent.run_cycle("ETH", _items(), now=NOW)
        assert result.stage == "quoted"

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        agent = _make_agent()
        decisions = []
        unsubscribe = agent.subscribe(lambda e: decisions.append(e) if isinstance(e, DecisionEvent) else None)
        await agent.run_cycle("ETH", _items(), now=NOW)
        unsubscribe()
        await agent.run_cycle("ETH", _items(), now=NOW)
        assert len(decisions) == 1

    @pytest.mark.asyncio
    async def test_concurrent_cycles_serialized(self):
        executor = SimulatedExecutor()
        portfolio = SlowPortfolio(executor)
        portfolio.deposit("USDC", Decimal(500))
        agent = _make_agent(executor=executor, portfolio=portfolio)
        phases = _phases(agent)

        neutral = _items("Weekly ETH discussion thread")
        await asyncio.gather(
            agent.run_cycle("ETH", neutral, now=NOW),
            agent.run_cycle("BTC", neutral, now=NOW),
        )

        assert phases == ["monitor", "decide", "done"] * 2
        assert agent.state.cycles == 2

    @pytest.mark.asyncio
    async def test_log_entries_recorded(self):
        agent = _make_agent()
        await agent.run_cycle("ETH", _items(), now=NOW)
        messages = [entry.message for entry in agent.state.log]
        assert "Phase: init -> monitor" in messages
        assert any(m.startswith("Decision: buy ETH") for m in messages)


class TestRunner:
    def test_demo_agent_funded(self):
        agent = build_agent(AppConfig())
        assert isinstance(agent.executor, SimulatedExecutor)
        assert agent.portfolio.balance("USDC") == Decimal(5000)
        assert agent.portfolio.balance("ETH") == Decimal(2)
        assert agent.tracker is not None

    def test_live_requires_executor(self):
        with pytest.raises(ValueError, match="Live mode"):
            build_agent(AppConfig(execution={"mode": "live"}))

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            build_agent(AppConfig(strategy={"name": "nope"}))

    @pytest.mark.asyncio
    async def test_run_symbol_uses_providers(self):
        agent = build_agent(AppConfig(), sentiment_providers=[BullishFeed()])
        result = await agent.run_symbol("ETH", now=NOW)
        assert result.stage == "quoted"
        assert result.signal.sentiment.sample_size == 3

    @pytest.mark.asyncio
    async def test_run_loop_bounded(self):
        config = AppConfig(symbols=["ETH", "SOL"], max_iterations=2, polling_interval_s=0)
        agent = build_agent(config)
        assert await run_loop(agent, config) == 2
        assert agent.state.cycles == 4
