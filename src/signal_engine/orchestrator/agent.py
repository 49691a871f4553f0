"""Decision agent — runs monitor → decide → quote → execute once per cycle."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

import structlog

from signal_engine.config.schema import AppConfig
from signal_engine.execution.base import PortfolioManager, TradeExecutor
from signal_engine.learning.tracker import PredictionTracker
from signal_engine.logging.setup import bind_cycle_context, clear_cycle_context
from signal_engine.models import (
    AggregatedSignal,
    CycleResult,
    ExecutionRequest,
    ExecutionResult,
    Holding,
    NoTrade,
    PortfolioSnapshot,
    PriceBar,
    QuoteRequest,
    QuoteResult,
    RawSentimentItem,
    RiskAssessment,
    TradeIntent,
    TradeRecord,
)
from signal_engine.orchestrator.events import (
    PHASE_ORDER,
    AgentEvent,
    DecisionEvent,
    ErrorEvent,
    EventBus,
    EventHandler,
    ExecutionEvent,
    LogEvent,
    Phase,
    PhaseChangeEvent,
    QuoteEvent,
    RiskAssessmentEvent,
    SignalUpdateEvent,
)
from signal_engine.providers.aggregator import PriceAggregator, SentimentAggregator
from signal_engine.providers.errors import ProviderError
from signal_engine.risk.manager import RiskManager
from signal_engine.signals.aggregator import SignalAggregator
from signal_engine.signals.momentum import MomentumCalculator
from signal_engine.signals.sentiment import SentimentAnalyzer
from signal_engine.strategy.base import StrategyContext
from signal_engine.strategy.registry import StrategyRegistry

log = structlog.get_logger("agent")


@dataclass
class LogEntry:
    timestamp: datetime
    message: str


@dataclass
class AgentState:
    phase: Phase = "init"
    holdings: list[Holding] = field(default_factory=list)
    total_value_usd: float = 0.0
    last_signal: AggregatedSignal | None = None
    last_decision: TradeIntent | NoTrade | None = None
    last_assessment: RiskAssessment | None = None
    last_quote: QuoteResult | None = None
    last_execution: ExecutionResult | None = None
    cycles: int = 0
    log: list[LogEntry] = field(default_factory=list)


class Agent:
    """Owns one risk manager and runs decision cycles against it.

    Cycles are serialized by a lock, so concurrent ``run_cycle`` calls on
    the same agent queue up instead of interleaving.
    """

    def __init__(
        self,
        config: AppConfig,
        registry: StrategyRegistry,
        executor: TradeExecutor,
        portfolio: PortfolioManager,
        *,
        risk_manager: RiskManager | None = None,
        tracker: PredictionTracker | None = None,
        sentiment_providers: SentimentAggregator | None = None,
        price_providers: PriceAggregator | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.executor = executor
        self.portfolio = portfolio
        self.risk_manager = risk_manager or RiskManager(config.risk)
        self.tracker = tracker
        self.sentiment_providers = sentiment_providers
        self.price_providers = price_providers

        self.analyzer = SentimentAnalyzer(config.sentiment)
        self.momentum = MomentumCalculator(config.momentum)
        self.aggregator = SignalAggregator(config.aggregation)

        self.state = AgentState()
        self.events = EventBus()
        self._lock = asyncio.Lock()

    # ── Events & state ────────────────────────────────────────

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        return self.events.subscribe(handler)

    def _emit(self, event: AgentEvent) -> None:
        self.events.emit(event)

    def _log(self, message: str, **context) -> None:
        self.state.log.append(LogEntry(timestamp=datetime.now(timezone.utc), message=message))
        self._emit(LogEvent(message=message, context=context))

    def _error(self, stage: str, message: str, now: datetime | None = None) -> None:
        self.risk_manager.record_error(now)
        log.warning("agent_error", stage=stage, error=message)
        self._emit(ErrorEvent(stage=stage, message=message))

    def _set_phase(self, phase: Phase) -> None:
        previous = self.state.phase
        if phase == previous:
            return
        # Phases only advance within a cycle; monitor opens a new one
        backwards = PHASE_ORDER.index(phase) < PHASE_ORDER.index(previous)
        if backwards and phase != "monitor" and previous not in ("init", "done"):
            raise RuntimeError(f"Illegal phase transition {previous} -> {phase}")
        self.state.phase = phase
        self._emit(PhaseChangeEvent(previous=previous, phase=phase))
        self._log(f"Phase: {previous} -> {phase}")

    # ── Monitor ───────────────────────────────────────────────

    async def update_portfolio(self, now: datetime | None = None) -> None:
        """Refresh holdings and feed a snapshot to the circuit breaker.

        On failure the last known holdings are kept.
        """
        timeout = self.config.providers.timeout_s
        try:
            holdings = await asyncio.wait_for(self.portfolio.get_holdings(), timeout)
        except asyncio.TimeoutError:
            log.warning("portfolio_update_timeout", timeout_s=timeout)
            self._error("monitor", f"Portfolio update timed out after {timeout}s", now)
            return
        except Exception as exc:
            log.exception("portfolio_update_failed")
            self._error("monitor", f"Portfolio update failed: {exc}", now)
            return

        total = sum(h.value_usd for h in holdings)
        self.state.holdings = holdings
        self.state.total_value_usd = total
        self.risk_manager.update_portfolio(PortfolioSnapshot(
            timestamp=now or datetime.now(timezone.utc),
            total_value_usd=total,
            holdings=holdings,
        ))

    async def gather(
        self,
        symbol: str,
        now: datetime | None = None,
    ) -> tuple[list[RawSentimentItem], list[PriceBar]]:
        """Fetch sentiment items and price bars; failed providers contribute nothing."""
        items: list[RawSentimentItem] = []
        bars: list[PriceBar] = []
        for source, aggregator in (("sentiment", self.sentiment_providers), ("price", self.price_providers)):
            if aggregator is None:
                continue
            try:
                fetched = await aggregator.fetch(symbol)
            except ProviderError as exc:
                self._error("monitor", f"{source} providers failed: {exc}", now)
                continue
            for failure in fetched.failures:
                self._error("monitor", f"{failure.provider}: {failure.error}", now)
            if source == "sentiment":
                items = fetched.items
            else:
                bars = fetched.items
        return items, bars

    def analyze(
        self,
        symbol: str,
        items: list[RawSentimentItem],
        bars: list[PriceBar] | None = None,
        now: datetime | None = None,
    ) -> AggregatedSignal:
        sentiment = self.analyzer.analyze(items, now=now)
        momentum = self.momentum.calculate(bars) if bars else None
        signal = self.aggregator.aggregate(symbol, sentiment, momentum)

        self.state.last_signal = signal
        self._emit(SignalUpdateEvent(signal=signal))
        log.info(
            "signal_updated",
            symbol=symbol,
            score=signal.overall_score,
            confidence=signal.overall_confidence,
            recommendation=signal.recommendation,
        )
        return signal

    # ── Decide ────────────────────────────────────────────────

    def decide(self, signal: AggregatedSignal, strategy_name: str | None = None) -> TradeIntent | NoTrade:
        self._set_phase("decide")
        name = strategy_name or self.config.strategy.name
        strategy = self.registry.get(name)

        if not strategy.validate_config(self.config.strategy):
            decision: TradeIntent | NoTrade = NoTrade(reason=f"Invalid configuration for strategy {name!r}")
        else:
            context = StrategyContext(
                signal=signal,
                holdings=self.state.holdings,
                total_value_usd=self.state.total_value_usd,
                config=self.config.strategy,
                available_chains=self.config.execution.available_chains,
                default_chain_id=self.config.execution.default_chain_id,
            )
            try:
                decision = strategy.evaluate(context)
            except Exception as exc:
                log.exception("strategy_error", strategy=name)
                self._error("decide", f"Strategy {name!r} failed: {exc}")
                decision = NoTrade(reason=f"Strategy error: {exc}")

        self.state.last_decision = decision
        self._emit(DecisionEvent(decision=decision))
        if isinstance(decision, TradeIntent):
            self._log(f"Decision: {decision.action} {decision.symbol} {decision.suggested_size_percent}%")
        else:
            self._log(f"Decision: no trade ({decision.reason})")
        return decision

    def assess_risk(self, intent: TradeIntent, now: datetime | None = None) -> RiskAssessment:
        assessment = self.risk_manager.evaluate(
            intent,
            self.state.holdings,
            self.state.total_value_usd,
            now=now,
        )
        self.state.last_assessment = assessment
        self._emit(RiskAssessmentEvent(assessment=assessment))
        return assessment

    # ── Quote & execute ───────────────────────────────────────

    async def get_quote(self, intent: TradeIntent, now: datetime | None = None) -> QuoteResult:
        self._set_phase("quote")
        holding = next((h for h in self.state.holdings if h.matches(intent.from_token)), None)
        amount = Decimal(0)
        if holding is not None:
            amount = holding.balance * Decimal(str(intent.suggested_size_percent)) / 100
        request = QuoteRequest(
            from_token=intent.from_token,
            to_token=intent.to_token,
            from_chain_id=intent.chain_id,
            to_chain_id=intent.chain_id,
            amount=amount,
            slippage=intent.max_slippage,
        )

        if amount <= 0:
            quote = QuoteResult(success=False, request=request, error=f"No {intent.from_token} balance to trade")
        else:
            timeout = self.config.execution.timeout_s
            try:
                quote = await asyncio.wait_for(self.executor.get_quote(request), timeout)
            except asyncio.TimeoutError:
                log.warning("quote_timeout", executor=self.executor.name, timeout_s=timeout)
                quote = QuoteResult(success=False, request=request, error=f"Quote timed out after {timeout}s")
            except Exception as exc:
                log.exception("quote_error", executor=self.executor.name)
                quote = QuoteResult(success=False, request=request, error=str(exc) or type(exc).__name__)

        if quote.success:
            self.risk_manager.record_success()
        else:
            self._error("quote", f"Quote failed: {quote.error}", now)

        self.state.last_quote = quote
        self._emit(QuoteEvent(quote=quote))
        return quote

    async def execute(
        self,
        quote: QuoteResult,
        intent: TradeIntent,
        user_approved: bool = False,
        now: datetime | None = None,
    ) -> ExecutionResult:
        self._set_phase("execute")
        request = ExecutionRequest(
            quote=quote,
            wallet_address=self.config.execution.wallet_address,
            user_approved=user_approved,
        )
        timeout = self.config.execution.timeout_s
        try:
            result = await asyncio.wait_for(self.executor.execute(request), timeout)
        except asyncio.TimeoutError:
            log.warning("execution_timeout", executor=self.executor.name, timeout_s=timeout)
            result = ExecutionResult(
                status="failed",
                error=f"Execution timed out after {timeout}s",
                timestamp=datetime.now(timezone.utc),
            )
        except Exception as exc:
            log.exception("execution_error", executor=self.executor.name)
            result = ExecutionResult(
                status="failed",
                error=str(exc) or type(exc).__name__,
                timestamp=datetime.now(timezone.utc),
            )

        self.state.last_execution = result
        self._emit(ExecutionEvent(result=result))

        if result.status == "failed":
            self._error("execute", f"Execution failed: {result.error}", now)
        elif result.success:
            await self._settle(quote, intent, result, now)
        return result

    async def _settle(
        self,
        quote: QuoteResult,
        intent: TradeIntent,
        result: ExecutionResult,
        now: datetime | None,
    ) -> None:
        # USD value of the quoted input, at the pre-trade valuation
        spent = next((h for h in self.state.holdings if h.matches(quote.request.from_token)), None)
        trade_value = 0.0
        if spent is not None and spent.balance > 0:
            trade_value = spent.value_usd * float(quote.request.amount / spent.balance)
        await self.portfolio.apply_trade(quote, result)
        self.risk_manager.record_trade(TradeRecord(
            id=result.tx_hash or f"trade-{self.state.cycles}",
            timestamp=now or result.timestamp,
            action="buy" if intent.action == "buy" else "sell",
            symbol=intent.symbol,
            amount_usd=round(trade_value, 2),
        ))
        await self.update_portfolio(now)
        self._log(f"Executed {intent.action} {intent.symbol}: tx {result.tx_hash}")

    # ── Cycle ─────────────────────────────────────────────────

    async def run_cycle(
        self,
        symbol: str,
        items: list[RawSentimentItem] | None = None,
        bars: list[PriceBar] | None = None,
        *,
        auto_execute: bool | None = None,
        now: datetime | None = None,
    ) -> CycleResult:
        """Run one full cycle for *symbol*.

        When neither *items* nor *bars* is given they are fetched from the
        registered providers. Returns at whichever stage the cycle stopped;
        "no action" outcomes are never raised.
        """
        auto = self.config.execution.auto_execute if auto_execute is None else auto_execute
        async with self._lock:
            self.state.cycles += 1
            bind_cycle_context(symbol, self.state.cycles)
            try:
                result = await self._cycle(symbol, items, bars, auto, now)
            finally:
                self._set_phase("done")
                clear_cycle_context()
        log.info("cycle_completed", symbol=symbol, stage=result.stage)
        return result

    async def _cycle(
        self,
        symbol: str,
        items: list[RawSentimentItem] | None,
        bars: list[PriceBar] | None,
        auto_execute: bool,
        now: datetime | None,
    ) -> CycleResult:
        self._set_phase("monitor")
        await self.update_portfolio(now)
        if items is None and bars is None:
            items, bars = await self.gather(symbol, now)
        signal = self.analyze(symbol, items or [], bars, now=now)

        decision = self.decide(signal)
        if isinstance(decision, NoTrade):
            return CycleResult(symbol=symbol, stage="no_trade", signal=signal, decision=decision)

        assessment = self.assess_risk(decision, now=now)
        if not assessment.approved or assessment.adjusted_intent is None:
            self._log(f"Risk rejected: {'; '.join(assessment.reasons)}")
            return CycleResult(
                symbol=symbol,
                stage="rejected",
                signal=signal,
                decision=decision,
                assessment=assessment,
            )
        intent = assessment.adjusted_intent

        quote = await self.get_quote(intent, now=now)
        partial = dict(symbol=symbol, signal=signal, decision=decision, assessment=assessment, quote=quote)
        if not quote.success:
            return CycleResult(stage="quote_failed", **partial)
        if not auto_execute:
            return CycleResult(stage="quoted", **partial)

        # Auto-execution is the approval
        execution = await self.execute(quote, intent, user_approved=True, now=now)
        if not execution.success:
            return CycleResult(stage="execution_failed", execution=execution, **partial)

        prediction_id = None
        if self.tracker is not None and self.config.learning.enabled:
            prediction_id = await self.tracker.record_prediction(
                signal,
                intent,
                self._execution_price(signal, intent, quote, bars),
                now=now,
            )
        return CycleResult(stage="executed", execution=execution, prediction_id=prediction_id, **partial)

    @staticmethod
    def _execution_price(
        signal: AggregatedSignal,
        intent: TradeIntent,
        quote: QuoteResult,
        bars: list[PriceBar] | None,
    ) -> float:
        """Price of the traded symbol, from the latest bar or the quote's rate.

        Bars belong to the cycle's symbol, so they only price intents on that symbol.
        """
        if bars and signal.symbol.upper() == intent.symbol.upper():
            return float(bars[-1].close)
        rate = quote.exchange_rate
        if rate <= 0:
            return 0.0
        # buy quotes stable->asset, so the rate is asset per stable
        return float(1 / rate) if intent.action == "buy" else float(rate)

    async def run_symbol(
        self,
        symbol: str,
        *,
        auto_execute: bool | None = None,
        now: datetime | None = None,
    ) -> CycleResult:
        """Run a cycle on provider data for *symbol*."""
        return await self.run_cycle(symbol, auto_execute=auto_execute, now=now)
