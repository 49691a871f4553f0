"""Simulated executor and portfolio for demo mode — fixed prices, no chain access."""

from __future__ import annotations

import asyncio
import secrets
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import structlog

from signal_engine.execution.base import PortfolioManager, TradeExecutor
from signal_engine.models import (
    ExecutionRequest,
    ExecutionResult,
    Holding,
    QuoteRequest,
    QuoteResult,
)

log = structlog.get_logger("simulator")

SIMULATED_PRICES: dict[str, Decimal] = {
    "ETH": Decimal("2500"),
    "USDC": Decimal("1"),
    "USDT": Decimal("1"),
    "WETH": Decimal("2500"),
    "WBTC": Decimal("45000"),
    "MATIC": Decimal("0.85"),
}

CHAIN_NAMES: dict[int, str] = {
    1: "Ethereum",
    10: "Optimism",
    137: "Polygon",
    42161: "Arbitrum",
    8453: "Base",
}

SWAP_FEE_PCT = 0.003
QUOTE_TTL = timedelta(seconds=60)


def estimate_gas_usd(from_chain: int, to_chain: int) -> float:
    """Flat gas model: 5 base, +10 cross-chain, +10 touching mainnet."""
    gas = 5.0
    if from_chain != to_chain:
        gas += 10
    if 1 in (from_chain, to_chain):
        gas += 10
    return gas


def apply_swap_costs(
    amount_out: Decimal,
    fee_pct: float,
    slippage_pct: float,
) -> tuple[Decimal, Decimal]:
    """Expected and minimum output after the swap fee and slippage.

    expected = out * (1 - fee) * (1 - slippage / 2)
    minimum  = out * (1 - fee) * (1 - slippage)
    """
    fee = Decimal(str(fee_pct))
    slippage = Decimal(str(slippage_pct))
    after_fee = amount_out * (1 - fee)
    return after_fee * (1 - slippage / 2), after_fee * (1 - slippage)


class SimulatedExecutor(TradeExecutor):
    name = "simulator"

    def __init__(
        self,
        prices: dict[str, Decimal] | None = None,
        token_addresses: dict[str, str] | None = None,
        delay_s: float = 0,
    ) -> None:
        self.prices = {k.upper(): v for k, v in (prices or SIMULATED_PRICES).items()}
        # address (lowercase) -> symbol
        self.token_addresses = {k.lower(): v.upper() for k, v in (token_addresses or {}).items()}
        self.delay_s = delay_s

    def set_price(self, token: str, price: Decimal) -> None:
        self.prices[token.upper()] = price

    def get_price(self, token: str) -> Decimal:
        return self.prices.get(self.normalize_token(token), Decimal(0))

    def normalize_token(self, token: str) -> str:
        return self.token_addresses.get(token.lower(), token.upper())

    async def get_quote(self, request: QuoteRequest) -> QuoteResult:
        if self.delay_s:
            await asyncio.sleep(self.delay_s)

        from_token = self.normalize_token(request.from_token)
        to_token = self.normalize_token(request.to_token)
        from_price = self.get_price(from_token)
        to_price = self.get_price(to_token)

        if from_price == 0 or to_price == 0:
            unknown = from_token if from_price == 0 else to_token
            return QuoteResult(success=False, request=request, error=f"Unknown token: {unknown}")
        if request.amount <= 0:
            return QuoteResult(success=False, request=request, error="Amount must be positive")

        input_value = request.amount * from_price
        expected, minimum = apply_swap_costs(input_value / to_price, SWAP_FEE_PCT, request.slippage)

        route = []
        if request.from_chain_id != request.to_chain_id:
            route.append(f"bridge {CHAIN_NAMES.get(request.from_chain_id, request.from_chain_id)}"
                         f" → {CHAIN_NAMES.get(request.to_chain_id, request.to_chain_id)}")
        if from_token != to_token:
            route.append(f"swap {from_token} → {to_token}")

        return QuoteResult(
            success=True,
            request=request,
            estimated_output=expected,
            minimum_output=minimum,
            exchange_rate=from_price / to_price,
            fee_usd=float(input_value) * SWAP_FEE_PCT,
            gas_usd=estimate_gas_usd(request.from_chain_id, request.to_chain_id),
            route=", ".join(route) or "direct transfer",
            expires_at=datetime.now(timezone.utc) + QUOTE_TTL,
        )

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        now = datetime.now(timezone.utc)
        if not request.user_approved:
            return ExecutionResult(status="cancelled", error="User approval required", timestamp=now)
        if not request.quote.success:
            return ExecutionResult(
                status="failed",
                error=request.quote.error or "Cannot execute a failed quote",
                timestamp=now,
            )

        if self.delay_s:
            await asyncio.sleep(self.delay_s)

        tx_hash = "0x" + secrets.token_hex(32)
        log.info("simulated_execution", tx_hash=tx_hash, output=str(request.quote.estimated_output))
        return ExecutionResult(
            status="success",
            tx_hash=tx_hash,
            output_amount=request.quote.estimated_output,
            timestamp=datetime.now(timezone.utc),
        )


class SimulatedPortfolioManager(PortfolioManager):
    """In-memory holdings valued at the executor's prices."""

    def __init__(self, executor: SimulatedExecutor | None = None) -> None:
        self.executor = executor or SimulatedExecutor()
        # (chain_id, token) -> balance
        self._balances: dict[tuple[int, str], Decimal] = {}

    async def get_holdings(self) -> list[Holding]:
        holdings = []
        for (chain_id, token), balance in self._balances.items():
            if balance <= 0:
                continue
            holdings.append(Holding(
                chain_id=chain_id,
                chain_name=CHAIN_NAMES.get(chain_id, f"Chain {chain_id}"),
                token=token,
                balance=balance,
                value_usd=float(balance * self.executor.get_price(token)),
            ))
        return holdings

    def deposit(self, token: str, amount: Decimal, chain_id: int = 1) -> None:
        if amount <= 0:
            raise ValueError("Deposit amount must be positive")
        key = (chain_id, self.executor.normalize_token(token))
        self._balances[key] = self._balances.get(key, Decimal(0)) + amount

    def withdraw(self, token: str, amount: Decimal, chain_id: int = 1) -> None:
        key = (chain_id, self.executor.normalize_token(token))
        balance = self._balances.get(key, Decimal(0))
        if amount > balance:
            raise ValueError(f"Insufficient {key[1]} balance: {balance} < {amount}")
        self._balances[key] = balance - amount

    def balance(self, token: str, chain_id: int = 1) -> Decimal:
        return self._balances.get((chain_id, self.executor.normalize_token(token)), Decimal(0))

    async def apply_trade(self, quote: QuoteResult, result: ExecutionResult) -> None:
        if not result.success or result.output_amount is None:
            return
        request = quote.request
        self.withdraw(request.from_token, request.amount, request.from_chain_id)
        self.deposit(request.to_token, result.output_amount, request.to_chain_id)
