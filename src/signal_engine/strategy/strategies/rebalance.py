"""Rebalance strategy — trade the most overweight holding back toward target allocations."""

from __future__ import annotations

from typing import Any

from signal_engine.config.schema import StrategyConfig
from signal_engine.models import Holding, NoTrade, TradeIntent
from signal_engine.strategy.base import Strategy, StrategyContext

# Mechanical trade, not a market call
REBALANCE_CONFIDENCE = 0.9
REBALANCE_SLIPPAGE = 0.01


def _allocation_key(token: str, targets: dict[str, float]) -> str:
    """Target a holding counts toward; wrapped tokens (WETH) count as their base."""
    keys = {t.upper(): t for t in targets}
    upper = token.upper()
    if upper in keys:
        return keys[upper]
    if upper.startswith("W") and upper[1:] in keys:
        return keys[upper[1:]]
    return token


def allocation_shares(
    holdings: list[Holding],
    targets: dict[str, float],
    total_value_usd: float,
) -> dict[str, float]:
    """Portfolio share (0-1) per allocation key, summed across chains."""
    shares = {token: 0.0 for token in targets}
    if total_value_usd <= 0:
        return shares
    for holding in holdings:
        key = _allocation_key(holding.token, targets)
        shares[key] = shares.get(key, 0.0) + holding.value_usd / total_value_usd
    return shares


def portfolio_drift(shares: dict[str, float], targets: dict[str, float]) -> float:
    """Half the summed gap between current and target shares.

    Every misplaced dollar is overweight in one token and underweight in
    another, so the plain sum counts it twice.
    """
    return sum(abs(shares.get(token, 0.0) - target) for token, target in targets.items()) / 2


def select_best_chain(holdings: list[Holding], chains: list[int], default: int) -> int:
    """Chain among *chains* holding the most value, else *default*."""
    values: dict[int, float] = {}
    for holding in holdings:
        if holding.chain_id in chains and holding.value_usd > 0:
            values[holding.chain_id] = values.get(holding.chain_id, 0.0) + holding.value_usd
    if not values:
        return default
    return max(values, key=values.__getitem__)


class Rebalance(Strategy):
    """Sell the most overweight token into the most underweight one.

    Trades only once total drift exceeds ``rebalance_threshold``. The trade
    size is the smaller of the two gaps, capped by ``max_position_percent``,
    and runs on the available chain holding most of the overweight token.
    """

    name = "rebalance"
    description = "Keeps the portfolio near its target allocations"
    version = "1.0.0"
    docs = {
        "thesis": "A fixed allocation sells strength and buys weakness mechanically, so drift is corrected regardless of sentiment.",
        "data": "Current holdings across chains, target allocations and the list of chains the executor can trade on.",
        "risk": "Rebalancing into a trending market repeatedly sells the winner. The drift threshold and minimum trade size keep churn down.",
    }

    def evaluate(self, context: StrategyContext) -> TradeIntent | NoTrade:
        cfg = context.config
        targets = cfg.target_allocations
        total = context.total_value_usd

        if not targets:
            return NoTrade(reason="no target allocations configured")
        if total < cfg.min_trade_usd:
            return NoTrade(reason=f"portfolio value ${total:.2f} below minimum trade ${cfg.min_trade_usd:.2f}")

        shares = allocation_shares(context.holdings, targets, total)
        drift = portfolio_drift(shares, targets)
        if drift <= cfg.rebalance_threshold:
            return NoTrade(
                reason=f"drift {drift * 100:.1f}% within {cfg.rebalance_threshold * 100:.1f}% threshold",
            )

        over_token, overweight = max(
            ((token, share - targets.get(token, 0.0)) for token, share in shares.items()),
            key=lambda pair: pair[1],
        )
        under_token, underweight = max(
            ((token, target - shares.get(token, 0.0)) for token, target in targets.items()),
            key=lambda pair: pair[1],
        )
        if overweight <= 0 or underweight <= 0:
            return NoTrade(reason="no overweight position to rebalance")

        size = min(min(overweight, underweight) * 100, cfg.max_position_percent)
        if size / 100 * total < cfg.min_trade_usd:
            return NoTrade(reason=f"rebalance trade ${size / 100 * total:.2f} below minimum ${cfg.min_trade_usd:.2f}")

        source = [h for h in context.holdings if _allocation_key(h.token, targets) == over_token]
        chain = select_best_chain(source, context.available_chains, context.default_chain_id)
        on_chain = [h for h in source if h.chain_id == chain]
        if not on_chain:
            return NoTrade(reason=f"no {over_token} held on chains {context.available_chains}")
        from_holding = max(on_chain, key=lambda h: h.value_usd)

        action = "buy" if over_token.upper() == cfg.stable_asset.upper() else "sell"
        return TradeIntent(
            action=action,
            symbol=under_token if action == "buy" else over_token,
            from_token=from_holding.token_address or from_holding.token,
            to_token=self._resolve(under_token, chain, context.holdings),
            chain_id=chain,
            suggested_size_percent=round(size, 2),
            confidence=REBALANCE_CONFIDENCE,
            reason=(
                f"Portfolio drift {drift * 100:.1f}% exceeds threshold - "
                f"rebalancing {over_token} to {under_token}"
            ),
            signals=[f"Drift: {drift * 100:.1f}%"] + [
                f"{token}: {shares.get(token, 0.0) * 100:.1f}% (target {target * 100:.0f}%)"
                for token, target in targets.items()
            ],
            urgency="low",
            max_slippage=REBALANCE_SLIPPAGE,
        )

    @staticmethod
    def _resolve(token: str, chain: int, holdings: list[Holding]) -> str:
        for holding in holdings:
            if holding.chain_id == chain and holding.matches(token) and holding.token_address:
                return holding.token_address
        return token

    def validate_config(self, config: StrategyConfig) -> bool:
        targets = config.target_allocations
        if not targets:
            return False
        if any(not 0 <= share <= 1 for share in targets.values()):
            return False
        if sum(targets.values()) > 1 + 1e-9:
            return False
        if not 0 < config.rebalance_threshold < 1:
            return False
        if not 0 < config.max_position_percent <= 100:
            return False
        return True

    def get_default_config(self) -> dict[str, Any]:
        defaults = StrategyConfig()
        return {
            "target_allocations": dict(defaults.target_allocations),
            "rebalance_threshold": defaults.rebalance_threshold,
            "min_trade_usd": defaults.min_trade_usd,
            "max_position_percent": defaults.max_position_percent,
        }
