"""Tests for the sentiment-momentum strategy."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from signal_engine.config import StrategyConfig
from signal_engine.models import (
    AggregatedSignal,
    Holding,
    MomentumSignal,
    NoTrade,
    SentimentComponent,
    SentimentSignal,
    TradeIntent,
)
from signal_engine.strategy import StrategyContext
from signal_engine.strategy.strategies import BUILTIN_STRATEGIES, SentimentMomentum

NOW = datetime(2025, 6, 15, 12, tzinfo=timezone.utc)
USDC_ADDRESS = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"


def _make_signal(score: float, confidence: float, momentum: bool = True, symbol: str = "ETH") -> AggregatedSignal:
    sentiment = SentimentSignal(
        score=score,
        confidence=confidence,
        label="bullish" if score > 0 else "bearish",
        components={
            "reddit": SentimentComponent(score=score, weight=1, sample_size=4),
            "news": SentimentComponent(),
        },
        timestamp=NOW,
    )
    return AggregatedSignal(
        symbol=symbol,
        sentiment=sentiment,
        momentum=MomentumSignal(
            trend="up", rsi=62.5, price_change_24h=3.2, confidence=0.8, timestamp=NOW,
        ) if momentum else None,
        overall_score=score,
        overall_confidence=confidence,
        recommendation="buy" if score > 0 else "sell",
        timestamp=NOW,
    )


def _make_holdings(usdc: float = 500, eth_usd: float = 250, usdc_address: str = "") -> list[Holding]:
    return [
        Holding(chain_id=1, token="USDC", token_address=usdc_address,
                balance=Decimal(str(usdc)), value_usd=usdc),
        Holding(chain_id=1, token="ETH", balance=Decimal(str(eth_usd / 2500)), value_usd=eth_usd),
    ]


def _make_context(score: float, confidence: float, holdings: list[Holding] | None = None, **config) -> StrategyContext:
    holdings = _make_holdings() if holdings is None else holdings
    return StrategyContext(
        signal=_make_signal(score, confidence, symbol=config.get("risk_asset", "ETH")),
        holdings=holdings,
        total_value_usd=sum(h.value_usd for h in holdings),
        config=StrategyConfig(**config),
    )


class TestSentimentMomentum:
    def test_registered_as_builtin(self):
        assert SentimentMomentum in BUILTIN_STRATEGIES
        assert SentimentMomentum.name == "sentiment-momentum"

    def test_docs(self):
        assert set(SentimentMomentum.docs) == {"thesis", "data", "risk"}
        assert all(SentimentMomentum.docs.values())

    def test_bullish_buy(self):
        intent = SentimentMomentum().evaluate(_make_context(60, 0.85))

        assert isinstance(intent, TradeIntent)
        assert intent.action == "buy"
        assert intent.symbol == "ETH"
        assert intent.from_token == "USDC"
        assert intent.to_token == "ETH"
        # 5 + 20 * (0.85 - 0.5) / 0.5
        assert intent.suggested_size_percent == pytest.approx(19.0)
        assert intent.urgency == "medium"
        assert intent.max_slippage == 0.03
        assert intent.confidence == 0.85
        assert intent.reason.startswith("Strong bullish signal")

    def test_signals_described(self):
        intent = SentimentMomentum().evaluate(_make_context(60, 0.85))
        assert "Reddit: 4 posts" in intent.signals
        assert "RSI: 62.5" in intent.signals
        assert "Trend: up" in intent.signals
        assert not any(s.startswith("News") for s in intent.signals)

    def test_bearish_sell(self):
        holdings = _make_holdings(usdc=250, eth_usd=750)
        intent = SentimentMomentum().evaluate(_make_context(-45, 0.7, holdings))
        assert intent.action == "sell"
        assert intent.from_token == "ETH"
        assert intent.to_token == "USDC"
        assert intent.reason.startswith("Moderate bearish signal")
        assert intent.urgency == "low"
        assert intent.max_slippage == 0.01

    def test_high_urgency(self):
        intent = SentimentMomentum().evaluate(_make_context(80, 0.9))
        assert intent.urgency == "high"
        assert intent.max_slippage == 0.05

    def test_low_confidence_no_trade(self):
        decision = SentimentMomentum().evaluate(_make_context(80, 0.4))
        assert isinstance(decision, NoTrade)
        assert "confidence" in decision.reason

    def test_hold_band_no_trade(self):
        decision = SentimentMomentum().evaluate(_make_context(20, 0.9))
        assert isinstance(decision, NoTrade)
        assert "hold band" in decision.reason

    def test_size_capped_by_max_position(self):
        intent = SentimentMomentum().evaluate(_make_context(90, 1.0))
        assert intent.suggested_size_percent == 25

    def test_size_capped_by_available_balance(self):
        # USDC is 10% of the portfolio -> at most 9%
        holdings = _make_holdings(usdc=100, eth_usd=900)
        intent = SentimentMomentum().evaluate(_make_context(90, 1.0, holdings))
        assert intent.suggested_size_percent == pytest.approx(9.0)

    def test_nothing_to_sell(self):
        holdings = _make_holdings(usdc=1000, eth_usd=0)
        decision = SentimentMomentum().evaluate(_make_context(-80, 0.9, holdings))
        assert isinstance(decision, NoTrade)
        assert "too small" in decision.reason

    def test_empty_portfolio(self):
        decision = SentimentMomentum().evaluate(_make_context(80, 0.9, holdings=[]))
        assert isinstance(decision, NoTrade)

    def test_uses_token_address_when_known(self):
        holdings = _make_holdings(usdc_address=USDC_ADDRESS)
        intent = SentimentMomentum().evaluate(_make_context(60, 0.85, holdings))
        assert intent.from_token == USDC_ADDRESS
        assert intent.to_token == "ETH"

    def test_custom_assets(self):
        holdings = [
            Holding(chain_id=1, token="DAI", balance=Decimal(800), value_usd=800),
            Holding(chain_id=1, token="WBTC", balance=Decimal("0.01"), value_usd=200),
        ]
        context = _make_context(60, 0.85, holdings, risk_asset="WBTC", stable_asset="DAI")
        intent = SentimentMomentum().evaluate(context)
        assert intent.symbol == "WBTC"
        assert (intent.from_token, intent.to_token) == ("DAI", "WBTC")

    def test_other_symbol_no_trade(self):
        context = _make_context(80, 0.9)
        context.signal = _make_signal(80, 0.9, symbol="BTC")
        decision = SentimentMomentum().evaluate(context)
        assert isinstance(decision, NoTrade)
        assert "BTC" in decision.reason

    def test_symbol_match_ignores_case(self):
        context = _make_context(60, 0.85)
        context.signal = _make_signal(60, 0.85, symbol="eth")
        assert isinstance(SentimentMomentum().evaluate(context), TradeIntent)

    def test_chain_from_context(self):
        context = _make_context(60, 0.85)
        context.default_chain_id = 8453
        assert SentimentMomentum().evaluate(context).chain_id == 8453


class TestValidateConfig:
    def test_defaults_valid(self):
        assert SentimentMomentum().validate_config(StrategyConfig())

    @pytest.mark.parametrize("overrides", [
        {"bullish_threshold": 0},
        {"bearish_threshold": 10},
        {"min_confidence": 1.5},
        {"max_position_percent": 0},
        {"max_position_percent": 150},
        {"sentiment_weight": 0, "momentum_weight": 0},
    ])
    def test_invalid(self, overrides):
        assert not SentimentMomentum().validate_config(StrategyConfig(**overrides))

    def test_default_config_keys(self):
        defaults = SentimentMomentum().get_default_config()
        assert defaults["bullish_threshold"] == 40
        assert defaults["max_position_percent"] == 25
