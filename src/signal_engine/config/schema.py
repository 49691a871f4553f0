"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class SentimentConfig(BaseModel):
    recency_decay_hours: float = 24
    negation_enabled: bool = True
    min_data_points: int = 3
    # Merged over the built-in source credibility table
    source_weights: dict[str, float] = Field(default_factory=dict)
    extra_bullish_keywords: list[str] = Field(default_factory=list)
    extra_bearish_keywords: list[str] = Field(default_factory=list)


class MomentumConfig(BaseModel):
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    min_bars: int = 30


class AggregationConfig(BaseModel):
    sentiment_weight: float = 0.6
    momentum_weight: float = 0.4
    min_confidence_threshold: float = 0.3
    bullish_threshold: float = 40
    bearish_threshold: float = -40
    strong_multiplier: float = 1.5


class StrategyConfig(BaseModel):
    name: str = "sentiment-momentum"
    bullish_threshold: float = 40
    bearish_threshold: float = -40
    min_confidence: float = 0.5
    sentiment_weight: float = 0.6
    momentum_weight: float = 0.4
    target_allocations: dict[str, float] = Field(
        default_factory=lambda: {"ETH": 0.5, "USDC": 0.5},
    )
    # Total drift (0-1) before the rebalance strategy trades
    rebalance_threshold: float = 0.1
    min_trade_usd: float = 10
    max_position_percent: float = 25
    risk_asset: str = "ETH"
    stable_asset: str = "USDC"
    params: dict[str, Any] = Field(default_factory=dict)


class RiskConfig(BaseModel):
    max_position_size_usd: float = 1000
    max_position_percent: float = 25
    max_drawdown_percent: float = 10
    max_trades_per_hour: int = 5
    confidence_scaling: bool = True
    min_confidence_to_trade: float = 0.5
    daily_loss_limit_percent: float = 5
    # Quarter-Kelly
    kelly_fraction: float = 0.25


class ProvidersConfig(BaseModel):
    timeout_s: float = 10
    continue_on_error: bool = True


class ExecutionConfig(BaseModel):
    mode: Literal["demo", "live"] = "demo"
    auto_execute: bool = False
    default_chain_id: int = 1
    available_chains: list[int] = Field(default_factory=lambda: [1, 8453, 42161])
    wallet_address: str = "0x0000000000000000000000000000000000000000"
    simulation_delay_s: float = 0
    # Upper bound on one quote or execution call
    timeout_s: float = 30
    # Opening simulated balances in demo mode
    demo_balances: dict[str, float] = Field(default_factory=lambda: {"USDC": 5000, "ETH": 2})


class LearningConfig(BaseModel):
    enabled: bool = True
    evaluation_windows_h: list[int] = Field(default_factory=lambda: [1, 4, 24])


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class AppConfig(BaseModel):
    symbols: list[str] = Field(default_factory=lambda: ["ETH", "BTC", "SOL"])
    polling_interval_s: float = 60
    max_iterations: int | None = None
    sentiment: SentimentConfig = Field(default_factory=SentimentConfig)
    momentum: MomentumConfig = Field(default_factory=MomentumConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    learning: LearningConfig = Field(default_factory=LearningConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
