"""Config loader — reads YAML, applies SIGNAL_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from signal_engine.config.schema import AppConfig

# env var -> (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SIGNAL_LOG_LEVEL": ("logging", "level"),
    "SIGNAL_LOG_FORMAT": ("logging", "format"),
    "SIGNAL_STRATEGY": ("strategy", "name"),
    "SIGNAL_EXECUTION_MODE": ("execution", "mode"),
    "SIGNAL_AUTO_EXECUTE": ("execution", "auto_execute"),
    "SIGNAL_SENTIMENT_WEIGHT": ("aggregation", "sentiment_weight"),
    "SIGNAL_MOMENTUM_WEIGHT": ("aggregation", "momentum_weight"),
    "SIGNAL_MAX_POSITION_USD": ("risk", "max_position_size_usd"),
    "SIGNAL_MAX_DRAWDOWN": ("risk", "max_drawdown_percent"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        SIGNAL_LOG_LEVEL         -> logging.level
        SIGNAL_LOG_FORMAT        -> logging.format
        SIGNAL_STRATEGY          -> strategy.name
        SIGNAL_EXECUTION_MODE    -> execution.mode
        SIGNAL_AUTO_EXECUTE      -> execution.auto_execute
        SIGNAL_SENTIMENT_WEIGHT  -> aggregation.sentiment_weight
        SIGNAL_MOMENTUM_WEIGHT   -> aggregation.momentum_weight
        SIGNAL_MAX_POSITION_USD  -> risk.max_position_size_usd
        SIGNAL_MAX_DRAWDOWN      -> risk.max_drawdown_percent

    Values are passed through as strings; pydantic coerces them.
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    for env_var, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data.setdefault(section, {})[key] = value

    return AppConfig.model_validate(data)
