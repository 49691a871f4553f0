"""Provider aggregation — concurrent fetch with per-provider timeout and isolation."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from signal_engine.config.schema import ProvidersConfig
from signal_engine.models import PriceBar, RawSentimentItem
from signal_engine.providers.base import DataProvider, PriceProvider, SentimentProvider
from signal_engine.providers.errors import ProviderError, ProviderTimeoutError

log = structlog.get_logger("providers")


@dataclass
class ProviderResult:
    provider: str
    available: bool
    item_count: int = 0
    error: str | None = None
    latency_ms: float = 0.0


@dataclass
class FetchResult:
    symbol: str
    items: list[Any] = field(default_factory=list)
    results: list[ProviderResult] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def failures(self) -> list[ProviderResult]:
        return [r for r in self.results if not r.available]


class ProviderAggregator:
    """Fans a fetch out to every registered provider.

    A provider that raises or exceeds ``timeout_s`` contributes nothing.
    With ``continue_on_error`` off, the first failure is raised as a
    ProviderError instead.
    """

    def __init__(
        self,
        providers: list[DataProvider] | None = None,
        config: ProvidersConfig | None = None,
    ) -> None:
        self.config = config or ProvidersConfig()
        self._providers: dict[str, DataProvider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: DataProvider) -> None:
        if provider.name in self._providers:
            raise ValueError(f"Duplicate provider name: {provider.name!r}")
        self._providers[provider.name] = provider

    def unregister(self, name: str) -> bool:
        return self._providers.pop(name, None) is not None

    @property
    def providers(self) -> list[DataProvider]:
        return list(self._providers.values())

    async def fetch(self, symbol: str) -> FetchResult:
        outcomes = await asyncio.gather(
            *(self._fetch_one(p, symbol) for p in self._providers.values())
        )
        result = FetchResult(symbol=symbol)
        for items, provider_result in outcomes:
            result.items.extend(items)
            result.results.append(provider_result)
        result.items = self.combine(result.items)
        return result

    def combine(self, items: list[Any]) -> list[Any]:
        return items

    async def _fetch_one(
        self,
        provider: DataProvider,
        symbol: str,
    ) -> tuple[list[Any], ProviderResult]:
        started = time.monotonic()
        error: ProviderError | None = None
        items: list[Any] = []
        try:
            items = list(await asyncio.wait_for(provider.fetch(symbol), self.config.timeout_s))
        except asyncio.TimeoutError:
            error = ProviderTimeoutError(provider.name, self.config.timeout_s)
        except ProviderError as exc:
            error = exc
        except Exception as exc:
            error = ProviderError(provider.name, str(exc) or type(exc).__name__)

        latency_ms = (time.monotonic() - started) * 1000
        if error is not None:
            if not self.config.continue_on_error:
                raise error
            log.warning("provider_failed", provider=provider.name, symbol=symbol, error=str(error))
            return [], ProviderResult(
                provider=provider.name,
                available=False,
                error=str(error),
                latency_ms=latency_ms,
            )

        log.debug("provider_fetched", provider=provider.name, symbol=symbol, items=len(items))
        return items, ProviderResult(
            provider=provider.name,
            available=True,
            item_count=len(items),
            latency_ms=latency_ms,
        )

    async def health_status(self) -> dict[str, bool]:
        async def check_one(provider: DataProvider) -> bool:
            try:
                return bool(await asyncio.wait_for(provider.health_check(), self.config.timeout_s))
            except Exception:
                log.warning("provider_health_check_failed", provider=provider.name, exc_info=True)
                return False

        names = list(self._providers)
        statuses = await asyncio.gather(*(check_one(self._providers[n]) for n in names))
        return dict(zip(names, statuses))


class SentimentAggregator(ProviderAggregator):
    """Merges items from every sentiment provider, newest first."""

    def __init__(
        self,
        providers: list[SentimentProvider] | None = None,
        config: ProvidersConfig | None = None,
    ) -> None:
        super().__init__(providers, config)

    def combine(self, items: list[RawSentimentItem]) -> list[RawSentimentItem]:
        return sorted(items, key=lambda i: i.timestamp, reverse=True)


class PriceAggregator(ProviderAggregator):
    """Bars from the first provider (in registration order) that returned any."""

    def __init__(
        self,
        providers: list[PriceProvider] | None = None,
        config: ProvidersConfig | None = None,
    ) -> None:
        super().__init__(providers, config)

    async def fetch(self, symbol: str) -> FetchResult:
        outcomes = await asyncio.gather(
            *(self._fetch_one(p, symbol) for p in self._providers.values())
        )
        result = FetchResult(symbol=symbol)
        for bars, provider_result in outcomes:
            result.results.append(provider_result)
            if bars and not result.items:
                result.items = sorted(bars, key=lambda b: b.timestamp)
        return result


