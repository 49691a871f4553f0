"""Strategy registry — name to lazily-instantiated strategy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from signal_engine.strategy.base import Strategy

StrategyFactory = Callable[[], "Strategy"]


class StrategyRegistry:
    """Maps names to strategy factories; instances are created on first use.

    Registries are plain values: build one, register into it and hand it to
    the agent. There is no process-wide registry.
    """

    def __init__(self) -> None:
        self._factories: dict[str, StrategyFactory] = {}
        self._instances: dict[str, Strategy] = {}

    def register(
        self,
        factory: StrategyFactory | None = None,
        *,
        name: str | None = None,
        replace: bool = False,
    ) -> Any:
        """Register a strategy class or zero-arg factory.

        Works as a plain call or as a class decorator (``@registry.register``).
        The key defaults to the factory's ``name`` attribute.
        """
        if factory is None:
            return lambda f: self.register(f, name=name, replace=replace)

        key = name or getattr(factory, "name", None)
        if not key:
            label = getattr(factory, "__name__", repr(factory))
            raise ValueError(f"Strategy {label} must define a 'name' attribute")
        if key in self._factories and not replace:
            raise ValueError(f"Duplicate strategy name: {key!r}")

        self._factories[key] = factory
        self._instances.pop(key, None)
        return factory

    def unregister(self, name: str) -> bool:
        self._instances.pop(name, None)
        return self._factories.pop(name, None) is not None

    def get(self, name: str) -> Strategy:
        """Return the strategy registered under *name*, creating it if needed.

        Raises KeyError for unknown names.
        """
        if name not in self._factories:
            raise KeyError(f"Unknown strategy: {name!r} (registered: {self.names()})")
        if name not in self._instances:
            self._instances[name] = self._factories[name]()
        return self._instances[name]

    def has(self, name: str) -> bool:
        return name in self._factories

    def names(self) -> list[str]:
        return sorted(self._factories)

    def list(self) -> list[dict[str, str]]:
        """Name, description and version of every registered strategy."""
        out = []
        for name in self.names():
            strategy = self.get(name)
            out.append({
                "name": name,
                "description": strategy.description,
                "version": strategy.version,
            })
        return out

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)
