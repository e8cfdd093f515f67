"""
Strategy contract shared by every agent.

An agent consumes one bar plus its decision context and optionally returns a
TradeSignal. Rolling-window state is private to the agent and only mutated
inside on_bar.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Iterator

from sim_core.contracts import AgentConfig, AgentContext, MarketBar, TradeSignal

DEFAULT_MAX_POSITION_PCT = 0.2


class RollingWindow:
    """Fixed-capacity FIFO of floats; the oldest sample is evicted on overflow."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"Window capacity must be positive, got {capacity}")
        self._values: deque[float] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._values.maxlen or 0

    def push(self, value: float) -> None:
        self._values.append(value)

    def is_full(self) -> bool:
        return len(self._values) == self.capacity

    def mean(self) -> float:
        return sum(self._values) / len(self._values)

    def max(self) -> float:
        return max(self._values)

    def min(self) -> float:
        return min(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[float]:
        return iter(self._values)


class BaseAgent(ABC):
    """One level of polymorphism: concrete strategies implement on_bar."""

    def __init__(self, config: AgentConfig) -> None:
        if not config.id:
            raise ValueError("Agent id must be a non-empty string")
        if not 0 < config.max_position_pct <= 1:
            raise ValueError(
                f"max_position_pct must be in (0, 1], got {config.max_position_pct} for agent {config.id!r}"
            )
        self._config = config
        self.last_signal: TradeSignal | None = None

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def symbol_universe(self) -> tuple[str, ...]:
        return self._config.symbol_universe

    def trades(self, symbol: str) -> bool:
        return symbol in self._config.symbol_universe

    @abstractmethod
    def on_bar(self, bar: MarketBar, context: AgentContext) -> TradeSignal | None:
        """Return a signal for this bar, or None."""

    def clamp_size_pct(self, size_pct: float) -> float:
        return min(max(size_pct, 0.0), self._config.max_position_pct)
