"""
Data contracts for sim-core: MarketBar, TradeSignal, OrderRequest,
ExecutionReport, Position, PortfolioSnapshot, AgentConfig, AgentContext.

No I/O; these are plain frozen dataclasses. The paper exchange is the only
component that creates Position / PortfolioSnapshot values; everyone else
receives copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Intent(str, Enum):
    """Directional intent of a trade signal."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class Side(str, Enum):
    """Order side."""

    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MarketBar:
    """One OHLCV sample for a symbol (ticker pair, e.g. "BTC/USD")."""

    symbol: str
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    def is_consistent(self) -> bool:
        """True if open and close both lie within [low, high]."""
        return self.low <= self.open <= self.high and self.low <= self.close <= self.high


# ---------------------------------------------------------------------------
# Signals and orders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TradeSignal:
    """A strategy's proposed trade. size_pct is a fraction of portfolio equity."""

    agent_id: str
    symbol: str
    confidence: float  # 0..1
    intent: Intent
    size_pct: float
    issued_at: datetime
    note: str | None = None


@dataclass(frozen=True)
class OrderRequest:
    symbol: str
    side: Side
    size: float  # base-asset quantity, > 0
    agent_id: str
    order_type: OrderType = OrderType.MARKET
    limit_price: float | None = None

    @property
    def signed_size(self) -> float:
        return self.size if self.side == Side.BUY else -self.size

    def notional(self, price: float) -> float:
        return price * self.size


@dataclass(frozen=True)
class ExecutionReport:
    """A filled order: the request, slipped price, fee charged, fill time."""

    request: OrderRequest
    executed_price: float
    fee: float
    timestamp: datetime

    @property
    def gross_notional(self) -> float:
        return self.executed_price * self.request.size


# ---------------------------------------------------------------------------
# Portfolio state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Position:
    """Signed position (positive long, negative short) with weighted-average entry."""

    symbol: str
    size: float
    avg_entry: float
    unrealized_pnl: float = 0.0

    @property
    def is_flat(self) -> bool:
        return self.size == 0

    @property
    def is_long(self) -> bool:
        return self.size > 0

    @property
    def is_short(self) -> bool:
        return self.size < 0

    @property
    def notional(self) -> float:
        return self.avg_entry * self.size

    @property
    def value(self) -> float:
        """Contribution to equity: cost-basis notional plus unrealized P&L."""
        return self.notional + self.unrealized_pnl


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Point-in-time copy of exchange state.

    Invariant: equity == cash + sum(p.avg_entry * p.size + p.unrealized_pnl).
    """

    equity: float
    cash: float
    positions: Mapping[str, Position]
    timestamp: datetime

    def __post_init__(self) -> None:
        # Shared by every agent and the risk gate within a tick; keep it read-only.
        object.__setattr__(self, "positions", MappingProxyType(dict(self.positions)))

    def position(self, symbol: str) -> Position | None:
        return self.positions.get(symbol)

    def active_positions(self) -> list[Position]:
        return [p for p in self.positions.values() if not p.is_flat]

    def gross_exposure(self) -> float:
        return sum(abs(p.notional) for p in self.active_positions())


def compute_equity(cash: float, positions: Mapping[str, Position]) -> float:
    return cash + sum(p.value for p in positions.values())


# ---------------------------------------------------------------------------
# Agent configuration and decision context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AgentConfig:
    id: str
    symbol_universe: tuple[str, ...] = field(default_factory=tuple)
    max_position_pct: float = 0.2


@dataclass(frozen=True)
class AgentContext:
    """What an agent sees when deciding: the tick's portfolio snapshot and the bar."""

    portfolio: PortfolioSnapshot
    last_bar: MarketBar | None = None
