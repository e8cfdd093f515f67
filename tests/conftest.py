"""Pytest fixtures: bars, snapshots and a fixed clock for deterministic tests."""

from datetime import datetime, timedelta, timezone

import pytest

from execution.paper_exchange import PaperExchange
from sim_core.contracts import AgentConfig, AgentContext, MarketBar, PortfolioSnapshot, Position, compute_equity

TS = datetime(2026, 2, 17, 14, 30, tzinfo=timezone.utc)


def make_bar(
    close: float,
    *,
    symbol: str = "BTC/USD",
    high: float | None = None,
    low: float | None = None,
    open_: float | None = None,
    i: int = 0,
) -> MarketBar:
    open_ = close if open_ is None else open_
    return MarketBar(
        symbol=symbol,
        timestamp=TS + timedelta(seconds=2 * i),
        open=open_,
        high=max(open_, close) if high is None else high,
        low=min(open_, close) if low is None else low,
        close=close,
        volume=500.0,
    )


def make_snapshot(cash: float = 100_000.0, *positions: Position) -> PortfolioSnapshot:
    by_symbol = {p.symbol: p for p in positions}
    return PortfolioSnapshot(
        equity=compute_equity(cash, by_symbol),
        cash=cash,
        positions=by_symbol,
        timestamp=TS,
    )


def make_context(snapshot: PortfolioSnapshot | None = None, bar: MarketBar | None = None) -> AgentContext:
    return AgentContext(portfolio=snapshot or make_snapshot(), last_bar=bar)


@pytest.fixture
def symbol() -> str:
    return "BTC/USD"


@pytest.fixture
def agent_config(symbol: str) -> AgentConfig:
    return AgentConfig(id="agent-1", symbol_universe=(symbol,), max_position_pct=0.2)


@pytest.fixture
def clock():
    return lambda: TS


@pytest.fixture
def exchange(clock) -> PaperExchange:
    return PaperExchange(100_000.0, fee_bps=5.0, slippage_bps=3.0, clock=clock)
