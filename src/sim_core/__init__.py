"""
sim-core: paper-trading simulation core.

Strategy agents emit signals, the risk manager gates them, and the
orchestrator routes approved signals to the paper exchange. No I/O.
"""

from sim_core.contracts import (
    AgentConfig,
    AgentContext,
    ExecutionReport,
    Intent,
    MarketBar,
    OrderRequest,
    OrderType,
    PortfolioSnapshot,
    Position,
    Side,
    TradeSignal,
)

__all__ = [
    "AgentConfig",
    "AgentContext",
    "ExecutionReport",
    "Intent",
    "MarketBar",
    "OrderRequest",
    "OrderType",
    "PortfolioSnapshot",
    "Position",
    "Side",
    "TradeSignal",
]
