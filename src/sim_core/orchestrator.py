"""
Orchestrator: chains Mark -> Agents -> Risk -> Exchange -> Log for each bar.

Single entry point for processing one bar. Runs to completion before the
next bar is handled. All agents of a tick decide against the same snapshot,
read before the tick's mark-to-market, so they never see each other's fills
from that tick.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Callable, Sequence

from execution.paper_exchange import PaperExchange
from sim_core.agents.base import BaseAgent
from sim_core.contracts import (
    AgentContext,
    ExecutionReport,
    Intent,
    MarketBar,
    OrderRequest,
    OrderType,
    PortfolioSnapshot,
    Side,
    TradeSignal,
)
from sim_core.risk_manager import RiskManager

if TYPE_CHECKING:
    from data.bar_feed import BarFeed

logger = logging.getLogger("sim.orchestrator")

EventCallback = Callable[[str, dict], None]


class Orchestrator:
    """
    Owns the agent list and the execution log; the exchange owns portfolio state.

    Parameters
    ----------
    agents:
        Strategies, consulted in this order on every bar.
    exchange:
        The paper exchange (single owner of cash and positions).
    risk_manager:
        Signal gate. Default limits if None.
    default_order_size:
        Minimum order quantity; always applied as a floor.
    max_log_size:
        Keep only the most recent N executions. Unbounded if None.
    event_callback:
        Optional callback for journaling: ("signal" | "rejected" | "execution", payload).
    """

    def __init__(
        self,
        agents: Sequence[BaseAgent],
        exchange: PaperExchange,
        *,
        risk_manager: RiskManager | None = None,
        default_order_size: float = 0.01,
        max_log_size: int | None = None,
        event_callback: EventCallback | None = None,
    ) -> None:
        if not agents:
            raise ValueError("Orchestrator requires at least one agent")
        ids = [a.id for a in agents]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate agent ids: {', '.join(duplicates)}")
        if default_order_size <= 0:
            raise ValueError(f"default_order_size must be positive, got {default_order_size}")
        if max_log_size is not None and max_log_size <= 0:
            raise ValueError(f"max_log_size must be positive, got {max_log_size}")

        self._agents = list(agents)
        self._exchange = exchange
        self._risk = risk_manager or RiskManager()
        self._default_order_size = default_order_size
        self._executions: deque[ExecutionReport] = deque(maxlen=max_log_size)
        self._executions_total = 0
        self._callback = event_callback

    @property
    def agents(self) -> list[BaseAgent]:
        return list(self._agents)

    @property
    def portfolio(self) -> PortfolioSnapshot:
        return self._exchange.snapshot

    @property
    def execution_log(self) -> list[ExecutionReport]:
        return list(self._executions)

    @property
    def executions_total(self) -> int:
        return self._executions_total

    def subscribe_to(self, feed: BarFeed) -> None:
        feed.subscribe(self.handle_bar)

    def _emit(self, event_type: str, payload: dict) -> None:
        if self._callback:
            self._callback(event_type, payload)

    def handle_bar(self, bar: MarketBar) -> list[ExecutionReport]:
        """Process one bar through every agent. Returns this tick's executions."""
        snapshot = self._exchange.snapshot
        self._exchange.mark_to_market(bar.symbol, bar.close)

        tick_executions: list[ExecutionReport] = []
        for agent in self._agents:
            context = AgentContext(portfolio=snapshot, last_bar=bar)
            signal = agent.on_bar(bar, context)
            if signal is None:
                continue
            self._emit("signal", {"signal": signal})

            decision = self._risk.evaluate_signal(signal, snapshot)
            if not decision.approved:
                self._emit("rejected", {"signal": signal, "reason": decision.reason})
                continue

            order = self._signal_to_order(signal, bar.close)
            execution = self._exchange.process_order(order, bar.close)
            reconciled = self._risk.apply_execution(execution, self._exchange.snapshot)
            stop = self._risk.stop_loss_level(order.symbol, reconciled)

            self._executions.append(execution)
            self._executions_total += 1
            tick_executions.append(execution)
            self._emit("execution", {"execution": execution, "stop_level": stop})

        if tick_executions:
            logger.debug("%s %s: %d execution(s)", bar.symbol, bar.timestamp.isoformat(), len(tick_executions))
        return tick_executions

    def _signal_to_order(self, signal: TradeSignal, mark_price: float) -> OrderRequest:
        side = Side.BUY if signal.intent == Intent.BUY else Side.SELL
        notional = signal.size_pct * self._exchange.snapshot.equity
        size = max(notional / mark_price, self._default_order_size)
        return OrderRequest(
            symbol=signal.symbol,
            side=side,
            size=size,
            agent_id=signal.agent_id,
            order_type=OrderType.MARKET,
        )
