"""
Paper exchange: single-writer cash/position state, slippage and fees.

In-memory only. Every order fills immediately at the supplied mark price
adjusted by a fixed basis-point slippage against the taker.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from sim_core.contracts import (
    ExecutionReport,
    OrderRequest,
    PortfolioSnapshot,
    Position,
    Side,
    compute_equity,
)

logger = logging.getLogger("sim.exchange")

BPS = 10_000

# Relative tolerance below which a post-fill size is treated as exactly flat.
FLAT_TOLERANCE = 1e-12


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PaperExchange:
    """
    Convert OrderRequests to fills; track cash and weighted-average positions.
    Single writer: only process_order and mark_to_market mutate state.
    """

    def __init__(
        self,
        starting_cash: float,
        *,
        fee_bps: float = 5.0,
        slippage_bps: float = 3.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if starting_cash <= 0:
            raise ValueError(f"starting_cash must be positive, got {starting_cash}")
        if fee_bps < 0 or slippage_bps < 0:
            raise ValueError(f"fee_bps and slippage_bps must be >= 0, got {fee_bps}, {slippage_bps}")
        self._cash = float(starting_cash)
        self._positions: dict[str, Position] = {}
        self._fee_bps = fee_bps
        self._slippage_bps = slippage_bps
        self._clock = clock or _utc_now

    @property
    def cash(self) -> float:
        return self._cash

    @property
    def fee_bps(self) -> float:
        return self._fee_bps

    @property
    def slippage_bps(self) -> float:
        return self._slippage_bps

    def position(self, symbol: str) -> Position | None:
        return self._positions.get(symbol)

    @property
    def snapshot(self) -> PortfolioSnapshot:
        """Copy-out view, recomputed on every access."""
        positions = dict(self._positions)
        return PortfolioSnapshot(
            equity=compute_equity(self._cash, positions),
            cash=self._cash,
            positions=positions,
            timestamp=self._clock(),
        )

    def slipped_price(self, side: Side, mark_price: float) -> float:
        direction = 1 if side == Side.BUY else -1
        return mark_price + mark_price * (self._slippage_bps / BPS) * direction

    def process_order(self, request: OrderRequest, mark_price: float) -> ExecutionReport:
        """Fill *request* at the slipped mark; charge the fee; update cash and position."""
        if request.size <= 0:
            raise ValueError(f"Order size must be positive, got {request.size}")
        if mark_price <= 0:
            raise ValueError(f"Mark price must be positive, got {mark_price}")

        price = self.slipped_price(request.side, mark_price)
        gross_notional = price * request.size
        fee = gross_notional * (self._fee_bps / BPS)

        # Fee always reduces cash, whichever side.
        if request.side == Side.BUY:
            self._cash -= gross_notional + fee
        else:
            self._cash += gross_notional - fee

        self._positions[request.symbol] = self._apply_fill(request.symbol, request.signed_size, price)

        report = ExecutionReport(
            request=request,
            executed_price=price,
            fee=fee,
            timestamp=self._clock(),
        )
        logger.debug(
            "Filled %s %s %.6f @ %.4f fee=%.4f cash=%.2f",
            request.side.value, request.symbol, request.size, price, fee, self._cash,
        )
        return report

    def _apply_fill(self, symbol: str, delta: float, price: float) -> Position:
        existing = self._positions.get(symbol)
        if existing is None:
            return Position(symbol=symbol, size=delta, avg_entry=price)

        old_size = existing.size
        new_size = old_size + delta
        if abs(new_size) <= FLAT_TOLERANCE * max(abs(old_size), abs(delta)):
            new_size = 0.0

        if new_size == 0:
            # Flat: keep the prior basis; it is never reused (see below).
            avg_entry = existing.avg_entry
        elif old_size == 0 or old_size * new_size < 0:
            # Reopening from flat or flipping through zero starts a fresh basis.
            avg_entry = price
        else:
            avg_entry = (existing.avg_entry * old_size + price * delta) / new_size

        # Unrealized P&L is recomputed on the next mark.
        return replace(existing, size=new_size, avg_entry=avg_entry, unrealized_pnl=0.0)

    def mark_to_market(self, symbol: str, price: float) -> None:
        """Recompute unrealized P&L against *price*. No-op without an open position."""
        position = self._positions.get(symbol)
        if position is None:
            return
        self._positions[symbol] = replace(
            position,
            unrealized_pnl=(price - position.avg_entry) * position.size,
        )
