"""
Risk Manager: TradeSignal + PortfolioSnapshot -> approve / reject.

Stateless per call. This is the final gate before the paper exchange.

Responsibilities:
    - Hard rejects: hold intent, max concurrent positions,
      single-position exposure, gross exposure
    - Advisory stop-loss levels (not acted on automatically)
    - Post-execution reconciliation view of a snapshot
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from sim_core.contracts import (
    ExecutionReport,
    Intent,
    PortfolioSnapshot,
    TradeSignal,
    compute_equity,
)

logger = logging.getLogger("sim.risk")

CONFIDENCE_FLOOR = 0.1
LONG_STOP_FACTOR = 0.95
SHORT_STOP_FACTOR = 1.05


@dataclass(frozen=True)
class RiskLimits:
    max_gross_exposure_pct: float = 1.5
    max_single_position_pct: float = 0.25
    max_concurrent_positions: int = 10


@dataclass(frozen=True)
class RiskDecision:
    approved: bool
    reason: str = ""


class RiskManager:
    def __init__(self, config: RiskLimits | None = None) -> None:
        self._limits = config or RiskLimits()
        if self._limits.max_concurrent_positions <= 0:
            raise ValueError("max_concurrent_positions must be positive")
        if self._limits.max_single_position_pct <= 0 or self._limits.max_gross_exposure_pct <= 0:
            raise ValueError("Exposure limits must be positive")

    @property
    def limits(self) -> RiskLimits:
        return self._limits

    def evaluate_signal(self, signal: TradeSignal, snapshot: PortfolioSnapshot) -> RiskDecision:
        """Run every gate in order; the first failing gate names the rejection."""
        if signal.intent == Intent.HOLD:
            return RiskDecision(False, "hold intent")

        active = snapshot.active_positions()
        if len(active) >= self._limits.max_concurrent_positions:
            return RiskDecision(False, "max concurrent positions")

        if snapshot.equity <= 0:
            return RiskDecision(False, "non-positive equity")

        # A zero confidence falls back to the floor rather than sizing to nothing.
        confidence = signal.confidence or CONFIDENCE_FLOOR
        requested_exposure = snapshot.equity * signal.size_pct * confidence
        single_limit = snapshot.equity * self._limits.max_single_position_pct
        if requested_exposure > single_limit:
            return RiskDecision(False, "single position limit")

        if snapshot.gross_exposure() / snapshot.equity > self._limits.max_gross_exposure_pct:
            return RiskDecision(False, "gross exposure limit")

        return RiskDecision(True)

    def approve_signal(self, signal: TradeSignal, snapshot: PortfolioSnapshot) -> bool:
        decision = self.evaluate_signal(signal, snapshot)
        if not decision.approved:
            logger.debug(
                "Rejected %s %s from %s: %s",
                signal.intent.value, signal.symbol, signal.agent_id, decision.reason,
            )
        return decision.approved

    def apply_execution(self, report: ExecutionReport, snapshot: PortfolioSnapshot) -> PortfolioSnapshot:
        """Return a reconciled copy with the executed symbol's unrealized P&L cleared.

        The input snapshot is left untouched.
        """
        positions = dict(snapshot.positions)
        existing = positions.get(report.request.symbol)
        if existing is not None:
            positions[report.request.symbol] = replace(existing, unrealized_pnl=0.0)
        return replace(
            snapshot,
            positions=positions,
            equity=compute_equity(snapshot.cash, positions),
        )

    def stop_loss_level(self, symbol: str, snapshot: PortfolioSnapshot) -> float | None:
        """Advisory stop: 5% below entry for longs, 5% above for shorts. None when flat."""
        pos = snapshot.position(symbol)
        if pos is None or pos.is_flat:
            return None
        if pos.is_long:
            return pos.avg_entry * LONG_STOP_FACTOR
        return pos.avg_entry * SHORT_STOP_FACTOR
