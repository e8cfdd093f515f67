"""
Human-readable portfolio and execution output for the terminal.
"""

from __future__ import annotations

from typing import Sequence

from sim_core.contracts import ExecutionReport, PortfolioSnapshot


def format_portfolio(snapshot: PortfolioSnapshot, starting_cash: float | None = None) -> str:
    """Format equity, cash and open positions."""
    lines = [
        f"=== Portfolio @ {snapshot.timestamp.isoformat()} ===",
        f"Equity       : ${snapshot.equity:,.2f}",
        f"Cash         : ${snapshot.cash:,.2f}",
    ]
    if starting_cash:
        ret = (snapshot.equity - starting_cash) / starting_cash * 100
        lines.append(f"Return       : {ret:+.2f}%")
    active = snapshot.active_positions()
    if active:
        lines.append(f"Positions    : {len(active)} open, gross exposure ${snapshot.gross_exposure():,.2f}")
        for pos in sorted(active, key=lambda p: p.symbol):
            side = "long" if pos.is_long else "short"
            lines.append(
                f"  {pos.symbol:10s} {side:5s} {abs(pos.size):.6f} @ avg {pos.avg_entry:.4f}"
                f"  uPnL ${pos.unrealized_pnl:+,.2f}"
            )
    else:
        lines.append("Positions    : flat (no open positions)")
    lines.append("===")
    return "\n".join(lines)


def format_execution(report: ExecutionReport) -> str:
    req = report.request
    return (
        f"  {report.timestamp.isoformat()}  {req.agent_id:20s} {req.side.value:4s} "
        f"{req.size:.6f} {req.symbol} @ {report.executed_price:.4f}  fee {report.fee:.4f}"
    )


def format_executions(reports: Sequence[ExecutionReport], total: int) -> str:
    if not reports:
        return "No executions."
    lines = [f"Recent executions ({len(reports)} of {total}):"]
    lines.extend(format_execution(r) for r in reports)
    return "\n".join(lines)
