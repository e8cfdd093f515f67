"""
Paper execution: OrderRequest -> ExecutionReport, single-writer cash/position state.
In-memory only. No live capital.
"""

from execution.paper_exchange import PaperExchange

__all__ = ["PaperExchange"]
