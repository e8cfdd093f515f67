"""
Market data: synthetic OHLCV bar feed published to subscribers.

Depends on sim_core.contracts for MarketBar; no dependency from sim_core back to data.
"""

from data.bar_feed import BarFeed

__all__ = ["BarFeed"]
