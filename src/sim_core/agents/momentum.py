"""
Momentum / breakout agent.

Tracks the trailing `lookback` highs and lows (current bar included). A close
at or above the window's highest high is a breakout (buy unless already long);
a close at or below the lowest low is a breakdown (sell unless already short).
"""

from __future__ import annotations

from sim_core.agents.base import BaseAgent, RollingWindow
from sim_core.contracts import AgentConfig, AgentContext, Intent, MarketBar, TradeSignal

DEFAULT_LOOKBACK = 30
FIXED_CONFIDENCE = 0.7
FIXED_SIZE_PCT = 0.1


class MomentumAgent(BaseAgent):
    def __init__(self, config: AgentConfig, *, lookback: int = DEFAULT_LOOKBACK) -> None:
        super().__init__(config)
        self._highs = RollingWindow(lookback)
        self._lows = RollingWindow(lookback)

    @property
    def lookback(self) -> int:
        return self._highs.capacity

    def on_bar(self, bar: MarketBar, context: AgentContext) -> TradeSignal | None:
        if not self.trades(bar.symbol):
            return None

        self._highs.push(bar.high)
        self._lows.push(bar.low)
        if not (self._highs.is_full() and self._lows.is_full()):
            return None

        breakout_high = self._highs.max()
        breakdown_low = self._lows.min()

        position = context.portfolio.position(bar.symbol)
        is_long = position is not None and position.is_long
        is_short = position is not None and position.is_short

        if bar.close >= breakout_high and not is_long:
            intent, note = Intent.BUY, "Breakout momentum"
        elif bar.close <= breakdown_low and not is_short:
            intent, note = Intent.SELL, "Breakdown momentum"
        else:
            return None

        self.last_signal = TradeSignal(
            agent_id=self.id,
            symbol=bar.symbol,
            confidence=FIXED_CONFIDENCE,
            intent=intent,
            size_pct=self.clamp_size_pct(FIXED_SIZE_PCT),
            issued_at=bar.timestamp,
            note=note,
        )
        return self.last_signal
