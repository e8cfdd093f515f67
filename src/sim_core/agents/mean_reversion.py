"""
Mean-reversion agent: fade deviations of the close from its trailing average.

    deviation  = (close - avg) / avg          over the last `window_size` closes
    |deviation| < 0.002                       -> no signal (noise band)
    intent     = buy below average, sell above
    confidence = min(|deviation| * 50, 1)
    size_pct   = clamp(confidence * 0.1)
"""

from __future__ import annotations

from sim_core.agents.base import BaseAgent, RollingWindow
from sim_core.contracts import AgentConfig, AgentContext, Intent, MarketBar, TradeSignal

DEFAULT_WINDOW_SIZE = 20
NOISE_BAND = 0.002
CONFIDENCE_SCALE = 50.0
BASE_SIZE_PCT = 0.1


class MeanReversionAgent(BaseAgent):
    def __init__(self, config: AgentConfig, *, window_size: int = DEFAULT_WINDOW_SIZE) -> None:
        super().__init__(config)
        self._closes = RollingWindow(window_size)

    @property
    def window_size(self) -> int:
        return self._closes.capacity

    def on_bar(self, bar: MarketBar, context: AgentContext) -> TradeSignal | None:
        if not self.trades(bar.symbol):
            return None

        self._closes.push(bar.close)
        if not self._closes.is_full():
            return None

        avg = self._closes.mean()
        deviation = (bar.close - avg) / avg
        if abs(deviation) < NOISE_BAND:
            return None

        intent = Intent.BUY if deviation < 0 else Intent.SELL
        confidence = min(abs(deviation) * CONFIDENCE_SCALE, 1.0)
        self.last_signal = TradeSignal(
            agent_id=self.id,
            symbol=bar.symbol,
            confidence=confidence,
            intent=intent,
            size_pct=self.clamp_size_pct(confidence * BASE_SIZE_PCT),
            issued_at=bar.timestamp,
            note=f"Mean reversion deviation {deviation:.4f}",
        )
        return self.last_signal
