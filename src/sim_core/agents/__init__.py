"""
Strategy agents and the name -> class registry used by the config layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sim_core.agents.base import BaseAgent, RollingWindow
from sim_core.agents.mean_reversion import MeanReversionAgent
from sim_core.agents.momentum import MomentumAgent
from sim_core.contracts import AgentConfig

if TYPE_CHECKING:
    from config.loader import AgentSpec

STRATEGIES: dict[str, type[BaseAgent]] = {
    "mean_reversion": MeanReversionAgent,
    "momentum": MomentumAgent,
}


def build_agent(spec: AgentSpec, default_symbols: tuple[str, ...] = ()) -> BaseAgent:
    """Instantiate the strategy named by *spec*. Unknown names raise ValueError.

    An agent without its own symbol list trades *default_symbols*.
    """
    cls = STRATEGIES.get(spec.strategy)
    if cls is None:
        known = ", ".join(sorted(STRATEGIES))
        raise ValueError(f"Unknown strategy {spec.strategy!r} for agent {spec.id!r} (known: {known})")
    config = AgentConfig(
        id=spec.id,
        symbol_universe=tuple(spec.symbols) or tuple(default_symbols),
        max_position_pct=spec.max_position_pct,
    )
    params: dict[str, Any] = dict(spec.params)
    try:
        return cls(config, **params)
    except TypeError as exc:
        raise ValueError(f"Invalid params for agent {spec.id!r}: {exc}") from exc


__all__ = [
    "BaseAgent",
    "MeanReversionAgent",
    "MomentumAgent",
    "RollingWindow",
    "STRATEGIES",
    "build_agent",
]
