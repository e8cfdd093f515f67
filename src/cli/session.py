"""
Simulation session: wire feed, agents, risk, exchange and sinks from config,
then drive it either tick by tick (deterministic) or on the feed's timer.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass

from cli.structured_log import StructuredEventLogger
from config.loader import AppConfig
from data.bar_feed import BarFeed
from execution.paper_exchange import PaperExchange
from journal import JournalWriter
from sim_core.agents import build_agent
from sim_core.contracts import MarketBar
from sim_core.orchestrator import Orchestrator
from sim_core.risk_manager import RiskManager

logger = logging.getLogger("sim.session")


@dataclass
class Session:
    config: AppConfig
    feed: BarFeed
    exchange: PaperExchange
    orchestrator: Orchestrator
    events: StructuredEventLogger
    journal: JournalWriter | None = None


def build_session(
    cfg: AppConfig,
    *,
    seed: int | None = None,
    journal: bool = True,
    events: StructuredEventLogger | None = None,
) -> Session:
    """Build every component from *cfg*. *seed* overrides the feed seed."""
    feed = BarFeed(
        cfg.symbols,
        base_price=cfg.feed.base_price,
        volatility=cfg.feed.volatility,
        seed=seed if seed is not None else cfg.feed.seed,
        queue_size=cfg.feed.queue_size,
    )
    exchange = PaperExchange(
        cfg.exchange.starting_cash,
        fee_bps=cfg.exchange.fee_bps,
        slippage_bps=cfg.exchange.slippage_bps,
    )
    agents = [build_agent(spec, cfg.symbols) for spec in cfg.agents]

    event_log = events or StructuredEventLogger(
        uuid.uuid4().hex[:8],
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    writer = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout) if journal else None

    def on_event(event_type: str, payload: dict) -> None:
        event_log.record(event_type, payload)
        if writer is not None:
            writer.record(event_type, payload)

    orchestrator = Orchestrator(
        agents,
        exchange,
        risk_manager=RiskManager(cfg.risk),
        default_order_size=cfg.orchestrator.default_order_size,
        max_log_size=cfg.orchestrator.max_log_size,
        event_callback=on_event,
    )
    return Session(cfg, feed, exchange, orchestrator, event_log, writer)


def run_ticks(session: Session, ticks: int) -> None:
    """Drive *ticks* synchronous feed ticks through the orchestrator."""
    feed, orch = session.feed, session.orchestrator
    session.events.feed_started(feed.symbols, None)
    orch.subscribe_to(feed)
    try:
        for _ in range(ticks):
            before = orch.executions_total
            feed.emit_once()
            session.events.tick_complete(feed.ticks, orch.portfolio.equity, orch.executions_total - before)
    finally:
        feed.unsubscribe(orch.handle_bar)
        session.events.shutdown(feed.ticks, orch.executions_total)


def run_live(session: Session, *, interval_seconds: float, duration_seconds: float | None = None) -> None:
    """Run the threaded feed until *duration_seconds* elapse or Ctrl+C."""
    feed, orch = session.feed, session.orchestrator
    last_symbol = feed.symbols[-1]
    seen = {"executions": orch.executions_total}

    def on_bar(bar: MarketBar) -> None:
        orch.handle_bar(bar)
        if bar.symbol == last_symbol:
            total = orch.executions_total
            session.events.tick_complete(feed.ticks, orch.portfolio.equity, total - seen["executions"])
            seen["executions"] = total

    feed.subscribe(on_bar)
    done = threading.Event()
    session.events.feed_started(feed.symbols, interval_seconds)
    feed.start(interval_seconds)
    try:
        done.wait(duration_seconds)
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping feed")
    finally:
        feed.stop()
        feed.unsubscribe(on_bar)
        session.events.shutdown(feed.ticks, orch.executions_total)
