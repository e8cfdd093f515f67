"""
Structured JSON event logger for log aggregation.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators (Grafana Loki, CloudWatch, ELK).

Optional webhook: when configured, trade-level events (signal_emitted,
order_executed, error) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

from sim_core.contracts import ExecutionReport, TradeSignal

logger = logging.getLogger("sim.events")


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        run_id: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._run_id = run_id
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr
        self._ALERT_EVENTS = {
            "signal_emitted",
            "order_executed",
            "error",
        }

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "run": self._run_id,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in self._ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            with urllib.request.urlopen(req, timeout=5):
                pass
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def feed_started(self, symbols: list[str], interval_seconds: float | None) -> dict:
        return self._emit("feed_started", symbols=symbols, interval_seconds=interval_seconds)

    def signal_emitted(self, signal: TradeSignal) -> dict:
        return self._emit(
            "signal_emitted",
            agent=signal.agent_id,
            symbol=signal.symbol,
            intent=signal.intent.value,
            confidence=round(signal.confidence, 4),
            size_pct=round(signal.size_pct, 4),
        )

    def signal_rejected(self, signal: TradeSignal, reason: str) -> dict:
        return self._emit(
            "signal_rejected",
            agent=signal.agent_id,
            symbol=signal.symbol,
            intent=signal.intent.value,
            reason=reason,
        )

    def order_executed(self, report: ExecutionReport, stop_level: float | None) -> dict:
        return self._emit(
            "order_executed",
            agent=report.request.agent_id,
            symbol=report.request.symbol,
            side=report.request.side.value,
            size=report.request.size,
            price=report.executed_price,
            fee=report.fee,
            stop=stop_level,
        )

    def tick_complete(self, tick: int, equity: float, executions: int) -> dict:
        return self._emit("tick_complete", tick=tick, equity=round(equity, 2), executions=executions)

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)

    def shutdown(self, ticks: int, executions: int) -> dict:
        return self._emit("shutdown", ticks=ticks, executions=executions)

    def record(self, event_type: str, payload: dict) -> None:
        """Orchestrator event_callback adapter."""
        if event_type == "signal":
            self.signal_emitted(payload["signal"])
        elif event_type == "rejected":
            self.signal_rejected(payload["signal"], payload["reason"])
        elif event_type == "execution":
            self.order_executed(payload["execution"], payload.get("stop_level"))
