"""
Structured journal: append-only JSON lines of signals, rejections and executions.
Externalizes the orchestrator's in-memory execution log.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from sim_core.contracts import ExecutionReport, TradeSignal


def _serialize(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: _serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    return obj


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def signal(self, signal: TradeSignal, **extra: Any) -> None:
        self._write("signal", {"signal": signal, **extra})

    def rejection(self, signal: TradeSignal, reason: str, **extra: Any) -> None:
        self._write("rejected", {"agent_id": signal.agent_id, "symbol": signal.symbol, "intent": signal.intent, "reason": reason, **extra})

    def execution(self, report: ExecutionReport, stop_level: float | None = None, **extra: Any) -> None:
        req = report.request
        self._write(
            "execution",
            {
                "agent_id": req.agent_id,
                "symbol": req.symbol,
                "side": req.side,
                "size": req.size,
                "order_type": req.order_type,
                "price": report.executed_price,
                "fee": report.fee,
                "filled_at": report.timestamp,
                "stop_level": stop_level,
                **extra,
            },
        )

    def record(self, event_type: str, payload: dict) -> None:
        """Orchestrator event_callback adapter."""
        if event_type == "signal":
            self.signal(payload["signal"])
        elif event_type == "rejected":
            self.rejection(payload["signal"], payload["reason"])
        elif event_type == "execution":
            self.execution(payload["execution"], payload.get("stop_level"))
