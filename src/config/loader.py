"""
Config loader: YAML file -> JSON Schema validation -> frozen dataclass tree.

Schema:   docs/config/sim_config.schema.json
Example:  config.yaml at the project root

The webhook URL may be supplied through the environment
(PAPERSIM_WEBHOOK_URL) so it never has to live in the config file.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from sim_core.risk_manager import RiskLimits

logger = logging.getLogger("sim.config")

WEBHOOK_ENV_VAR = "PAPERSIM_WEBHOOK_URL"


def _find_project_root() -> Path:
    """Walk up from this file looking for pyproject.toml; fall back to CWD."""
    candidate = Path(__file__).resolve().parent
    for _ in range(10):
        if (candidate / "pyproject.toml").exists():
            return candidate
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return Path.cwd()


_PROJECT_ROOT = _find_project_root()

DEFAULT_SCHEMA_PATH = _PROJECT_ROOT / "docs" / "config" / "sim_config.schema.json"


# ---------------------------------------------------------------------------
# Frozen dataclass tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeedConfig:
    interval_seconds: float = 2.0
    seed: int | None = None
    base_price: float = 100.0
    volatility: float = 0.002
    queue_size: int = 64


@dataclass(frozen=True)
class ExchangeConfig:
    starting_cash: float = 100_000.0
    fee_bps: float = 5.0
    slippage_bps: float = 3.0


@dataclass(frozen=True)
class OrchestratorConfig:
    default_order_size: float = 0.01
    max_log_size: int | None = None


@dataclass(frozen=True)
class AgentSpec:
    """One configured agent. Empty `symbols` means: trade every configured symbol."""
    id: str
    strategy: str  # "mean_reversion" | "momentum"
    symbols: tuple[str, ...] = ()
    max_position_pct: float = 0.2
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    symbols: tuple[str, ...]
    agents: tuple[AgentSpec, ...]
    feed: FeedConfig = FeedConfig()
    exchange: ExchangeConfig = ExchangeConfig()
    risk: RiskLimits = RiskLimits()
    orchestrator: OrchestratorConfig = OrchestratorConfig()
    journal: JournalConfig = JournalConfig()
    alerting: AlertingConfig = AlertingConfig()


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when config loading or validation fails."""


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    """Validate *data* against the JSON Schema at *schema_path*."""
    if not schema_path.exists():
        raise ConfigError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ConfigError(f"Config validation failed at {location}: {exc.message}") from exc


def _build_config(raw: dict[str, Any]) -> AppConfig:
    """Convert a raw mapping (already validated) into the frozen dataclass tree."""
    feed_raw = raw.get("feed", {})
    ex_raw = raw.get("exchange", {})
    risk_raw = raw.get("risk", {})
    orch_raw = raw.get("orchestrator", {})
    j_raw = raw.get("journal", {})
    a_raw = raw.get("alerting", {})

    symbols = tuple(raw["symbols"])
    agents = tuple(
        AgentSpec(
            id=a["id"],
            strategy=a["strategy"],
            symbols=tuple(a.get("symbols", ())),
            max_position_pct=float(a.get("max_position_pct", 0.2)),
            params=dict(a.get("params", {})),
        )
        for a in raw["agents"]
    )
    ids = [a.id for a in agents]
    if len(set(ids)) != len(ids):
        raise ConfigError(f"Agent ids must be unique, got {ids}")
    for agent in agents:
        unknown = set(agent.symbols) - set(symbols)
        if unknown:
            raise ConfigError(f"Agent {agent.id!r} trades symbols not in the feed: {sorted(unknown)}")

    return AppConfig(
        symbols=symbols,
        agents=agents,
        feed=FeedConfig(
            interval_seconds=float(feed_raw.get("interval_seconds", 2.0)),
            seed=feed_raw.get("seed"),
            base_price=float(feed_raw.get("base_price", 100.0)),
            volatility=float(feed_raw.get("volatility", 0.002)),
            queue_size=int(feed_raw.get("queue_size", 64)),
        ),
        exchange=ExchangeConfig(
            starting_cash=float(ex_raw.get("starting_cash", 100_000)),
            fee_bps=float(ex_raw.get("fee_bps", 5.0)),
            slippage_bps=float(ex_raw.get("slippage_bps", 3.0)),
        ),
        risk=RiskLimits(
            max_gross_exposure_pct=float(risk_raw.get("max_gross_exposure_pct", 1.5)),
            max_single_position_pct=float(risk_raw.get("max_single_position_pct", 0.25)),
            max_concurrent_positions=int(risk_raw.get("max_concurrent_positions", 10)),
        ),
        orchestrator=OrchestratorConfig(
            default_order_size=float(orch_raw.get("default_order_size", 0.01)),
            max_log_size=orch_raw.get("max_log_size"),
        ),
        journal=JournalConfig(
            path=j_raw.get("path", "data/journal.jsonl"),
            echo_stdout=bool(j_raw.get("echo_stdout", False)),
        ),
        alerting=AlertingConfig(
            structured_logs=bool(a_raw.get("structured_logs", True)),
            webhook_url=os.environ.get(WEBHOOK_ENV_VAR) or str(a_raw.get("webhook_url", "")),
        ),
    )


def load_config(
    path: str | Path = "config.yaml",
    schema_path: str | Path | None = None,
) -> AppConfig:
    """
    Load and validate simulation configuration from a YAML file.

    Raises
    ------
    ConfigError
        If the file is missing, unparseable, or fails schema validation.
    """
    config_path = Path(path)
    sch_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config is not valid YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    _validate_schema(raw, sch_path)
    cfg = _build_config(raw)
    logger.debug("Loaded config %s: %d symbol(s), %d agent(s)", config_path, len(cfg.symbols), len(cfg.agents))
    return cfg
