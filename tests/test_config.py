"""Tests for config loader: YAML parsing, schema validation, env var resolution."""

import os
from pathlib import Path

import pytest

from config import ConfigError, load_config

MINIMAL = """
symbols: ["BTC/USD", "ETH/USD"]
agents:
  - id: mr
    strategy: mean_reversion
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return path


def test_load_config_basic(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
symbols: ["BTC/USD"]
feed:
  interval_seconds: 0.5
  seed: 3
exchange:
  starting_cash: 50000
  fee_bps: 2
risk:
  max_concurrent_positions: 4
orchestrator:
  default_order_size: 0.5
  max_log_size: 100
agents:
  - id: mom
    strategy: momentum
    symbols: ["BTC/USD"]
    max_position_pct: 0.1
    params:
      lookback: 12
journal:
  path: out/journal.jsonl
""",
    )
    cfg = load_config(path)
    assert cfg.symbols == ("BTC/USD",)
    assert cfg.feed.interval_seconds == 0.5
    assert cfg.feed.seed == 3
    assert cfg.exchange.starting_cash == 50_000.0
    assert cfg.exchange.fee_bps == 2.0
    assert cfg.risk.max_concurrent_positions == 4
    assert cfg.orchestrator.default_order_size == 0.5
    assert cfg.orchestrator.max_log_size == 100
    agent = cfg.agents[0]
    assert agent.id == "mom"
    assert agent.strategy == "momentum"
    assert agent.symbols == ("BTC/USD",)
    assert agent.max_position_pct == 0.1
    assert agent.params == {"lookback": 12}
    assert cfg.journal.path == "out/journal.jsonl"


def test_load_config_defaults(tmp_path: Path) -> None:
    cfg = load_config(_write(tmp_path, MINIMAL))
    assert cfg.feed.interval_seconds == 2.0
    assert cfg.exchange.starting_cash == 100_000.0
    assert cfg.exchange.fee_bps == 5.0
    assert cfg.exchange.slippage_bps == 3.0
    assert cfg.risk.max_gross_exposure_pct == 1.5
    assert cfg.risk.max_single_position_pct == 0.25
    assert cfg.risk.max_concurrent_positions == 10
    assert cfg.orchestrator.default_order_size == 0.01
    assert cfg.orchestrator.max_log_size is None
    assert cfg.agents[0].symbols == ()
    assert cfg.agents[0].max_position_pct == 0.2
    assert cfg.journal.echo_stdout is False


def test_webhook_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAPERSIM_WEBHOOK_URL", "https://hooks.example.test/x")
    cfg = load_config(_write(tmp_path, MINIMAL))
    assert cfg.alerting.webhook_url == "https://hooks.example.test/x"


def test_repo_config_is_valid() -> None:
    root = Path(__file__).resolve().parent.parent
    cfg = load_config(root / "config.yaml")
    assert len(cfg.agents) >= 1


def test_load_config_missing_file() -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config("/nonexistent/path.yaml")


def test_not_a_mapping(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="mapping"):
        load_config(_write(tmp_path, "- just\n- a list\n"))


def test_invalid_yaml(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="YAML"):
        load_config(_write(tmp_path, "symbols: [unclosed\n"))


@pytest.mark.parametrize(
    "content",
    [
        'symbols: []\nagents: [{id: a, strategy: momentum}]\n',
        'symbols: ["BTC/USD"]\nagents: []\n',
        'symbols: ["BTCUSD"]\nagents: [{id: a, strategy: momentum}]\n',
        'symbols: ["BTC/USD"]\nagents: [{id: a, strategy: grid}]\n',
        'symbols: ["BTC/USD"]\nexchange: {starting_cash: 0}\nagents: [{id: a, strategy: momentum}]\n',
        'symbols: ["BTC/USD"]\nagents: [{id: a, strategy: momentum, params: {window: 3}}]\n',
        'symbols: ["BTC/USD"]\nagents: [{id: a, strategy: momentum, params: {window_size: 3}}]\n',
        'symbols: ["BTC/USD"]\nagents: [{id: a, strategy: mean_reversion, params: {lookback: 3}}]\n',
        'symbols: ["BTC/USD"]\nunknown_section: {}\nagents: [{id: a, strategy: momentum}]\n',
    ],
)
def test_schema_rejections(tmp_path: Path, content: str) -> None:
    with pytest.raises(ConfigError, match="validation failed"):
        load_config(_write(tmp_path, content))


def test_duplicate_agent_ids(tmp_path: Path) -> None:
    content = 'symbols: ["BTC/USD"]\nagents: [{id: a, strategy: momentum}, {id: a, strategy: mean_reversion}]\n'
    with pytest.raises(ConfigError, match="unique"):
        load_config(_write(tmp_path, content))


def test_agent_symbol_outside_feed(tmp_path: Path) -> None:
    content = 'symbols: ["BTC/USD"]\nagents: [{id: a, strategy: momentum, symbols: ["ETH/USD"]}]\n'
    with pytest.raises(ConfigError, match="not in the feed"):
        load_config(_write(tmp_path, content))
