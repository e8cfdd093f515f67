"""
CLI entry point: papersim run | live | health.

Every command loads config from --config (default config.yaml),
prints the resulting portfolio, and journals signals and executions.
"""

import logging
import sys

import click
from dotenv import load_dotenv

from config import ConfigError, load_config

load_dotenv()

logger = logging.getLogger("sim")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _load(ctx: click.Context):
    try:
        return load_config(ctx.obj["config_path"])
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _build(cfg, **kwargs):
    from cli.session import build_session

    try:
        return build_session(cfg, **kwargs)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


def _print_summary(session, last: int) -> None:
    from cli.output import format_executions, format_portfolio

    orch = session.orchestrator
    click.echo(format_portfolio(orch.portfolio, session.config.exchange.starting_cash))
    click.echo(format_executions(orch.execution_log[-last:] if last > 0 else [], orch.executions_total))


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: str, verbose: bool) -> None:
    """papersim: paper-trading simulation with pluggable strategy agents."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- papersim run ----------


@cli.command()
@click.option("--ticks", default=200, show_default=True, type=click.IntRange(min=1), help="Number of feed ticks to simulate.")
@click.option("--seed", default=None, type=int, help="Override the feed seed from config.")
@click.option("--last", default=10, show_default=True, help="Number of recent executions to show.")
@click.option("--no-journal", is_flag=True, default=False, help="Do not write the JSONL journal.")
@click.pass_context
def run(ctx: click.Context, ticks: int, seed: int | None, last: int, no_journal: bool) -> None:
    """Run a deterministic simulation of N ticks, then show the portfolio."""
    cfg = _load(ctx)
    from cli.session import run_ticks

    session = _build(cfg, seed=seed, journal=not no_journal)
    click.echo(f"Simulating {ticks} tick(s) over {', '.join(cfg.symbols)} with {len(cfg.agents)} agent(s) ...")
    run_ticks(session, ticks)
    _print_summary(session, last)


# ---------- papersim live ----------


@cli.command()
@click.option("--interval", default=None, type=click.FloatRange(min=0, min_open=True), help="Seconds between ticks (default: feed.interval_seconds).")
@click.option("--duration", default=None, type=float, help="Stop after this many seconds (default: run until Ctrl+C).")
@click.option("--last", default=10, show_default=True, help="Number of recent executions to show.")
@click.pass_context
def live(ctx: click.Context, interval: float | None, duration: float | None, last: int) -> None:
    """Run the timer-driven feed continuously. Ctrl+C to stop."""
    cfg = _load(ctx)
    from cli.session import run_live

    session = _build(cfg)
    if interval is None:
        interval = cfg.feed.interval_seconds
    click.echo(f"Live simulation started: {', '.join(cfg.symbols)} every {interval:.2f}s  |  Ctrl+C to stop\n")
    run_live(session, interval_seconds=interval, duration_seconds=duration)
    click.echo(f"\nStopped after {session.feed.ticks} tick(s).")
    _print_summary(session, last)


# ---------- papersim health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check config and agent construction.

    Exit code 0 = healthy, 1 = unhealthy.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded ({len(cfg.symbols)} symbols, {len(cfg.agents)} agents)"))
    except ConfigError as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        from sim_core.agents import build_agent
        agents = [build_agent(spec, cfg.symbols) for spec in cfg.agents]
        names = ", ".join(f"{a.id}({type(a).__name__})" for a in agents)
        checks.append(("agents", True, names))
    except ValueError as e:
        checks.append(("agents", False, str(e)))

    try:
        from execution import PaperExchange
        PaperExchange(cfg.exchange.starting_cash, fee_bps=cfg.exchange.fee_bps, slippage_bps=cfg.exchange.slippage_bps)
        checks.append(("exchange", True, f"starting cash ${cfg.exchange.starting_cash:,.2f}"))
    except ValueError as e:
        checks.append(("exchange", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
