"""Tests for the paper exchange: slippage, fees, cash, weighted-average positions."""

import pytest

from conftest import TS
from execution.paper_exchange import PaperExchange
from sim_core.contracts import OrderRequest, Side


def _order(side: Side, size: float, symbol: str = "BTC/USD") -> OrderRequest:
    return OrderRequest(symbol=symbol, side=side, size=size, agent_id="test")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_rejects_non_positive_starting_cash() -> None:
    with pytest.raises(ValueError, match="starting_cash"):
        PaperExchange(0)


def test_rejects_negative_fee() -> None:
    with pytest.raises(ValueError):
        PaperExchange(1_000, fee_bps=-1)


def test_defaults() -> None:
    ex = PaperExchange(1_000)
    assert ex.fee_bps == 5.0
    assert ex.slippage_bps == 3.0
    assert ex.snapshot.equity == 1_000
    assert ex.snapshot.positions == {}


# ---------------------------------------------------------------------------
# Fills and cash accounting
# ---------------------------------------------------------------------------


class TestCashAccounting:
    def test_buy_slips_up_and_charges_fee(self, exchange: PaperExchange) -> None:
        report = exchange.process_order(_order(Side.BUY, 10), 100.0)
        assert report.executed_price == pytest.approx(100.03)
        gross = 100.03 * 10
        assert report.fee == pytest.approx(gross * 5 / 10_000)
        assert exchange.cash == pytest.approx(100_000 - gross - report.fee)
        assert report.timestamp == TS

    def test_sell_slips_down_and_fee_reduces_proceeds(self, exchange: PaperExchange) -> None:
        report = exchange.process_order(_order(Side.SELL, 10), 100.0)
        assert report.executed_price == pytest.approx(99.97)
        gross = 99.97 * 10
        assert exchange.cash == pytest.approx(100_000 + gross - report.fee)

    @pytest.mark.parametrize(
        "fills",
        [
            [(Side.BUY, 1.5, 100.0), (Side.BUY, 0.5, 105.0), (Side.SELL, 1.0, 110.0)],
            [(Side.SELL, 2.0, 50.0), (Side.BUY, 3.0, 45.0), (Side.SELL, 1.0, 60.0)],
        ],
    )
    def test_cash_delta_every_fill(self, exchange: PaperExchange, fills: list) -> None:
        for side, size, mark in fills:
            before = exchange.cash
            report = exchange.process_order(_order(side, size), mark)
            gross = report.gross_notional
            if side == Side.BUY:
                assert exchange.cash == pytest.approx(before - gross - report.fee)
            else:
                assert exchange.cash == pytest.approx(before + gross - report.fee)

    def test_report_echoes_request(self, exchange: PaperExchange) -> None:
        order = _order(Side.BUY, 2)
        report = exchange.process_order(order, 10.0)
        assert report.request is order

    def test_rejects_non_positive_size(self, exchange: PaperExchange) -> None:
        with pytest.raises(ValueError, match="size"):
            exchange.process_order(_order(Side.BUY, 0), 100.0)


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


class TestPositions:
    def test_weighted_average_same_direction(self) -> None:
        ex = PaperExchange(1_000_000, fee_bps=0, slippage_bps=0)
        ex.process_order(_order(Side.BUY, 2), 100.0)
        ex.process_order(_order(Side.BUY, 3), 110.0)
        pos = ex.position("BTC/USD")
        assert pos is not None
        assert pos.size == pytest.approx(5)
        assert pos.avg_entry == pytest.approx((100 * 2 + 110 * 3) / 5)

    def test_weighted_average_short_adds(self) -> None:
        ex = PaperExchange(1_000_000, fee_bps=0, slippage_bps=0)
        ex.process_order(_order(Side.SELL, 1), 100.0)
        ex.process_order(_order(Side.SELL, 1), 90.0)
        pos = ex.position("BTC/USD")
        assert pos.size == pytest.approx(-2)
        assert pos.avg_entry == pytest.approx(95.0)

    def test_flat_keeps_prior_basis(self) -> None:
        ex = PaperExchange(1_000_000, fee_bps=0, slippage_bps=0)
        ex.process_order(_order(Side.BUY, 2), 100.0)
        ex.process_order(_order(Side.SELL, 2), 120.0)
        pos = ex.position("BTC/USD")
        assert pos.is_flat
        assert pos.avg_entry == pytest.approx(100.0)

    def test_reopen_after_flat_uses_fresh_basis(self) -> None:
        ex = PaperExchange(1_000_000, fee_bps=0, slippage_bps=0)
        ex.process_order(_order(Side.BUY, 2), 100.0)
        ex.process_order(_order(Side.SELL, 2), 120.0)
        ex.process_order(_order(Side.BUY, 1), 80.0)
        pos = ex.position("BTC/USD")
        assert pos.size == pytest.approx(1)
        assert pos.avg_entry == pytest.approx(80.0)

    def test_flip_through_zero_resets_basis(self) -> None:
        ex = PaperExchange(1_000_000, fee_bps=0, slippage_bps=0)
        ex.process_order(_order(Side.BUY, 1), 100.0)
        ex.process_order(_order(Side.SELL, 3), 90.0)
        pos = ex.position("BTC/USD")
        assert pos.size == pytest.approx(-2)
        assert pos.avg_entry == pytest.approx(90.0)

    def test_fill_clears_unrealized_pnl(self, exchange: PaperExchange) -> None:
        exchange.process_order(_order(Side.BUY, 1), 100.0)
        exchange.mark_to_market("BTC/USD", 120.0)
        assert exchange.position("BTC/USD").unrealized_pnl != 0
        exchange.process_order(_order(Side.BUY, 1), 120.0)
        assert exchange.position("BTC/USD").unrealized_pnl == 0

    def test_repeated_partial_closes_end_exactly_flat(self) -> None:
        ex = PaperExchange(1_000_000, fee_bps=0, slippage_bps=0)
        ex.process_order(_order(Side.BUY, 0.3), 100.0)
        for _ in range(3):
            ex.process_order(_order(Side.SELL, 0.1), 100.0)
        pos = ex.position("BTC/USD")
        assert pos.size == 0.0
        assert pos.is_flat
        assert ex.snapshot.active_positions() == []


# ---------------------------------------------------------------------------
# Mark-to-market and snapshot
# ---------------------------------------------------------------------------


class TestMarkToMarket:
    def test_unknown_symbol_is_noop(self, exchange: PaperExchange) -> None:
        exchange.mark_to_market("ETH/USD", 50.0)
        assert exchange.snapshot.positions == {}

    def test_long_pnl(self) -> None:
        ex = PaperExchange(10_000, fee_bps=0, slippage_bps=0)
        ex.process_order(_order(Side.BUY, 2), 100.0)
        ex.mark_to_market("BTC/USD", 110.0)
        assert ex.position("BTC/USD").unrealized_pnl == pytest.approx(20.0)

    def test_short_pnl(self) -> None:
        ex = PaperExchange(10_000, fee_bps=0, slippage_bps=0)
        ex.process_order(_order(Side.SELL, 2), 100.0)
        ex.mark_to_market("BTC/USD", 110.0)
        assert ex.position("BTC/USD").unrealized_pnl == pytest.approx(-20.0)

    def test_idempotent(self, exchange: PaperExchange) -> None:
        exchange.process_order(_order(Side.BUY, 3), 100.0)
        exchange.mark_to_market("BTC/USD", 104.0)
        first = exchange.position("BTC/USD").unrealized_pnl
        exchange.mark_to_market("BTC/USD", 104.0)
        assert exchange.position("BTC/USD").unrealized_pnl == first


class TestSnapshot:
    def test_equity_invariant(self, exchange: PaperExchange) -> None:
        exchange.process_order(_order(Side.BUY, 2), 100.0)
        exchange.process_order(_order(Side.SELL, 1, symbol="ETH/USD"), 50.0)
        exchange.mark_to_market("BTC/USD", 103.0)
        exchange.mark_to_market("ETH/USD", 48.0)
        snap = exchange.snapshot
        expected = snap.cash + sum(p.avg_entry * p.size + p.unrealized_pnl for p in snap.positions.values())
        assert snap.equity == pytest.approx(expected)

    def test_snapshot_positions_are_read_only(self, exchange: PaperExchange) -> None:
        exchange.process_order(_order(Side.BUY, 1), 100.0)
        snap = exchange.snapshot
        with pytest.raises(TypeError):
            snap.positions["BTC/USD"] = None  # type: ignore[index]
        assert exchange.position("BTC/USD") is not None

    def test_snapshot_not_affected_by_later_fills(self, exchange: PaperExchange) -> None:
        exchange.process_order(_order(Side.BUY, 1), 100.0)
        snap = exchange.snapshot
        exchange.process_order(_order(Side.BUY, 1), 100.0)
        assert snap.positions["BTC/USD"].size == pytest.approx(1)
