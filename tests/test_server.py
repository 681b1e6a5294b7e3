"""Tests for ledger_core.server."""

import asyncio
from decimal import Decimal

from ledger_core.action_registry import default_registry
from ledger_core.server import create_ledger_server, execute_batch, run_query
from ledger_core.session import LedgerSession
from ledger_core.trades import Buy


def _make_session(**kwargs) -> LedgerSession:
    return LedgerSession(1_000_000, start=True, **kwargs)


def _batch(session: LedgerSession, ops: list[str]) -> str:
    return execute_batch(session, default_registry(), ops)


class TestExecuteBatch:
    def test_batch_success(self):
        session = _make_session()
        result = _batch(session, ["buy AAPL 100 price:185.50", "buy GOOGL 50 price:140.25"])
        assert result.splitlines() == [
            "+ BUY 100 AAPL @ $185.50 (cash: $981,450.00)",
            "+ BUY 50 GOOGL @ $140.25 (cash: $974,437.50)",
        ]
        assert len(session.log) == 2

    def test_no_portfolio(self):
        session = LedgerSession(1_000)
        assert _batch(session, ["buy AAPL 1 price:1"]).startswith("!")

    def test_parse_failure_rolls_back(self):
        session = _make_session()
        _batch(session, ["buy AAPL 1 price:1"])
        before = session.portfolio.copy()
        result = _batch(session, ["buy MSFT 1 price:1", "buy GOOGL one price:1"])
        assert result.startswith("! Batch failed at op 2: buy GOOGL one price:1.")
        assert "(1 ops reverted)" in result
        assert session.portfolio == before
        assert session.log.history() == ["BUY 1 AAPL @ $1.00"]

    def test_rejection_rolls_back_and_keeps_redo(self):
        session = _make_session(allow_overdraft=False)
        _batch(session, ["buy AAPL 1 price:1", "buy MSFT 1 price:1"])
        session.dispatch("undo")
        before = session.portfolio.copy()
        result = _batch(session, ["sell AAPL 1 price:5", "buy GOOGL 1 price:2000000"])
        assert "Insufficient cash" in result
        assert session.portfolio == before
        assert session.log.undone == (Buy("MSFT", 1, 1),)
        assert session.dispatch("redo").startswith("+")

    def test_rollback_stops_when_undo_is_rejected(self):
        session = LedgerSession(-100, start=True)
        session.portfolio.allow_overdraft = False
        result = _batch(session, ["sell AAPL 1 price:200", "buy X 1 price:1000"])
        assert result.startswith("! Batch failed at op 2: buy X 1 price:1000.")
        assert "Rollback incomplete: 0 of 1 ops reverted" in result
        assert "1 op(s) remain applied" in result
        assert session.log.history() == ["SELL 1 AAPL @ $200.00"]
        assert session.portfolio.cash == Decimal("100")
        assert session.portfolio.position("AAPL") == -1

    def test_empty_batch(self):
        session = _make_session()
        assert _batch(session, []) == ""


class TestRunQuery:
    def test_cash_and_position(self):
        session = _make_session()
        _batch(session, ["buy AAPL 100 price:185.50"])
        assert run_query(session, "cash") == "$981,450.00"
        assert run_query(session, "position aapl") == "AAPL: 100 shares"

    def test_positions(self):
        session = _make_session()
        _batch(session, ["buy AAPL 100 price:185.50"])
        assert "AAPL: 100 shares" in run_query(session, "positions")

    def test_history(self):
        session = _make_session()
        _batch(session, ["buy AAPL 100 price:185.50"])
        assert "1. BUY 100 AAPL @ $185.50" in run_query(session, "history")

    def test_snapshot_scenario(self):
        session = _make_session()
        _batch(session, ["buy AAPL 100 price:185.50", "buy GOOGL 50 price:140.25"])
        session.dispatch("undo")
        session.dispatch("snapshot s1")
        _batch(session, ["sell AAPL 50 price:190.00"])
        assert session.portfolio.cash == Decimal("990950.00")

        text = run_query(session, "snapshot s1")
        assert "1. BUY 100 AAPL @ $185.50" in text
        assert "SELL" not in text
        assert "Cash: $981,450.00" in text
        assert run_query(session, "snapshots") == "Snapshots:\n  s1: 1 trade(s)"

    def test_no_snapshots(self):
        assert run_query(_make_session(), "snapshots") == "Snapshots: (none)"

    def test_unknown_snapshot(self):
        assert "No snapshot named 'x'" in run_query(_make_session(), "snapshot x")

    def test_unknown_query(self):
        assert run_query(_make_session(), "pnl").startswith("! Unknown query")

    def test_no_portfolio(self):
        assert run_query(LedgerSession(), "cash").startswith("!")


class TestCreateServer:
    def test_registers_tools(self):
        mcp = create_ledger_server(initial_cash=1_000_000)
        tools = asyncio.run(mcp.list_tools())
        assert {t.name for t in tools} == {
            "ledger",
            "ledger_query",
            "ledger_session",
            "ledger_help",
        }

    def test_tool_description_lists_verbs(self):
        mcp = create_ledger_server()
        tools = {t.name: t for t in asyncio.run(mcp.list_tools())}
        assert "buy SYMBOL QTY price:PRICE" in tools["ledger"].description
