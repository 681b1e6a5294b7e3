"""Tests for ledger_core.session."""

from decimal import Decimal

import pytest

from ledger_core.session import LedgerSession
from ledger_core.trades import Buy, Sell


def _make_session(**kwargs) -> LedgerSession:
    session = LedgerSession(1_000_000, **kwargs)
    session.dispatch("new")
    return session


class TestSessionNew:
    def test_no_portfolio_until_new(self):
        session = LedgerSession(1_000)
        assert session.portfolio is None
        assert "!" in session.execute(Buy("AAPL", 1, 1))
        assert "!" in session.dispatch("undo")
        assert "!" in session.dispatch("redo")

    def test_start_flag(self):
        session = LedgerSession(1_000, start=True)
        assert session.portfolio is not None
        assert session.portfolio.cash == Decimal("1000")

    def test_new_uses_defaults(self):
        session = _make_session()
        assert session.portfolio.cash == Decimal("1000000")

    def test_new_with_cash(self):
        session = _make_session()
        result = session.dispatch("new cash:250,000")
        assert result == "+ New portfolio with $250,000.00"
        assert session.portfolio.cash == Decimal("250000")

    def test_new_with_rules(self):
        session = _make_session()
        session.dispatch("new cash:10 no-short no-overdraft")
        assert session.portfolio.allow_short is False
        assert session.portfolio.allow_overdraft is False

    def test_new_rejects_bad_cash(self):
        session = _make_session()
        assert "!" in session.dispatch("new cash:lots")
        assert "!" in session.dispatch("new cash:inf")

    def test_new_rejects_negative_cash_without_overdraft(self):
        session = _make_session()
        result = session.dispatch("new cash:-100 no-overdraft")
        assert result.startswith("!")
        assert "overdraft" in result
        assert session.portfolio.cash == Decimal("1000000")

    def test_new_allows_negative_cash_with_overdraft(self):
        session = _make_session()
        assert session.dispatch("new cash:-100").startswith("+")

    def test_new_rejects_unknown_option(self):
        session = _make_session()
        assert "Unknown option" in session.dispatch("new margin")

    def test_new_resets_log_and_snapshots(self):
        session = _make_session()
        session.execute(Buy("AAPL", 1, 1))
        session.dispatch("snapshot s1")
        session.dispatch("new")
        assert len(session.log) == 0
        assert session.snapshots == {}


class TestSessionExecute:
    def test_execute(self):
        session = _make_session()
        result = session.execute(Buy("AAPL", 100, "185.50"))
        assert result == "+ BUY 100 AAPL @ $185.50 (cash: $981,450.00)"

    def test_rejected_trade(self):
        session = _make_session()
        session.dispatch("new cash:100 no-overdraft")
        result = session.execute(Buy("AAPL", 100, "185.50"))
        assert result.startswith("! BUY 100 AAPL @ $185.50 rejected")
        assert len(session.log) == 0


class TestSessionUndoRedo:
    def test_undo(self):
        session = _make_session()
        session.execute(Buy("AAPL", 100, "185.50"))
        result = session.dispatch("undo")
        assert result == "+ Undone 1 trade(s) (cash: $1,000,000.00)"
        assert session.portfolio.position("AAPL") == 0

    def test_nothing_to_undo(self):
        session = _make_session()
        assert session.dispatch("undo") == "! Nothing to undo"

    def test_redo(self):
        session = _make_session()
        session.execute(Buy("AAPL", 100, "185.50"))
        session.dispatch("undo")
        result = session.dispatch("redo")
        assert result == "+ Redone 1 trade(s) (cash: $981,450.00)"

    def test_nothing_to_redo(self):
        session = _make_session()
        assert session.dispatch("redo") == "! Nothing to redo"

    def test_redo_gone_after_new_branch(self):
        session = _make_session()
        session.execute(Buy("AAPL", 1, 1))
        session.dispatch("undo")
        session.execute(Buy("MSFT", 1, 1))
        assert session.dispatch("redo") == "! Nothing to redo"


class TestSessionCheckpoint:
    def test_checkpoint(self):
        session = _make_session()
        session.execute(Buy("AAPL", 1, 1))
        assert session.dispatch("checkpoint v1") == "+ Checkpoint 'v1' created (at trade #1)"

    def test_checkpoint_missing_name(self):
        session = _make_session()
        assert "!" in session.dispatch("checkpoint")

    def test_undo_to_checkpoint(self):
        session = _make_session()
        session.dispatch("checkpoint v1")
        session.execute(Buy("AAPL", 1, 1))
        session.execute(Buy("MSFT", 1, 1))
        result = session.dispatch("undo to:v1")
        assert "Undone 2 trade(s) to checkpoint 'v1'" in result
        assert session.portfolio.positions == {}

    def test_undo_to_nonexistent_checkpoint(self):
        session = _make_session()
        assert "No checkpoint named 'nope'" in session.dispatch("undo to:nope")

    def test_undo_to_without_name(self):
        session = _make_session()
        session.execute(Buy("AAPL", 1, 1))
        result = session.dispatch("undo to:")
        assert result == "! Missing checkpoint name after to:"
        assert len(session.log) == 1

    def test_undo_to_current_position(self):
        session = _make_session()
        session.dispatch("checkpoint v1")
        assert session.dispatch("undo to:v1") == "! Nothing to undo"


class TestSessionSnapshot:
    def test_snapshot_is_frozen(self):
        session = _make_session()
        session.execute(Buy("AAPL", 100, "185.50"))
        assert session.dispatch("snapshot s1") == "+ Snapshot 's1' holds 1 trade(s)"
        session.execute(Sell("AAPL", 50, 190))
        session.dispatch("undo")
        session.dispatch("undo")
        snap = session.snapshots["s1"]
        assert snap.history() == ["BUY 100 AAPL @ $185.50"]

    def test_snapshot_missing_name(self):
        session = _make_session()
        assert "!" in session.dispatch("snapshot")

    def test_fresh_portfolio_replays_snapshot(self):
        session = _make_session()
        session.execute(Buy("AAPL", 100, "185.50"))
        session.dispatch("snapshot s1")
        replayed = session.fresh_portfolio()
        session.snapshots["s1"].replay(replayed)
        assert replayed == session.portfolio

    def test_fresh_portfolio_requires_session(self):
        with pytest.raises(RuntimeError):
            LedgerSession().fresh_portfolio()


class TestSessionHistory:
    def test_history(self):
        session = _make_session()
        session.execute(Buy("AAPL", 100, "185.50"))
        assert session.dispatch("history") == "Trade History:\n  1. BUY 100 AAPL @ $185.50"

    def test_empty_history(self):
        session = _make_session()
        assert session.dispatch("history") == "Trade History:\n  (empty)"


class TestSessionUnknown:
    def test_unknown_command(self):
        session = _make_session()
        result = session.dispatch("explode")
        assert result.startswith("!")
        assert "Unknown" in result
