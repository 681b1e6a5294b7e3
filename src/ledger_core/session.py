"""Session lifecycle: new, undo, redo, checkpoint, snapshot, history.

A :class:`LedgerSession` pairs one portfolio with one trade log and routes
session command strings to them. Named snapshots of the log are kept
alongside so an audit trail can be frozen and inspected later.
"""

from __future__ import annotations

import logging
import shlex
from decimal import Decimal, InvalidOperation

from ledger_core.action_log import ActionLog
from ledger_core.errors import ReceiverMutationError
from ledger_core.formatter import format_money, format_result, render_history
from ledger_core.portfolio import Portfolio
from ledger_core.trades import TradeAction, describe_trade

logger = logging.getLogger("ledger_core.session")

TradeLog = ActionLog[TradeAction, Portfolio]


class LedgerSession:
    """Routes session actions to a portfolio and its trade log.

    Boundary conditions (nothing to undo or redo) and receiver rejections
    come back as ``!`` result lines; programming errors propagate.
    """

    def __init__(
        self,
        initial_cash: Decimal | int | float | str = 0,
        *,
        allow_short: bool = True,
        allow_overdraft: bool = True,
        start: bool = False,
    ) -> None:
        self._defaults = Portfolio(
            initial_cash, allow_short=allow_short, allow_overdraft=allow_overdraft
        )
        self._opening: Portfolio | None = None
        self._portfolio: Portfolio | None = None
        self._log: TradeLog = ActionLog()
        self._snapshots: dict[str, TradeLog] = {}
        if start:
            self._start(self._defaults.copy())

    @property
    def portfolio(self) -> Portfolio | None:
        """The live portfolio, or None if no session is active."""
        return self._portfolio

    @property
    def log(self) -> TradeLog:
        return self._log

    @log.setter
    def log(self, value: TradeLog) -> None:
        self._log = value

    @property
    def snapshots(self) -> dict[str, TradeLog]:
        return dict(self._snapshots)

    def _start(self, portfolio: Portfolio) -> None:
        self._opening = portfolio.copy()
        self._portfolio = portfolio
        self._log = ActionLog()
        self._snapshots = {}

    def fresh_portfolio(self) -> Portfolio:
        """A copy of the portfolio as it was when the session started."""
        if self._opening is None:
            raise RuntimeError("No session started")
        return self._opening.copy()

    def execute(self, action: TradeAction) -> str:
        """Execute a trade through the log and format the outcome."""
        if self._portfolio is None:
            return format_result(False, "No portfolio. Use session 'new' first.")
        try:
            self._log.execute(action, self._portfolio)
        except ReceiverMutationError as exc:
            return format_result(False, f"{describe_trade(action)} rejected: {exc}")
        return format_result(
            True,
            f"{describe_trade(action)} (cash: {format_money(self._portfolio.cash)})",
        )

    def dispatch(self, action: str) -> str:
        """Route a session action string to the appropriate handler.

        Supported actions: new, undo, redo, checkpoint, snapshot, history.
        """
        parts = _tokenize_session(action.strip())
        command = parts[0].lower() if parts else ""
        rest = parts[1:]

        match command:
            case "new":
                return self._handle_new(rest)
            case "undo":
                return self._handle_undo(rest)
            case "redo":
                return self._handle_redo(rest)
            case "checkpoint":
                return self._handle_checkpoint(rest)
            case "snapshot":
                return self._handle_snapshot(rest)
            case "history":
                return render_history(self._log.history())
            case _:
                return format_result(False, f"Unknown session action: {command!r}")

    def _handle_new(self, args: list[str]) -> str:
        cash = self._defaults.cash
        allow_short = self._defaults.allow_short
        allow_overdraft = self._defaults.allow_overdraft
        for arg in args:
            key, sep, value = arg.partition(":")
            if sep and key.lower() == "cash":
                try:
                    cash = Decimal(value.replace(",", "").lstrip("$"))
                except InvalidOperation:
                    return format_result(False, f"Invalid cash amount {value!r}")
                if not cash.is_finite():
                    return format_result(False, f"Invalid cash amount {value!r}")
            elif arg.lower() == "no-short":
                allow_short = False
            elif arg.lower() == "no-overdraft":
                allow_overdraft = False
            else:
                return format_result(False, f"Unknown option {arg!r}")

        try:
            portfolio = Portfolio(
                cash, allow_short=allow_short, allow_overdraft=allow_overdraft
            )
        except ValueError as exc:
            return format_result(False, str(exc))
        self._start(portfolio)
        logger.info("New session with opening cash %s", cash)
        return format_result(True, f"New portfolio with {format_money(self._portfolio.cash)}")

    def _handle_undo(self, args: list[str]) -> str:
        if self._portfolio is None:
            return format_result(False, "No portfolio loaded")

        to_name: str | None = None
        for arg in args:
            if arg.startswith("to:"):
                to_name = arg[3:]
        if to_name == "":
            return format_result(False, "Missing checkpoint name after to:")

        try:
            if to_name:
                count = self._log.undo_to(to_name, self._portfolio)
                if count is None:
                    return format_result(False, f"No checkpoint named {to_name!r}")
            else:
                count = 1 if self._log.undo(self._portfolio) else 0
        except ReceiverMutationError as exc:
            return format_result(False, f"Undo rejected: {exc}")

        if not count:
            return format_result(False, "Nothing to undo")
        cash = format_money(self._portfolio.cash)
        if to_name:
            return format_result(
                True, f"Undone {count} trade(s) to checkpoint '{to_name}' (cash: {cash})"
            )
        return format_result(True, f"Undone {count} trade(s) (cash: {cash})")

    def _handle_redo(self, args: list[str]) -> str:
        if self._portfolio is None:
            return format_result(False, "No portfolio loaded")
        try:
            redone = self._log.redo(self._portfolio)
        except ReceiverMutationError as exc:
            return format_result(False, f"Redo rejected: {exc}")
        if not redone:
            return format_result(False, "Nothing to redo")
        return format_result(
            True, f"Redone 1 trade(s) (cash: {format_money(self._portfolio.cash)})"
        )

    def _handle_checkpoint(self, args: list[str]) -> str:
        if not args:
            return format_result(False, "Missing checkpoint name")
        name = args[0]
        self._log.checkpoint(name)
        return format_result(
            True, f"Checkpoint '{name}' created (at trade #{len(self._log)})"
        )

    def _handle_snapshot(self, args: list[str]) -> str:
        if not args:
            return format_result(False, "Missing snapshot name")
        name = args[0]
        self._snapshots[name] = self._log.snapshot()
        logger.info("Snapshot %r holds %d trade(s)", name, len(self._log))
        return format_result(True, f"Snapshot '{name}' holds {len(self._log)} trade(s)")


def _tokenize_session(action: str) -> list[str]:
    """Tokenize a session action string, respecting quotes."""
    try:
        return shlex.split(action)
    except ValueError:
        return action.split()
