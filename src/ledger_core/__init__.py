"""Ledger Core: an undoable, snapshottable action log for trading portfolios."""

from ledger_core.action_log import ActionLog
from ledger_core.action_registry import ActionRegistry, ActionSpec, TRADE_VERBS, default_registry
from ledger_core.commands import Command, LimitSell, MarketBuy
from ledger_core.dispatch import CommandDispatcher, Dispatcher, TradeDispatcher
from ledger_core.errors import (
    InsufficientCashError,
    InsufficientPositionError,
    LedgerError,
    ProgrammingError,
    ReceiverMutationError,
    UnhandledActionError,
)
from ledger_core.formatter import format_money, format_result, render_history, render_portfolio, suggest
from ledger_core.parsed_op import ParseError, ParsedOp, build_trade, parse_op
from ledger_core.portfolio import Portfolio
from ledger_core.server import create_ledger_server
from ledger_core.session import LedgerSession
from ledger_core.trades import (
    Buy,
    Sell,
    TradeAction,
    apply_trade,
    describe_trade,
    invert_trade,
    verify_dispatch,
)

__all__ = [
    # Actions
    "Buy",
    "Sell",
    "TradeAction",
    "apply_trade",
    "invert_trade",
    "describe_trade",
    "verify_dispatch",
    "Command",
    "MarketBuy",
    "LimitSell",
    # Dispatch
    "Dispatcher",
    "TradeDispatcher",
    "CommandDispatcher",
    # Receiver
    "Portfolio",
    # Action Log
    "ActionLog",
    # Errors
    "LedgerError",
    "ProgrammingError",
    "UnhandledActionError",
    "ReceiverMutationError",
    "InsufficientCashError",
    "InsufficientPositionError",
    # Registry
    "ActionSpec",
    "ActionRegistry",
    "TRADE_VERBS",
    "default_registry",
    # Parsed Op
    "ParsedOp",
    "ParseError",
    "parse_op",
    "build_trade",
    # Session
    "LedgerSession",
    # Formatter
    "format_result",
    "format_money",
    "render_portfolio",
    "render_history",
    "suggest",
    # Server
    "create_ledger_server",
]
