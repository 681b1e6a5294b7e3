"""Dispatchers: the seam between an action log and its action kinds.

A dispatcher knows how to apply, invert, describe and copy one family of
actions. The log calls nothing else on an action, so the same
:class:`~ledger_core.action_log.ActionLog` serves both the closed trade set
and open-ended commands.
"""

from __future__ import annotations

from typing import Any, Generic, Protocol, TypeVar

from ledger_core.commands import Command
from ledger_core.errors import UnhandledActionError
from ledger_core.portfolio import Portfolio
from ledger_core.trades import TradeAction, apply_trade, describe_trade, invert_trade

A = TypeVar("A")  # Action type
R = TypeVar("R")  # Receiver type


class Dispatcher(Protocol[A, R]):
    """Protocol that action families must satisfy to be logged."""

    def apply(self, action: A, receiver: R) -> None:
        """Perform the forward mutation of *action* on *receiver*."""
        ...

    def invert(self, action: A, receiver: R) -> None:
        """Undo a previously applied *action* on *receiver*."""
        ...

    def describe(self, action: A) -> str:
        """Return a one-line human-readable description."""
        ...

    def copy(self, action: A) -> A:
        """Return a copy of *action* that shares no mutable state."""
        ...


class TradeDispatcher:
    """Dispatch for the closed :data:`~ledger_core.trades.TradeAction` set."""

    def apply(self, action: TradeAction, receiver: Portfolio) -> None:
        apply_trade(action, receiver)

    def invert(self, action: TradeAction, receiver: Portfolio) -> None:
        invert_trade(action, receiver)

    def describe(self, action: TradeAction) -> str:
        return describe_trade(action)

    def copy(self, action: TradeAction) -> TradeAction:
        # Frozen dataclasses: the value is its own copy.
        return action


class CommandDispatcher(Generic[R]):
    """Dispatch for open-ended :class:`~ledger_core.commands.Command` objects."""

    def apply(self, action: Command[R], receiver: R) -> None:
        self._check(action, "apply").apply(receiver)

    def invert(self, action: Command[R], receiver: R) -> None:
        self._check(action, "invert").invert(receiver)

    def describe(self, action: Command[R]) -> str:
        return self._check(action, "describe").describe()

    def copy(self, action: Command[R]) -> Command[R]:
        return self._check(action, "copy").clone()

    @staticmethod
    def _check(action: Any, operation: str) -> Command[R]:
        if not isinstance(action, Command):
            raise UnhandledActionError(action, operation)
        return action
