"""Exception hierarchy for the action log and its receivers.

Two families matter to callers:

- :class:`ProgrammingError` signals a defect (an action kind nobody taught
  the dispatcher about). It is never caught inside the package.
- :class:`ReceiverMutationError` signals that the receiver refused a
  mutation. The log propagates it untouched and records nothing.

Running out of history is not an error at all: ``undo``/``redo`` return
``False``.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Root of all ledger_core errors."""


class ProgrammingError(LedgerError):
    """A broken invariant inside the caller's or the package's code."""


class UnhandledActionError(ProgrammingError):
    """Raised when dispatch meets an action outside its known set."""

    def __init__(self, action: object, operation: str = "dispatch") -> None:
        self.action = action
        self.operation = operation
        super().__init__(
            f"No {operation} handler for action of type {type(action).__name__!r}"
        )


class ReceiverMutationError(LedgerError):
    """The receiver rejected a mutation; its state is unchanged."""


class InsufficientCashError(ReceiverMutationError):
    def __init__(self, required: object, available: object) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient cash: need ${required:,.2f}, have ${available:,.2f}"
        )


class InsufficientPositionError(ReceiverMutationError):
    def __init__(self, symbol: str, required: int, available: int) -> None:
        self.symbol = symbol
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient position in {symbol}: need {required}, have {available}"
        )
