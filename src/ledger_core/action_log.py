"""Undoable action log with snapshots and named checkpoints.

The log keeps two stacks: ``done`` holds the actions currently reflected
in the receiver (oldest first) and ``undone`` holds reversed actions
eligible for redo (most recently undone last). Executing a new action
after an undo discards the whole redo stack.

The receiver is never stored. Every mutating call takes it as an
argument, and the log only records an action once the receiver has
accepted the mutation, so ``done`` always replays to the receiver's state.

Generic over action type A and receiver type R; a
:class:`~ledger_core.dispatch.Dispatcher` supplies the per-action behaviour.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Generic, TypeVar

from ledger_core.dispatch import Dispatcher, TradeDispatcher

A = TypeVar("A")  # Action type
R = TypeVar("R")  # Receiver type

logger = logging.getLogger("ledger_core.log")


class ActionLog(Generic[A, R]):
    """Linear done/undone log with undo, redo, snapshot and checkpoints."""

    def __init__(self, dispatcher: Dispatcher[A, R] | None = None) -> None:
        self._dispatcher: Dispatcher[A, R] = (
            dispatcher if dispatcher is not None else TradeDispatcher()  # type: ignore[assignment]
        )
        self._done: list[A] = []
        self._undone: list[A] = []
        self._checkpoints: dict[str, int] = {}

    @property
    def dispatcher(self) -> Dispatcher[A, R]:
        return self._dispatcher

    @property
    def done(self) -> tuple[A, ...]:
        """Applied actions, oldest first."""
        return tuple(self._done)

    @property
    def undone(self) -> tuple[A, ...]:
        """Reversed actions, most recently undone last."""
        return tuple(self._undone)

    @property
    def undone_count(self) -> int:
        return len(self._undone)

    @property
    def can_undo(self) -> bool:
        return bool(self._done)

    @property
    def can_redo(self) -> bool:
        return bool(self._undone)

    @property
    def checkpoints(self) -> dict[str, int]:
        """Checkpoint name -> length of ``done`` when it was taken."""
        return dict(self._checkpoints)

    def __len__(self) -> int:
        """Number of applied actions."""
        return len(self._done)

    def __iter__(self) -> Iterator[A]:
        return iter(tuple(self._done))

    def execute(self, action: A, receiver: R) -> None:
        """Apply *action* to *receiver* and record it, dropping any redo tail.

        If the receiver rejects the mutation the exception propagates and
        the log is left exactly as it was.
        """
        self._dispatcher.apply(action, receiver)
        self._done.append(action)
        if self._undone:
            logger.debug("Discarding %d redoable action(s)", len(self._undone))
            self._undone.clear()
            self._checkpoints = {
                name: pos
                for name, pos in self._checkpoints.items()
                if pos < len(self._done)
            }
        logger.debug("Executed %s (done=%d)", self._dispatcher.describe(action), len(self._done))

    def undo(self, receiver: R) -> bool:
        """Reverse the most recent action. Returns False if there is none."""
        if not self._done:
            return False
        action = self._done[-1]
        self._dispatcher.invert(action, receiver)
        self._done.pop()
        self._undone.append(action)
        logger.debug("Undid %s (done=%d)", self._dispatcher.describe(action), len(self._done))
        return True

    def redo(self, receiver: R) -> bool:
        """Re-apply the most recently undone action. Returns False if there is none."""
        if not self._undone:
            return False
        action = self._undone[-1]
        self._dispatcher.apply(action, receiver)
        self._undone.pop()
        self._done.append(action)
        logger.debug("Redid %s (done=%d)", self._dispatcher.describe(action), len(self._done))
        return True

    def snapshot(self) -> ActionLog[A, R]:
        """Return an independent copy of this log.

        Both stacks are rebuilt as new lists of copied actions; nothing
        done to either log afterwards is visible through the other.
        """
        copy: ActionLog[A, R] = ActionLog(self._dispatcher)
        copy._done = [self._dispatcher.copy(a) for a in self._done]
        copy._undone = [self._dispatcher.copy(a) for a in self._undone]
        copy._checkpoints = dict(self._checkpoints)
        logger.debug(
            "Snapshot taken (done=%d, undone=%d)", len(copy._done), len(copy._undone)
        )
        return copy

    def history(self) -> list[str]:
        """Audit trail: one description per applied action, in order."""
        return [self._dispatcher.describe(a) for a in self._done]

    def recent(self, count: int = 5) -> list[A]:
        """Return the last *count* applied actions, oldest first."""
        if count <= 0:
            return []
        return self._done[-count:]

    def replay(self, receiver: R) -> None:
        """Apply every action in ``done``, in order, to a fresh *receiver*.

        The log itself is not modified.
        """
        for action in self._done:
            self._dispatcher.apply(action, receiver)

    def checkpoint(self, name: str) -> None:
        """Record the current position under *name* (replacing any previous one)."""
        self._checkpoints[name] = len(self._done)
        logger.info("Checkpoint %r at action #%d", name, len(self._done))

    def undo_to(self, name: str, receiver: R) -> int | None:
        """Undo back to the named checkpoint.

        Returns the number of actions undone, or None if the checkpoint is
        unknown. Stops early, with the error propagated, if the receiver
        rejects one of the inversions.
        """
        target = self._checkpoints.get(name)
        if target is None:
            return None
        count = 0
        while len(self._done) > target and self.undo(receiver):
            count += 1
        return count
