"""Trading portfolio: the receiver that trade actions mutate.

The portfolio exposes one mutation primitive, :meth:`Portfolio.transact`,
which moves a symbol's share count and the cash balance together. It
validates before touching anything, so a rejected transaction leaves the
portfolio exactly as it was.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ledger_core.errors import InsufficientCashError, InsufficientPositionError

logger = logging.getLogger("ledger_core.portfolio")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce *value* to :class:`Decimal` without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class Portfolio:
    """Cash balance plus per-symbol share positions.

    Parameters
    ----------
    cash : Decimal | int | float | str
        Opening cash balance.
    allow_short : bool
        When False, a transaction that would leave a negative position is
        rejected with :class:`InsufficientPositionError`.
    allow_overdraft : bool
        When False, a transaction that would leave negative cash is
        rejected with :class:`InsufficientCashError`.
        An opening balance below zero is then a ValueError.
    """

    def __init__(
        self,
        cash: Decimal | int | float | str = 0,
        *,
        allow_short: bool = True,
        allow_overdraft: bool = True,
    ) -> None:
        self._cash = to_decimal(cash)
        if not allow_overdraft and self._cash < 0:
            raise ValueError(
                f"Opening cash {self._cash} is negative but overdraft is not allowed"
            )
        self._positions: dict[str, int] = {}
        self.allow_short = allow_short
        self.allow_overdraft = allow_overdraft

    @property
    def cash(self) -> Decimal:
        return self._cash

    @property
    def positions(self) -> dict[str, int]:
        """Non-zero holdings, as a fresh dict."""
        return {sym: qty for sym, qty in self._positions.items() if qty != 0}

    def position(self, symbol: str) -> int:
        """Share count held in *symbol* (0 if never traded)."""
        return self._positions.get(symbol, 0)

    def transact(
        self,
        symbol: str,
        quantity_delta: int,
        cash_delta: Decimal | int | float | str,
    ) -> None:
        """Adjust *symbol* by *quantity_delta* shares and cash by *cash_delta*."""
        cash_delta = to_decimal(cash_delta)
        current = self.position(symbol)
        new_quantity = current + quantity_delta
        new_cash = self._cash + cash_delta

        if not self.allow_short and new_quantity < 0:
            logger.warning(
                "Rejected %+d %s: would leave position %d", quantity_delta, symbol, new_quantity
            )
            raise InsufficientPositionError(symbol, -quantity_delta, current)
        if not self.allow_overdraft and new_cash < 0:
            logger.warning(
                "Rejected cash move %s: would leave balance %s", cash_delta, new_cash
            )
            raise InsufficientCashError(-cash_delta, self._cash)

        self._positions[symbol] = new_quantity
        self._cash = new_cash

    def copy(self) -> Portfolio:
        clone = Portfolio(self._cash, allow_short=self.allow_short)
        clone.allow_overdraft = self.allow_overdraft
        clone._positions = dict(self._positions)
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Portfolio):
            return NotImplemented
        return self._cash == other._cash and self.positions == other.positions

    def __repr__(self) -> str:
        return f"Portfolio(cash={self._cash}, positions={self.positions})"
