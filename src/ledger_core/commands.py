"""Open set of trade commands.

Third-party code that needs a new action kind without editing
:mod:`ledger_core.trades` implements the :class:`Command` protocol and logs
it through an :class:`~ledger_core.action_log.ActionLog` built with a
:class:`~ledger_core.dispatch.CommandDispatcher`.

A command carries its parameters only. The receiver arrives as an argument
to ``apply``/``invert``; ``clone`` gives the log an explicit copy hook so
snapshots never share a mutable command with the live log.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, TypeVar, runtime_checkable

from ledger_core.portfolio import Portfolio
from ledger_core.trades import validate_trade_params

R = TypeVar("R", contravariant=True)  # Receiver type


@runtime_checkable
class Command(Protocol[R]):
    """Anything offering apply / invert / describe / clone."""

    def apply(self, receiver: R) -> None:
        """Perform the forward mutation."""
        ...

    def invert(self, receiver: R) -> None:
        """Perform the exact compensating mutation of :meth:`apply`."""
        ...

    def describe(self) -> str:
        """One-line audit description."""
        ...

    def clone(self) -> Command[R]:
        """Return an independent copy of this command."""
        ...


@dataclass(frozen=True)
class MarketBuy:
    """Buy at the prevailing market price."""

    symbol: str
    quantity: int
    price: Decimal

    def __post_init__(self) -> None:
        symbol, _, price = validate_trade_params(self.symbol, self.quantity, self.price)
        object.__setattr__(self, "symbol", symbol)
        object.__setattr__(self, "price", price)

    def apply(self, receiver: Portfolio) -> None:
        receiver.transact(self.symbol, self.quantity, -self.quantity * self.price)

    def invert(self, receiver: Portfolio) -> None:
        receiver.transact(self.symbol, -self.quantity, self.quantity * self.price)

    def describe(self) -> str:
        return f"MARKET BUY {self.quantity} {self.symbol} @ ${self.price:.2f}"

    def clone(self) -> MarketBuy:
        return MarketBuy(self.symbol, self.quantity, self.price)


@dataclass(frozen=True)
class LimitSell:
    """Sell at a fixed limit price."""

    symbol: str
    quantity: int
    limit_price: Decimal

    def __post_init__(self) -> None:
        symbol, _, price = validate_trade_params(
            self.symbol, self.quantity, self.limit_price
        )
        object.__setattr__(self, "symbol", symbol)
        object.__setattr__(self, "limit_price", price)

    def apply(self, receiver: Portfolio) -> None:
        receiver.transact(self.symbol, -self.quantity, self.quantity * self.limit_price)

    def invert(self, receiver: Portfolio) -> None:
        receiver.transact(self.symbol, self.quantity, -self.quantity * self.limit_price)

    def describe(self) -> str:
        return f"LIMIT SELL {self.quantity} {self.symbol} @ ${self.limit_price:.2f}"

    def clone(self) -> LimitSell:
        return LimitSell(self.symbol, self.quantity, self.limit_price)
