"""Closed set of trade actions and their exhaustive dispatch.

Actions are frozen dataclasses: pure data carrying a symbol, a quantity
and a price. They never reference a portfolio; the portfolio is passed to
:func:`apply_trade` / :func:`invert_trade` at call time.

Adding a variant to :data:`TradeAction` without a matching ``case`` arm
makes the ``_unhandled`` calls below fail type checking, and
:func:`verify_dispatch` fails at startup.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Never, NoReturn, Union, get_args

from ledger_core.errors import ProgrammingError, UnhandledActionError
from ledger_core.portfolio import Portfolio, to_decimal

if TYPE_CHECKING:
    from typing import Self


def validate_trade_params(
    symbol: object, quantity: object, price: object
) -> tuple[str, int, Decimal]:
    """Normalise trade parameters, raising ValueError for anything invalid.

    Returns ``(symbol, quantity, price)`` with the symbol stripped and
    upper-cased and the price as a :class:`Decimal`.
    """
    if not isinstance(symbol, str):
        raise ValueError(f"Trade symbol must be a string, got {symbol!r}")
    symbol = symbol.strip().upper()
    if not symbol:
        raise ValueError("Trade symbol must not be empty")
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError(f"Trade quantity must be an int, got {quantity!r}")
    if quantity <= 0:
        raise ValueError(f"Trade quantity must be positive, got {quantity}")
    try:
        decimal_price = to_decimal(price)  # type: ignore[arg-type]
    except InvalidOperation as exc:
        raise ValueError(f"Trade price must be a number, got {price!r}") from exc
    if not decimal_price.is_finite() or decimal_price < 0:
        raise ValueError(f"Trade price must be finite and non-negative, got {decimal_price}")
    return symbol, quantity, decimal_price


@dataclass(frozen=True)
class _Trade:
    symbol: str
    quantity: int
    price: Decimal

    def __post_init__(self) -> None:
        symbol, _, price = validate_trade_params(self.symbol, self.quantity, self.price)
        object.__setattr__(self, "symbol", symbol)
        object.__setattr__(self, "price", price)

    @property
    def notional(self) -> Decimal:
        """Cash value of the trade (quantity x price)."""
        return self.quantity * self.price

    @classmethod
    def sample(cls) -> Self:
        """A throwaway instance used by :func:`verify_dispatch`."""
        return cls(symbol="SELFTEST", quantity=1, price=Decimal("1"))


@dataclass(frozen=True)
class Buy(_Trade):
    """Buy *quantity* shares of *symbol* at *price*."""


@dataclass(frozen=True)
class Sell(_Trade):
    """Sell *quantity* shares of *symbol* at *price*."""


TradeAction = Union[Buy, Sell]


def apply_trade(action: TradeAction, portfolio: Portfolio) -> None:
    """Perform the forward mutation of *action* on *portfolio*."""
    match action:
        case Buy():
            portfolio.transact(action.symbol, action.quantity, -action.notional)
        case Sell():
            portfolio.transact(action.symbol, -action.quantity, action.notional)
        case _:
            _unhandled(action, "apply")


def invert_trade(action: TradeAction, portfolio: Portfolio) -> None:
    """Perform the compensating mutation of a previously applied *action*."""
    match action:
        case Buy():
            portfolio.transact(action.symbol, -action.quantity, action.notional)
        case Sell():
            portfolio.transact(action.symbol, action.quantity, -action.notional)
        case _:
            _unhandled(action, "invert")


def describe_trade(action: TradeAction) -> str:
    """One-line audit description, e.g. ``BUY 100 AAPL @ $185.50``."""
    match action:
        case Buy():
            verb = "BUY"
        case Sell():
            verb = "SELL"
        case _:
            _unhandled(action, "describe")
    return f"{verb} {action.quantity} {action.symbol} @ ${action.price:.2f}"


def _unhandled(action: Never, operation: str) -> NoReturn:
    # Typed like typing.assert_never: a missing case fails type checking.
    raise UnhandledActionError(action, operation)


def verify_dispatch() -> None:
    """Check every :data:`TradeAction` variant is fully dispatched.

    Each variant's sample is applied to and inverted on a scratch portfolio,
    which must come back unchanged. Raises :class:`UnhandledActionError`
    for a missing arm and :class:`ProgrammingError` for an inverse that does
    not compensate its forward mutation.
    """
    for variant in get_args(TradeAction):
        action = variant.sample()
        scratch = Portfolio(0)
        apply_trade(action, scratch)
        invert_trade(action, scratch)
        describe_trade(action)
        if scratch != Portfolio(0):
            raise ProgrammingError(
                f"invert_trade does not undo apply_trade for {variant.__name__}: {scratch!r}"
            )
