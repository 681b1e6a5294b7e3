"""Compact response formatting for ledger tool outputs.

Result lines use a one-character prefix: ``+`` for success, ``!`` for
failure. Also renders money, portfolios and audit trails.
"""

from __future__ import annotations

import difflib
from collections.abc import Iterable
from decimal import Decimal

from ledger_core.portfolio import Portfolio


def format_result(
    success: bool,
    message: str,
    prefix: str = "",
) -> str:
    """Format a mutation result line.

    Parameters
    ----------
    success : bool
        Whether the operation succeeded.
    message : str
        The result message.
    prefix : str, optional
        Override prefix character. If empty, defaults to ``+`` for success
        and ``!`` for failure.

    Returns
    -------
    str
        Formatted result string.
    """
    if prefix:
        return f"{prefix} {message}"
    if success:
        return f"+ {message}"
    return f"! {message}"


def suggest(input_str: str, candidates: list[str]) -> str | None:
    """Find the closest match for *input_str* among *candidates*.

    Returns the best match if the similarity ratio is above 0.6,
    otherwise None.
    """
    if not candidates:
        return None
    matches = difflib.get_close_matches(input_str, candidates, n=1, cutoff=0.6)
    return matches[0] if matches else None


def format_money(amount: Decimal) -> str:
    """``Decimal("981450")`` -> ``$981,450.00``; negatives as ``-$12.50``."""
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def render_portfolio(portfolio: Portfolio) -> str:
    lines = ["Portfolio:", f"  Cash: {format_money(portfolio.cash)}"]
    for symbol, qty in sorted(portfolio.positions.items()):
        lines.append(f"  {symbol}: {qty} shares")
    return "\n".join(lines)


def render_history(descriptions: Iterable[str], title: str = "Trade History") -> str:
    """Numbered audit trail, or ``(empty)``."""
    lines = [f"{title}:"]
    entries = [f"  {i}. {d}" for i, d in enumerate(descriptions, start=1)]
    lines.extend(entries or ["  (empty)"])
    return "\n".join(lines)
