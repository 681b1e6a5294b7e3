"""Op-string parser: tokenize, classify, and build trade actions.

``buy AAPL 100 price:185.50`` parses into a :class:`ParsedOp` with verb
``buy``, positionals ``["AAPL", "100"]`` and params ``{"price": "185.50"}``.
:func:`build_trade` then turns that into a :class:`~ledger_core.trades.Buy`.
Failures come back as :class:`ParseError` values, never exceptions.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from ledger_core.action_registry import ActionRegistry
from ledger_core.formatter import suggest
from ledger_core.trades import TradeAction

_KEY_VALUE = re.compile(r"^([A-Za-z_][A-Za-z0-9_-]*):(.*)$")


@dataclass
class ParsedOp:
    """Successfully parsed operation."""

    verb: str
    positionals: list[str] = field(default_factory=list)
    params: dict[str, str] = field(default_factory=dict)
    raw: str = ""


@dataclass
class ParseError:
    """Parsing failure."""

    success: bool = field(default=False, init=False)
    error: str = ""
    raw: str = ""


def tokenize(op_string: str) -> list[str]:
    """Split on whitespace, respecting quotes. Raises ValueError on an unclosed quote."""
    return shlex.split(op_string)


def parse_key_value(token: str) -> tuple[str, str] | None:
    """Return ``(key, value)`` for a ``key:value`` token, else None."""
    m = _KEY_VALUE.match(token)
    if m is None:
        return None
    return m.group(1).lower(), m.group(2)


def parse_op(op_string: str) -> ParsedOp | ParseError:
    """Parse an op string into a structured :class:`ParsedOp`.

    The first token becomes the (lower-cased) verb. ``key:value`` tokens
    become params; everything else is positional, in order.
    """
    raw = op_string.strip()
    if not raw:
        return ParseError(error="Empty op string", raw=raw)

    try:
        tokens = tokenize(raw)
    except ValueError as exc:
        return ParseError(error=f"Tokenization failed: {exc}", raw=raw)

    if not tokens:
        return ParseError(error="No tokens after tokenization", raw=raw)

    params: dict[str, str] = {}
    positionals: list[str] = []
    for token in tokens[1:]:
        kv = parse_key_value(token)
        if kv is not None:
            params[kv[0]] = kv[1]
        else:
            positionals.append(token)

    return ParsedOp(
        verb=tokens[0].lower(),
        positionals=positionals,
        params=params,
        raw=raw,
    )


def build_trade(op: ParsedOp, registry: ActionRegistry) -> TradeAction | ParseError:
    """Build a trade action from a parsed ``VERB SYMBOL QTY price:P`` op."""
    spec = registry.lookup(op.verb)
    if spec is None:
        msg = f"Unknown verb {op.verb!r}"
        hint = suggest(op.verb, registry.verbs)
        if hint:
            msg += f" (did you mean {hint!r}?)"
        return ParseError(error=msg, raw=op.raw)

    if len(op.positionals) != 2:
        return ParseError(error=f"Usage: {spec.syntax}", raw=op.raw)
    symbol, qty_text = op.positionals

    missing = [name for name in spec.params if name not in op.params]
    if missing:
        needed = " ".join(f"{name}:{name.upper()}" for name in missing)
        return ParseError(error=f"Missing {needed}. Usage: {spec.syntax}", raw=op.raw)

    try:
        quantity = int(qty_text)
    except ValueError:
        return ParseError(error=f"Invalid quantity {qty_text!r}", raw=op.raw)

    try:
        price = Decimal(op.params["price"].lstrip("$"))
    except InvalidOperation:
        return ParseError(error=f"Invalid price {op.params['price']!r}", raw=op.raw)

    try:
        return spec.action_type(symbol=symbol, quantity=quantity, price=price)
    except ValueError as exc:
        return ParseError(error=str(exc), raw=op.raw)
