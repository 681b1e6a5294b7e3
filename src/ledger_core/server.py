"""Ledger server factory: creates a fully wired MCP server for trading.

Registers 4 tools: ``ledger``, ``ledger_query``, ``ledger_session``,
``ledger_help``. Embeds the reference card in the main tool description.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal

from mcp.server.fastmcp import FastMCP
from mcp.types import TextContent

from ledger_core.action_registry import ActionRegistry, default_registry
from ledger_core.errors import ReceiverMutationError
from ledger_core.formatter import (
    format_money,
    format_result,
    render_history,
    render_portfolio,
)
from ledger_core.parsed_op import ParseError, build_trade, parse_op
from ledger_core.session import LedgerSession
from ledger_core.trades import describe_trade, verify_dispatch

logger = logging.getLogger("ledger_core.server")

SESSION_HELP = (
    "new [cash:N] [no-short] [no-overdraft] | undo | undo to:NAME | redo | "
    "checkpoint NAME | snapshot NAME | history"
)
QUERY_HELP = "cash | position SYMBOL | positions | history | snapshot NAME | snapshots"


def _build_tool_description(registry: ActionRegistry) -> str:
    """Build the inline tool description embedding the reference card."""
    lines: list[str] = [
        "Execute trades. Each op string follows: VERB SYMBOL QTY price:PRICE\n"
        "A batch is atomic: if any op fails, every op in it is rolled back.\n"
        "Call ledger_help for the full reference card.\n"
    ]
    for spec in registry.specs:
        lines.append(f"  {spec.syntax}")
    return "\n".join(lines)


def run_query(session: LedgerSession, q: str) -> str:
    """Answer a read-only query against the session."""
    portfolio = session.portfolio
    if portfolio is None:
        return format_result(False, "No portfolio loaded.")
    parts = q.split()
    command = parts[0].lower() if parts else ""

    match command:
        case "cash":
            return format_money(portfolio.cash)
        case "position" if len(parts) == 2:
            symbol = parts[1].upper()
            return f"{symbol}: {portfolio.position(symbol)} shares"
        case "positions":
            return render_portfolio(portfolio)
        case "history":
            return render_history(session.log.history())
        case "snapshots":
            names = session.snapshots
            if not names:
                return "Snapshots: (none)"
            return "Snapshots:\n" + "\n".join(
                f"  {name}: {len(snap)} trade(s)" for name, snap in names.items()
            )
        case "snapshot" if len(parts) == 2:
            snap = session.snapshots.get(parts[1])
            if snap is None:
                return format_result(False, f"No snapshot named {parts[1]!r}")
            replayed = session.fresh_portfolio()
            snap.replay(replayed)
            return (
                render_history(snap.history(), title=f"Snapshot '{parts[1]}'")
                + "\n"
                + render_portfolio(replayed)
            )
        case _:
            return format_result(False, f"Unknown query {q!r}. Try: {QUERY_HELP}")


def execute_batch(
    session: LedgerSession,
    registry: ActionRegistry,
    ops: list[str],
) -> str:
    """Run a batch of trade ops atomically.

    On the first failure every trade already executed in the batch is
    undone through the log and the pre-batch log is restored from a
    snapshot, so the redo stack is as it was too.
    """
    portfolio = session.portfolio
    if portfolio is None:
        return format_result(False, "No portfolio loaded. Use ledger_session 'new' first.")

    before = session.log.snapshot()
    executed = 0
    results: list[str] = []
    for i, op_str in enumerate(ops):
        parsed = parse_op(op_str)
        action = parsed if isinstance(parsed, ParseError) else build_trade(parsed, registry)
        if isinstance(action, ParseError):
            error = action.error
        else:
            try:
                session.log.execute(action, portfolio)
            except ReceiverMutationError as exc:
                error = str(exc)
            else:
                executed += 1
                results.append(
                    format_result(
                        True,
                        f"{describe_trade(action)} (cash: {format_money(portfolio.cash)})",
                    )
                )
                continue

        reverted = 0
        try:
            while reverted < executed:
                session.log.undo(portfolio)
                reverted += 1
        except ReceiverMutationError as exc:
            # The live log still matches the portfolio; keep it.
            logger.error(
                "Rollback stopped after %d of %d ops: %s", reverted, executed, exc
            )
            return (
                f"! Batch failed at op {i + 1}: {op_str}. "
                f"Error: {error}. "
                f"Rollback incomplete: {reverted} of {executed} ops reverted "
                f"before undo was rejected ({exc}). "
                f"{executed - reverted} op(s) remain applied; see history."
            )
        session.log = before
        logger.warning("Batch failed at op %d (%s): %s", i + 1, op_str, error)
        return (
            f"! Batch failed at op {i + 1}: {op_str}. "
            f"Error: {error}. "
            f"State rolled back ({executed} ops reverted)."
        )

    return "\n".join(results)


def create_ledger_server(
    *,
    initial_cash: Decimal | int | float | str = 0,
    allow_short: bool = True,
    allow_overdraft: bool = True,
    registry: ActionRegistry | None = None,
    **kwargs,
) -> FastMCP:
    """Create a fully wired MCP server around one portfolio session.

    Registers 4 tools:
    - ``ledger``: execute trade ops (atomic batch)
    - ``ledger_query``: read portfolio, history and snapshots
    - ``ledger_session``: session lifecycle, undo/redo, checkpoints, snapshots
    - ``ledger_help``: reference card

    Parameters
    ----------
    initial_cash : Decimal | int | float | str
        Opening cash for the session started at creation and for ``new``
        without ``cash:``.
    allow_short, allow_overdraft : bool
        Portfolio validation rules.
    registry : ActionRegistry | None
        Verb registry; defaults to :func:`default_registry`.
    **kwargs
        Additional arguments passed to the FastMCP constructor.

    Returns
    -------
    FastMCP
        Configured MCP server ready to run.
    """
    verify_dispatch()
    registry = registry or default_registry()
    registry.check_coverage()

    session = LedgerSession(
        initial_cash,
        allow_short=allow_short,
        allow_overdraft=allow_overdraft,
        start=True,
    )

    kwargs.setdefault("name", "ledger")
    mcp = FastMCP(**kwargs)

    tool_description = _build_tool_description(registry)
    reference_card = registry.generate_reference_card(
        {"Session": SESSION_HELP, "Query": QUERY_HELP}
    )

    @mcp.tool(name="ledger", description=tool_description, structured_output=False)
    def execute_ops(ops: list[str]) -> TextContent:
        return TextContent(type="text", text=execute_batch(session, registry, ops))

    @mcp.tool(name="ledger_query", structured_output=False)
    def execute_query(q: str) -> TextContent:
        """Query: cash, position SYMBOL, positions, history, snapshot NAME, snapshots."""
        return TextContent(type="text", text=run_query(session, q))

    @mcp.tool(name="ledger_session", structured_output=False)
    def execute_session(action: str) -> TextContent:
        """Session: 'new cash:1000000', 'undo', 'undo to:v1', 'redo', 'checkpoint v1', 'snapshot s1', 'history'"""
        return TextContent(type="text", text=session.dispatch(action))

    @mcp.tool(name="ledger_help", structured_output=False)
    def get_help() -> str:
        """Returns the ledger reference card with all syntax."""
        return reference_card

    logger.info("Ledger server ready with opening cash %s", initial_cash)
    return mcp


def main() -> None:
    """Console entry point: configure logging from the environment and serve over stdio."""
    logging.basicConfig(
        level=os.environ.get("LEDGER_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    server = create_ledger_server(
        initial_cash=os.environ.get("LEDGER_INITIAL_CASH", "1000000"),
    )
    server.run()
