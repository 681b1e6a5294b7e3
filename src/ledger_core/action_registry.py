"""Action registry: verb metadata for the trade op language.

Maps op verbs (``buy``, ``sell``) to the action class they build. Used for
op parsing, the reference card, and a coverage check that every
:data:`~ledger_core.trades.TradeAction` variant can be reached by a verb.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import get_args

from ledger_core.errors import UnhandledActionError
from ledger_core.trades import Buy, Sell, TradeAction


@dataclass
class ActionSpec:
    """Specification for a single trade verb."""

    verb: str
    syntax: str
    category: str
    action_type: type
    params: list[str] = field(default_factory=list)
    description: str = ""


class ActionRegistry:
    """Registry of action verbs with reference card generation."""

    def __init__(self) -> None:
        self._specs: list[ActionSpec] = []
        self._map: dict[str, ActionSpec] = {}

    def register(self, spec: ActionSpec) -> None:
        """Register a single verb specification."""
        self._specs.append(spec)
        self._map[spec.verb] = spec

    def register_many(self, specs: list[ActionSpec]) -> None:
        for spec in specs:
            self.register(spec)

    def lookup(self, verb: str) -> ActionSpec | None:
        """Look up a verb specification by name."""
        return self._map.get(verb)

    @property
    def specs(self) -> list[ActionSpec]:
        """All registered specifications (insertion order)."""
        return list(self._specs)

    @property
    def verbs(self) -> list[str]:
        return [s.verb for s in self._specs]

    def check_coverage(self) -> None:
        """Raise :class:`UnhandledActionError` if a TradeAction variant has no verb."""
        covered = {s.action_type for s in self._specs}
        for variant in get_args(TradeAction):
            if variant not in covered:
                raise UnhandledActionError(variant.sample(), "parse")

    def generate_reference_card(
        self,
        extra_sections: dict[str, str] | None = None,
    ) -> str:
        """Generate a formatted reference card from registered verbs.

        Verbs are grouped by category; extra static sections follow.
        """
        lines: list[str] = []

        seen_categories: list[str] = []
        for s in self._specs:
            if s.category not in seen_categories:
                seen_categories.append(s.category)

        for cat in seen_categories:
            lines.append(f"### {cat.replace('_', ' ').title()}")
            for s in self._specs:
                if s.category != cat:
                    continue
                if s.description:
                    lines.append(f"  {s.syntax}  ({s.description})")
                else:
                    lines.append(f"  {s.syntax}")
            lines.append("")

        if extra_sections:
            for title, content in extra_sections.items():
                lines.append(f"## {title}")
                lines.append(content)
                lines.append("")

        return "\n".join(lines)


TRADE_VERBS: list[ActionSpec] = [
    ActionSpec(
        verb="buy",
        syntax="buy SYMBOL QTY price:PRICE",
        category="trade",
        action_type=Buy,
        params=["price"],
        description="debit cash, add shares",
    ),
    ActionSpec(
        verb="sell",
        syntax="sell SYMBOL QTY price:PRICE",
        category="trade",
        action_type=Sell,
        params=["price"],
        description="credit cash, remove shares",
    ),
]


def default_registry() -> ActionRegistry:
    """Registry pre-loaded with :data:`TRADE_VERBS`."""
    registry = ActionRegistry()
    registry.register_many(TRADE_VERBS)
    return registry
