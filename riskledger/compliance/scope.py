"""Resolution of plan period/cycle labels to calendar windows.

Labels are free text entered with the plan ("daily", "Mensal", "Swing
Trade"). They are resolved by an ordered list of rules supplied by
configuration; there is no implicit fallback. A label no rule matches is
an error unless a default window was configured explicitly.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Optional

from riskledger.config import DEFAULT_SCOPE_RULES, ScopeRule
from riskledger.errors import ScopeResolutionError
from riskledger.models import Plan, Scope, Trade
from riskledger.utils.chrono import SUNDAY, Window, window_bounds


def _normalize(label: str) -> str:
    return " ".join(label.split()).casefold()


class ScopeResolver:
    """Ordered label → window resolution strategy."""

    def __init__(
        self,
        rules: Sequence[ScopeRule] = DEFAULT_SCOPE_RULES,
        default: Optional[Window] = None,
        week_start: int = SUNDAY,
    ):
        """Initialize the resolver.

        Args:
            rules: Rules checked in order.
            default: Window for unmatched labels; None rejects them.
            week_start: Weekday weeks start on (0=Monday ... 6=Sunday).

        Raises:
            ScopeResolutionError: If one label is mapped to two windows.
        """
        seen: dict[str, Window] = {}
        for rule in rules:
            key = _normalize(rule.label)
            if key in seen and seen[key] != rule.window:
                raise ScopeResolutionError(
                    f"Ambiguous scope label '{rule.label}': "
                    f"{seen[key].value} and {rule.window.value}"
                )
            seen.setdefault(key, rule.window)
        self.rules = list(rules)
        self.default = default
        self.week_start = week_start

    @classmethod
    def from_config(cls, config) -> "ScopeResolver":
        return cls(config.scope_rules, config.default_window, config.week_start)

    def resolve(self, label: str) -> Window:
        """Get the window for a label.

        Raises:
            ScopeResolutionError: If no rule matches and no default is set.
        """
        key = _normalize(label)
        for rule in self.rules:
            if _normalize(rule.label) == key:
                return rule.window
        if self.default is not None:
            return self.default
        raise ScopeResolutionError(f"No scope rule for label '{label}'")

    def bounds(self, plan: Plan, scope: Scope, today: date) -> tuple[date, date]:
        """Inclusive date range of a plan's scope around ``today``."""
        window = self.resolve(plan.scope_label(scope))
        return window_bounds(window, today, self.week_start)


def trades_in_window(trades: Iterable[Trade], start: date, end: date) -> list[Trade]:
    """Trades dated within ``start``..``end`` inclusive."""
    return [t for t in trades if start <= t.trade_date <= end]
