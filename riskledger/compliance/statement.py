"""Plan statements and trade statistics."""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from riskledger.compliance.analyzer import audit_plan
from riskledger.compliance.scope import ScopeResolver, trades_in_window
from riskledger.compliance.trade_checks import TradeViolation, check_trade
from riskledger.models import AuditResult, AuditRow, Plan, Scope, Trade
from riskledger.utils.chrono import trade_sort_key
from riskledger.utils.money import DEFAULT_PLACES, HUNDRED, ZERO, quantize, ratio_percent


def trade_stats(trades: Iterable[Trade], places: int = DEFAULT_PLACES) -> dict:
    """Calculate result metrics from a list of trades.

    Args:
        trades: Trades with their net signed results.
        places: Money decimal places for averages.

    Returns:
        Dictionary with result metrics. ``profit_factor`` is None when
        there are no losing trades.
    """
    trades = list(trades)
    wins = [t.result for t in trades if t.result > ZERO]
    losses = [t.result for t in trades if t.result < ZERO]

    total_wins = sum(wins, ZERO)
    total_losses = abs(sum(losses, ZERO))
    decided = len(wins) + len(losses)

    return {
        "total_result": sum((t.result for t in trades), ZERO),
        "total_trades": len(trades),
        "winning_trades": len(wins),
        "losing_trades": len(losses),
        "win_rate": ratio_percent(len(wins), decided) if decided else ZERO,
        "profit_factor": quantize(total_wins / total_losses, places) if losses else None,
        "avg_win": quantize(total_wins / len(wins), places) if wins else ZERO,
        "avg_loss": quantize(total_losses / len(losses), places) if losses else ZERO,
        "largest_win": max(wins) if wins else ZERO,
        "largest_loss": min(losses) if losses else ZERO,
    }


class StatementRow(BaseModel):
    """An audit row with the plan rules its trade broke."""

    row: AuditRow
    violations: list[TradeViolation] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def trade(self) -> Trade:
        return self.row.trade


class PlanSummary(BaseModel):
    """Headline figures of a plan statement."""

    trades: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: Decimal = ZERO
    total_result: Decimal = ZERO
    current_pl: Decimal = Field(..., description="Allocated PL plus the scope result")
    goal_progress: Decimal = Field(default=ZERO, ge=0, le=100, description="% of goal reached")
    stop_consumed: Decimal = Field(default=ZERO, ge=0, le=100, description="% of stop used")
    violations: int = Field(default=0, ge=0, description="Trades taken after the stop")

    model_config = {"frozen": True}


class PlanStatement(BaseModel):
    """Audit of a plan's scope with per-trade rule checks."""

    plan: Plan
    scope: Scope
    start: date
    end: date
    audit: AuditResult
    rows: list[StatementRow] = Field(default_factory=list)
    summary: PlanSummary

    model_config = {"frozen": True}


def _pnl_through(trades: Sequence[Trade], key: tuple) -> Decimal:
    return sum((t.result for t in trades if trade_sort_key(t) <= key), ZERO)


def check_plan_trade(
    plan: Plan,
    trades: Iterable[Trade],
    trade: Trade,
    resolver: Optional[ScopeResolver] = None,
) -> list[TradeViolation]:
    """Check a trade with the period and cycle P&L accumulated through it.

    The windows are the ones containing the trade's own date.

    Args:
        plan: Plan the trade was taken under.
        trades: The plan's trades, from any date.
        trade: The trade being checked.
        resolver: Label resolution strategy; defaults to the built-in rules.
    """
    resolver = resolver or ScopeResolver()
    trades = list(trades)
    key = trade_sort_key(trade)
    pnl = {}
    for scope in Scope:
        window = trades_in_window(trades, *resolver.bounds(plan, scope, trade.trade_date))
        pnl[scope] = _pnl_through(window, key)
    return check_trade(trade, plan, period_pnl=pnl[Scope.PERIOD], cycle_pnl=pnl[Scope.CYCLE])


def _summarize(plan: Plan, audit: AuditResult) -> PlanSummary:
    results = [row.trade.result for row in audit.history]
    wins = sum(1 for r in results if r > ZERO)
    losses = sum(1 for r in results if r < ZERO)
    final = audit.final_balance

    progress = ratio_percent(max(final, ZERO), audit.goal_value)
    consumed = ratio_percent(abs(min(final, ZERO)), audit.stop_value)

    return PlanSummary(
        trades=len(results),
        wins=wins,
        losses=losses,
        win_rate=ratio_percent(wins, wins + losses),
        total_result=final,
        current_pl=plan.allocated_pl + final,
        goal_progress=min(progress, HUNDRED),
        stop_consumed=min(consumed, HUNDRED),
        violations=audit.rows_after_stop,
    )


def plan_statement(
    plan: Plan,
    trades: Iterable[Trade],
    scope: Scope,
    today: date,
    resolver: Optional[ScopeResolver] = None,
    places: int = DEFAULT_PLACES,
) -> PlanStatement:
    """Build the statement of a plan's scope window.

    Each row is checked against the plan with the period and cycle P&L
    accumulated up to and including its trade, in the windows of its date.

    Args:
        plan: Plan to report on.
        trades: The plan's trades, from any date.
        scope: Period or cycle.
        today: Reference date picking the window.
        resolver: Label resolution strategy; defaults to the built-in rules.
        places: Money decimal places.

    Returns:
        The audit, the checked rows and a summary.
    """
    resolver = resolver or ScopeResolver()
    trades = list(trades)
    audit = audit_plan(plan, trades, scope, today, resolver, places)
    start, end = resolver.bounds(plan, scope, today)

    rows = [
        StatementRow(row=row, violations=check_plan_trade(plan, trades, row.trade, resolver))
        for row in audit.history
    ]

    return PlanStatement(
        plan=plan,
        scope=scope,
        start=start,
        end=end,
        audit=audit,
        rows=rows,
        summary=_summarize(plan, audit),
    )


def group_rows_by_date(rows: Iterable) -> dict[date, list]:
    """Group statement or audit rows by trade date, oldest first."""
    grouped: dict[date, list] = {}
    for row in sorted(rows, key=lambda r: trade_sort_key(r.trade)):
        grouped.setdefault(row.trade.trade_date, []).append(row)
    return grouped
