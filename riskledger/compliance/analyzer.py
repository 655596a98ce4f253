"""Plan compliance analyzer.

Replays a scope's trade results in chronological order against a goal
and a stop, tags the first threshold crossing, flags everything traded
after it, and classifies how the trader behaved.

The replay starts from zero: the running balance is the P&L of the
scope, independent of what the account is worth.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Optional

from riskledger.compliance.scope import ScopeResolver, trades_in_window
from riskledger.errors import ThresholdError
from riskledger.models import AuditResult, AuditRow, Outcome, Plan, RowEvent, Scope, Trade
from riskledger.utils.chrono import trade_sort_key
from riskledger.utils.money import DEFAULT_PLACES, ZERO, MoneyLike, percent_of, to_money


def _threshold(name: str, value: MoneyLike) -> Decimal:
    try:
        amount = to_money(value)
    except ValueError as e:
        raise ThresholdError(f"{name} is not a number: {value!r}") from e
    if amount <= ZERO:
        raise ThresholdError(f"{name} must be positive, got {amount}")
    return amount


def _classify(
    event: Optional[RowEvent],
    final: Decimal,
    goal: Decimal,
    stop: Decimal,
    stop_balance: Optional[Decimal],
    dipped_before_goal: bool,
) -> Outcome:
    if event is None:
        return Outcome.IN_PROGRESS

    if event == RowEvent.GOAL_HIT:
        if final <= -stop:
            return Outcome.GOAL_TO_STOP
        if final < goal:
            return Outcome.GOAL_GAVE_BACK
        if dipped_before_goal:
            return Outcome.LOSS_TO_GOAL
        return Outcome.GOAL_DISCIPLINED

    if final < stop_balance:
        return Outcome.STOP_WORSENED
    if final > ZERO:
        return Outcome.STOP_RECOVERED
    return Outcome.STOP_DISCIPLINED


def analyze(scoped_trades: Iterable[Trade], stop_value: MoneyLike, goal_value: MoneyLike) -> AuditResult:
    """Replay a scope's trades against its stop and goal.

    Args:
        scoped_trades: Trades already filtered to the scope, one net
            signed result each, in any order.
        stop_value: Loss limit, as a positive magnitude.
        goal_value: Profit target, as a positive magnitude.

    Returns:
        The audit: per-row running balance and event flags, the outcome
        classification and the remaining distances to goal and stop.

    Raises:
        ThresholdError: If either threshold is zero or negative.
    """
    stop = _threshold("stop_value", stop_value)
    goal = _threshold("goal_value", goal_value)

    running = ZERO
    event: Optional[RowEvent] = None
    goal_index: Optional[int] = None
    stop_index: Optional[int] = None
    stop_balance: Optional[Decimal] = None
    dipped_before_goal = False
    history: list[AuditRow] = []

    for index, trade in enumerate(sorted(scoped_trades, key=trade_sort_key)):
        running += trade.result
        row_event: Optional[RowEvent] = None

        # Only the first crossing in the scope is the event
        if event is None:
            if running >= goal:
                row_event = event = RowEvent.GOAL_HIT
                goal_index = index
            elif running <= -stop:
                row_event = event = RowEvent.STOP_HIT
                stop_index = index
                stop_balance = running
            elif running < ZERO:
                dipped_before_goal = True

        history.append(
            AuditRow(
                trade=trade,
                running_balance=running,
                event=row_event,
                after_goal=goal_index is not None and index > goal_index,
                after_stop=stop_index is not None and index > stop_index,
            )
        )

    return AuditResult(
        goal_value=goal,
        stop_value=stop,
        history=history,
        final_balance=running,
        outcome=_classify(event, running, goal, stop, stop_balance, dipped_before_goal),
        primary_event=event,
        goal_index=goal_index,
        stop_index=stop_index,
        remaining_to_goal=max(ZERO, goal - running),
        remaining_to_stop=max(ZERO, stop - abs(min(ZERO, running))),
    )


def plan_thresholds(plan: Plan, scope: Scope, places: int = DEFAULT_PLACES) -> tuple[Decimal, Decimal]:
    """Monetary goal and stop of a plan's scope.

    Returns:
        Tuple of (goal value, stop value), each ``PL × percent / 100``.

    Raises:
        ThresholdError: If the plan has no positive allocation.
    """
    if plan.allocated_pl <= ZERO:
        raise ThresholdError(f"Plan {plan.id} has no positive allocation: {plan.allocated_pl}")
    goal = percent_of(plan.allocated_pl, plan.goal_percent(scope), places)
    stop = percent_of(plan.allocated_pl, plan.stop_percent(scope), places)
    return goal, stop


def audit_plan(
    plan: Plan,
    trades: Iterable[Trade],
    scope: Scope,
    today: date,
    resolver: Optional[ScopeResolver] = None,
    places: int = DEFAULT_PLACES,
) -> AuditResult:
    """Audit a plan's trades over the scope window containing ``today``.

    Args:
        plan: Plan whose thresholds apply.
        trades: The plan's trades, from any date.
        scope: Period or cycle.
        today: Reference date picking the window.
        resolver: Label resolution strategy; defaults to the built-in rules.
        places: Money decimal places for the thresholds.

    Returns:
        The audit of the trades inside the window.
    """
    resolver = resolver or ScopeResolver()
    start, end = resolver.bounds(plan, scope, today)
    goal, stop = plan_thresholds(plan, scope, places)
    return analyze(trades_in_window(trades, start, end), stop, goal)
