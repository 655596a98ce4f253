"""Property-based tests for the plan compliance analyzer.

**Feature: riskledger**
"""

from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from riskledger.compliance import ScopeResolver, analyze, audit_plan, plan_thresholds
from riskledger.errors import ScopeResolutionError, ThresholdError
from riskledger.models import Outcome, Plan, RowEvent, Scope, Trade

DAY = date(2024, 3, 4)


def trades_from(results, day: date = DAY) -> list[Trade]:
    """One trade per result, a minute apart on the same day."""
    return [
        Trade(
            id=f"t{i:03d}",
            account_id="acc-1",
            plan_id="p1",
            trade_date=day,
            entry_time=time(9, i),
            result=Decimal(str(r)),
        )
        for i, r in enumerate(results)
    ]


results_strategy = st.lists(
    st.integers(min_value=-2000, max_value=2000).map(Decimal),
    min_size=0,
    max_size=25,
)


class TestOutcomeScenarios:
    """
    **Feature: riskledger, Property 10: Outcome Classification**

    Goal 1000 and stop 500 classify the canonical sequences.
    """

    def test_goal_disciplined(self):
        result = analyze(trades_from([300, 900]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.GOAL_DISCIPLINED
        assert result.history[1].event == RowEvent.GOAL_HIT
        assert result.history[0].event is None
        assert result.goal_index == 1
        assert result.remaining_to_goal == Decimal("0")

    def test_goal_gave_back(self):
        result = analyze(trades_from([1200, -400]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.GOAL_GAVE_BACK
        assert result.history[0].event == RowEvent.GOAL_HIT
        assert result.history[1].after_goal
        assert result.final_balance == Decimal("800")

    def test_goal_to_stop(self):
        result = analyze(trades_from([1100, -1700]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.GOAL_TO_STOP
        assert result.history[0].event == RowEvent.GOAL_HIT
        assert result.history[1].event is None
        assert result.remaining_to_stop == Decimal("0")

    def test_stop_disciplined(self):
        result = analyze(trades_from([-600]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.STOP_DISCIPLINED
        assert result.history[0].event == RowEvent.STOP_HIT
        assert result.rows_after_stop == 0

    def test_stop_worsened(self):
        result = analyze(trades_from([-600, -100]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.STOP_WORSENED
        assert result.history[1].after_stop
        assert result.rows_after_stop == 1

    def test_stop_recovered(self):
        result = analyze(trades_from([-600, 800]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.STOP_RECOVERED
        assert result.history[1].after_stop
        # Reaching the goal after the stop does not tag a second event
        assert result.history[1].event is None

    def test_stop_traded_on_without_worsening(self):
        result = analyze(trades_from([-600, 100]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.STOP_DISCIPLINED
        assert result.rows_after_stop == 1

    def test_loss_to_goal(self):
        result = analyze(trades_from([-300, 1400]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.LOSS_TO_GOAL
        assert result.history[1].event == RowEvent.GOAL_HIT

    def test_in_progress(self):
        result = analyze(trades_from([200, -100]), stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.IN_PROGRESS
        assert result.primary_event is None
        assert result.remaining_to_goal == Decimal("900")
        assert result.remaining_to_stop == Decimal("500")

    def test_empty_scope(self):
        result = analyze([], stop_value=500, goal_value=1000)

        assert result.outcome == Outcome.IN_PROGRESS
        assert result.history == []
        assert result.final_balance == Decimal("0")
        assert result.remaining_to_goal == Decimal("1000")
        assert result.remaining_to_stop == Decimal("500")

    def test_exact_thresholds_trigger(self):
        assert analyze(trades_from([1000]), 500, 1000).primary_event == RowEvent.GOAL_HIT
        assert analyze(trades_from([-500]), 500, 1000).primary_event == RowEvent.STOP_HIT

    def test_label(self):
        result = analyze(trades_from([1200, -400]), stop_value=500, goal_value=1000)

        assert "greed" in result.label


class TestFirstEventWins:
    """
    **Feature: riskledger, Property 11: First Event Wins**

    *For any* trade sequence, at most one row carries an event, and it
    is the first row whose running balance crosses a threshold.
    """

    @given(results=results_strategy)
    @settings(max_examples=200)
    def test_single_event_at_first_crossing(self, results):
        goal, stop = Decimal("1000"), Decimal("500")
        result = analyze(trades_from(results), stop, goal)

        events = [i for i, row in enumerate(result.history) if row.event is not None]
        assert len(events) <= 1

        running = Decimal("0")
        first = None
        for i, r in enumerate(results):
            running += r
            if running >= goal or running <= -stop:
                first = i
                break

        assert events == ([] if first is None else [first])

    @given(results=results_strategy)
    @settings(max_examples=200)
    def test_rows_after_event_are_flagged(self, results):
        result = analyze(trades_from(results), 500, 1000)

        for i, row in enumerate(result.history):
            if result.goal_index is not None:
                assert row.after_goal == (i > result.goal_index)
            else:
                assert not row.after_goal
            if result.stop_index is not None:
                assert row.after_stop == (i > result.stop_index)
            else:
                assert not row.after_stop


class TestComplianceDeterminism:
    """
    **Feature: riskledger, Property 12: Compliance Determinism**

    *For any* ordering of the same trades, the audit is identical.
    """

    @given(results=results_strategy, data=st.data())
    @settings(max_examples=100)
    def test_input_order_does_not_matter(self, results, data):
        trades = trades_from(results)
        shuffled = data.draw(st.permutations(trades))

        assert analyze(shuffled, 500, 1000) == analyze(trades, 500, 1000)

    @given(results=results_strategy)
    @settings(max_examples=100)
    def test_running_balance_is_prefix_sum(self, results):
        result = analyze(trades_from(results), 500, 1000)

        running = Decimal("0")
        for r, row in zip(results, result.history):
            running += r
            assert row.running_balance == running
        assert result.final_balance == sum(results, Decimal("0"))


class TestNonNegativeDistances:
    """
    **Feature: riskledger, Property 13: Non-negative Distances**

    *For any* trade sequence and thresholds, the remaining distances
    are never negative.
    """

    @given(
        results=results_strategy,
        goal=st.integers(min_value=1, max_value=5000),
        stop=st.integers(min_value=1, max_value=5000),
    )
    @settings(max_examples=200)
    def test_distances(self, results, goal, stop):
        result = analyze(trades_from(results), stop, goal)

        assert result.remaining_to_goal >= 0
        assert result.remaining_to_stop >= 0
        assert result.remaining_to_goal == max(Decimal("0"), goal - result.final_balance)


class TestThresholds:
    """Thresholds must be positive; plan thresholds derive from the PL."""

    @pytest.mark.parametrize("goal,stop", [(0, 500), (1000, 0), (-1, 500), (1000, -5), ("x", 5)])
    def test_non_positive_thresholds_rejected(self, goal, stop):
        with pytest.raises(ThresholdError):
            analyze([], stop_value=stop, goal_value=goal)

    def test_plan_thresholds(self):
        plan = Plan(
            id="p1",
            account_id="acc-1",
            allocated_pl=Decimal("10000"),
            period_goal_percent=Decimal("2"),
            period_stop_percent=Decimal("1.5"),
            cycle_goal_percent=Decimal("10"),
            cycle_stop_percent=Decimal("5"),
        )

        assert plan_thresholds(plan, Scope.PERIOD) == (Decimal("200.00"), Decimal("150.00"))
        assert plan_thresholds(plan, Scope.CYCLE) == (Decimal("1000.00"), Decimal("500.00"))

    def test_zero_allocation_rejected(self):
        plan = Plan(id="p1", account_id="acc-1", allocated_pl=Decimal("0"))

        with pytest.raises(ThresholdError):
            plan_thresholds(plan, Scope.PERIOD)


class TestAuditPlan:
    """Plan audits replay only the trades inside the scope's window."""

    @pytest.fixture
    def plan(self):
        return Plan(
            id="p1",
            account_id="acc-1",
            allocated_pl=Decimal("10000"),
            period_goal_percent=Decimal("2"),
            period_stop_percent=Decimal("1"),
            cycle_goal_percent=Decimal("10"),
            cycle_stop_percent=Decimal("5"),
            operation_period="daily",
            adjustment_cycle="monthly",
        )

    def test_period_scope_uses_the_day(self, plan):
        trades = trades_from([150]) + trades_from([-120], day=DAY - timedelta(days=1))

        result = audit_plan(plan, trades, Scope.PERIOD, DAY)

        assert [row.trade.result for row in result.history] == [Decimal("150")]
        assert result.goal_value == Decimal("200.00")
        assert result.stop_value == Decimal("100.00")

    def test_cycle_scope_uses_the_month(self, plan):
        trades = (
            trades_from([150])
            + trades_from([-120], day=DAY - timedelta(days=1))
            + trades_from([999], day=date(2024, 2, 28))
        )

        result = audit_plan(plan, trades, Scope.CYCLE, DAY)

        assert result.final_balance == Decimal("30")
        assert len(result.history) == 2

    def test_unknown_label_raises(self, plan):
        odd = plan.model_copy(update={"operation_period": "fortnightly"})

        with pytest.raises(ScopeResolutionError):
            audit_plan(odd, [], Scope.PERIOD, DAY, ScopeResolver())
