"""Tests for data models and shared utilities.

**Feature: riskledger**
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import ValidationError

from riskledger.models import (
    Adjustment,
    Deposit,
    InitialBalance,
    MovementType,
    Plan,
    Scope,
    Trade,
    TradeResult,
    Withdrawal,
    new_movement,
    parse_movement,
)
from riskledger.utils.chrono import Window, trade_sort_key, window_bounds
from riskledger.utils.money import percent_of, quantize, ratio_percent, to_money

NOW = datetime(2024, 3, 1, 12, 0)


class TestMovementSignConvention:
    """
    **Feature: riskledger, Property 7: Stored Sign Convention**

    *For any* movement, the stored amount carries the sign its type
    requires.
    """

    @given(amount=st.integers(min_value=1, max_value=10**9))
    @settings(max_examples=50)
    def test_deposit_positive_withdrawal_negative(self, amount: int):
        Deposit(account_id="a", amount=Decimal(amount), effective_at=NOW)
        Withdrawal(account_id="a", amount=-Decimal(amount), effective_at=NOW)

        with pytest.raises(ValidationError):
            Deposit(account_id="a", amount=-Decimal(amount), effective_at=NOW)
        with pytest.raises(ValidationError):
            Withdrawal(account_id="a", amount=Decimal(amount), effective_at=NOW)

    def test_zero_amounts(self):
        InitialBalance(account_id="a", amount=Decimal("0"), effective_at=NOW)
        TradeResult(account_id="a", amount=Decimal("0"), effective_at=NOW, trade_id="t1")

        with pytest.raises(ValidationError):
            Deposit(account_id="a", amount=Decimal("0"), effective_at=NOW)
        with pytest.raises(ValidationError):
            Adjustment(account_id="a", amount=Decimal("0"), effective_at=NOW, description="x")

    def test_initial_balance_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            InitialBalance(account_id="a", amount=Decimal("-1"), effective_at=NOW)

    def test_trade_result_any_sign(self):
        TradeResult(account_id="a", amount=Decimal("-10"), effective_at=NOW, trade_id="t1")
        TradeResult(account_id="a", amount=Decimal("10"), effective_at=NOW, trade_id="t1")


class TestMovementVariants:
    """Movement shapes are selected by their type tag."""

    def test_trade_result_requires_trade_id(self):
        with pytest.raises(ValidationError):
            TradeResult(account_id="a", amount=Decimal("5"), effective_at=NOW)

    def test_adjustment_requires_reason(self):
        with pytest.raises(ValidationError):
            Adjustment(account_id="a", amount=Decimal("5"), effective_at=NOW)

    def test_adjustment_trade_link_optional(self):
        adj = Adjustment(account_id="a", amount=Decimal("5"), effective_at=NOW, description="fee")

        assert adj.trade_id is None

    def test_parse_selects_variant(self):
        movement = parse_movement({
            "account_id": "a",
            "type": "WITHDRAWAL",
            "amount": "-10.5",
            "effective_at": "2024-03-01T10:00:00",
        })

        assert isinstance(movement, Withdrawal)
        assert movement.amount == Decimal("-10.5")
        assert movement.movement_type == MovementType.WITHDRAWAL

    def test_new_movement_default_description(self):
        deposit = new_movement(MovementType.DEPOSIT, account_id="a", amount=Decimal("1"), effective_at=NOW)

        assert deposit.description == "Deposit"

    def test_new_movement_adjustment_needs_description(self):
        with pytest.raises(ValidationError):
            new_movement(MovementType.ADJUSTMENT, account_id="a", amount=Decimal("1"), effective_at=NOW)

    def test_aware_time_normalized_to_naive_utc(self):
        aware = datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=-3)))

        movement = Deposit(account_id="a", amount=Decimal("1"), effective_at=aware)

        assert movement.effective_at == datetime(2024, 3, 1, 15, 0)
        assert movement.effective_at.tzinfo is None

    def test_movements_are_immutable(self):
        deposit = Deposit(account_id="a", amount=Decimal("1"), effective_at=NOW)

        with pytest.raises(ValidationError):
            deposit.amount = Decimal("2")


class TestPlanModel:
    """Plans expose their thresholds per scope."""

    def test_scope_accessors(self):
        plan = Plan(
            account_id="a",
            allocated_pl=Decimal("10000"),
            period_goal_percent=Decimal("2"),
            period_stop_percent=Decimal("1"),
            cycle_goal_percent=Decimal("10"),
            cycle_stop_percent=Decimal("5"),
            operation_period="Day Trade",
            adjustment_cycle="Mensal",
        )

        assert plan.goal_percent(Scope.PERIOD) == Decimal("2")
        assert plan.stop_percent(Scope.PERIOD) == Decimal("1")
        assert plan.goal_percent(Scope.CYCLE) == Decimal("10")
        assert plan.stop_percent(Scope.CYCLE) == Decimal("5")
        assert plan.scope_label(Scope.PERIOD) == "Day Trade"
        assert plan.scope_label(Scope.CYCLE) == "Mensal"

    def test_percentages_must_be_positive(self):
        with pytest.raises(ValidationError):
            Plan(account_id="a", allocated_pl=Decimal("100"), cycle_stop_percent=Decimal("0"))


class TestMoneyHelpers:
    """
    **Feature: riskledger, Property 8: Exact Money Arithmetic**

    Amounts are exact decimals; floats go through their shortest repr.
    """

    def test_float_goes_through_str(self):
        assert to_money(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("bad", ["abc", float("nan"), float("inf"), True, None])
    def test_rejects_non_numbers(self, bad):
        with pytest.raises(ValueError):
            to_money(bad)

    def test_quantize_half_up(self):
        assert quantize(Decimal("2.345")) == Decimal("2.35")
        assert quantize(Decimal("-2.345")) == Decimal("-2.35")
        assert quantize(Decimal("2.5"), places=0) == Decimal("3")

    def test_percent_of(self):
        assert percent_of(10000, 5) == Decimal("500.00")
        assert percent_of(Decimal("3333.33"), Decimal("1.5")) == Decimal("50.00")

    def test_ratio_percent(self):
        assert ratio_percent(250, 1000) == Decimal("25.00")
        assert ratio_percent(1, 0) == Decimal("0.00")

    @given(
        cents=st.integers(min_value=-(10**12), max_value=10**12),
    )
    @settings(max_examples=100)
    def test_quantize_keeps_cents(self, cents: int):
        amount = Decimal(cents) / 100

        assert quantize(amount) == amount


class TestCalendarWindows:
    """
    **Feature: riskledger, Property 9: Calendar Windows**

    *For any* date, its window contains it and spans the right days.
    """

    @given(
        day=st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31)),
        window=st.sampled_from([Window.DAY, Window.WEEK, Window.MONTH, Window.QUARTER, Window.YEAR]),
        week_start=st.integers(min_value=0, max_value=6),
    )
    @settings(max_examples=200)
    def test_window_contains_today(self, day: date, window: Window, week_start: int):
        start, end = window_bounds(window, day, week_start)

        assert start <= day <= end

    @given(
        day=st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31)),
        week_start=st.integers(min_value=0, max_value=6),
    )
    @settings(max_examples=100)
    def test_week_starts_on_configured_day(self, day: date, week_start: int):
        start, end = window_bounds(Window.WEEK, day, week_start)

        assert start.weekday() == week_start
        assert (end - start).days == 6

    def test_week_starts_sunday_by_default(self):
        # 2024-03-06 is a Wednesday
        assert window_bounds(Window.WEEK, date(2024, 3, 6)) == (date(2024, 3, 3), date(2024, 3, 9))

    def test_leap_february(self):
        assert window_bounds(Window.MONTH, date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_quarter(self):
        assert window_bounds(Window.QUARTER, date(2024, 5, 17)) == (date(2024, 4, 1), date(2024, 6, 30))

    def test_all(self):
        assert window_bounds(Window.ALL, date(2024, 5, 17)) == (date.min, date.max)


class TestTradeOrdering:
    """Trades order by date, then entry time, then id."""

    def test_sort_key(self):
        trades = [
            Trade(id="b", account_id="a", trade_date=date(2024, 3, 2), result=Decimal("1")),
            Trade(id="c", account_id="a", trade_date=date(2024, 3, 1), entry_time=time(11, 0), result=Decimal("1")),
            Trade(id="a", account_id="a", trade_date=date(2024, 3, 1), entry_time=time(10, 0), result=Decimal("1")),
            Trade(id="d", account_id="a", trade_date=date(2024, 3, 1), result=Decimal("1")),
        ]

        assert [t.id for t in sorted(trades, key=trade_sort_key)] == ["d", "a", "c", "b"]
