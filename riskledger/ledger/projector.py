"""Balance projection over an account's movement log.

The projector is a pure fold: it sorts an unordered collection of
movements by ``(effective_at, sequence)`` and accumulates the running
balance after each one. The running balance is never stored as a source
of truth; everything that needs "what is this account worth" reads it
from here.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from riskledger.errors import MovementIntegrityError
from riskledger.models import Account, Movement, MovementType, Plan
from riskledger.models.movement import MOVEMENT_CLASSES, SIGN_RULES, parse_movement
from riskledger.utils.chrono import movement_sort_key
from riskledger.utils.money import ZERO

_MOVEMENT_MODELS = tuple(MOVEMENT_CLASSES.values())


class BalanceRow(BaseModel):
    """A movement with the running balance around it."""

    movement: Movement
    balance_before: Decimal
    balance_after: Decimal

    model_config = {"frozen": True}


class OrderedBalanceSeries(BaseModel):
    """Movements of one account in chronological order with running balances."""

    account_id: Optional[str] = None
    rows: list[BalanceRow] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def closing_balance(self) -> Decimal:
        """Running balance after the last movement (zero when empty)."""
        return self.rows[-1].balance_after if self.rows else ZERO

    @property
    def movements(self) -> list[Movement]:
        return [row.movement for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)


class LedgerTotals(BaseModel):
    """Movement amounts summed per type."""

    deposits: Decimal = ZERO
    withdrawals: Decimal = ZERO
    trade_results: Decimal = ZERO
    adjustments: Decimal = ZERO
    net: Decimal = ZERO

    model_config = {"frozen": True}


def _coerce(item: Any) -> Movement:
    if isinstance(item, _MOVEMENT_MODELS):
        return item
    if isinstance(item, Mapping):
        try:
            return parse_movement(item)
        except ValidationError as e:
            raise MovementIntegrityError(f"Malformed movement {dict(item)!r}: {e}") from e
    raise MovementIntegrityError(f"Not a movement: {item!r}")


def _account_of(item: Any) -> Optional[str]:
    if isinstance(item, Mapping):
        return item.get("account_id")
    return getattr(item, "account_id", None)


def _validated(movements: Iterable[Any], account_id: Optional[str]) -> tuple[Optional[str], list[Movement]]:
    checked: list[Movement] = []
    seen_sequences: set[int] = set()
    for item in movements:
        movement = _coerce(item)
        if account_id is None:
            account_id = movement.account_id
        if movement.account_id != account_id:
            raise MovementIntegrityError(
                f"Movement {movement.sequence} belongs to account {movement.account_id}, "
                f"expected {account_id}"
            )
        if movement.sequence is None:
            raise MovementIntegrityError(
                f"Movement on account {account_id} at {movement.effective_at} has no sequence"
            )
        if movement.sequence in seen_sequences:
            raise MovementIntegrityError(
                f"Duplicate sequence {movement.sequence} on account {account_id}"
            )
        rule, expected = SIGN_RULES[movement.movement_type]
        if not rule(movement.amount):
            raise MovementIntegrityError(
                f"{movement.type} amount must be {expected}, got {movement.amount}"
            )
        seen_sequences.add(movement.sequence)
        checked.append(movement)
    return account_id, checked


def project(movements: Iterable[Any], account_id: Optional[str] = None) -> OrderedBalanceSeries:
    """Order movements chronologically and compute running balances.

    Args:
        movements: Movements of a single account, in any order. Raw
            mappings, as read from a record store, are parsed first.
        account_id: Expected account. Defaults to the first movement's.

    Returns:
        Series sorted by ``(effective_at, sequence)`` where every row
        carries the balance before and after its movement.

    Raises:
        MovementIntegrityError: If any movement is malformed, unsequenced,
            duplicated, mis-signed or belongs to another account.
    """
    account_id, checked = _validated(movements, account_id)

    rows: list[BalanceRow] = []
    balance = ZERO
    for movement in sorted(checked, key=movement_sort_key):
        before = balance
        balance = before + movement.amount
        rows.append(
            BalanceRow(
                movement=movement.model_copy(update={"balance_after": balance}),
                balance_before=before,
                balance_after=balance,
            )
        )
    return OrderedBalanceSeries(account_id=account_id, rows=rows)


def current_balance(movements: Iterable[Any], account: Optional[Account] = None) -> Decimal:
    """Get what an account is worth now.

    Args:
        movements: The account's movements.
        account: Account record; its initial balance is the answer when
            there are no movements yet.

    Returns:
        Running balance after the last movement.
    """
    series = project(movements, account.id if account else None)
    if not series.rows:
        return account.initial_balance if account else ZERO
    return series.closing_balance


def available_capital(
    account: Account,
    all_movements: Iterable[Any],
    active_plans: Iterable[Plan],
    exclude_plan_id: Optional[str] = None,
) -> Decimal:
    """Capital on an account not yet promised to another active plan.

    Args:
        account: Account to allocate from.
        all_movements: Movements of any accounts; only this account's count.
        active_plans: Plans to subtract; inactive and foreign plans are skipped.
        exclude_plan_id: Plan being edited, whose own allocation is not
            subtracted.

    Returns:
        Current balance minus the other plans' allocations. May be
        negative when the account has lost capital already allocated.
    """
    own = [m for m in all_movements if _account_of(m) == account.id]
    allocated = sum(
        (
            plan.allocated_pl
            for plan in active_plans
            if plan.account_id == account.id
            and plan.active
            and (exclude_plan_id is None or plan.id != exclude_plan_id)
        ),
        ZERO,
    )
    return current_balance(own, account) - allocated


def totals_by_type(movements: Iterable[Any]) -> LedgerTotals:
    """Sum a ledger per movement type.

    The opening balance counts as a deposit and withdrawals are reported
    as a positive magnitude.
    """
    deposits = withdrawals = trade_results = adjustments = net = ZERO
    for movement in project(movements).movements:
        kind = movement.movement_type
        if kind in (MovementType.INITIAL_BALANCE, MovementType.DEPOSIT):
            deposits += movement.amount
        elif kind == MovementType.WITHDRAWAL:
            withdrawals += abs(movement.amount)
        elif kind == MovementType.TRADE_RESULT:
            trade_results += movement.amount
        elif kind == MovementType.ADJUSTMENT:
            adjustments += movement.amount
        else:
            raise MovementIntegrityError(f"Unknown movement type: {kind}")
        net += movement.amount
    return LedgerTotals(
        deposits=deposits,
        withdrawals=withdrawals,
        trade_results=trade_results,
        adjustments=adjustments,
        net=net,
    )


def movements_between(series: OrderedBalanceSeries, start: date, end: date) -> list[BalanceRow]:
    """Rows whose effective date falls within ``start``..``end`` inclusive."""
    return [row for row in series.rows if start <= row.movement.effective_at.date() <= end]
