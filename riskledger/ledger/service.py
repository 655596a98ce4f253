"""Ledger service: the write path for accounts, movements, trades and plans.

Every change to an account's money goes through here as an appended
movement. Balances are read through the ``BalanceCache``, which the
record store invalidates on every append.
"""

import logging
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from riskledger.compliance import (
    PlanStatement,
    ScopeResolver,
    TradeViolation,
    audit_plan,
    check_plan_trade,
    plan_statement,
)
from riskledger.config import LedgerConfig
from riskledger.db.base import RecordStore
from riskledger.errors import (
    InsufficientFundsError,
    MovementIntegrityError,
    PlanConfigurationError,
    RecordNotFoundError,
)
from riskledger.ledger.cache import BalanceCache
from riskledger.ledger.projector import (
    LedgerTotals,
    OrderedBalanceSeries,
    available_capital,
    totals_by_type,
)
from riskledger.models import (
    Account,
    AuditResult,
    Movement,
    MovementType,
    Plan,
    Scope,
    Trade,
    new_movement,
)
from riskledger.utils.chrono import as_naive_utc, start_of_day
from riskledger.utils.money import ZERO, MoneyLike, quantize

logger = logging.getLogger(__name__)


class LedgerService:
    """Account ledger and plan management on top of a record store."""

    def __init__(
        self,
        store: RecordStore,
        config: Optional[LedgerConfig] = None,
        cache: Optional[BalanceCache] = None,
    ):
        """Initialize the service.

        Args:
            store: Record store for accounts, movements, plans and trades.
            config: Ledger settings; defaults are used when omitted.
            cache: Balance cache over ``store``; one is created when omitted.
        """
        self.store = store
        self.config = config or LedgerConfig()
        self.cache = cache or BalanceCache(store)
        self.resolver = ScopeResolver.from_config(self.config)

    def _money(self, value: MoneyLike) -> Decimal:
        return quantize(value, self.config.money_places)

    # ==================== Accounts ====================

    def open_account(
        self,
        owner_id: str,
        name: str,
        initial_balance: MoneyLike = 0,
        currency: str = "BRL",
        kind: str = "LIVE",
        opened_on: Optional[date] = None,
    ) -> Account:
        """Create an account and book its opening balance.

        Args:
            owner_id: Owner of the account.
            name: Display name.
            initial_balance: Opening balance, zero or positive.
            currency: ISO currency code.
            kind: LIVE, SIMULATED or FUNDED.
            opened_on: Opening date; the balance is effective at its start.

        Returns:
            The saved account.
        """
        opening = self._money(initial_balance)
        try:
            account = Account(
                id=uuid.uuid4().hex,
                owner_id=owner_id,
                name=name,
                currency=currency.upper(),
                kind=kind,
                initial_balance=opening,
            )
        except ValidationError as e:
            raise MovementIntegrityError(f"Invalid account: {e}") from e

        self.store.save_account(account)
        self._append(
            MovementType.INITIAL_BALANCE,
            account.id,
            opening,
            effective_at=start_of_day(opened_on or date.today()),
        )
        logger.info("Opened account %s (%s) with %s %s", account.id, name, opening, account.currency)
        return account

    def get_account(self, account_id: str) -> Account:
        account = self.store.get_account(account_id)
        if account is None:
            raise RecordNotFoundError("Account", account_id)
        return account

    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        return self.store.list_accounts(owner_id)

    # ==================== Movements ====================

    def _append(
        self,
        movement_type: MovementType,
        account_id: str,
        amount: Decimal,
        effective_at: Optional[datetime] = None,
        description: Optional[str] = None,
        trade_id: Optional[str] = None,
    ) -> Movement:
        fields = {
            "account_id": account_id,
            "amount": amount,
            "effective_at": effective_at or datetime.now(),
        }
        if description:
            fields["description"] = description
        if trade_id:
            fields["trade_id"] = trade_id

        try:
            movement = new_movement(movement_type, **fields)
        except ValidationError as e:
            logger.warning("Rejected %s of %s on account %s", movement_type.value, amount, account_id)
            raise MovementIntegrityError(f"Invalid {movement_type.value} movement: {e}") from e

        committed = self.store.append_movement(movement)
        logger.info(
            "Booked %s %s on account %s (seq %s)",
            committed.type,
            committed.amount,
            account_id,
            committed.sequence,
        )
        return committed

    def deposit(
        self,
        account_id: str,
        amount: MoneyLike,
        effective_at: Optional[datetime] = None,
        description: Optional[str] = None,
    ) -> Movement:
        """Add capital to an account."""
        self.get_account(account_id)
        return self._append(
            MovementType.DEPOSIT, account_id, self._money(amount), effective_at, description
        )

    def withdraw(
        self,
        account_id: str,
        amount: MoneyLike,
        effective_at: Optional[datetime] = None,
        description: Optional[str] = None,
    ) -> Movement:
        """Take capital out of an account.

        Args:
            account_id: Account to withdraw from.
            amount: Magnitude of the withdrawal; it is stored negative.
            effective_at: When the withdrawal takes effect; defaults to now.
            description: Free-text description.

        Returns:
            The committed withdrawal.

        Raises:
            InsufficientFundsError: If the balance at its effective time, or
                any later balance, would go negative and negative balances
                are not allowed. Nothing is appended.
        """
        self.get_account(account_id)
        magnitude = self._money(amount)
        effective_at = effective_at or datetime.now()
        if magnitude > ZERO and not self.config.allow_negative_balance:
            balance = self._lowest_balance_from(account_id, effective_at)
            if balance - magnitude < ZERO:
                logger.warning(
                    "Rejected withdrawal of %s from account %s (balance %s)", magnitude, account_id, balance
                )
                raise InsufficientFundsError(account_id, balance, magnitude)
        return self._append(MovementType.WITHDRAWAL, account_id, -magnitude, effective_at, description)

    def _lowest_balance_from(self, account_id: str, effective_at: datetime) -> Decimal:
        """Lowest balance a movement effective at ``effective_at`` would see.

        A new movement sorts after every movement at or before its time,
        so it changes the balance at that point and every later one.
        """
        point = as_naive_utc(effective_at)
        balance = ZERO
        later = []
        for row in self.cache.series(account_id).rows:
            if row.movement.effective_at <= point:
                balance = row.balance_after
            else:
                later.append(row.balance_after)
        return min([balance, *later])

    def adjust(
        self,
        account_id: str,
        amount: MoneyLike,
        reason: str,
        effective_at: Optional[datetime] = None,
        trade_id: Optional[str] = None,
    ) -> Movement:
        """Book a signed correction with its reason."""
        self.get_account(account_id)
        return self._append(
            MovementType.ADJUSTMENT, account_id, self._money(amount), effective_at, reason, trade_id
        )

    def statement(self, account_id: str) -> OrderedBalanceSeries:
        """Chronological movements of an account with running balances."""
        self.get_account(account_id)
        return self.cache.series(account_id)

    def totals(self, account_id: str) -> LedgerTotals:
        return totals_by_type(self.statement(account_id).movements)

    def current_balance(self, account_id: str) -> Decimal:
        """What an account is worth now."""
        account = self.get_account(account_id)
        balance = self.cache.balance(account_id)
        return account.initial_balance if balance is None else balance

    def available_capital(self, account_id: str, exclude_plan_id: Optional[str] = None) -> Decimal:
        """Balance not yet allocated to another active plan of the account."""
        account = self.get_account(account_id)
        return available_capital(
            account,
            self.cache.series(account_id).movements,
            self.store.list_plans(account_id, active_only=True),
            exclude_plan_id,
        )

    # ==================== Trades ====================

    def record_trade(self, trade: Trade) -> Trade:
        """Store a finalized trade and book its result.

        Returns:
            The saved trade with its id.

        Raises:
            RecordNotFoundError: If the account or plan does not exist.
            PlanConfigurationError: If the plan belongs to another account.
            MovementIntegrityError: If a trade with the same id was already
                recorded.
        """
        self.get_account(trade.account_id)
        if trade.id is not None and self.store.get_trade(trade.id) is not None:
            logger.warning("Rejected duplicate trade %s on account %s", trade.id, trade.account_id)
            raise MovementIntegrityError(f"Trade already recorded: {trade.id}")
        if trade.plan_id is not None:
            plan = self.get_plan(trade.plan_id)
            if plan.account_id != trade.account_id:
                raise PlanConfigurationError(
                    f"Plan {plan.id} belongs to account {plan.account_id}, "
                    f"not {trade.account_id}"
                )

        saved = self.store.save_trade(trade.model_copy(update={"result": self._money(trade.result)}))
        try:
            self._append(
                MovementType.TRADE_RESULT,
                saved.account_id,
                saved.result,
                effective_at=datetime.combine(saved.trade_date, saved.entry_time or time.min),
                description=f"{saved.side} {saved.ticker}",
                trade_id=saved.id,
            )
        except MovementIntegrityError:
            self.store.delete_trade(saved.id)
            raise
        return saved

    def remove_trade(self, trade_id: str, reason: Optional[str] = None) -> Optional[Movement]:
        """Remove a trade, offsetting its booked result.

        The trade's result stays in the ledger; an adjustment linked to
        the trade cancels it, then the trade record is deleted.

        Returns:
            The offsetting adjustment, or None for a zero result.
        """
        trade = self.get_trade(trade_id)
        offset = None
        if trade.result != ZERO:
            offset = self._append(
                MovementType.ADJUSTMENT,
                trade.account_id,
                self._money(-trade.result),
                description=reason or f"Reversal of trade {trade_id}",
                trade_id=trade_id,
            )
        self.store.delete_trade(trade_id)
        logger.info("Removed trade %s from account %s", trade_id, trade.account_id)
        return offset

    def trade_violations(self, trade_id: str) -> list[TradeViolation]:
        """Plan rules a recorded trade broke, with its period and cycle P&L."""
        trade = self.get_trade(trade_id)
        if trade.plan_id is None:
            return []
        plan = self.get_plan(trade.plan_id)
        return check_plan_trade(plan, self.store.list_trades(plan_id=plan.id), trade, self.resolver)

    def get_trade(self, trade_id: str) -> Trade:
        trade = self.store.get_trade(trade_id)
        if trade is None:
            raise RecordNotFoundError("Trade", trade_id)
        return trade

    def list_trades(
        self, plan_id: Optional[str] = None, account_id: Optional[str] = None
    ) -> list[Trade]:
        return self.store.list_trades(plan_id=plan_id, account_id=account_id)

    # ==================== Plans ====================

    def _validate_plan(self, plan: Plan, exclude_plan_id: Optional[str] = None) -> None:
        if plan.allocated_pl <= ZERO:
            raise PlanConfigurationError(f"Allocated PL must be positive, got {plan.allocated_pl}")
        if plan.period_stop_percent > plan.cycle_stop_percent:
            raise PlanConfigurationError(
                f"Period stop {plan.period_stop_percent}% exceeds "
                f"cycle stop {plan.cycle_stop_percent}%"
            )
        self.resolver.resolve(plan.operation_period)
        self.resolver.resolve(plan.adjustment_cycle)

        if plan.active:
            available = self.available_capital(plan.account_id, exclude_plan_id)
            if plan.allocated_pl > available:
                raise PlanConfigurationError(
                    f"Allocated PL {plan.allocated_pl} exceeds available capital {available} "
                    f"on account {plan.account_id}"
                )

    def create_plan(self, plan: Plan) -> Plan:
        """Validate and save a new plan.

        Raises:
            PlanConfigurationError: If the plan is inconsistent or allocates
                more than the account's available capital.
            ScopeResolutionError: If its period or cycle label is unknown.
        """
        self.get_account(plan.account_id)
        if plan.id is not None and self.store.get_plan(plan.id) is not None:
            raise PlanConfigurationError(f"Plan already exists: {plan.id}")
        plan = plan.model_copy(update={"allocated_pl": self._money(plan.allocated_pl)})
        try:
            self._validate_plan(plan)
        except PlanConfigurationError as e:
            logger.warning("Rejected plan for account %s: %s", plan.account_id, e)
            raise
        saved = self.store.save_plan(plan)
        logger.info("Created plan %s on account %s with PL %s", saved.id, saved.account_id, saved.allocated_pl)
        return saved

    def update_plan(self, plan: Plan) -> Plan:
        """Validate and save changes to an existing plan."""
        if plan.id is None:
            raise PlanConfigurationError("Cannot update a plan without an id")
        current = self.get_plan(plan.id)
        if current.account_id != plan.account_id:
            raise PlanConfigurationError(f"Plan {plan.id} cannot move to another account")
        plan = plan.model_copy(update={"allocated_pl": self._money(plan.allocated_pl)})
        try:
            self._validate_plan(plan, exclude_plan_id=plan.id)
        except PlanConfigurationError as e:
            logger.warning("Rejected update of plan %s: %s", plan.id, e)
            raise
        saved = self.store.save_plan(plan)
        logger.info("Updated plan %s", saved.id)
        return saved

    def deactivate_plan(self, plan_id: str) -> Plan:
        """Release a plan's allocation."""
        plan = self.get_plan(plan_id)
        saved = self.store.save_plan(plan.model_copy(update={"active": False}))
        logger.info("Deactivated plan %s", plan_id)
        return saved

    def get_plan(self, plan_id: str) -> Plan:
        plan = self.store.get_plan(plan_id)
        if plan is None:
            raise RecordNotFoundError("Plan", plan_id)
        return plan

    def list_plans(self, account_id: Optional[str] = None, active_only: bool = False) -> list[Plan]:
        return self.store.list_plans(account_id, active_only)

    # ==================== Compliance ====================

    def audit(self, plan_id: str, scope: Scope, today: Optional[date] = None) -> AuditResult:
        """Audit a plan's scope window around ``today``."""
        plan = self.get_plan(plan_id)
        return audit_plan(
            plan,
            self.store.list_trades(plan_id=plan_id),
            Scope(scope),
            today or date.today(),
            self.resolver,
            self.config.money_places,
        )

    def plan_statement(self, plan_id: str, scope: Scope, today: Optional[date] = None) -> PlanStatement:
        """Audit of a plan's scope with per-trade rule checks and a summary."""
        plan = self.get_plan(plan_id)
        return plan_statement(
            plan,
            self.store.list_trades(plan_id=plan_id),
            Scope(scope),
            today or date.today(),
            self.resolver,
            self.config.money_places,
        )
