"""Record store interface for riskledger.

The ledger core does not own persistence; it reads from and appends to
a record store. Movements are append-only: the interface has no way to
update or delete one.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable, Optional

from riskledger.errors import MovementIntegrityError, RecordNotFoundError
from riskledger.models import Account, Movement, Plan, Trade

logger = logging.getLogger(__name__)

MovementListener = Callable[[Movement], None]


def new_id() -> str:
    """Generate a record identifier."""
    return uuid.uuid4().hex


class RecordStore(ABC):
    """Abstract base class for record store implementations.

    Subclasses implement storage; this class owns the append contract
    and the subscription fan-out, so every implementation notifies
    listeners the same way.
    """

    def __init__(self):
        self._listeners: dict[Optional[str], list[MovementListener]] = defaultdict(list)

    # ==================== Movements ====================

    def append_movement(self, movement: Movement) -> Movement:
        """Append a movement and notify subscribers.

        Args:
            movement: Uncommitted movement (no sequence yet).

        Returns:
            The committed movement with its store-assigned sequence.

        Raises:
            MovementIntegrityError: If the movement was already committed.
            RecordNotFoundError: If its account does not exist.
        """
        if movement.sequence is not None:
            raise MovementIntegrityError(
                f"Movement already committed with sequence {movement.sequence}"
            )
        if self.get_account(movement.account_id) is None:
            raise RecordNotFoundError("Account", movement.account_id)

        committed = self._insert_movement(movement.model_copy(update={"balance_after": None}))
        logger.debug(
            "Appended %s %s to account %s (seq %s)",
            committed.type,
            committed.amount,
            committed.account_id,
            committed.sequence,
        )
        self._notify(committed)
        return committed

    @abstractmethod
    def _insert_movement(self, movement: Movement) -> Movement:
        """Persist a movement, assigning the next insertion sequence."""

    @abstractmethod
    def list_movements(self, account_id: str) -> list[Movement]:
        """Get every movement of an account, in no particular order."""

    # ==================== Subscriptions ====================

    def subscribe(
        self, listener: MovementListener, account_id: Optional[str] = None
    ) -> Callable[[], None]:
        """Register a listener for appended movements.

        Args:
            listener: Called with each committed movement.
            account_id: Only notify for this account; None for all.

        Returns:
            Function that removes the subscription.
        """
        self._listeners[account_id].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[account_id]:
                self._listeners[account_id].remove(listener)

        return unsubscribe

    def _notify(self, movement: Movement) -> None:
        for listener in list(self._listeners[movement.account_id]) + list(self._listeners[None]):
            listener(movement)

    # ==================== Accounts ====================

    @abstractmethod
    def save_account(self, account: Account) -> None:
        """Insert or update an account."""

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        """Get an account by id, or None."""

    @abstractmethod
    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        """List accounts, optionally for one owner."""

    # ==================== Plans ====================

    @abstractmethod
    def save_plan(self, plan: Plan) -> Plan:
        """Insert or update a plan, assigning an id to new plans."""

    @abstractmethod
    def get_plan(self, plan_id: str) -> Optional[Plan]:
        """Get a plan by id, or None."""

    @abstractmethod
    def list_plans(self, account_id: Optional[str] = None, active_only: bool = False) -> list[Plan]:
        """List plans, optionally filtered by account and active flag."""

    # ==================== Trades ====================

    @abstractmethod
    def save_trade(self, trade: Trade) -> Trade:
        """Insert or update a trade, assigning an id to new trades."""

    @abstractmethod
    def get_trade(self, trade_id: str) -> Optional[Trade]:
        """Get a trade by id, or None."""

    @abstractmethod
    def list_trades(
        self, plan_id: Optional[str] = None, account_id: Optional[str] = None
    ) -> list[Trade]:
        """List trades, optionally filtered by plan and account."""

    @abstractmethod
    def delete_trade(self, trade_id: str) -> bool:
        """Delete a trade record.

        Returns:
            True if a trade was deleted.
        """
