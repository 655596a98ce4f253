"""In-memory record store, for tests and embedding."""

from itertools import count
from typing import Optional

from riskledger.db.base import RecordStore, new_id
from riskledger.models import Account, Movement, Plan, Trade
from riskledger.utils.chrono import trade_sort_key


class InMemoryRecordStore(RecordStore):
    """Record store kept in process memory."""

    def __init__(self):
        super().__init__()
        self._accounts: dict[str, Account] = {}
        self._movements: list[Movement] = []
        self._plans: dict[str, Plan] = {}
        self._trades: dict[str, Trade] = {}
        self._sequence = count(1)

    def _insert_movement(self, movement: Movement) -> Movement:
        committed = movement.model_copy(update={"sequence": next(self._sequence)})
        self._movements.append(committed)
        return committed

    def list_movements(self, account_id: str) -> list[Movement]:
        return [m for m in self._movements if m.account_id == account_id]

    def save_account(self, account: Account) -> None:
        self._accounts[account.id] = account

    def get_account(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        return [a for a in self._accounts.values() if owner_id is None or a.owner_id == owner_id]

    def save_plan(self, plan: Plan) -> Plan:
        if plan.id is None:
            plan = plan.model_copy(update={"id": new_id()})
        self._plans[plan.id] = plan
        return plan

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        return self._plans.get(plan_id)

    def list_plans(self, account_id: Optional[str] = None, active_only: bool = False) -> list[Plan]:
        return [
            p
            for p in self._plans.values()
            if (account_id is None or p.account_id == account_id) and (p.active or not active_only)
        ]

    def save_trade(self, trade: Trade) -> Trade:
        if trade.id is None:
            trade = trade.model_copy(update={"id": new_id()})
        self._trades[trade.id] = trade
        return trade

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        return self._trades.get(trade_id)

    def list_trades(
        self, plan_id: Optional[str] = None, account_id: Optional[str] = None
    ) -> list[Trade]:
        trades = [
            t
            for t in self._trades.values()
            if (plan_id is None or t.plan_id == plan_id)
            and (account_id is None or t.account_id == account_id)
        ]
        return sorted(trades, key=trade_sort_key)

    def delete_trade(self, trade_id: str) -> bool:
        return self._trades.pop(trade_id, None) is not None
