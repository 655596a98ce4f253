"""SQLite record store for riskledger."""

import sqlite3
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Optional

from riskledger.db.base import RecordStore, new_id
from riskledger.models import Account, Movement, Plan, Trade, parse_movement


def _dec(value: Optional[str]) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


def _text(value) -> Optional[str]:
    return str(value) if value is not None else None


class SQLiteRecordStore(RecordStore):
    """SQLite-based record store.

    Amounts are stored as decimal text so that what is read back is
    exactly what was written.
    """

    REQUIRED_TABLES = [
        "accounts",
        "movements",
        "plans",
        "trades",
    ]

    def __init__(self, db_path: Path):
        """Initialize the record store.

        Args:
            db_path: Path to the SQLite database file.
        """
        super().__init__()
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    currency TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    initial_balance TEXT NOT NULL,
                    active INTEGER NOT NULL DEFAULT 1
                )
            """)

            # Append-only: rows are never updated or deleted
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS movements (
                    sequence INTEGER PRIMARY KEY AUTOINCREMENT,
                    account_id TEXT NOT NULL REFERENCES accounts(id),
                    type TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    effective_at TEXT NOT NULL,
                    trade_id TEXT,
                    description TEXT
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS plans (
                    id TEXT PRIMARY KEY,
                    account_id TEXT NOT NULL REFERENCES accounts(id),
                    name TEXT NOT NULL,
                    allocated_pl TEXT NOT NULL,
                    cycle_goal_percent TEXT NOT NULL,
                    cycle_stop_percent TEXT NOT NULL,
                    period_goal_percent TEXT NOT NULL,
                    period_stop_percent TEXT NOT NULL,
                    risk_per_operation TEXT NOT NULL,
                    rr_target TEXT NOT NULL,
                    operation_period TEXT NOT NULL,
                    adjustment_cycle TEXT NOT NULL,
                    active INTEGER NOT NULL DEFAULT 1
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id TEXT PRIMARY KEY,
                    account_id TEXT NOT NULL REFERENCES accounts(id),
                    plan_id TEXT,
                    ticker TEXT NOT NULL,
                    side TEXT NOT NULL,
                    quantity TEXT NOT NULL,
                    trade_date TEXT NOT NULL,
                    entry_time TEXT,
                    result TEXT NOT NULL,
                    risk_percent TEXT,
                    rr_ratio TEXT
                )
            """)

            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_movements_account ON movements(account_id)"
            )

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Movements ====================

    def _insert_movement(self, movement: Movement) -> Movement:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO movements
                (account_id, type, amount, effective_at, trade_id, description)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    movement.account_id,
                    movement.type,
                    str(movement.amount),
                    movement.effective_at.isoformat(),
                    getattr(movement, "trade_id", None),
                    movement.description,
                ),
            )
            conn.commit()
            return movement.model_copy(update={"sequence": cursor.lastrowid})
        finally:
            conn.close()

    def list_movements(self, account_id: str) -> list[Movement]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT sequence, account_id, type, amount, effective_at, trade_id, description
                FROM movements
                WHERE account_id = ?
                """,
                (account_id,),
            )
            return [self._row_to_movement(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def _row_to_movement(row: sqlite3.Row) -> Movement:
        data = {
            "sequence": row["sequence"],
            "account_id": row["account_id"],
            "type": row["type"],
            "amount": Decimal(row["amount"]),
            "effective_at": datetime.fromisoformat(row["effective_at"]),
            "description": row["description"],
        }
        if row["trade_id"] is not None:
            data["trade_id"] = row["trade_id"]
        return parse_movement(data)

    # ==================== Accounts ====================

    def save_account(self, account: Account) -> None:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO accounts
                (id, owner_id, name, currency, kind, initial_balance, active)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    account.id,
                    account.owner_id,
                    account.name,
                    account.currency,
                    account.kind,
                    str(account.initial_balance),
                    1 if account.active else 0,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def get_account(self, account_id: str) -> Optional[Account]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM accounts WHERE id = ?", (account_id,))
            row = cursor.fetchone()
            return self._row_to_account(row) if row else None
        finally:
            conn.close()

    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if owner_id:
                cursor.execute(
                    "SELECT * FROM accounts WHERE owner_id = ? ORDER BY name", (owner_id,)
                )
            else:
                cursor.execute("SELECT * FROM accounts ORDER BY name")
            return [self._row_to_account(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def _row_to_account(row: sqlite3.Row) -> Account:
        return Account(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            currency=row["currency"],
            kind=row["kind"],
            initial_balance=Decimal(row["initial_balance"]),
            active=bool(row["active"]),
        )

    # ==================== Plans ====================

    def save_plan(self, plan: Plan) -> Plan:
        if plan.id is None:
            plan = plan.model_copy(update={"id": new_id()})
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO plans
                (id, account_id, name, allocated_pl, cycle_goal_percent, cycle_stop_percent,
                 period_goal_percent, period_stop_percent, risk_per_operation, rr_target,
                 operation_period, adjustment_cycle, active)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    plan.id,
                    plan.account_id,
                    plan.name,
                    str(plan.allocated_pl),
                    str(plan.cycle_goal_percent),
                    str(plan.cycle_stop_percent),
                    str(plan.period_goal_percent),
                    str(plan.period_stop_percent),
                    str(plan.risk_per_operation),
                    str(plan.rr_target),
                    plan.operation_period,
                    plan.adjustment_cycle,
                    1 if plan.active else 0,
                ),
            )
            conn.commit()
            return plan
        finally:
            conn.close()

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM plans WHERE id = ?", (plan_id,))
            row = cursor.fetchone()
            return self._row_to_plan(row) if row else None
        finally:
            conn.close()

    def list_plans(self, account_id: Optional[str] = None, active_only: bool = False) -> list[Plan]:
        query = "SELECT * FROM plans WHERE 1 = 1"
        params: list = []
        if account_id:
            query += " AND account_id = ?"
            params.append(account_id)
        if active_only:
            query += " AND active = 1"
        query += " ORDER BY name"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [self._row_to_plan(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def _row_to_plan(row: sqlite3.Row) -> Plan:
        return Plan(
            id=row["id"],
            account_id=row["account_id"],
            name=row["name"],
            allocated_pl=Decimal(row["allocated_pl"]),
            cycle_goal_percent=Decimal(row["cycle_goal_percent"]),
            cycle_stop_percent=Decimal(row["cycle_stop_percent"]),
            period_goal_percent=Decimal(row["period_goal_percent"]),
            period_stop_percent=Decimal(row["period_stop_percent"]),
            risk_per_operation=Decimal(row["risk_per_operation"]),
            rr_target=Decimal(row["rr_target"]),
            operation_period=row["operation_period"],
            adjustment_cycle=row["adjustment_cycle"],
            active=bool(row["active"]),
        )

    # ==================== Trades ====================

    def save_trade(self, trade: Trade) -> Trade:
        if trade.id is None:
            trade = trade.model_copy(update={"id": new_id()})
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO trades
                (id, account_id, plan_id, ticker, side, quantity, trade_date, entry_time,
                 result, risk_percent, rr_ratio)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    trade.id,
                    trade.account_id,
                    trade.plan_id,
                    trade.ticker,
                    trade.side,
                    str(trade.quantity),
                    trade.trade_date.isoformat(),
                    trade.entry_time.isoformat() if trade.entry_time else None,
                    str(trade.result),
                    _text(trade.risk_percent),
                    _text(trade.rr_ratio),
                ),
            )
            conn.commit()
            return trade
        finally:
            conn.close()

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM trades WHERE id = ?", (trade_id,))
            row = cursor.fetchone()
            return self._row_to_trade(row) if row else None
        finally:
            conn.close()

    def list_trades(
        self, plan_id: Optional[str] = None, account_id: Optional[str] = None
    ) -> list[Trade]:
        query = "SELECT * FROM trades WHERE 1 = 1"
        params: list = []
        if plan_id:
            query += " AND plan_id = ?"
            params.append(plan_id)
        if account_id:
            query += " AND account_id = ?"
            params.append(account_id)
        query += " ORDER BY trade_date, entry_time, id"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [self._row_to_trade(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def delete_trade(self, trade_id: str) -> bool:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM trades WHERE id = ?", (trade_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    @staticmethod
    def _row_to_trade(row: sqlite3.Row) -> Trade:
        return Trade(
            id=row["id"],
            account_id=row["account_id"],
            plan_id=row["plan_id"],
            ticker=row["ticker"],
            side=row["side"],
            quantity=Decimal(row["quantity"]),
            trade_date=date.fromisoformat(row["trade_date"]),
            entry_time=time.fromisoformat(row["entry_time"]) if row["entry_time"] else None,
            result=Decimal(row["result"]),
            risk_percent=_dec(row["risk_percent"]),
            rr_ratio=_dec(row["rr_ratio"]),
        )

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
