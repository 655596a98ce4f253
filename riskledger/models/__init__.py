"""Data models for riskledger."""

from riskledger.models.account import Account
from riskledger.models.audit import AuditResult, AuditRow, Outcome, RowEvent
from riskledger.models.movement import (
    Adjustment,
    Deposit,
    InitialBalance,
    Movement,
    MovementType,
    TradeResult,
    Withdrawal,
    new_movement,
    parse_movement,
)
from riskledger.models.plan import Plan, Scope
from riskledger.models.trade import Trade

__all__ = [
    "Account",
    "AuditResult",
    "AuditRow",
    "Outcome",
    "RowEvent",
    "Adjustment",
    "Deposit",
    "InitialBalance",
    "Movement",
    "MovementType",
    "TradeResult",
    "Withdrawal",
    "new_movement",
    "parse_movement",
    "Plan",
    "Scope",
    "Trade",
]
